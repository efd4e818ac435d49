"""
Reaction engine: one of five mutually exclusive reactions per (content item, user).

Exclusivity is not a store constraint. It is kept by delete-before-insert, and the
displayed counts are re-derived from a full re-read of the item's reaction rows
after every mutation rather than by incremental counter math.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from ..errors import DuplicateKey, RelationMissing, StoreError
from ..models import ReactionKind, empty_reaction_counts
from ..utils import utc_now
from .failures import report_failure
from .identity import IdentityProvider
from .store_client import REACTIONS, EngagementStoreClient, Row
from .view_state import ContentItemView

logger = logging.getLogger(__name__)

REACTION_ACTION = "reaction"
_ACTION_LABEL = "update your reaction"


@dataclass
class ReactionOutcome:
    reaction: Optional[ReactionKind]
    counts: Dict[str, int] = field(default_factory=empty_reaction_counts)
    dropped: bool = False
    applied: bool = True


def latest_per_user(rows: Iterable[Row]) -> Dict[str, Row]:
    """
    Newest reaction row per user. Cross-session races can leave two rows for one
    user; only the newest one counts.
    """
    latest: Dict[str, Row] = {}
    for row in rows:
        uid = row.get("user_id")
        if not uid:
            continue
        prev = latest.get(uid)
        if prev is None or (row.get("created_at") or "") >= (prev.get("created_at") or ""):
            latest[uid] = row
    return latest


def _kind_of(row: Optional[Row]) -> Optional[ReactionKind]:
    if not row:
        return None
    try:
        return ReactionKind(row.get("kind"))
    except ValueError:
        return None


def count_by_kind(rows: Iterable[Row]) -> Dict[str, int]:
    """Counts per kind with one vote per user; the sum equals distinct reacting users."""
    counts = empty_reaction_counts()
    for row in latest_per_user(rows).values():
        kind = _kind_of(row)
        if kind is not None:
            counts[kind.value] += 1
    return counts


class ReactionEngine:
    def __init__(self, store: EngagementStoreClient, identity: IdentityProvider, table: str = REACTIONS):
        self._store = store
        self._identity = identity
        self._table = table

    def _derive(self, rows: Iterable[Row], user_id: Optional[str]) -> ReactionOutcome:
        rows = list(rows)
        mine = latest_per_user(rows).get(user_id) if user_id else None
        return ReactionOutcome(reaction=_kind_of(mine), counts=count_by_kind(rows))

    def _apply(self, view: ContentItemView, generation: int, outcome: ReactionOutcome) -> None:
        if view.accepts(generation):
            view.reaction = outcome.reaction
            view.reaction_counts = dict(outcome.counts)

    async def load(self, view: ContentItemView, user_id: Optional[str] = None) -> ReactionOutcome:
        """Passive read of counts and the viewer's reaction. Failures read as zero."""
        generation = view.generation
        try:
            rows = await self._store.select(self._table, {"content_item_id": view.content_item_id})
        except StoreError as e:
            logger.warning("[reactions] load failed for item=%s (%s): %s", view.content_item_id, type(e).__name__, e)
            rows = []
        outcome = self._derive(rows, user_id)
        self._apply(view, generation, outcome)
        return outcome

    async def _insert(self, item_id: str, user_id: str, kind: ReactionKind) -> None:
        try:
            await self._store.insert(
                self._table,
                {"content_item_id": item_id, "user_id": user_id, "kind": kind.value, "created_at": utc_now()},
            )
        except DuplicateKey:
            # Another write for the same choice won the race; the target state holds
            logger.info("[reactions] duplicate insert item=%s user=%s kind=%s", item_id, user_id, kind.value)

    async def apply_reaction(self, view: ContentItemView, kind: ReactionKind) -> ReactionOutcome:
        """
        Toggle-with-switch:
          no reaction        -> insert kind
          same kind          -> delete (toggle off)
          different kind     -> delete old, then insert new (not atomic)
        then re-read every reaction row for the item and recount.

        Raises AuthRequired (before any store call) when nobody is logged in.
        """
        kind = ReactionKind(kind)
        user_id = await self._identity.require_user()

        with view.guard.hold(REACTION_ACTION) as token:
            if token is None:
                return ReactionOutcome(view.reaction, dict(view.reaction_counts), dropped=True, applied=False)

            generation = view.generation
            item_id = view.content_item_id
            pair = {"content_item_id": item_id, "user_id": user_id}

            def notifier():
                return view.notifier if view.accepts(generation) else None

            try:
                existing = await self._store.select(self._table, pair)
            except StoreError as e:
                report_failure(notifier(), e, _ACTION_LABEL, "reactions")
                if isinstance(e, RelationMissing):
                    outcome = ReactionOutcome(reaction=None, applied=False)
                    self._apply(view, generation, outcome)
                    return outcome
                return ReactionOutcome(view.reaction, dict(view.reaction_counts), applied=False)

            current = _kind_of(latest_per_user(existing).get(user_id))
            mutated = False
            applied = True
            try:
                if current is None:
                    await self._insert(item_id, user_id, kind)
                    mutated = True
                elif current == kind:
                    # Filtering on (item, user) also clears duplicate rows left by races
                    await self._store.delete(self._table, pair)
                    mutated = True
                else:
                    await self._store.delete(self._table, pair)
                    mutated = True
                    await self._insert(item_id, user_id, kind)
            except StoreError as e:
                applied = False
                if mutated:
                    # Old reaction removed, new one not stored: accepted degraded state
                    logger.warning(
                        "[reactions] switch %s->%s half-applied for item=%s user=%s: %s",
                        current.value if current else None, kind.value, item_id, user_id, e,
                    )
                report_failure(notifier(), e, _ACTION_LABEL, "reactions")

            if not mutated:
                return ReactionOutcome(view.reaction, dict(view.reaction_counts), applied=False)

            try:
                rows = await self._store.select(self._table, {"content_item_id": item_id})
            except StoreError as e:
                logger.warning("[reactions] recount failed for item=%s: %s", item_id, e)
                # Keep the displayed counts; the next refresh re-derives them
                expected = (None if current == kind else kind) if applied else None
                outcome = ReactionOutcome(expected, dict(view.reaction_counts), applied=applied)
                self._apply(view, generation, outcome)
                return outcome

            outcome = self._derive(rows, user_id)
            outcome.applied = applied
            self._apply(view, generation, outcome)
            return outcome

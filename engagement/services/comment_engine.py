"""
Comment engine: list/create/delete comments on a content item and toggle comment likes.

Listing is passive: any failure degrades the panel to "no comments" and never blocks
the page. Create/delete/like are user actions and report failures as notices. The
panel goes uninitialized -> loading -> loaded | degraded, and stays put on
create/delete/like (no re-list).
"""

import logging
from typing import Dict, Iterable, List, Optional

from ..errors import DuplicateKey, StoreError, ValidationError
from ..models import AuthorInfo, PanelState, SortBy
from ..utils import DEFAULT_COMMENT_MAX_LENGTH, blank_to_none, normalize_comment, utc_now
from .binary_engine import BinaryEngagementEngine, BinaryOutcome
from .failures import permission_message, report_failure
from .identity import IdentityProvider
from .store_client import COMMENT_LIKES, COMMENTS, PROFILES, EngagementStoreClient
from .view_state import CommentEntry, ContentItemView

logger = logging.getLogger(__name__)

CREATE_ACTION = "comment:create"

SORT_ORDER = {
    SortBy.RECENCY: ("created_at", True),
    SortBy.POPULARITY: ("like_count", True),
}


class CommentEngine:
    def __init__(
        self,
        store: EngagementStoreClient,
        identity: IdentityProvider,
        max_length: int = DEFAULT_COMMENT_MAX_LENGTH,
    ):
        self._store = store
        self._identity = identity
        self.max_length = max_length
        self.likes = BinaryEngagementEngine(store, identity, COMMENT_LIKES, key_field="comment_id")

    async def authors(self, user_ids: Iterable[str]) -> Dict[str, AuthorInfo]:
        """Display data for user ids. Raises StoreError."""
        ids = [u for u in dict.fromkeys(user_ids) if u]
        if not ids:
            return {}
        rows = await self._store.select(PROFILES, {"id": ids})
        return {
            str(r["id"]): AuthorInfo(
                id=str(r["id"]),
                name=blank_to_none(r.get("name")),
                avatar_url=blank_to_none(r.get("avatar_url")),
            )
            for r in rows
        }

    async def list(self, view: ContentItemView, sort_by: Optional[SortBy] = None) -> List[CommentEntry]:
        """
        Fresh read of the item's comments in the requested order, decorated with
        author data and the viewer's like state. Replaces the displayed list; when
        list calls overlap only the newest one is applied.
        """
        sort = SortBy(sort_by) if sort_by else view.comment_sort
        generation = view.generation
        seq = view.next_list_seq()
        if view.accepts(generation):
            view.comment_sort = sort
            view.comment_panel = PanelState.LOADING

        def current() -> bool:
            return view.accepts(generation) and view.is_latest_list(seq)

        try:
            rows = await self._store.select(
                COMMENTS,
                {"content_item_id": view.content_item_id},
                order_by=SORT_ORDER[sort],
            )
        except StoreError as e:
            logger.warning("[comments] list failed for item=%s (%s): %s", view.content_item_id, type(e).__name__, e)
            if current():
                view.comments = []
                view.comment_panel = PanelState.DEGRADED
            return []

        user_id = await self._identity.current_user()

        try:
            authors = await self.authors(r.get("user_id") for r in rows)
        except StoreError as e:
            logger.warning("[comments] author lookup failed for item=%s: %s", view.content_item_id, e)
            authors = {}

        liked = set()
        if user_id and rows:
            try:
                liked = await self.likes.on_ids((str(r["id"]) for r in rows), user_id)
            except StoreError as e:
                logger.warning("[comments] like lookup failed for item=%s: %s", view.content_item_id, e)

        entries = [
            CommentEntry.from_row(r, author=authors.get(r.get("user_id")), user_liked=str(r["id"]) in liked)
            for r in rows
        ]
        if current():
            view.comments = entries
            view.comment_panel = PanelState.LOADED
        return entries

    async def create(self, view: ContentItemView, content: str) -> Optional[CommentEntry]:
        """
        Post a comment and prepend it to the displayed list (no re-list).

        Raises AuthRequired, then ValidationError for empty or over-long text; both
        before any store call.
        """
        user_id = await self._identity.require_user()
        try:
            text = normalize_comment(content, self.max_length)
        except ValidationError as e:
            view.notifier.error(str(e))
            raise

        with view.guard.hold(CREATE_ACTION) as token:
            if token is None:
                return None
            generation = view.generation
            now = utc_now()
            row = {
                "content_item_id": view.content_item_id,
                "user_id": user_id,
                "content": text,
                "like_count": 0,
                "created_at": now,
                "updated_at": now,
            }
            try:
                stored = await self._store.insert(COMMENTS, row)
            except DuplicateKey:
                # The row is already there; show what the store has
                logger.info("[comments] duplicate insert for item=%s user=%s; re-listing", view.content_item_id, user_id)
                await self.list(view)
                return None
            except StoreError as e:
                report_failure(view.notifier if view.accepts(generation) else None, e, "post your comment", "comments")
                return None

            try:
                author = (await self.authors([user_id])).get(user_id)
            except StoreError as e:
                logger.warning("[comments] author lookup failed for user=%s: %s", user_id, e)
                author = None

            entry = CommentEntry.from_row(stored, author=author)
            if view.accepts(generation):
                view.comments.insert(0, entry)
                view.comment_count += 1
                view.notifier.success("Comment posted.")
            return entry

    async def delete(self, view: ContentItemView, comment_id: str) -> bool:
        """Delete the viewer's own comment. The store delete is filtered by author."""
        user_id = await self._identity.require_user()
        with view.guard.hold(f"comment:delete:{comment_id}") as token:
            if token is None:
                return False
            generation = view.generation
            try:
                removed = await self._store.delete(COMMENTS, {"id": comment_id, "user_id": user_id})
            except StoreError as e:
                report_failure(view.notifier if view.accepts(generation) else None, e, "delete this comment", "comments")
                return False

            if removed == 0:
                logger.info("[comments] delete matched nothing: comment=%s user=%s", comment_id, user_id)
                if view.accepts(generation):
                    view.notifier.error(permission_message("delete this comment"))
                return False

            try:
                await self._store.delete(COMMENT_LIKES, {"comment_id": comment_id})
            except StoreError as e:
                logger.warning("[comments] orphaned likes left for comment=%s: %s", comment_id, e)

            if view.accepts(generation):
                view.comments = [c for c in view.comments if c.id != comment_id]
                view.comment_count = max(0, view.comment_count - 1)
                view.notifier.success("Comment deleted.")
            return True

    async def _store_like_count(self, comment_id: str) -> Optional[int]:
        """
        Recount comment_likes for one comment and write it to comments.like_count.
        Returns the stored count, or None when either call failed.
        """
        try:
            n = await self.likes.count(comment_id)
            await self._store.update(COMMENTS, {"id": comment_id}, {"like_count": n})
        except StoreError as e:
            logger.warning("[comments] like_count write-back for comment=%s failed: %s", comment_id, e)
            return None
        return n

    async def toggle_like(self, view: ContentItemView, comment_id: str) -> BinaryOutcome:
        """
        Like/unlike one comment. The comment's stored like_count is recounted from
        comment_likes so later lists (and popularity order) see the change; only
        that entry is updated locally.
        """
        user_id = await self._identity.require_user()
        with view.guard.hold(f"comment:like:{comment_id}") as token:
            if token is None:
                entry = view.find_comment(comment_id)
                return BinaryOutcome(on=entry.user_liked if entry else None, applied=False, dropped=True)
            generation = view.generation
            outcome = await self.likes.toggle(comment_id, user_id)
            if not outcome.applied:
                report_failure(
                    view.notifier if view.accepts(generation) else None,
                    outcome.error,
                    "update your like",
                    "comments",
                )
                return outcome
            stored = await self._store_like_count(comment_id)
            entry = view.find_comment(comment_id)
            if entry is not None and view.accepts(generation):
                entry.user_liked = bool(outcome.on)
                if stored is not None:
                    entry.like_count = stored
                else:
                    entry.like_count = max(0, entry.like_count + outcome.delta)
            return outcome

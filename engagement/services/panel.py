"""
EngagementPanel: the facade a UI (or the HTTP routes) drives for one open content item.

Binds a store, the acting identity, and a ContentItemView, and routes each user
action to its engine. Engines run independently: a reaction can be in flight while
a comment is being posted; only identical actions are deduplicated by the view's
operation guard.
"""

import logging
from typing import Optional

from ..errors import StoreError
from ..models import ContentKind, ReactionKind, SortBy
from ..utils import DEFAULT_COMMENT_MAX_LENGTH, as_count
from .activity import ActivityService
from .binary_engine import BinaryEngagementEngine, BinaryOutcome
from .comment_engine import CommentEngine
from .failures import report_failure
from .identity import IdentityProvider
from .reaction_engine import ReactionEngine, ReactionOutcome
from .reconciler import CounterReconciler, ReconcileResult
from .store_client import BOOKMARKS, CONTENT_ITEMS, LIKES, EngagementStoreClient
from .view_state import BinaryMirror, ContentItemView

logger = logging.getLogger(__name__)


class EngagementPanel:
    def __init__(
        self,
        store: EngagementStoreClient,
        identity: IdentityProvider,
        view: ContentItemView,
        *,
        comment_max_length: int = DEFAULT_COMMENT_MAX_LENGTH,
        reconcile_on_refresh: bool = False,
    ):
        self._store = store
        self.identity = identity
        self.view = view
        self.reconcile_on_refresh = reconcile_on_refresh

        self.reactions = ReactionEngine(store, identity)
        self.likes = BinaryEngagementEngine(store, identity, LIKES)
        self.bookmarks = BinaryEngagementEngine(store, identity, BOOKMARKS)
        self.comments = CommentEngine(store, identity, max_length=comment_max_length)
        self.reconciler = CounterReconciler(store)
        self.activity = ActivityService(store)

    @property
    def _is_community(self) -> bool:
        return self.view.content_kind == ContentKind.COMMUNITY

    # -- lifecycle ---------------------------------------------------------

    async def open(self) -> ContentItemView:
        """Mount the view, bump the view counter (community posts), and load everything."""
        self.view.mount()
        if self._is_community:
            await self.activity.record_view(self.view.content_item_id)
        await self.refresh()
        return self.view

    def close(self) -> None:
        """Unmount: results of requests still in flight are discarded."""
        self.view.unmount()

    async def refresh(self) -> ContentItemView:
        """Invalidate the local mirror and reload it from the store. Never raises on store failure."""
        view = self.view
        generation = view.generation
        user_id = await self.identity.current_user()

        if self.reconcile_on_refresh and self._is_community:
            await self.reconciler.reconcile(view.content_item_id)

        await self._load_counters(generation)
        await self.reactions.load(view, user_id)
        await self._load_binary(generation, user_id)
        await self.comments.list(view)
        return view

    async def _load_counters(self, generation: int) -> None:
        try:
            items = await self._store.select(CONTENT_ITEMS, {"id": self.view.content_item_id})
        except StoreError as e:
            logger.warning("[panel] counters for %s unavailable (%s): %s", self.view.content_item_id, type(e).__name__, e)
            items = []
        item = items[0] if items else {}
        if self.view.accepts(generation):
            self.view.view_count = as_count(item.get("view_count"))
            self.view.like.count = as_count(item.get("like_count"))
            self.view.comment_count = as_count(item.get("comment_count"))

    async def _load_binary(self, generation: int, user_id: Optional[str]) -> None:
        liked = bookmarked = False
        # Content items carry no bookmark counter; count the rows
        try:
            bookmark_count: Optional[int] = await self.bookmarks.count(self.view.content_item_id)
        except StoreError as e:
            logger.warning("[panel] bookmark count unavailable: %s", e)
            bookmark_count = None
        if user_id:
            try:
                liked = await self.likes.is_on(self.view.content_item_id, user_id)
            except StoreError as e:
                logger.warning("[panel] like state unavailable: %s", e)
            try:
                bookmarked = await self.bookmarks.is_on(self.view.content_item_id, user_id)
            except StoreError as e:
                logger.warning("[panel] bookmark state unavailable: %s", e)
        if self.view.accepts(generation):
            self.view.like.on = liked
            self.view.bookmark.on = bookmarked
            if bookmark_count is not None:
                self.view.bookmark.count = bookmark_count

    # -- reactions ---------------------------------------------------------

    async def apply_reaction(self, kind: ReactionKind) -> ReactionOutcome:
        return await self.reactions.apply_reaction(self.view, kind)

    # -- likes / bookmarks -------------------------------------------------

    async def _toggle(
        self,
        engine: BinaryEngagementEngine,
        action: str,
        mirror: BinaryMirror,
        on_message: str,
        off_message: str,
        label: str,
    ) -> BinaryOutcome:
        user_id = await self.identity.require_user()
        view = self.view
        with view.guard.hold(action) as token:
            if token is None:
                return BinaryOutcome(on=mirror.on, applied=False, dropped=True)
            generation = view.generation
            outcome = await engine.toggle(view.content_item_id, user_id)
            accepted = view.accepts(generation)
            if not outcome.applied:
                report_failure(view.notifier if accepted else None, outcome.error, label, action)
                return outcome
            if accepted:
                mirror.apply(bool(outcome.on), outcome.delta)
                view.notifier.success(on_message if outcome.on else off_message)
            return outcome

    async def toggle_like(self) -> BinaryOutcome:
        return await self._toggle(self.likes, "like", self.view.like, "Liked.", "Like removed.", "update your like")

    async def toggle_bookmark(self) -> BinaryOutcome:
        return await self._toggle(
            self.bookmarks,
            "bookmark",
            self.view.bookmark,
            "Added to bookmarks.",
            "Removed from bookmarks.",
            "update your bookmark",
        )

    # -- comments ----------------------------------------------------------

    async def list_comments(self, sort_by: Optional[SortBy] = None):
        return await self.comments.list(self.view, sort_by)

    async def set_comment_sort(self, sort_by: SortBy):
        # Always a fresh read: cached like counts may have drifted
        return await self.comments.list(self.view, SortBy(sort_by))

    async def create_comment(self, content: str):
        return await self.comments.create(self.view, content)

    async def delete_comment(self, comment_id: str) -> bool:
        return await self.comments.delete(self.view, comment_id)

    async def toggle_comment_like(self, comment_id: str) -> BinaryOutcome:
        return await self.comments.toggle_like(self.view, comment_id)

    # -- counters ----------------------------------------------------------

    async def reconcile(self) -> ReconcileResult:
        """Recount stored counters from rows and pull the corrected values into the view."""
        generation = self.view.generation
        result = await self.reconciler.reconcile(self.view.content_item_id)
        if self.view.accepts(generation):
            if result.like_count is not None:
                self.view.like.count = result.like_count
            if result.comment_count is not None:
                self.view.comment_count = result.comment_count
            for entry in self.view.comments:
                if entry.id in result.comment_like_counts:
                    entry.like_count = result.comment_like_counts[entry.id]
        return result

"""View counter bump and author activity stats. Both are passive: failures never surface."""

import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import StoreError
from ..utils import as_count
from .store_client import COMMENTS, CONTENT_ITEMS, EngagementStoreClient

logger = logging.getLogger(__name__)


@dataclass
class AuthorStats:
    user_id: str
    post_count: int = 0
    comment_count: int = 0


class ActivityService:
    def __init__(self, store: EngagementStoreClient):
        self._store = store

    async def record_view(self, content_item_id: str) -> Optional[int]:
        """
        Read-modify-write view_count + 1. Not atomic: concurrent opens may lose a
        bump. Returns the new value, or None when the item is missing or the store failed.
        """
        try:
            items = await self._store.select(CONTENT_ITEMS, {"id": content_item_id})
            if not items:
                return None
            views = as_count(items[0].get("view_count")) + 1
            await self._store.update(CONTENT_ITEMS, {"id": content_item_id}, {"view_count": views})
            return views
        except StoreError as e:
            logger.debug("[activity] view bump for %s skipped (%s): %s", content_item_id, type(e).__name__, e)
            return None

    async def author_stats(self, user_id: str) -> AuthorStats:
        stats = AuthorStats(user_id=user_id)
        try:
            stats.post_count = len(await self._store.select(CONTENT_ITEMS, {"author_id": user_id}))
        except StoreError as e:
            logger.warning("[activity] post count for %s failed: %s", user_id, e)
        try:
            stats.comment_count = len(await self._store.select(COMMENTS, {"user_id": user_id}))
        except StoreError as e:
            logger.warning("[activity] comment count for %s failed: %s", user_id, e)
        return stats

"""
Counter reconciler: re-derive denormalized counters from the row sets.

Toggles and comment posts only move the viewer's local mirror, so the stored
like_count / comment_count on a content item and like_count on each comment drift
whenever writes race or half-fail. This recounts the authoritative rows and writes
back only what differs. Any failure leaves the stored value as it was.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..errors import StoreError
from ..utils import as_count
from .store_client import COMMENT_LIKES, COMMENTS, CONTENT_ITEMS, LIKES, EngagementStoreClient

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    content_item_id: str
    like_count: Optional[int] = None
    comment_count: Optional[int] = None
    comment_like_counts: Dict[str, int] = field(default_factory=dict)
    corrected: List[str] = field(default_factory=list)


class CounterReconciler:
    def __init__(self, store: EngagementStoreClient):
        self._store = store

    async def _count(self, table: str, filters: dict) -> Optional[int]:
        try:
            return len(await self._store.select(table, filters))
        except StoreError as e:
            logger.warning("[reconcile] count on %s failed (%s): %s", table, type(e).__name__, e)
            return None

    async def reconcile(self, content_item_id: str) -> ReconcileResult:
        result = ReconcileResult(content_item_id=content_item_id)

        try:
            items = await self._store.select(CONTENT_ITEMS, {"id": content_item_id})
        except StoreError as e:
            logger.warning("[reconcile] item %s unreadable (%s): %s", content_item_id, type(e).__name__, e)
            items = []
        item = items[0] if items else None

        result.like_count = await self._count(LIKES, {"content_item_id": content_item_id})

        try:
            comments = await self._store.select(COMMENTS, {"content_item_id": content_item_id})
            result.comment_count = len(comments)
        except StoreError as e:
            logger.warning("[reconcile] comments for %s unreadable (%s): %s", content_item_id, type(e).__name__, e)
            comments = []

        if item is not None:
            values = {}
            if result.like_count is not None and as_count(item.get("like_count")) != result.like_count:
                values["like_count"] = result.like_count
            if result.comment_count is not None and as_count(item.get("comment_count")) != result.comment_count:
                values["comment_count"] = result.comment_count
            if values:
                try:
                    await self._store.update(CONTENT_ITEMS, {"id": content_item_id}, values)
                    result.corrected.extend(sorted(values))
                except StoreError as e:
                    logger.warning("[reconcile] write-back for item %s failed: %s", content_item_id, e)

        if comments:
            ids = [str(c["id"]) for c in comments]
            try:
                like_rows = await self._store.select(COMMENT_LIKES, {"comment_id": ids})
            except StoreError as e:
                logger.warning("[reconcile] comment likes for %s unreadable: %s", content_item_id, e)
                like_rows = None
            if like_rows is not None:
                per_comment = Counter(str(r.get("comment_id")) for r in like_rows)
                for c in comments:
                    cid = str(c["id"])
                    n = per_comment.get(cid, 0)
                    result.comment_like_counts[cid] = n
                    if as_count(c.get("like_count")) == n:
                        continue
                    try:
                        await self._store.update(COMMENTS, {"id": cid}, {"like_count": n})
                        result.corrected.append(f"comments/{cid}.like_count")
                    except StoreError as e:
                        logger.warning("[reconcile] write-back for comment %s failed: %s", cid, e)

        if result.corrected:
            logger.info("[reconcile] item=%s corrected %s", content_item_id, result.corrected)
        return result

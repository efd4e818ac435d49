"""
Binary engagement engine: existence-based toggles (like, bookmark, comment like).

The row's existence is the state. Unlike reactions there is no re-read of sibling
rows after a toggle: the engagement is strictly additive per user, so the caller
moves its local counter mirror by the returned delta (floored at zero there).
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Set

from ..errors import DuplicateKey, StoreError
from ..utils import utc_now
from .identity import IdentityProvider
from .store_client import EngagementStoreClient

logger = logging.getLogger(__name__)


@dataclass
class BinaryOutcome:
    on: Optional[bool]
    delta: int = 0
    applied: bool = True
    dropped: bool = False
    error: Optional[StoreError] = None


class BinaryEngagementEngine:
    """Toggle rows keyed by (key_field, user_id) in one table."""

    def __init__(
        self,
        store: EngagementStoreClient,
        identity: IdentityProvider,
        table: str,
        key_field: str = "content_item_id",
    ):
        self._store = store
        self._identity = identity
        self.table = table
        self.key_field = key_field

    def _key(self, target_id: str, user_id: str) -> dict:
        return {self.key_field: target_id, "user_id": user_id}

    async def is_on(self, target_id: str, user_id: str) -> bool:
        """Existence read. Raises StoreError."""
        rows = await self._store.select(self.table, self._key(target_id, user_id))
        return bool(rows)

    async def on_ids(self, target_ids: Iterable[str], user_id: str) -> Set[str]:
        """Which of target_ids the user has engaged with. Raises StoreError."""
        ids = list(dict.fromkeys(target_ids))
        if not ids:
            return set()
        rows = await self._store.select(self.table, {self.key_field: ids, "user_id": user_id})
        return {str(r.get(self.key_field)) for r in rows}

    async def count(self, target_id: str) -> int:
        """Number of rows for target_id across users. Raises StoreError."""
        rows = await self._store.select(self.table, {self.key_field: target_id})
        return len(rows)

    async def toggle(self, target_id: str, user_id: Optional[str] = None) -> BinaryOutcome:
        """
        Flip the user's engagement with target_id.

        Raises AuthRequired before any store call when no user is logged in. Store
        failures come back as applied=False with the error attached; a DuplicateKey
        on insert means another write already switched it on.
        """
        if user_id is None:
            user_id = await self._identity.require_user()
        key = self._key(target_id, user_id)
        try:
            rows = await self._store.select(self.table, key)
        except StoreError as e:
            return BinaryOutcome(on=None, applied=False, error=e)

        if rows:
            try:
                await self._store.delete(self.table, key)
            except StoreError as e:
                return BinaryOutcome(on=None, applied=False, error=e)
            return BinaryOutcome(on=False, delta=-1)

        try:
            await self._store.insert(self.table, {**key, "created_at": utc_now()})
        except DuplicateKey:
            logger.info("[%s] duplicate insert %s=%s user=%s; already on", self.table, self.key_field, target_id, user_id)
            return BinaryOutcome(on=True, delta=0)
        except StoreError as e:
            return BinaryOutcome(on=None, applied=False, error=e)
        return BinaryOutcome(on=True, delta=1)

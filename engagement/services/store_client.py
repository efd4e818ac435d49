"""
Engagement Store Client abstraction.

A narrow async interface to the remote store: row insert/delete/select/update with
equality filters. No transactions or triggers are assumed; the engines on top keep
counts and exclusivity consistent. Implementations: in-memory (development, tests),
Firestore (production). Swap via STORE_BACKEND.

Filter values that are lists/tuples/sets mean "field in values".
"""

import asyncio
import copy
import uuid
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Set, Tuple

from ..errors import DuplicateKey, RelationMissing

# Table names
CONTENT_ITEMS = "content_items"
PROFILES = "profiles"
REACTIONS = "reactions"
LIKES = "likes"
BOOKMARKS = "bookmarks"
COMMENTS = "comments"
COMMENT_LIKES = "comment_likes"

ALL_TABLES = (CONTENT_ITEMS, PROFILES, REACTIONS, LIKES, BOOKMARKS, COMMENTS, COMMENT_LIKES)

# Store-level uniqueness. Reactions deliberately have none: exclusivity there is
# delete-before-insert in the reaction engine.
UNIQUE_KEYS: Dict[str, Tuple[str, ...]] = {
    LIKES: ("content_item_id", "user_id"),
    BOOKMARKS: ("content_item_id", "user_id"),
    COMMENT_LIKES: ("comment_id", "user_id"),
}

Row = Dict[str, Any]
Filters = Dict[str, Any]
OrderBy = Tuple[str, bool]  # (field, descending)


class EngagementStoreClient(Protocol):
    """Protocol for row access. Implement for in-memory or Firestore."""

    async def insert(self, table: str, row: Row) -> Row:
        """Insert one row and return it with its id. Raises DuplicateKey on a uniqueness conflict."""
        ...

    async def delete(self, table: str, filters: Filters) -> int:
        """Delete every row matching filters. Returns the number of rows deleted."""
        ...

    async def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        order_by: Optional[OrderBy] = None,
    ) -> List[Row]:
        """Return rows matching filters, optionally ordered by (field, descending)."""
        ...

    async def update(self, table: str, filters: Filters, values: Row) -> int:
        """Set values on every row matching filters. Returns the number of rows updated."""
        ...


def is_in_filter(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def row_matches(row: Row, filters: Optional[Filters]) -> bool:
    """True when row satisfies all equality / membership filters."""
    for key, expected in (filters or {}).items():
        actual = row.get(key)
        if is_in_filter(expected):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


def sort_rows(rows: List[Row], order_by: Optional[OrderBy]) -> List[Row]:
    """Order rows by one field; rows missing the field sort last."""
    if not order_by:
        return rows
    field_name, descending = order_by
    present = [r for r in rows if r.get(field_name) is not None]
    missing = [r for r in rows if r.get(field_name) is None]
    present.sort(key=lambda r: r[field_name], reverse=descending)
    return present + missing


class InMemoryStoreClient:
    """
    Store client backed by process memory.

    Used for local development and tests. Enforces UNIQUE_KEYS like the production
    store does, and yields to the event loop before each call so concurrent
    operations interleave the way they would over the network.
    """

    def __init__(
        self,
        unique_keys: Optional[Dict[str, Tuple[str, ...]]] = None,
        missing_tables: Iterable[str] = (),
        seed: Optional[Dict[str, Sequence[Row]]] = None,
    ):
        self._unique_keys = dict(UNIQUE_KEYS if unique_keys is None else unique_keys)
        self._missing: Set[str] = set(missing_tables)
        self._tables: Dict[str, List[Row]] = {t: [] for t in ALL_TABLES}
        for table, rows in (seed or {}).items():
            self._tables.setdefault(table, [])
            for row in rows:
                r = dict(row)
                r.setdefault("id", uuid.uuid4().hex[:20])
                self._tables[table].append(r)

    def _rows(self, table: str) -> List[Row]:
        if table in self._missing:
            raise RelationMissing(f"relation {table!r} does not exist", table=table)
        return self._tables.setdefault(table, [])

    def drop_table(self, table: str) -> None:
        """Simulate an unprovisioned table."""
        self._missing.add(table)

    def rows(self, table: str) -> List[Row]:
        """Snapshot of a table, for inspection."""
        return copy.deepcopy(self._tables.get(table, []))

    async def insert(self, table: str, row: Row) -> Row:
        await asyncio.sleep(0)
        rows = self._rows(table)
        key = self._unique_keys.get(table)
        if key:
            wanted = {k: row.get(k) for k in key}
            if any(row_matches(r, wanted) for r in rows):
                raise DuplicateKey(f"duplicate key on {table} {wanted}", table=table)
        stored = dict(row)
        stored.setdefault("id", uuid.uuid4().hex[:20])
        if any(r.get("id") == stored["id"] for r in rows):
            raise DuplicateKey(f"duplicate id on {table}: {stored['id']}", table=table)
        rows.append(stored)
        return dict(stored)

    async def delete(self, table: str, filters: Filters) -> int:
        await asyncio.sleep(0)
        rows = self._rows(table)
        keep = [r for r in rows if not row_matches(r, filters)]
        removed = len(rows) - len(keep)
        rows[:] = keep
        return removed

    async def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        order_by: Optional[OrderBy] = None,
    ) -> List[Row]:
        await asyncio.sleep(0)
        rows = self._rows(table)
        out = [dict(r) for r in rows if row_matches(r, filters)]
        return sort_rows(out, order_by)

    async def update(self, table: str, filters: Filters, values: Row) -> int:
        await asyncio.sleep(0)
        rows = self._rows(table)
        n = 0
        for r in rows:
            if row_matches(r, filters):
                r.update(values)
                n += 1
        return n

"""
Shared fixtures: a fault-injecting store wrapper, a fake clock, and view/identity helpers.

FaultyStore wraps an InMemoryStoreClient, records every call as (op, table), and can
raise a chosen StoreError (or run a hook) before a given op on a given table. Hooks
let a test slip another session's write in between an engine's read and its write.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Tuple

import pytest

from engagement.errors import StoreError
from engagement.models import ContentKind
from engagement.services import ContentItemView, InMemoryStoreClient, StaticIdentityProvider
from engagement.services.store_client import CONTENT_ITEMS, PROFILES

ITEM_ID = "post-1"


@dataclass
class _Fault:
    op: str
    table: Optional[str]
    exc: Optional[StoreError] = None
    hook: Optional[Callable[[], Awaitable[None]]] = None
    remaining: int = 1

    def matches(self, op: str, table: str) -> bool:
        return self.remaining != 0 and self.op == op and self.table in (None, table)


class FaultyStore:
    """Store client wrapper with call recording and per-(op, table) fault injection."""

    def __init__(self, inner: Optional[InMemoryStoreClient] = None):
        self.inner = inner if inner is not None else InMemoryStoreClient()
        self.calls: List[Tuple[str, str]] = []
        self._faults: List[_Fault] = []

    def fail(self, op: str, table: Optional[str], exc: StoreError, times: int = 1) -> None:
        """Raise exc on the next `times` calls of op on table (times=-1: always)."""
        self._faults.append(_Fault(op, table, exc=exc, remaining=times))

    def before(self, op: str, table: Optional[str], hook: Callable[[], Awaitable[None]], times: int = 1) -> None:
        """Run hook right before the next `times` calls of op on table."""
        self._faults.append(_Fault(op, table, hook=hook, remaining=times))

    def calls_to(self, op: str, table: Optional[str] = None) -> int:
        return sum(1 for o, t in self.calls if o == op and (table is None or t == table))

    async def _call(self, op: str, table: str, *args, **kwargs):
        self.calls.append((op, table))
        for fault in self._faults:
            if not fault.matches(op, table):
                continue
            fault.remaining -= 1
            if fault.hook is not None:
                await fault.hook()
            if fault.exc is not None:
                raise fault.exc
        return await getattr(self.inner, op)(table, *args, **kwargs)

    async def insert(self, table, row):
        return await self._call("insert", table, row)

    async def delete(self, table, filters):
        return await self._call("delete", table, filters)

    async def select(self, table, filters=None, order_by=None):
        return await self._call("select", table, filters, order_by)

    async def update(self, table, filters, values):
        return await self._call("update", table, filters, values)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


def seed_rows(**tables):
    """Default seed: one community post plus two profiles, extended by keyword tables."""
    seed = {
        CONTENT_ITEMS: [
            {"id": ITEM_ID, "author_id": "carol", "view_count": 0, "like_count": 0, "comment_count": 0},
        ],
        PROFILES: [
            {"id": "alice", "name": "Alice", "avatar_url": "https://cdn.example.com/a.png"},
            {"id": "bob", "name": "Bob", "avatar_url": ""},
        ],
    }
    for table, rows in tables.items():
        seed.setdefault(table, []).extend(rows)
    return seed


def make_store(**tables) -> FaultyStore:
    return FaultyStore(InMemoryStoreClient(seed=seed_rows(**tables)))


def make_view(content_item_id: str = ITEM_ID, clock: Optional[FakeClock] = None, **kwargs) -> ContentItemView:
    view = ContentItemView(
        content_item_id,
        kwargs.pop("content_kind", ContentKind.COMMUNITY),
        clock=clock or FakeClock(),
        **kwargs,
    )
    view.mount()
    return view


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return make_store()


@pytest.fixture
def view(clock):
    return make_view(clock=clock)


@pytest.fixture
def alice():
    return StaticIdentityProvider("alice")


@pytest.fixture
def bob():
    return StaticIdentityProvider("bob")


@pytest.fixture
def anonymous():
    return StaticIdentityProvider(None)

#!/usr/bin/env python3
"""
Engagement Panel Tests

The panel binds one view to the engines: open/refresh load counters, reactions,
like/bookmark state and comments; close discards whatever is still in flight.

Run:
----
    pytest engagement/tests/test_panel.py -v
"""

import asyncio

from conftest import ITEM_ID, FakeClock, make_store, make_view
from engagement.errors import NetworkError
from engagement.models import ContentKind, PanelState, ReactionKind
from engagement.services import EngagementPanel
from engagement.services.store_client import CONTENT_ITEMS, LIKES, REACTIONS


def loaded_store():
    store = make_store(
        likes=[{"content_item_id": ITEM_ID, "user_id": "alice"}],
        bookmarks=[{"content_item_id": ITEM_ID, "user_id": "bob"}],
        reactions=[{"content_item_id": ITEM_ID, "user_id": "bob", "kind": "sad", "created_at": "2024-01-01T00:00:00+00:00"}],
        comments=[{"id": "c1", "content_item_id": ITEM_ID, "user_id": "bob", "content": "hi", "like_count": 0,
                   "created_at": "2024-01-01T00:00:00+00:00"}],
    )
    asyncio.run(store.inner.update(CONTENT_ITEMS, {"id": ITEM_ID}, {"like_count": 1, "comment_count": 1}))
    return store


def unmounted_view(**kwargs):
    view = make_view(**kwargs)
    view.unmount()
    return view


class TestOpen:
    def test_open_loads_everything(self, alice):
        store = loaded_store()
        panel = EngagementPanel(store, alice, unmounted_view())
        view = asyncio.run(panel.open())

        assert view.mounted
        assert view.view_count == 1
        assert view.like.on is True
        assert view.like.count == 1
        assert view.bookmark.on is False
        assert view.bookmark.count == 1
        assert view.reaction is None
        assert view.reaction_counts["sad"] == 1
        assert view.comment_count == 1
        assert view.comment_panel == PanelState.LOADED
        assert [c.id for c in view.comments] == ["c1"]

    def test_news_items_do_not_count_views(self, alice):
        store = loaded_store()
        panel = EngagementPanel(store, alice, unmounted_view(content_kind=ContentKind.NEWS))
        view = asyncio.run(panel.open())
        assert view.view_count == 0

    def test_anonymous_open(self, anonymous):
        panel = EngagementPanel(loaded_store(), anonymous, unmounted_view())
        view = asyncio.run(panel.open())
        assert view.like.on is False
        assert view.like.count == 1
        assert view.snapshot().user_id is None

    def test_failures_never_block_open(self, alice):
        store = loaded_store()
        store.fail("select", None, NetworkError("offline"), times=-1)
        panel = EngagementPanel(store, alice, unmounted_view())
        view = asyncio.run(panel.open())

        assert view.mounted
        assert view.like.count == 0
        assert sum(view.reaction_counts.values()) == 0
        assert view.comment_panel == PanelState.DEGRADED
        assert view.notifier.current() is None

    def test_refresh_reconciles_drift(self, alice):
        store = loaded_store()
        asyncio.run(store.inner.delete(LIKES, {"user_id": "alice"}))
        panel = EngagementPanel(store, alice, unmounted_view(), reconcile_on_refresh=True)
        view = asyncio.run(panel.open())

        assert view.like.on is False
        assert view.like.count == 0

    def test_bookmark_count_includes_other_users(self, alice):
        store = make_store(bookmarks=[
            {"content_item_id": ITEM_ID, "user_id": user} for user in ("bob", "carol", "dave")
        ])
        view = make_view()
        panel = EngagementPanel(store, alice, view)
        asyncio.run(panel.refresh())
        assert view.bookmark.count == 3

        asyncio.run(panel.toggle_bookmark())
        assert view.snapshot("alice").bookmark.count == 4

        asyncio.run(panel.refresh())
        assert view.bookmark.on is True
        assert view.bookmark.count == 4


class TestClose:
    def test_close_discards_in_flight_reaction(self, alice):
        store = make_store()
        view = make_view()
        panel = EngagementPanel(store, alice, view)

        async def close_mid_flight():
            panel.close()

        store.before("insert", REACTIONS, close_mid_flight)
        asyncio.run(panel.apply_reaction(ReactionKind.LIKE))
        assert view.reaction is None
        assert not view.mounted

    def test_snapshot_carries_notice(self, store, alice):
        clock = FakeClock()
        view = make_view(clock=clock, notice_ttl=3.0)
        panel = EngagementPanel(store, alice, view)
        asyncio.run(panel.toggle_bookmark())

        assert view.snapshot("alice").notice.message == "Added to bookmarks."
        clock.advance(3.0)
        assert view.snapshot("alice").notice is None


class TestReconcile:
    def test_pulls_corrected_values_into_view(self, alice):
        store = loaded_store()
        asyncio.run(store.inner.update(CONTENT_ITEMS, {"id": ITEM_ID}, {"like_count": 9}))
        view = make_view()
        panel = EngagementPanel(store, alice, view)
        view.like.count = 9

        result = asyncio.run(panel.reconcile())
        assert result.like_count == 1
        assert view.like.count == 1
        assert "like_count" in result.corrected

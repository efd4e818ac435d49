#!/usr/bin/env python3
"""
Reaction Engine Tests

One of five mutually exclusive reactions per (content item, user), stored as rows
with no uniqueness constraint. Counts are re-derived from a full re-read after
every mutation.

Test Scenarios:
---------------
1. Anonymous apply raises AuthRequired before any store call
2. Set / toggle-off / switch, with counts moving accordingly
3. Per-user exclusivity and convergence, including leftover duplicate rows
4. Store failures: DuplicateKey (target state holds), NetworkError, half-applied
   switch, PermissionDenied notice, missing table (silent empty state)
5. Repeated apply while one is in flight is dropped

Run:
----
    pytest engagement/tests/test_reaction_engine.py -v
"""

import asyncio

import pytest

from conftest import ITEM_ID, FaultyStore, make_store, make_view, seed_rows
from engagement.errors import AuthRequired, NetworkError, PermissionDenied
from engagement.models import NoticeKind, ReactionKind
from engagement.services import InMemoryStoreClient, ReactionEngine, StaticIdentityProvider
from engagement.services.failures import network_message, permission_message
from engagement.services.reaction_engine import count_by_kind, latest_per_user
from engagement.services.store_client import REACTIONS, UNIQUE_KEYS


def reaction_row(user_id, kind, created_at):
    return {"content_item_id": ITEM_ID, "user_id": user_id, "kind": kind, "created_at": created_at}


def user_rows(store, user_id):
    return [r for r in store.inner.rows(REACTIONS) if r["user_id"] == user_id]


class TestCounting:
    def test_one_vote_per_user_newest_row_wins(self):
        rows = [
            reaction_row("alice", "like", "2024-01-01T00:00:00+00:00"),
            reaction_row("alice", "sad", "2024-01-02T00:00:00+00:00"),
            reaction_row("bob", "like", "2024-01-01T00:00:00+00:00"),
        ]
        assert latest_per_user(rows)["alice"]["kind"] == "sad"
        counts = count_by_kind(rows)
        assert counts == {"like": 1, "sad": 1, "angry": 0, "surprised": 0, "anxious": 0}
        assert sum(counts.values()) == 2

    def test_unknown_kinds_are_ignored(self):
        rows = [reaction_row("alice", "fan", "2024-01-01T00:00:00+00:00")]
        assert sum(count_by_kind(rows).values()) == 0


class TestApplyReaction:
    """Transitions for a logged-in user."""

    def test_anonymous_raises_before_store_call(self, store, view, anonymous):
        engine = ReactionEngine(store, anonymous)
        with pytest.raises(AuthRequired) as exc_info:
            asyncio.run(engine.apply_reaction(view, ReactionKind.LIKE))
        assert exc_info.value.login_url == "/auth/login"
        assert store.calls == []
        assert view.reaction is None

    def test_set_reaction(self, store, view, alice):
        outcome = asyncio.run(ReactionEngine(store, alice).apply_reaction(view, ReactionKind.LIKE))
        assert outcome.applied is True
        assert outcome.reaction == ReactionKind.LIKE
        assert view.reaction == ReactionKind.LIKE
        assert view.reaction_counts["like"] == 1
        assert len(user_rows(store, "alice")) == 1

    def test_same_kind_toggles_off(self, store, view, alice):
        engine = ReactionEngine(store, alice)

        async def scenario():
            await engine.apply_reaction(view, ReactionKind.SAD)
            return await engine.apply_reaction(view, ReactionKind.SAD)

        outcome = asyncio.run(scenario())
        assert outcome.reaction is None
        assert view.reaction is None
        assert sum(view.reaction_counts.values()) == 0
        assert user_rows(store, "alice") == []

    def test_switch_moves_one_vote(self, view, alice):
        store = make_store(reactions=[
            reaction_row("alice", "like", "2024-01-01T00:00:00+00:00"),
            reaction_row("bob", "like", "2024-01-01T00:00:01+00:00"),
        ])
        engine = ReactionEngine(store, alice)
        asyncio.run(engine.load(view, "alice"))
        assert view.reaction_counts["like"] == 2

        outcome = asyncio.run(engine.apply_reaction(view, ReactionKind.ANGRY))
        assert outcome.reaction == ReactionKind.ANGRY
        assert view.reaction_counts["like"] == 1
        assert view.reaction_counts["angry"] == 1
        assert [r["kind"] for r in user_rows(store, "alice")] == ["angry"]

    def test_sequence_keeps_one_row_per_user(self, store, view, alice):
        engine = ReactionEngine(store, alice)
        kinds = [ReactionKind.LIKE, ReactionKind.SAD, ReactionKind.ANGRY, ReactionKind.ANGRY, ReactionKind.ANXIOUS]

        async def scenario():
            for kind in kinds:
                await engine.apply_reaction(view, kind)
                assert len(user_rows(store, "alice")) <= 1

        asyncio.run(scenario())
        assert view.reaction == ReactionKind.ANXIOUS
        assert sum(view.reaction_counts.values()) == 1

    def test_toggle_off_clears_duplicate_rows(self, view, alice):
        store = make_store(reactions=[
            reaction_row("alice", "like", "2024-01-01T00:00:00+00:00"),
            reaction_row("alice", "sad", "2024-01-02T00:00:00+00:00"),
        ])
        engine = ReactionEngine(store, alice)
        asyncio.run(engine.load(view, "alice"))
        assert view.reaction == ReactionKind.SAD
        assert sum(view.reaction_counts.values()) == 1

        asyncio.run(engine.apply_reaction(view, ReactionKind.SAD))
        assert user_rows(store, "alice") == []
        assert sum(view.reaction_counts.values()) == 0

    def test_concurrent_users_converge(self, store):
        alice_view, bob_view = make_view(), make_view()
        alice_engine = ReactionEngine(store, StaticIdentityProvider("alice"))
        bob_engine = ReactionEngine(store, StaticIdentityProvider("bob"))

        async def scenario():
            await asyncio.gather(
                alice_engine.apply_reaction(alice_view, ReactionKind.LIKE),
                bob_engine.apply_reaction(bob_view, ReactionKind.LIKE),
            )
            return await alice_engine.load(alice_view, "alice")

        outcome = asyncio.run(scenario())
        assert outcome.counts["like"] == 2
        assert outcome.reaction == ReactionKind.LIKE


class TestFailures:
    def test_duplicate_insert_counts_as_set(self, view, alice):
        # Reactions table with a unique key, as some deployments provision it
        unique_keys = {**UNIQUE_KEYS, REACTIONS: ("content_item_id", "user_id")}
        store = FaultyStore(InMemoryStoreClient(unique_keys=unique_keys, seed=seed_rows()))

        async def other_session_inserts():
            await store.inner.insert(REACTIONS, reaction_row("alice", "like", "2024-01-01T00:00:00+00:00"))

        store.before("insert", REACTIONS, other_session_inserts)

        outcome = asyncio.run(ReactionEngine(store, alice).apply_reaction(view, ReactionKind.LIKE))
        assert outcome.applied is True
        assert view.reaction == ReactionKind.LIKE
        assert view.reaction_counts["like"] == 1
        assert view.notifier.current() is None

    def test_network_error_on_read_leaves_state(self, store, view, alice):
        view.reaction_counts["like"] = 4
        store.fail("select", REACTIONS, NetworkError("timeout"))

        outcome = asyncio.run(ReactionEngine(store, alice).apply_reaction(view, ReactionKind.LIKE))
        assert outcome.applied is False
        assert view.reaction is None
        assert view.reaction_counts["like"] == 4
        assert store.calls_to("insert") == 0
        notice = view.notifier.current()
        assert notice.kind == NoticeKind.ERROR
        assert notice.message == network_message("update your reaction")

    def test_half_applied_switch_resyncs_from_store(self, view, alice):
        store = make_store(reactions=[reaction_row("alice", "like", "2024-01-01T00:00:00+00:00")])
        engine = ReactionEngine(store, alice)
        asyncio.run(engine.load(view, "alice"))
        store.fail("insert", REACTIONS, NetworkError("connection reset"))

        outcome = asyncio.run(engine.apply_reaction(view, ReactionKind.ANGRY))
        assert outcome.applied is False
        # Old reaction is gone and the new one never landed
        assert user_rows(store, "alice") == []
        assert view.reaction is None
        assert sum(view.reaction_counts.values()) == 0
        assert view.notifier.current().kind == NoticeKind.ERROR

    def test_permission_denied_has_distinct_notice(self, store, view, alice):
        store.fail("insert", REACTIONS, PermissionDenied("rls", table=REACTIONS))

        outcome = asyncio.run(ReactionEngine(store, alice).apply_reaction(view, ReactionKind.LIKE))
        assert outcome.applied is False
        assert view.reaction is None
        assert view.notifier.current().message == permission_message("update your reaction")

    def test_missing_table_is_silent_empty_state(self, view, alice):
        store = make_store()
        store.inner.drop_table(REACTIONS)

        outcome = asyncio.run(ReactionEngine(store, alice).apply_reaction(view, ReactionKind.LIKE))
        assert outcome.applied is False
        assert view.reaction is None
        assert sum(view.reaction_counts.values()) == 0
        assert view.notifier.current() is None

    def test_load_failure_reads_as_zero(self, view, alice):
        store = make_store(reactions=[reaction_row("bob", "like", "2024-01-01T00:00:00+00:00")])
        store.fail("select", REACTIONS, NetworkError("offline"))

        outcome = asyncio.run(ReactionEngine(store, alice).load(view, "alice"))
        assert sum(outcome.counts.values()) == 0
        assert view.notifier.current() is None


class TestInFlight:
    def test_repeat_while_pending_is_dropped(self, store, view, alice):
        engine = ReactionEngine(store, alice)

        async def scenario():
            return await asyncio.gather(
                engine.apply_reaction(view, ReactionKind.LIKE),
                engine.apply_reaction(view, ReactionKind.LIKE),
            )

        first, second = asyncio.run(scenario())
        assert first.dropped is False
        assert second.dropped is True
        # Not toggled back off by the duplicate
        assert view.reaction == ReactionKind.LIKE
        assert len(user_rows(store, "alice")) == 1
        assert not view.guard.is_pending("reaction")

    def test_closed_view_discards_results(self, store, view, alice):
        engine = ReactionEngine(store, alice)

        async def close_mid_flight():
            view.unmount()

        store.before("insert", REACTIONS, close_mid_flight)
        asyncio.run(engine.apply_reaction(view, ReactionKind.LIKE))
        assert view.reaction is None
        assert sum(view.reaction_counts.values()) == 0
        assert len(user_rows(store, "alice")) == 1

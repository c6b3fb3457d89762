"""Tests for RowAdaptor — the per-project Visible/Hidden state machine.

Verifies that:
1. Initial membership follows the first snapshot.
2. Exactly one insert/remove happens per real transition.
3. Fields stay current while a row is hidden.
4. Formatting errors propagate without touching the row or collection.
"""

from __future__ import annotations

import threading

import pytest

from buildtray.models.config import DISCONNECTED_FLAG, VisibilityConfig
from buildtray.models.snapshot import ProjectActivity, ProjectState
from buildtray.monitor.adaptor import RowAdaptor
from buildtray.monitor.collection import MembershipState, RowCollection
from buildtray.monitor.feed import SnapshotFeed
from buildtray.monitor.formatter import MalformedWebUrlError, ServerNameTable

# ---------------------------------------------------------------------------
# Test: attach
# ---------------------------------------------------------------------------


class TestAttach:
    """attach() wires the feed and sets the initial membership."""

    def test_visible_initial_snapshot_inserts_row(self, collection, visibility, snapshot):
        adaptor = RowAdaptor(collection, visibility)
        row = adaptor.attach(SnapshotFeed(snapshot))

        assert row is adaptor.row
        assert row.project_name == "Proj1"
        assert adaptor.state is MembershipState.VISIBLE
        assert row in collection
        assert collection.calls == [("insert", "Proj1")]

    def test_hidden_initial_snapshot_not_inserted(self, collection, visibility, make_snapshot):
        adaptor = RowAdaptor(collection, visibility)
        row = adaptor.attach(SnapshotFeed(make_snapshot(is_connected=False)))

        assert adaptor.state is MembershipState.HIDDEN
        assert row not in collection
        assert collection.calls == []

    def test_initial_fields_rendered(self, collection, visibility, snapshot):
        row = RowAdaptor(collection, visibility).attach(SnapshotFeed(snapshot))
        assert row.fields["queue_priority"] == "00000003"
        assert row.fields["server"] == "build.example.com"
        assert row.image_index == ProjectState.SUCCESS.image_index

    def test_feed_delivers_to_adaptor(self, collection, visibility, snapshot, make_snapshot):
        feed = SnapshotFeed(snapshot)
        row = RowAdaptor(collection, visibility).attach(feed)
        feed.publish(make_snapshot(last_build_label="1.0.43"))
        assert row.fields["last_build_label"] == "1.0.43"

    def test_malformed_initial_url_propagates(self, collection, visibility, make_snapshot):
        feed = SnapshotFeed(make_snapshot(web_url="nope"))
        with pytest.raises(MalformedWebUrlError):
            RowAdaptor(collection, visibility).attach(feed)
        assert collection.calls == []


# ---------------------------------------------------------------------------
# Test: transitions
# ---------------------------------------------------------------------------


class TestTransitions:
    """Membership changes only on real transitions."""

    def test_visible_to_hidden_on_disconnect(self, collection, visibility, snapshot, make_snapshot):
        adaptor = RowAdaptor(collection, visibility)
        row = adaptor.attach(SnapshotFeed(snapshot))
        collection.calls.clear()

        adaptor.on_snapshot(make_snapshot(is_connected=False))

        assert adaptor.state is MembershipState.HIDDEN
        assert row not in collection
        assert collection.calls == [("remove", "Proj1")]

    def test_disconnect_keeps_stale_fields(self, collection, visibility, snapshot, make_snapshot):
        adaptor = RowAdaptor(collection, visibility)
        row = adaptor.attach(SnapshotFeed(snapshot))
        before = dict(row.fields)

        adaptor.on_snapshot(make_snapshot(is_connected=False, category="changed"))

        assert row.fields["activity"] == ""
        assert row.fields["last_build_label"] == ""
        for name in ("server", "category", "last_build_time", "status", "queue_name", "queue_priority"):
            assert row.fields[name] == before[name]

    def test_hidden_to_visible(self, collection, visibility, make_snapshot):
        adaptor = RowAdaptor(collection, visibility)
        row = adaptor.attach(SnapshotFeed(make_snapshot(is_connected=False)))

        adaptor.on_snapshot(make_snapshot())

        assert adaptor.state is MembershipState.VISIBLE
        assert row in collection
        assert collection.calls == [("insert", "Proj1")]

    def test_repeated_snapshot_is_idempotent(self, collection, visibility, snapshot, make_snapshot):
        adaptor = RowAdaptor(collection, visibility)
        row = adaptor.attach(SnapshotFeed(snapshot))
        hidden = make_snapshot(project_state=ProjectState.BROKEN, is_connected=False)

        adaptor.on_snapshot(hidden)
        state_after_first = adaptor.state
        fields_after_first = dict(row.fields)
        adaptor.on_snapshot(hidden)

        assert adaptor.state is state_after_first
        assert row.fields == fields_after_first
        assert collection.calls == [("insert", "Proj1"), ("remove", "Proj1")]

    def test_one_call_per_transition(self, collection, visibility, make_snapshot):
        hidden_config = VisibilityConfig(hidden_states=frozenset({ProjectState.SUCCESS}))
        adaptor = RowAdaptor(collection, hidden_config)
        adaptor.attach(SnapshotFeed(make_snapshot(project_state=ProjectState.BROKEN)))
        collection.calls.clear()

        sequence = [
            ProjectState.SUCCESS,   # hide
            ProjectState.SUCCESS,   # stay hidden
            ProjectState.BROKEN,    # show
            ProjectState.BUILDING,  # stay visible
            ProjectState.SUCCESS,   # hide
            ProjectState.FAILING,   # show
        ]
        for state in sequence:
            adaptor.on_snapshot(make_snapshot(project_state=state))

        assert collection.calls == [
            ("remove", "Proj1"),
            ("insert", "Proj1"),
            ("remove", "Proj1"),
            ("insert", "Proj1"),
        ]

    def test_hidden_row_fields_kept_current(self, collection, make_snapshot):
        config = VisibilityConfig(hidden_states=frozenset({ProjectState.SUCCESS}))
        adaptor = RowAdaptor(collection, config)
        row = adaptor.attach(SnapshotFeed(make_snapshot(project_state=ProjectState.SUCCESS)))

        adaptor.on_snapshot(
            make_snapshot(
                project_state=ProjectState.SUCCESS,
                last_build_label="2.0.0",
                activity=ProjectActivity.CHECKING_MODIFICATIONS,
            )
        )

        assert adaptor.state is MembershipState.HIDDEN
        assert row.fields["last_build_label"] == "2.0.0"
        assert row.fields["activity"] == "CheckingModifications"

    def test_image_index_follows_state(self, collection, visibility, snapshot, make_snapshot):
        adaptor = RowAdaptor(collection, visibility)
        row = adaptor.attach(SnapshotFeed(snapshot))
        adaptor.on_snapshot(make_snapshot(project_state=ProjectState.BROKEN))
        assert row.image_index == ProjectState.BROKEN.image_index

    def test_disconnected_shown_when_flag_set(self, collection, show_disconnected, snapshot, make_snapshot):
        adaptor = RowAdaptor(collection, show_disconnected)
        adaptor.attach(SnapshotFeed(snapshot))
        adaptor.on_snapshot(make_snapshot(is_connected=False))
        assert adaptor.state is MembershipState.VISIBLE
        assert collection.calls == [("insert", "Proj1")]

    def test_policy_cannot_change_under_live_adaptor(self, collection, snapshot, make_snapshot):
        config = VisibilityConfig(display_flags={DISCONNECTED_FLAG: False})
        adaptor = RowAdaptor(collection, config)
        adaptor.attach(SnapshotFeed(snapshot))

        with pytest.raises(TypeError):
            config.display_flags[DISCONNECTED_FLAG] = True
        adaptor.on_snapshot(make_snapshot(is_connected=False))

        assert adaptor.state is MembershipState.HIDDEN


# ---------------------------------------------------------------------------
# Test: multi-server disambiguation through the adaptor
# ---------------------------------------------------------------------------


class TestServerDisambiguation:
    def test_same_named_projects_get_own_server(self, collection, visibility, make_snapshot):
        table = ServerNameTable([("Proj1", "ServerA"), ("Proj1", "ServerB")])
        row_a = RowAdaptor(collection, visibility, server_names=table).attach(
            SnapshotFeed(make_snapshot(server_display_name="ServerA"))
        )
        row_b = RowAdaptor(collection, visibility, server_names=table).attach(
            SnapshotFeed(make_snapshot(server_display_name="ServerB"))
        )
        assert row_a.fields["server"] == "ServerA"
        assert row_b.fields["server"] == "ServerB"

    def test_no_match_keeps_previous_server(self, collection, visibility, make_snapshot):
        table = ServerNameTable([("Proj1", "ServerA")])
        adaptor = RowAdaptor(collection, visibility, server_names=table)
        row = adaptor.attach(SnapshotFeed(make_snapshot(server_display_name="ServerA")))
        assert row.fields["server"] == "ServerA"

        table.refresh([("Proj9", "ServerZ")])
        adaptor.on_snapshot(make_snapshot(server_display_name="ServerA", category="moved"))

        assert row.fields["server"] == "ServerA"
        assert row.fields["category"] == "moved"


# ---------------------------------------------------------------------------
# Test: errors and teardown
# ---------------------------------------------------------------------------


class TestErrorsAndDetach:
    def test_malformed_url_propagates_unchanged(self, collection, visibility, snapshot, make_snapshot):
        adaptor = RowAdaptor(collection, visibility)
        row = adaptor.attach(SnapshotFeed(snapshot))
        before = dict(row.fields)
        collection.calls.clear()

        with pytest.raises(MalformedWebUrlError):
            adaptor.on_snapshot(
                make_snapshot(web_url="::::", project_state=ProjectState.BROKEN)
            )

        assert row.fields == before
        assert row.image_index == ProjectState.SUCCESS.image_index
        assert collection.calls == []

    def test_detach_removes_and_unsubscribes(self, collection, visibility, snapshot, make_snapshot):
        feed = SnapshotFeed(snapshot)
        adaptor = RowAdaptor(collection, visibility)
        row = adaptor.attach(feed)

        adaptor.detach()
        feed.publish(make_snapshot(last_build_label="ignored"))

        assert row not in collection
        assert adaptor.state is MembershipState.HIDDEN
        assert row.fields["last_build_label"] == "1.0.42"

    def test_detach_hidden_row_does_not_remove(self, collection, visibility, make_snapshot):
        adaptor = RowAdaptor(collection, visibility)
        adaptor.attach(SnapshotFeed(make_snapshot(is_connected=False)))
        adaptor.detach()
        assert collection.calls == []


# ---------------------------------------------------------------------------
# Test: many adaptors sharing one collection
# ---------------------------------------------------------------------------


class TestConcurrentAdaptors:
    """Adaptors on separate threads keep the shared collection consistent."""

    def test_membership_matches_adaptor_states(self, visibility, make_snapshot):
        collection = RowCollection()
        adaptors: list[RowAdaptor] = []
        for i in range(8):
            adaptor = RowAdaptor(collection, visibility)
            adaptor.attach(SnapshotFeed(make_snapshot(project_name=f"P{i}")))
            adaptors.append(adaptor)

        def toggle(index: int, adaptor: RowAdaptor) -> None:
            name = f"P{index}"
            for step in range(60):
                adaptor.on_snapshot(
                    make_snapshot(project_name=name, is_connected=step % 2 == 0)
                )
            adaptor.on_snapshot(
                make_snapshot(project_name=name, is_connected=index % 2 == 0)
            )

        stop = threading.Event()
        seen_sizes: list[int] = []
        duplicated: list[list[str]] = []

        def reader() -> None:
            while not stop.is_set():
                views = collection.views()
                seen_sizes.append(len(views))
                names = [v.project_name for v in views]
                if len(set(names)) != len(names):
                    duplicated.append(names)

        reader_thread = threading.Thread(target=reader)
        reader_thread.start()
        writers = [
            threading.Thread(target=toggle, args=(i, a)) for i, a in enumerate(adaptors)
        ]
        for t in writers:
            t.start()
        for t in writers:
            t.join(timeout=30)
        stop.set()
        reader_thread.join(timeout=10)

        visible = [a for a in adaptors if a.state is MembershipState.VISIBLE]
        assert len(visible) == 4
        assert len(collection) == len(visible)
        assert {v.project_name for v in collection.views()} == {
            a.row.project_name for a in visible
        }
        assert duplicated == []
        assert all(size <= len(adaptors) for size in seen_sizes)

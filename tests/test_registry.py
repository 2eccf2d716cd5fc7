"""
Unit tests for NotificationRegistry

Covers dispatch, the capped history, the single active toast and its
auto-dismiss timer, read state, clearing, category queries, actions,
listeners and native mirroring.
"""

import pytest

from dataflow_notify.core.models import (
    Category,
    DispatchOptions,
    NotificationAction,
    Severity,
)
from dataflow_notify.core.registry import NotificationRegistry


def _dispatch_many(registry, count, **kwargs):
    return [registry.dispatch(f"message {i}", **kwargs) for i in range(count)]


class TestDispatch:
    def test_dispatch_records_newest_first_and_sets_toast(self, registry):
        notification_id = registry.dispatch(
            "Pipeline X completed",
            Severity.SUCCESS,
            Category.ETL,
            DispatchOptions(persistent=False),
        )

        history = registry.history
        assert history[0].id == notification_id
        assert history[0].message == "Pipeline X completed"
        assert history[0].read is False
        assert history[0].severity is Severity.SUCCESS
        assert history[0].category is Category.ETL
        assert registry.active_toast.id == history[0].id

    def test_ids_are_unique(self, registry):
        ids = _dispatch_many(registry, 150)
        assert len(set(ids)) == 150
        assert all(i.startswith("notification-") for i in ids)

    def test_defaults(self, registry):
        registry.dispatch("hello")
        notification = registry.history[0]
        assert notification.severity is Severity.INFO
        assert notification.category is Category.SYSTEM
        assert notification.persistent is False
        assert notification.auto_hide_ms == 6000

    def test_string_severity_and_category_are_coerced(self, registry):
        registry.dispatch("insight", "WARNING", "ai_insight")
        notification = registry.history[0]
        assert notification.severity is Severity.WARNING
        assert notification.category is Category.AI_INSIGHT

    def test_unknown_category_falls_back_to_system(self, registry):
        registry.dispatch("odd", "info", "nonsense")
        assert registry.history[0].category is Category.SYSTEM

    @pytest.mark.parametrize("auto_hide_ms", [None, 0])
    def test_missing_auto_hide_uses_default(self, registry, timers, auto_hide_ms):
        registry.dispatch("x", options=DispatchOptions(auto_hide_ms=auto_hide_ms))
        assert registry.history[0].auto_hide_ms == 6000
        assert timers.last.interval == 6.0

    def test_custom_auto_hide_schedules_timer(self, registry, timers):
        registry.dispatch("x", options=DispatchOptions(auto_hide_ms=2500))
        assert timers.last.interval == 2.5

    def test_persistent_does_not_become_toast(self, registry, timers):
        registry.dispatch("stays", options=DispatchOptions(persistent=True))
        assert registry.active_toast is None
        assert timers.timers == []
        assert len(registry) == 1

    def test_metadata_and_title_are_kept(self, registry):
        registry.dispatch(
            "x",
            options=DispatchOptions(title="Heads up", metadata={"k": 1}),
        )
        notification = registry.history[0]
        assert notification.title == "Heads up"
        assert notification.metadata == {"k": 1}


class TestCapacity:
    def test_history_is_capped_and_oldest_evicted(self, registry):
        _dispatch_many(registry, 150)

        history = registry.history
        assert len(history) == 100
        assert history[0].message == "message 149"
        assert history[-1].message == "message 50"
        messages = {n.message for n in history}
        assert all(f"message {i}" not in messages for i in range(50))

    def test_small_cap(self, timers):
        registry = NotificationRegistry(max_notifications=3, timer_factory=timers)
        _dispatch_many(registry, 5)
        assert [n.message for n in registry.history] == [
            "message 4",
            "message 3",
            "message 2",
        ]

    def test_configure_shrinks_history(self, registry):
        _dispatch_many(registry, 10)
        registry.configure(max_notifications=4)
        assert len(registry) == 4
        assert registry.max_notifications == 4
        assert registry.history[0].message == "message 9"

    def test_configure_default_auto_hide(self, registry):
        registry.configure(default_auto_hide_ms=1500)
        registry.dispatch("x")
        assert registry.history[0].auto_hide_ms == 1500


class TestActiveToast:
    def test_second_dispatch_replaces_toast(self, registry, timers):
        registry.dispatch("first")
        first_timer = timers.last
        second_id = registry.dispatch("second")

        assert registry.active_toast.id == second_id
        assert first_timer.cancelled is True
        assert len(registry) == 2

    def test_timer_expiry_dismisses_toast_but_keeps_history(self, registry, timers):
        notification_id = registry.dispatch("bye soon")
        timers.last.fire()

        assert registry.active_toast is None
        assert registry.get(notification_id) is not None

    def test_stale_timer_does_not_dismiss_newer_toast(self, registry, timers):
        registry.dispatch("first")
        stale = timers.last
        second_id = registry.dispatch("second")

        stale.function()

        assert registry.active_toast.id == second_id

    def test_persistent_dispatch_keeps_current_toast(self, registry):
        toast_id = registry.dispatch("transient")
        registry.dispatch("sticky", options=DispatchOptions(persistent=True))
        assert registry.active_toast.id == toast_id

    def test_dismiss_active_toast(self, registry, timers):
        registry.dispatch("x")
        assert registry.dismiss_active_toast() is True
        assert registry.active_toast is None
        assert timers.last.cancelled is True
        assert len(registry) == 1
        assert registry.dismiss_active_toast() is False


class TestReadState:
    def test_unread_count_tracks_mutations(self, registry):
        ids = _dispatch_many(registry, 4)
        assert registry.unread_count == 4

        assert registry.mark_read(ids[0]) is True
        assert registry.unread_count == 3

        registry.clear(ids[1])
        assert registry.unread_count == 2

        registry.dispatch("another")
        assert registry.unread_count == 3
        assert registry.unread_count == sum(1 for n in registry.history if not n.read)

    def test_mark_read_is_idempotent(self, registry):
        notification_id = registry.dispatch("x")
        assert registry.mark_read(notification_id) is True
        assert registry.mark_read(notification_id) is True
        assert registry.unread_count == 0

    def test_mark_read_unknown_id(self, registry):
        registry.dispatch("x")
        assert registry.mark_read("missing") is False
        assert registry.unread_count == 1

    def test_mark_all_read(self, registry):
        _dispatch_many(registry, 5)
        assert registry.mark_all_read() == 5
        assert registry.unread_count == 0
        assert registry.mark_all_read() == 0

    def test_mark_all_read_on_empty_registry(self, registry):
        assert registry.mark_all_read() == 0
        assert registry.unread_count == 0


class TestClear:
    def test_clearing_only_toast_removes_both(self, registry, timers):
        notification_id = registry.dispatch("only one")
        assert registry.clear(notification_id) is True

        assert registry.history == []
        assert registry.active_toast is None
        assert timers.last.cancelled is True

    def test_clear_other_keeps_toast(self, registry, timers):
        older = registry.dispatch("older", options=DispatchOptions(persistent=True))
        toast_id = registry.dispatch("toast")
        registry.clear(older)
        assert registry.active_toast.id == toast_id
        assert timers.last.cancelled is False

    def test_clear_unknown_id(self, registry):
        registry.dispatch("x")
        assert registry.clear("missing") is False
        assert len(registry) == 1

    def test_clear_all(self, registry, timers):
        _dispatch_many(registry, 3)
        assert registry.clear_all() == 3
        assert len(registry) == 0
        assert registry.active_toast is None
        assert registry.unread_count == 0
        assert registry.clear_all() == 0


class TestQuery:
    def test_category_filter_newest_first(self, registry):
        registry.dispatch("s1", "error", Category.SECURITY)
        registry.dispatch("a1", "info", Category.AUTH)
        registry.dispatch("s2", "error", Category.SECURITY)
        registry.dispatch("a2", "info", Category.AUTH)
        registry.dispatch("s3", "error", Category.SECURITY)

        result = registry.query("security")
        assert [n.message for n in result] == ["s3", "s2", "s1"]

    def test_unknown_category_matches_nothing(self, registry):
        registry.dispatch("boot ok", "info", Category.SYSTEM)
        assert registry.query("securty") == []
        assert [n.message for n in registry.query("ai_insight")] == []

    @pytest.mark.parametrize("category", [None, "", "all"])
    def test_no_filter_returns_everything(self, registry, category):
        _dispatch_many(registry, 3)
        assert len(registry.query(category)) == 3

    def test_get_returns_none_for_unknown(self, registry):
        assert registry.get("missing") is None

    def test_snapshots_are_detached(self, registry):
        notification_id = registry.dispatch("x", options=DispatchOptions(metadata={"a": 1}))
        snapshot = registry.get(notification_id)
        snapshot.read = True
        snapshot.metadata["a"] = 2

        stored = registry.get(notification_id)
        assert stored.read is False
        assert stored.metadata == {"a": 1}


class TestActions:
    def test_run_action_invokes_callback_marks_read_and_dismisses(self, registry):
        clicked = []
        notification_id = registry.dispatch(
            "export ready",
            options=DispatchOptions(
                actions=[NotificationAction("Download", callback=lambda: clicked.append(1))]
            ),
        )

        assert registry.run_action(notification_id, 0) is True
        assert clicked == [1]
        assert registry.get(notification_id).read is True
        assert registry.active_toast is None

    def test_failing_callback_still_marks_read(self, registry):
        def boom():
            raise RuntimeError("nope")

        notification_id = registry.dispatch(
            "x", options=DispatchOptions(actions=[NotificationAction("Go", callback=boom)])
        )
        assert registry.run_action(notification_id, 0) is False
        assert registry.get(notification_id).read is True

    def test_action_index_out_of_range(self, registry):
        notification_id = registry.dispatch("x")
        assert registry.run_action(notification_id, 0) is False
        assert registry.run_action("missing", 0) is False

    def test_persistent_action_keeps_other_toast(self, registry):
        toast_id = registry.dispatch("toast")
        sticky = registry.dispatch(
            "sticky",
            options=DispatchOptions(
                persistent=True,
                actions=[NotificationAction("Ack", callback=lambda: None)],
            ),
        )
        assert registry.run_action(sticky, 0) is True
        assert registry.active_toast.id == toast_id


class TestListeners:
    def test_listener_receives_events(self, registry):
        events = []
        registry.subscribe(events.append)

        notification_id = registry.dispatch("x")
        registry.mark_read(notification_id)
        registry.dismiss_active_toast()
        registry.clear(notification_id)

        assert [e.kind for e in events] == [
            "dispatched",
            "read",
            "toast_dismissed",
            "cleared",
        ]
        assert events[0].notification_id == notification_id
        assert events[0].unread_count == 1
        assert events[0].active_toast_id == notification_id
        assert events[1].unread_count == 0

    def test_bulk_events_report_affected(self, registry):
        events = []
        _dispatch_many(registry, 3)
        registry.subscribe(events.append)

        registry.mark_all_read()
        registry.clear_all()

        assert [(e.kind, e.affected) for e in events] == [
            ("all_read", 3),
            ("all_cleared", 3),
        ]
        assert events[1].to_dict()["unread_count"] == 0

    def test_unsubscribe(self, registry):
        events = []
        unsubscribe = registry.subscribe(events.append)
        unsubscribe()
        unsubscribe()
        registry.dispatch("x")
        assert events == []

    def test_failing_listener_does_not_break_dispatch(self, registry):
        seen = []

        def bad_listener(_event):
            raise RuntimeError("listener bug")

        registry.subscribe(bad_listener)
        registry.subscribe(seen.append)

        notification_id = registry.dispatch("x")
        assert registry.get(notification_id) is not None
        assert len(seen) == 1

    def test_close_detaches_listeners_and_cancels_timer(self, registry, timers):
        events = []
        registry.subscribe(events.append)
        registry.dispatch("x")
        registry.close()

        assert timers.last.cancelled is True
        registry.dispatch("y")
        assert len(events) == 1


class TestNativeMirroring:
    def test_show_native_uses_severity_title(self, registry, mirror):
        registry.dispatch(
            "Disk almost full",
            Severity.WARNING,
            Category.PERFORMANCE,
            DispatchOptions(show_native=True),
        )
        assert mirror.calls == [
            {
                "title": "Warning",
                "body": "Disk almost full",
                "category": Category.PERFORMANCE,
                "show": True,
                "play_sound": False,
            }
        ]

    def test_custom_title_wins(self, registry, mirror):
        registry.dispatch(
            "x", options=DispatchOptions(title="Pipeline Failed", show_native=True)
        )
        assert mirror.calls[0]["title"] == "Pipeline Failed"

    def test_sound_only(self, registry, mirror):
        registry.dispatch("x", options=DispatchOptions(play_sound=True))
        assert mirror.calls[0]["show"] is False
        assert mirror.calls[0]["play_sound"] is True

    def test_no_mirror_by_default(self, registry, mirror):
        registry.dispatch("x")
        assert mirror.calls == []

    def test_mirror_failure_is_swallowed(self, timers):
        class BrokenMirror:
            def mirror(self, *args, **kwargs):
                raise RuntimeError("no desktop")

        registry = NotificationRegistry(native=BrokenMirror(), timer_factory=timers)
        notification_id = registry.dispatch("x", options=DispatchOptions(show_native=True))
        assert registry.get(notification_id) is not None

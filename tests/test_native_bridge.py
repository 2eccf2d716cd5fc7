"""
Unit tests for NativeNotificationBridge

Tests permission resolution, visibility suppression, request building,
auto-close, sound playback and the fire-and-forget mirror path.
"""

import pytest

from conftest import FakeBackend, FakeHandle
from dataflow_notify.core.models import Category
from dataflow_notify.core.native_bridge import (
    DEFAULT_AUTO_CLOSE_SECONDS,
    PermissionState,
)


class TestPermission:
    def test_configured_granted(self, make_bridge):
        bridge = make_bridge(permission_answer="granted")
        assert bridge.request_permission() is PermissionState.GRANTED

    def test_configured_denied_never_prompts(self, make_bridge):
        asked = []
        bridge = make_bridge(
            permission_answer="denied",
            permission_prompt=lambda: asked.append(1) or True,
        )
        assert bridge.request_permission() is PermissionState.DENIED
        assert asked == []

    def test_prompt_answer_is_cached(self, make_bridge):
        asked = []

        def prompt():
            asked.append(1)
            return True

        bridge = make_bridge(permission_answer="ask", permission_prompt=prompt)
        assert bridge.request_permission() is PermissionState.GRANTED
        assert bridge.request_permission() is PermissionState.GRANTED
        assert asked == [1]

    def test_prompt_declined(self, make_bridge):
        bridge = make_bridge(permission_answer="ask", permission_prompt=lambda: False)
        assert bridge.request_permission() is PermissionState.DENIED

    def test_no_answer_stays_default(self, make_bridge):
        bridge = make_bridge(permission_answer="ask", permission_prompt=lambda: None)
        assert bridge.request_permission() is PermissionState.DEFAULT
        assert bridge.permission is PermissionState.DEFAULT

    def test_no_prompt_stays_default(self, make_bridge):
        bridge = make_bridge(permission_answer="ask")
        assert bridge.request_permission() is PermissionState.DEFAULT

    def test_prompt_failure_stays_default(self, make_bridge):
        def prompt():
            raise RuntimeError("no console")

        bridge = make_bridge(permission_answer="ask", permission_prompt=prompt)
        assert bridge.request_permission() is PermissionState.DEFAULT

    def test_unsupported_backend(self, make_bridge):
        bridge = make_bridge(backend=FakeBackend(supported=False))
        assert bridge.request_permission() is PermissionState.UNSUPPORTED
        assert bridge.can_show() is False

    def test_granted_and_denied_are_terminal(self, make_bridge):
        bridge = make_bridge(permission_answer="ask")
        assert bridge.resolve_permission(False) is PermissionState.DENIED
        assert bridge.resolve_permission(True) is PermissionState.DENIED
        assert bridge.request_permission() is PermissionState.DENIED

    def test_resolve_from_default(self, make_bridge):
        bridge = make_bridge(permission_answer="ask")
        assert bridge.resolve_permission(True) is PermissionState.GRANTED


class TestCanShow:
    def test_granted_and_hidden(self, make_bridge):
        bridge = make_bridge()
        bridge.request_permission()
        assert bridge.can_show() is True

    def test_not_before_permission(self, make_bridge):
        bridge = make_bridge()
        assert bridge.can_show() is False

    def test_suppressed_while_visible(self, make_bridge):
        bridge = make_bridge(visibility_probe=lambda: True)
        bridge.request_permission()
        assert bridge.can_show() is False

    def test_disabled(self, make_bridge):
        bridge = make_bridge(enabled=False)
        bridge.request_permission()
        assert bridge.can_show() is False

    def test_failing_probe_counts_as_hidden(self, make_bridge):
        def probe():
            raise RuntimeError("window gone")

        bridge = make_bridge(visibility_probe=probe)
        bridge.request_permission()
        assert bridge.can_show() is True


class TestShow:
    def test_request_contents(self, make_bridge, backend):
        bridge = make_bridge()
        bridge.request_permission()

        assert bridge.show("Pipeline Completed", "done", Category.ETL) is True

        request = backend.requests[0]
        assert request.title == "Pipeline Completed"
        assert request.body == "done"
        assert request.category is Category.ETL
        assert request.tag.startswith("dataflow-etl-")
        assert request.require_interaction is False
        assert request.timeout_seconds == 5.0
        assert request.app_name == "DataFlow"

    def test_missing_icon_file_is_left_blank(self, make_bridge, backend):
        bridge = make_bridge()
        bridge.request_permission()
        bridge.show("t", "b", Category.ETL)
        assert backend.requests[0].icon == ""

    @pytest.mark.parametrize("category", [Category.SECURITY, Category.BILLING])
    def test_sticky_categories_require_interaction(self, make_bridge, backend, category):
        bridge = make_bridge()
        bridge.request_permission()
        bridge.show("t", "b", category)

        request = backend.requests[0]
        assert request.require_interaction is True
        assert request.timeout_seconds > DEFAULT_AUTO_CLOSE_SECONDS

    def test_suppressed_without_permission(self, make_bridge, backend):
        bridge = make_bridge(permission_answer="denied")
        bridge.request_permission()
        assert bridge.show("t", "b", Category.ETL) is False
        assert backend.requests == []

    def test_suppressed_while_visible(self, make_bridge, backend):
        bridge = make_bridge(visibility_probe=lambda: True)
        bridge.request_permission()
        assert bridge.show("t", "b") is False
        assert backend.requests == []

    def test_backend_failure_returns_false(self, make_bridge, backend):
        backend.fail = True
        bridge = make_bridge()
        bridge.request_permission()
        assert bridge.show("t", "b") is False

    def test_handle_is_auto_closed(self, make_bridge, timers):
        handle = FakeHandle()
        bridge = make_bridge(backend=FakeBackend(handle=handle), auto_close_seconds=3)
        bridge.request_permission()
        bridge.show("t", "b", Category.DATA)

        assert timers.last.interval == 3.0
        assert handle.closed is False
        timers.last.fire()
        assert handle.closed is True

    def test_sticky_handle_is_not_auto_closed(self, make_bridge, timers):
        bridge = make_bridge(backend=FakeBackend(handle=FakeHandle()))
        bridge.request_permission()
        bridge.show("t", "b", Category.SECURITY)
        assert timers.timers == []

    def test_close_cancels_pending_auto_close(self, make_bridge, timers):
        bridge = make_bridge(backend=FakeBackend(handle=FakeHandle()))
        bridge.request_permission()
        bridge.show("t", "b", Category.DATA)
        bridge.close()
        assert timers.last.cancelled is True


class TestSound:
    def test_disabled_by_default(self, make_bridge, sound_player):
        bridge = make_bridge()
        assert bridge.play_sound(Category.ETL) is False
        assert sound_player.played == []

    def test_plays_category_file_from_sound_dir(self, make_bridge, sound_player, tmp_path):
        (tmp_path / "etl.wav").write_bytes(b"RIFF")
        bridge = make_bridge(sound_enabled=True, sound_dir=str(tmp_path))

        assert bridge.play_sound(Category.ETL) is True
        assert sound_player.played == [str(tmp_path / "etl.wav")]

    def test_missing_file(self, make_bridge, sound_player, tmp_path):
        bridge = make_bridge(sound_enabled=True, sound_dir=str(tmp_path))
        assert bridge.play_sound(Category.SECURITY) is False
        assert sound_player.played == []

    def test_player_failure_is_swallowed(self, make_bridge, sound_player, tmp_path):
        (tmp_path / "security.wav").write_bytes(b"RIFF")
        sound_player.fail = True
        bridge = make_bridge(sound_enabled=True, sound_dir=str(tmp_path))
        assert bridge.play_sound("security") is False

    def test_show_plays_sound_even_when_suppressed(self, make_bridge, sound_player, tmp_path):
        (tmp_path / "etl.wav").write_bytes(b"RIFF")
        bridge = make_bridge(
            permission_answer="denied", sound_enabled=True, sound_dir=str(tmp_path)
        )
        bridge.request_permission()

        assert bridge.show("t", "b", Category.ETL, play_sound=True) is False
        assert len(sound_player.played) == 1


class TestMirror:
    def test_mirror_shows_on_background_thread(self, make_bridge, backend):
        bridge = make_bridge()
        bridge.request_permission()

        bridge.mirror("Security Alert", "login from new device", Category.SECURITY)

        assert backend.notified.wait(timeout=2)
        assert backend.requests[0].title == "Security Alert"


class TestConfig:
    def test_update_config(self, make_bridge):
        bridge = make_bridge()
        updated = bridge.update_config(
            sound_enabled=True, auto_close_seconds=0, unknown="x", app_name=None
        )
        assert updated["sound_enabled"] is True
        assert updated["auto_close_seconds"] == DEFAULT_AUTO_CLOSE_SECONDS
        assert updated["app_name"] == "DataFlow"
        assert "unknown" not in bridge.get_config()

    def test_status(self, make_bridge):
        bridge = make_bridge(visibility_probe=lambda: True)
        bridge.request_permission()
        status = bridge.status()
        assert status["permission"] == "granted"
        assert status["supported"] is True
        assert status["app_visible"] is True
        assert status["can_show"] is False

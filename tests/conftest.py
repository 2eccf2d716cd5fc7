"""
Shared fixtures for notification tests.

Timers, the native backend and the sound player are replaced with fakes so
nothing sleeps, pops up a desktop notification, or plays audio.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

import pytest

from dataflow_notify.core import config
from dataflow_notify.core.native_bridge import NativeNotificationBridge, NativeRequest
from dataflow_notify.core.registry import NotificationRegistry
from dataflow_notify.core.session import NotificationSession


# =============================================================================
# Fakes
# =============================================================================


class FakeTimer:
    """threading.Timer stand-in that only fires when told to."""

    def __init__(self, interval: float, function: Callable[[], None]) -> None:
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.function()


class FakeTimerFactory:
    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, interval: float, function: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(interval, function)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]

    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if t.started and not t.cancelled]


class FakeHandle:
    def __init__(self) -> None:
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeBackend:
    """Records native requests instead of showing them."""

    def __init__(self, supported: bool = True, handle: object | None = None) -> None:
        self.supported = supported
        self.handle = handle
        self.requests: list[NativeRequest] = []
        self.notified = threading.Event()
        self.fail = False

    def is_supported(self) -> bool:
        return self.supported

    def notify(self, request: NativeRequest) -> object | None:
        if self.fail:
            raise OSError("notification daemon unavailable")
        self.requests.append(request)
        self.notified.set()
        return self.handle


class FakeSoundPlayer:
    def __init__(self) -> None:
        self.played: list[str] = []
        self.fail = False

    def play(self, path: str) -> bool:
        if self.fail:
            raise OSError("no audio device")
        self.played.append(path)
        return True


class RecordingMirror:
    """Captures registry -> native mirror calls."""

    def __init__(self) -> None:
        self.calls: list[dict[str, object]] = []

    def mirror(self, title, body, category=None, *, show=True, play_sound=False):
        self.calls.append(
            {
                "title": title,
                "body": body,
                "category": category,
                "show": show,
                "play_sound": play_sound,
            }
        )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point config.yaml at a temp file so tests never touch the real one."""
    path = tmp_path / "config.yaml"
    monkeypatch.setattr(config, "CONFIG_PATH", path)
    return path


@pytest.fixture
def timers():
    return FakeTimerFactory()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def sound_player():
    return FakeSoundPlayer()


@pytest.fixture
def mirror():
    return RecordingMirror()


@pytest.fixture
def registry(timers, mirror):
    reg = NotificationRegistry(
        max_notifications=100,
        default_auto_hide_ms=6000,
        native=mirror,
        timer_factory=timers,
    )
    yield reg
    reg.close()


@pytest.fixture
def make_bridge(backend, sound_player, timers):
    """Factory for bridges wired to the fakes; keyword overrides apply."""

    def _make(**overrides) -> NativeNotificationBridge:
        kwargs = {
            "enabled": True,
            "permission_answer": "granted",
            "sound_enabled": False,
            "sound_dir": "",
            "auto_close_seconds": 5,
            "app_name": "DataFlow",
            "backend": backend,
            "sound_player": sound_player,
            "timer_factory": timers,
        }
        kwargs.update(overrides)
        return NativeNotificationBridge(**kwargs)

    return _make


@pytest.fixture
def session(backend, sound_player, timers):
    sess = NotificationSession(
        config.load_config(),
        backend=backend,
        sound_player=sound_player,
        timer_factory=timers,
    )
    yield sess
    sess.close()

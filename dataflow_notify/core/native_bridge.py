"""Bridge that mirrors in-app notifications to the operating system.

Native notifications are only attempted once the user has granted
permission, and never while the application itself is visible: the in-app
toast already covers that case.  Display and sound are best effort; every
failure is logged here and reported as ``False`` rather than raised.
"""

from __future__ import annotations

import importlib
import importlib.util
import logging
import shutil
import subprocess
import sys
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from dataflow_notify.core.app_meta import APP_SLUG
from dataflow_notify.core.category_assets import (
    icon_for,
    requires_interaction,
    resolve_asset_path,
    sound_for,
)
from dataflow_notify.core.models import Category, coerce_category, now_ms
from dataflow_notify.core.toast_timer import TimerFactory

_logger = logging.getLogger(__name__)

DEFAULT_AUTO_CLOSE_SECONDS = 5.0
# plyer has no "require interaction" flag; a day-long timeout stands in for it.
_STICKY_TIMEOUT_SECONDS = 24 * 60 * 60
_MAX_BODY_LENGTH = 256


class PermissionState(str, Enum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"
    UNSUPPORTED = "unsupported"


@dataclass(slots=True)
class NativeRequest:
    title: str
    body: str
    category: Category | None
    icon: str
    tag: str
    require_interaction: bool
    timeout_seconds: float
    app_name: str
    actions: list[dict[str, str]] = field(default_factory=list)


class NotificationBackend(Protocol):
    def is_supported(self) -> bool: ...

    def notify(self, request: NativeRequest) -> object | None: ...


class PlyerBackend:
    """Desktop notifications through plyer."""

    def is_supported(self) -> bool:
        return importlib.util.find_spec("plyer") is not None

    def notify(self, request: NativeRequest) -> object | None:
        plyer = importlib.import_module("plyer")
        plyer.notification.notify(
            title=request.title,
            message=request.body[:_MAX_BODY_LENGTH],
            app_name=request.app_name,
            app_icon=request.icon,
            timeout=int(request.timeout_seconds),
        )
        return None


class SoundPlayer:
    """Play a short sound file with whatever the platform offers."""

    def play(self, path: str) -> bool:
        if sys.platform == "win32":
            winsound = importlib.import_module("winsound")
            winsound.PlaySound(
                path, winsound.SND_FILENAME | winsound.SND_ASYNC | winsound.SND_NODEFAULT
            )
            return True

        for command in ("afplay", "paplay", "aplay"):
            executable = shutil.which(command)
            if executable is None:
                continue
            subprocess.Popen(
                [executable, path],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
            return True
        return False


PermissionPrompt = Callable[[], "bool | None"]
VisibilityProbe = Callable[[], bool]


class NativeNotificationBridge:
    """Permission-gated mirror of in-app notifications."""

    def __init__(
        self,
        *,
        enabled: bool = True,
        permission_answer: str = "ask",
        sound_enabled: bool = False,
        sound_dir: str = "",
        auto_close_seconds: float = DEFAULT_AUTO_CLOSE_SECONDS,
        app_name: str = "DataFlow",
        backend: NotificationBackend | None = None,
        sound_player: SoundPlayer | None = None,
        visibility_probe: VisibilityProbe | None = None,
        permission_prompt: PermissionPrompt | None = None,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._backend: NotificationBackend = backend or PlyerBackend()
        self._sound_player = sound_player or SoundPlayer()
        self._visibility_probe = visibility_probe
        self._permission_prompt = permission_prompt
        self._timer_factory: TimerFactory = timer_factory or threading.Timer
        self._permission = PermissionState.DEFAULT
        self._config: dict[str, Any] = {
            "enabled": bool(enabled),
            "permission_answer": permission_answer,
            "sound_enabled": bool(sound_enabled),
            "sound_dir": sound_dir,
            "auto_close_seconds": float(auto_close_seconds)
            if auto_close_seconds and auto_close_seconds > 0
            else DEFAULT_AUTO_CLOSE_SECONDS,
            "app_name": app_name,
        }
        self._close_timers: list[Any] = []

    # ── Permission ─────────────────────────────────────────────────────

    @property
    def permission(self) -> PermissionState:
        with self._lock:
            return self._permission

    def request_permission(self) -> PermissionState:
        """Resolve permission once per session and cache the outcome.

        ``granted`` and ``denied`` are terminal; a denied user is never
        asked again.  ``default`` is returned when nobody could answer.
        """
        with self._lock:
            state = self._permission
            answer = self._config["permission_answer"]
        if state is not PermissionState.DEFAULT:
            return state

        if not self._backend_supported():
            return self._settle_permission(PermissionState.UNSUPPORTED)

        if answer == "granted":
            return self._settle_permission(PermissionState.GRANTED)
        if answer == "denied":
            return self._settle_permission(PermissionState.DENIED)

        if self._permission_prompt is None:
            return PermissionState.DEFAULT

        try:
            decision = self._permission_prompt()
        except Exception:
            _logger.exception("Native notification permission prompt failed")
            return PermissionState.DEFAULT

        if decision is None:
            return PermissionState.DEFAULT
        return self._settle_permission(
            PermissionState.GRANTED if decision else PermissionState.DENIED
        )

    def resolve_permission(self, granted: bool) -> PermissionState:
        """Record an explicit answer given through the WebUI."""
        if not self._backend_supported():
            return self._settle_permission(PermissionState.UNSUPPORTED)
        return self._settle_permission(
            PermissionState.GRANTED if granted else PermissionState.DENIED
        )

    def _settle_permission(self, state: PermissionState) -> PermissionState:
        with self._lock:
            if self._permission is PermissionState.DEFAULT:
                self._permission = state
                _logger.info("Native notification permission: %s", state.value)
            return self._permission

    def _backend_supported(self) -> bool:
        try:
            return bool(self._backend.is_supported())
        except Exception:
            _logger.exception("Native notification backend probe failed")
            return False

    # ── Display ────────────────────────────────────────────────────────

    def can_show(self) -> bool:
        """Return whether a native notification would be displayed now."""
        with self._lock:
            enabled = self._config["enabled"]
            permission = self._permission
        if not enabled or permission is not PermissionState.GRANTED:
            return False
        return not self._is_app_visible()

    def show(
        self,
        title: str,
        body: str,
        category: Category | str | None = None,
        *,
        require_interaction: bool | None = None,
        play_sound: bool = False,
        actions: list[dict[str, str]] | None = None,
    ) -> bool:
        """Display one native notification; returns whether it was shown."""
        resolved_category = coerce_category(category) if category is not None else None

        if play_sound:
            self.play_sound(resolved_category)

        if not self.can_show():
            return False

        with self._lock:
            auto_close_seconds = self._config["auto_close_seconds"]
            app_name = self._config["app_name"]

        if require_interaction is None:
            require_interaction = requires_interaction(resolved_category)

        icon_path = resolve_asset_path(icon_for(resolved_category))
        request = NativeRequest(
            title=title,
            body=body,
            category=resolved_category,
            icon=str(icon_path) if icon_path.exists() else "",
            tag=self._build_tag(resolved_category),
            require_interaction=require_interaction,
            timeout_seconds=(
                _STICKY_TIMEOUT_SECONDS if require_interaction else auto_close_seconds
            ),
            app_name=app_name,
            actions=list(actions or []),
        )

        try:
            handle = self._backend.notify(request)
        except Exception:
            _logger.exception("Native notification failed: %s", title)
            return False

        if handle is not None and not require_interaction:
            self._schedule_close(handle, auto_close_seconds)
        return True

    def play_sound(self, category: Category | str | None = None) -> bool:
        """Play the category sound cue; never raises."""
        with self._lock:
            sound_enabled = self._config["sound_enabled"]
            sound_dir = self._config["sound_dir"]
        if not sound_enabled:
            return False

        resolved_category = coerce_category(category) if category is not None else None
        path = resolve_asset_path(sound_for(resolved_category), sound_dir or None)
        if not path.exists():
            _logger.warning("Notification sound not found: %s", path)
            return False

        try:
            return bool(self._sound_player.play(str(path)))
        except Exception as exc:
            _logger.warning("Could not play notification sound: %s", exc)
            return False

    def mirror(
        self,
        title: str,
        body: str,
        category: Category | None = None,
        *,
        show: bool = True,
        play_sound: bool = False,
    ) -> None:
        """Fire-and-forget variant of :meth:`show` on a daemon thread."""

        def _worker() -> None:
            if show:
                self.show(title, body, category, play_sound=play_sound)
            elif play_sound:
                self.play_sound(category)

        threading.Thread(
            target=_worker,
            daemon=True,
            name="native-notification",
        ).start()

    # ── Config / lifecycle ─────────────────────────────────────────────

    def update_config(self, **changes: Any) -> dict[str, Any]:
        with self._lock:
            for key, value in changes.items():
                if key not in self._config or value is None:
                    continue
                if key == "auto_close_seconds":
                    value = float(value) if float(value) > 0 else DEFAULT_AUTO_CLOSE_SECONDS
                self._config[key] = value
            return dict(self._config)

    def get_config(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._config)

    def status(self) -> dict[str, Any]:
        config = self.get_config()
        return {
            "permission": self.permission.value,
            "supported": self._backend_supported(),
            "enabled": config["enabled"],
            "sound_enabled": config["sound_enabled"],
            "auto_close_seconds": config["auto_close_seconds"],
            "app_visible": self._is_app_visible(),
            "can_show": self.can_show(),
        }

    def close(self) -> None:
        """Cancel pending auto-close timers."""
        with self._lock:
            timers = list(self._close_timers)
            self._close_timers.clear()
        for timer in timers:
            timer.cancel()

    # ── Internal helpers ───────────────────────────────────────────────

    def _is_app_visible(self) -> bool:
        if self._visibility_probe is None:
            return False
        try:
            return bool(self._visibility_probe())
        except Exception:
            _logger.exception("Visibility probe failed")
            return False

    def _build_tag(self, category: Category | None) -> str:
        category_name = category.value if category is not None else "general"
        return f"{APP_SLUG}-{category_name}-{now_ms()}"

    def _schedule_close(self, handle: object, delay_seconds: float) -> None:
        close_method = getattr(handle, "close", None)
        if not callable(close_method):
            return

        def _close() -> None:
            with self._lock:
                if timer in self._close_timers:
                    self._close_timers.remove(timer)
            try:
                close_method()
            except Exception:
                _logger.debug("Native notification close failed", exc_info=True)

        timer = self._timer_factory(delay_seconds, _close)
        timer.daemon = True
        with self._lock:
            self._close_timers.append(timer)
        timer.start()

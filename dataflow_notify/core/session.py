"""Per-application notification session.

One session owns the registry, the native bridge, presence tracking, the
notification center and the system helpers.  It is created when the
application starts and closed when it stops; nothing here is a module-level
singleton.
"""

from __future__ import annotations

import logging
from typing import Any

from dataflow_notify.core.config import (
    get_native_settings,
    get_notification_settings,
    load_config,
)
from dataflow_notify.core.native_bridge import (
    NativeNotificationBridge,
    NotificationBackend,
    PermissionPrompt,
    SoundPlayer,
)
from dataflow_notify.core.notification_center import NotificationCenter
from dataflow_notify.core.presence import PagePresence
from dataflow_notify.core.registry import NotificationRegistry
from dataflow_notify.core.system_notifications import SystemNotifier
from dataflow_notify.core.toast_timer import TimerFactory

_logger = logging.getLogger(__name__)


class NotificationSession:
    def __init__(
        self,
        cfg: dict[str, Any] | None = None,
        *,
        backend: NotificationBackend | None = None,
        sound_player: SoundPlayer | None = None,
        permission_prompt: PermissionPrompt | None = None,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        if cfg is None:
            cfg = load_config()
        limits = get_notification_settings(cfg)
        native = get_native_settings(cfg)

        self.presence = PagePresence()
        self.bridge = NativeNotificationBridge(
            enabled=native["enabled"],
            permission_answer=native["permission"],
            sound_enabled=native["sound_enabled"],
            sound_dir=native["sound_dir"],
            auto_close_seconds=native["auto_close_seconds"],
            app_name=native["app_name"],
            backend=backend,
            sound_player=sound_player,
            visibility_probe=self.presence.is_visible,
            permission_prompt=permission_prompt,
            timer_factory=timer_factory,
        )
        self.registry = NotificationRegistry(
            max_notifications=limits["max_notifications"],
            default_auto_hide_ms=limits["default_auto_hide_ms"],
            native=self.bridge,
            timer_factory=timer_factory,
        )
        self.center = NotificationCenter(
            self.registry, display_limit=limits["display_limit"]
        )
        self.notifier = SystemNotifier(self.registry)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Resolve native permission once for this session."""
        state = self.bridge.request_permission()
        _logger.info(
            "Notification session started (max=%d, permission=%s)",
            self.registry.max_notifications,
            state.value,
        )

    def apply_config(self, cfg: dict[str, Any]) -> None:
        """Push changed settings into the live components."""
        limits = get_notification_settings(cfg)
        native = get_native_settings(cfg)
        self.registry.configure(
            max_notifications=limits["max_notifications"],
            default_auto_hide_ms=limits["default_auto_hide_ms"],
        )
        self.center.display_limit = limits["display_limit"]
        self.bridge.update_config(
            enabled=native["enabled"],
            sound_enabled=native["sound_enabled"],
            sound_dir=native["sound_dir"],
            auto_close_seconds=native["auto_close_seconds"],
            app_name=native["app_name"],
        )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.registry.close()
        self.bridge.close()
        _logger.info("Notification session closed")

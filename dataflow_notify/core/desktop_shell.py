"""Desktop shell: embedded WebUI window plus a tray icon.

The window's shown/minimized/restored/closed events feed
:class:`PagePresence`, so native notifications are held back while the
notification center is on screen.  The tray tooltip tracks the unread
count.  pywebview, pystray and Pillow are all optional.
"""

from __future__ import annotations

import importlib
import importlib.util
import logging
import threading
from collections.abc import Callable
from typing import Any

from dataflow_notify.core.app_meta import APP_NAME
from dataflow_notify.core.presence import PagePresence
from dataflow_notify.core.registry import NotificationEvent, NotificationRegistry

_logger = logging.getLogger(__name__)


def has_webview_support() -> bool:
    """Return whether pywebview is available in current runtime."""
    return importlib.util.find_spec("webview") is not None


def has_system_tray_support() -> bool:
    """Return whether runtime has required tray dependencies."""
    return (
        importlib.util.find_spec("pystray") is not None
        and importlib.util.find_spec("PIL") is not None
    )


def format_tray_title(unread_count: int) -> str:
    if unread_count <= 0:
        return APP_NAME
    shown = "99+" if unread_count > 99 else str(unread_count)
    return f"{APP_NAME} ({shown} unread)"


def _create_tray_icon_image(has_unread: bool) -> object | None:
    """Draw the tray bell badge in memory."""
    try:
        image_module = importlib.import_module("PIL.Image")
        draw_module = importlib.import_module("PIL.ImageDraw")
    except Exception:
        return None

    try:
        image = image_module.new("RGBA", (64, 64), (0, 0, 0, 0))
        draw: Any = draw_module.Draw(image)
        draw.rounded_rectangle((4, 4, 60, 60), radius=14, fill=(30, 41, 59, 255))
        draw.pieslice((16, 12, 48, 44), start=180, end=360, fill=(56, 189, 248, 255))
        draw.rectangle((16, 28, 48, 44), fill=(56, 189, 248, 255))
        draw.ellipse((27, 44, 37, 54), fill=(56, 189, 248, 255))
        if has_unread:
            draw.ellipse((40, 6, 58, 24), fill=(239, 68, 68, 255))
        return image
    except Exception:
        return None


class _TrayController:
    """Manage tray icon lifecycle, menu actions and unread tooltip."""

    def __init__(
        self,
        *,
        registry: NotificationRegistry,
        on_show: Callable[[], bool],
        on_exit: Callable[[], bool],
    ) -> None:
        self._registry = registry
        self._on_show = on_show
        self._on_exit = on_exit
        self._lock = threading.Lock()
        self._icon: Any | None = None
        self._thread: threading.Thread | None = None
        self._unsubscribe: Callable[[], None] | None = None

    def start(self) -> bool:
        """Start tray icon event loop in background thread."""
        with self._lock:
            if self._icon is not None:
                return True

            try:
                pystray = importlib.import_module("pystray")
            except Exception:
                return False

            unread = self._registry.unread_count
            icon_image = _create_tray_icon_image(unread > 0)
            if icon_image is None:
                return False

            try:
                menu = pystray.Menu(
                    pystray.MenuItem(
                        "Open notification center", self._handle_show, default=True
                    ),
                    pystray.MenuItem("Mark all as read", self._handle_mark_all_read),
                    pystray.MenuItem(f"Exit {APP_NAME}", self._handle_exit),
                )
                icon = pystray.Icon(
                    "dataflow-notify",
                    icon_image,
                    format_tray_title(unread),
                    menu,
                )
            except Exception:
                _logger.exception("Tray icon creation failed")
                return False

            self._icon = icon
            self._thread = threading.Thread(
                target=self._run,
                daemon=True,
                name="desktop-tray-loop",
            )
            self._thread.start()

        self._unsubscribe = self._registry.subscribe(self._on_registry_event)
        return True

    def stop(self) -> None:
        """Stop tray icon loop and release resources."""
        unsubscribe = self._unsubscribe
        self._unsubscribe = None
        if unsubscribe is not None:
            unsubscribe()

        with self._lock:
            icon = self._icon
            thread = self._thread
            self._icon = None
            self._thread = None

        if icon is not None:
            try:
                icon.stop()
            except Exception:
                pass

        if (
            thread is not None
            and thread.is_alive()
            and thread is not threading.current_thread()
        ):
            thread.join(timeout=2)

    def _run(self) -> None:
        with self._lock:
            icon = self._icon
        if icon is None:
            return
        try:
            icon.run()
        except Exception:
            _logger.exception("Tray loop stopped unexpectedly")

    def _on_registry_event(self, event: NotificationEvent) -> None:
        with self._lock:
            icon = self._icon
        if icon is None:
            return
        icon.title = format_tray_title(event.unread_count)
        image = _create_tray_icon_image(event.unread_count > 0)
        if image is not None:
            icon.icon = image

    def _handle_show(self, *_: object) -> None:
        try:
            self._on_show()
        except Exception:
            return

    def _handle_mark_all_read(self, *_: object) -> None:
        self._registry.mark_all_read()

    def _handle_exit(self, *_: object) -> None:
        try:
            self._on_exit()
        except Exception:
            return


class DesktopShell:
    """Embedded window bound to one notification session."""

    def __init__(
        self,
        *,
        registry: NotificationRegistry,
        presence: PagePresence,
        enable_tray: bool = True,
    ) -> None:
        self._registry = registry
        self._presence = presence
        self._enable_tray = enable_tray
        self._lock = threading.Lock()
        self._window: Any | None = None
        self._tray: _TrayController | None = None

    @property
    def active(self) -> bool:
        with self._lock:
            return self._window is not None

    def show_window(self) -> bool:
        with self._lock:
            window = self._window
        if window is None:
            return False
        for method_name in ("show", "restore"):
            method = getattr(window, method_name, None)
            if not callable(method):
                continue
            try:
                method()
            except Exception:
                continue
        self._presence.report_window(True)
        return True

    def close_window(self) -> bool:
        with self._lock:
            window = self._window
        if window is None:
            return False
        try:
            window.destroy()
        except Exception:
            return False
        return True

    def open(self, start_url: str, title: str) -> bool:
        """Open the embedded window and block until the user closes it."""
        try:
            webview = importlib.import_module("webview")
        except Exception:
            return False

        try:
            window = webview.create_window(
                title,
                url=start_url,
                width=1100,
                height=780,
                min_size=(720, 520),
                resizable=True,
            )
        except Exception:
            _logger.exception("Desktop window creation failed")
            return False

        with self._lock:
            self._window = window
        self._bind_window_events(window)

        if self._enable_tray and has_system_tray_support():
            tray = _TrayController(
                registry=self._registry,
                on_show=self.show_window,
                on_exit=self.close_window,
            )
            if tray.start():
                self._tray = tray

        try:
            webview.start(debug=False)
        finally:
            if self._tray is not None:
                self._tray.stop()
                self._tray = None
            with self._lock:
                self._window = None
            self._presence.report_window(False)
        return True

    def _bind_window_events(self, window: Any) -> None:
        events = getattr(window, "events", None)
        if events is None:
            return

        handlers = {
            "shown": lambda *_: self._presence.report_window(True),
            "restored": lambda *_: self._presence.report_window(True),
            "minimized": lambda *_: self._presence.report_window(False),
            "closed": lambda *_: self._presence.report_window(False),
        }
        for event_name, handler in handlers.items():
            event = getattr(events, event_name, None)
            if event is None:
                continue
            try:
                event += handler
            except Exception:
                _logger.debug("Could not bind window event %s", event_name)

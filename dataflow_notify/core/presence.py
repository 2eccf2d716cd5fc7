"""Tracks whether the user is currently looking at the application.

Two sources feed it: the WebUI reports ``document.visibilityState`` changes
over the API, and the desktop shell reports window shown/minimized events.
Either one being visible counts as visible.
"""

from __future__ import annotations

import threading
import time


class PagePresence:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._page_visible = False
        self._window_visible = False
        self._updated_at = 0.0

    def report_page(self, visible: bool) -> None:
        with self._lock:
            self._page_visible = bool(visible)
            self._updated_at = time.time()

    def report_window(self, visible: bool) -> None:
        with self._lock:
            self._window_visible = bool(visible)
            self._updated_at = time.time()

    def is_visible(self) -> bool:
        with self._lock:
            return self._page_visible or self._window_visible

    def snapshot(self) -> dict[str, object]:
        with self._lock:
            return {
                "page_visible": self._page_visible,
                "window_visible": self._window_visible,
                "updated_at": self._updated_at,
            }

"""Single-slot auto-dismiss timer for the active toast."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Protocol


class _Timer(Protocol):
    daemon: bool

    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], _Timer]


class ToastTimer:
    """Own at most one pending dismissal.

    Scheduling always cancels the previous timer first, and the callback
    receives the notification id it was scheduled for so a late firing can
    be told apart from the current toast.
    """

    def __init__(self, timer_factory: TimerFactory | None = None) -> None:
        self._timer_factory: TimerFactory = timer_factory or threading.Timer
        self._lock = threading.Lock()
        self._timer: _Timer | None = None
        self._notification_id: str | None = None

    @property
    def pending_id(self) -> str | None:
        with self._lock:
            return self._notification_id

    def schedule(
        self,
        notification_id: str,
        delay_seconds: float,
        on_expire: Callable[[str], None],
    ) -> None:
        def _fire() -> None:
            with self._lock:
                if self._notification_id == notification_id:
                    self._timer = None
                    self._notification_id = None
            on_expire(notification_id)

        timer = self._timer_factory(max(0.0, delay_seconds), _fire)
        timer.daemon = True
        with self._lock:
            previous = self._timer
            self._timer = timer
            self._notification_id = notification_id
        if previous is not None:
            previous.cancel()
        timer.start()

    def cancel(self, notification_id: str | None = None) -> bool:
        """Cancel the pending timer, optionally only if it matches an id."""
        with self._lock:
            timer = self._timer
            if timer is None:
                return False
            if notification_id is not None and notification_id != self._notification_id:
                return False
            self._timer = None
            self._notification_id = None
        timer.cancel()
        return True

"""In-memory notification registry.

The registry keeps the retained history (newest first, capped), the single
active toast, and a list of listeners that observe every mutation.  It is the
only place notifications are created, read-marked, or cleared.

Nothing in here raises towards a dispatching caller: listener failures,
action callback failures, and native mirroring failures are logged and
swallowed, and overflow silently evicts the oldest entries.
"""

from __future__ import annotations

import itertools
import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal, Protocol

from dataflow_notify.core.category_assets import SEVERITY_TITLES
from dataflow_notify.core.models import (
    Category,
    DispatchOptions,
    Notification,
    NotificationAction,
    Severity,
    coerce_category,
    coerce_severity,
    parse_category_filter,
)
from dataflow_notify.core.toast_timer import TimerFactory, ToastTimer

_logger = logging.getLogger(__name__)

DEFAULT_MAX_NOTIFICATIONS = 100
DEFAULT_AUTO_HIDE_MS = 6000

EventKind = Literal[
    "dispatched",
    "read",
    "all_read",
    "cleared",
    "all_cleared",
    "toast_dismissed",
]

_id_lock = threading.Lock()
_id_sequence = itertools.count(1)


def _next_notification_id() -> tuple[int, str]:
    with _id_lock:
        sequence = next(_id_sequence)
    return sequence, f"notification-{sequence}-{uuid.uuid4().hex[:9]}"


@dataclass(slots=True)
class NotificationEvent:
    kind: EventKind
    notification_id: str | None
    unread_count: int
    active_toast_id: str | None
    notification: dict[str, Any] | None = None
    affected: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "notification_id": self.notification_id,
            "unread_count": self.unread_count,
            "active_toast_id": self.active_toast_id,
            "notification": self.notification,
            "affected": self.affected,
        }


NotificationListener = Callable[[NotificationEvent], None]


class NativeMirror(Protocol):
    def mirror(
        self,
        title: str,
        body: str,
        category: Category | None = None,
        *,
        show: bool = True,
        play_sound: bool = False,
    ) -> None: ...


class NotificationRegistry:
    """Ordered, capped notification history plus the active toast."""

    def __init__(
        self,
        *,
        max_notifications: int = DEFAULT_MAX_NOTIFICATIONS,
        default_auto_hide_ms: int = DEFAULT_AUTO_HIDE_MS,
        native: NativeMirror | None = None,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self._max_notifications = max(1, int(max_notifications))
        self._default_auto_hide_ms = max(0, int(default_auto_hide_ms))
        self._native = native
        self._lock = threading.RLock()
        self._history: list[Notification] = []
        self._active: Notification | None = None
        self._listeners: list[NotificationListener] = []
        self._toast_timer = ToastTimer(timer_factory)

    # ── Configuration ──────────────────────────────────────────────────

    @property
    def max_notifications(self) -> int:
        return self._max_notifications

    @property
    def default_auto_hide_ms(self) -> int:
        return self._default_auto_hide_ms

    def configure(
        self,
        *,
        max_notifications: int | None = None,
        default_auto_hide_ms: int | None = None,
    ) -> None:
        """Apply new limits; shrinking the cap evicts the oldest entries."""
        with self._lock:
            if default_auto_hide_ms is not None:
                self._default_auto_hide_ms = max(0, int(default_auto_hide_ms))
            if max_notifications is not None:
                self._max_notifications = max(1, int(max_notifications))
                del self._history[self._max_notifications:]

    # ── Producer API ───────────────────────────────────────────────────

    def dispatch(
        self,
        message: str,
        severity: Severity | str = Severity.INFO,
        category: Category | str = Category.SYSTEM,
        options: DispatchOptions | None = None,
    ) -> str:
        """Record a notification and surface it; returns its id."""
        opts = options or DispatchOptions()
        sequence, notification_id = _next_notification_id()
        notification = Notification(
            id=notification_id,
            message=str(message),
            severity=coerce_severity(severity),
            category=coerce_category(category),
            persistent=bool(opts.persistent),
            auto_hide_ms=(
                max(0, int(opts.auto_hide_ms))
                if opts.auto_hide_ms
                else self._default_auto_hide_ms
            ),
            title=opts.title,
            actions=list(opts.actions),
            metadata=dict(opts.metadata),
            sequence=sequence,
        )

        with self._lock:
            self._history.insert(0, notification)
            evicted = len(self._history) - self._max_notifications
            if evicted > 0:
                del self._history[self._max_notifications:]
            if not notification.persistent:
                self._active = notification
                self._toast_timer.schedule(
                    notification.id,
                    (notification.auto_hide_ms or 0) / 1000.0,
                    self._expire_toast,
                )
            event = self._build_event("dispatched", notification)

        if evicted > 0:
            _logger.debug("Evicted %d oldest notification(s) over cap", evicted)

        self._emit(event)
        if opts.show_native or opts.play_sound:
            self._mirror_native(notification, opts)
        return notification_id

    def dismiss_active_toast(self) -> bool:
        """Hide the transient overlay; history is left untouched."""
        with self._lock:
            active = self._active
            if active is None:
                return False
            self._active = None
            self._toast_timer.cancel()
            event = self._build_event("toast_dismissed", active)
        self._emit(event)
        return True

    def mark_read(self, notification_id: str) -> bool:
        """Mark one notification read. Returns False for unknown ids."""
        with self._lock:
            notification = self._find(notification_id)
            if notification is None:
                return False
            if notification.read:
                return True
            notification.read = True
            event = self._build_event("read", notification)
        self._emit(event)
        return True

    def mark_all_read(self) -> int:
        """Mark every unread notification read; returns how many changed."""
        with self._lock:
            changed = 0
            for notification in self._history:
                if not notification.read:
                    notification.read = True
                    changed += 1
            if not changed:
                return 0
            event = self._build_event("all_read", None, affected=changed)
        self._emit(event)
        return changed

    def clear(self, notification_id: str) -> bool:
        """Remove one notification; dismisses it too if it is the toast."""
        with self._lock:
            notification = self._find(notification_id)
            if notification is None:
                return False
            self._history.remove(notification)
            if self._active is not None and self._active.id == notification_id:
                self._active = None
                self._toast_timer.cancel(notification_id)
            event = self._build_event("cleared", notification)
        self._emit(event)
        return True

    def clear_all(self) -> int:
        """Drop the whole history and the active toast."""
        with self._lock:
            removed = len(self._history)
            had_toast = self._active is not None
            self._history.clear()
            self._active = None
            self._toast_timer.cancel()
            if not removed and not had_toast:
                return 0
            event = self._build_event("all_cleared", None, affected=removed)
        self._emit(event)
        return removed

    def run_action(self, notification_id: str, index: int = 0) -> bool:
        """Invoke one of a notification's actions as if the user clicked it."""
        with self._lock:
            notification = self._find(notification_id)
            if notification is None:
                if self._active is None or self._active.id != notification_id:
                    return False
                notification = self._active
            if index < 0 or index >= len(notification.actions):
                return False
            action = notification.actions[index]
            is_active_toast = (
                self._active is not None and self._active.id == notification_id
            )

        succeeded = _invoke_action(action)
        self.mark_read(notification_id)
        if is_active_toast and not notification.persistent:
            with self._lock:
                still_active = (
                    self._active is not None and self._active.id == notification_id
                )
            if still_active:
                self.dismiss_active_toast()
        return succeeded

    # ── Read surface ───────────────────────────────────────────────────

    @property
    def history(self) -> list[Notification]:
        with self._lock:
            return [notification.snapshot() for notification in self._history]

    @property
    def active_toast(self) -> Notification | None:
        with self._lock:
            return self._active.snapshot() if self._active is not None else None

    @property
    def unread_count(self) -> int:
        with self._lock:
            return self._unread_locked()

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

    def get(self, notification_id: str) -> Notification | None:
        with self._lock:
            notification = self._find(notification_id)
            return notification.snapshot() if notification is not None else None

    def query(self, category: Category | str | None = None) -> list[Notification]:
        """Return history (newest first), optionally limited to one category.

        An unknown category name matches nothing.
        """
        try:
            wanted = parse_category_filter(category)
        except ValueError:
            return []
        with self._lock:
            if wanted is None:
                return [n.snapshot() for n in self._history]
            return [n.snapshot() for n in self._history if n.category is wanted]

    # ── Subscription / lifecycle ───────────────────────────────────────

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                try:
                    self._listeners.remove(listener)
                except ValueError:
                    pass

        return _unsubscribe

    def close(self) -> None:
        """Cancel the pending dismissal and detach listeners."""
        self._toast_timer.cancel()
        with self._lock:
            self._listeners.clear()

    # ── Internal helpers ───────────────────────────────────────────────

    def _find(self, notification_id: str) -> Notification | None:
        for notification in self._history:
            if notification.id == notification_id:
                return notification
        return None

    def _unread_locked(self) -> int:
        return sum(1 for notification in self._history if not notification.read)

    def _build_event(
        self,
        kind: EventKind,
        notification: Notification | None,
        *,
        affected: int = 0,
    ) -> NotificationEvent:
        return NotificationEvent(
            kind=kind,
            notification_id=notification.id if notification is not None else None,
            unread_count=self._unread_locked(),
            active_toast_id=self._active.id if self._active is not None else None,
            notification=notification.to_dict() if notification is not None else None,
            affected=affected if affected else (1 if notification is not None else 0),
        )

    def _expire_toast(self, notification_id: str) -> None:
        with self._lock:
            if self._active is None or self._active.id != notification_id:
                return
            expired = self._active
            self._active = None
            event = self._build_event("toast_dismissed", expired)
        self._emit(event)

    def _emit(self, event: NotificationEvent) -> None:
        with self._lock:
            listeners_snapshot = list(self._listeners)
        for listener in listeners_snapshot:
            try:
                listener(event)
            except Exception:
                _logger.exception("Notification listener failed on %s", event.kind)

    def _mirror_native(self, notification: Notification, opts: DispatchOptions) -> None:
        if self._native is None:
            return
        title = notification.title or SEVERITY_TITLES[notification.severity]
        try:
            self._native.mirror(
                title,
                notification.message,
                notification.category,
                show=opts.show_native,
                play_sound=opts.play_sound,
            )
        except Exception:
            _logger.exception("Native mirroring failed for %s", notification.id)


def _invoke_action(action: NotificationAction) -> bool:
    if action.callback is None:
        return False
    try:
        action.callback()
    except Exception:
        _logger.exception("Notification action '%s' failed", action.label)
        return False
    return True

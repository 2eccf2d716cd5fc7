"""Notification data model."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal


class Severity(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Category(str, Enum):
    SYSTEM = "system"
    AUTH = "auth"
    DATA = "data"
    ETL = "etl"
    AI_INSIGHT = "ai-insight"
    COLLABORATION = "collaboration"
    SECURITY = "security"
    PERFORMANCE = "performance"
    BILLING = "billing"
    USER_ACTION = "user-action"


ActionVariant = Literal["text", "outlined", "contained"]


@dataclass(slots=True)
class NotificationAction:
    label: str
    callback: Callable[[], None] | None = None
    variant: ActionVariant = "text"
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "variant": self.variant, "url": self.url}


@dataclass(slots=True)
class Notification:
    id: str
    message: str
    severity: Severity
    category: Category
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    read: bool = False
    persistent: bool = False
    auto_hide_ms: int | None = None
    title: str | None = None
    actions: list[NotificationAction] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    sequence: int = 0

    def snapshot(self) -> Notification:
        """Return a detached copy safe to hand out of the registry lock."""
        return replace(
            self,
            actions=list(self.actions),
            metadata=dict(self.metadata),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "created_at": self.created_at.isoformat(),
            "read": self.read,
            "persistent": self.persistent,
            "auto_hide_ms": self.auto_hide_ms,
            "title": self.title,
            "actions": [action.to_dict() for action in self.actions],
            "metadata": dict(self.metadata),
        }


@dataclass(slots=True)
class DispatchOptions:
    """Caller overrides merged into a new notification."""

    persistent: bool = False
    auto_hide_ms: int | None = None
    title: str | None = None
    actions: list[NotificationAction] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    show_native: bool = False
    play_sound: bool = False


def now_ms() -> int:
    return int(time.time() * 1000)


def coerce_severity(value: Severity | str | None) -> Severity:
    """Map a raw severity to the enum, defaulting to ``info``."""
    if isinstance(value, Severity):
        return value
    try:
        return Severity(str(value or "").strip().lower())
    except ValueError:
        return Severity.INFO


def coerce_category(value: Category | str | None) -> Category:
    """Map a raw category to the enum, defaulting to ``system``.

    Underscored spellings such as ``ai_insight`` are accepted.
    """
    if isinstance(value, Category):
        return value
    normalized = str(value or "").strip().lower().replace("_", "-")
    try:
        return Category(normalized)
    except ValueError:
        return Category.SYSTEM


def parse_category_filter(value: Category | str | None) -> Category | None:
    """Parse a category filter; blank and ``all`` mean no filter.

    Unlike :func:`coerce_category` an unknown name raises ``ValueError``.
    """
    if value is None or isinstance(value, Category):
        return value
    normalized = str(value).strip().lower().replace("_", "-")
    if normalized in {"", "all"}:
        return None
    return Category(normalized)

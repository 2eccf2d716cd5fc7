"""Read/query surface over the registry: search, category filter, display cap."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from dataflow_notify.core.category_assets import CATEGORY_CHIP_COLORS, icon_for
from dataflow_notify.core.models import Category, Notification, parse_category_filter
from dataflow_notify.core.registry import NotificationRegistry

DEFAULT_DISPLAY_LIMIT = 50

CenterState = Literal["empty", "no_results", "ok"]


@dataclass(slots=True)
class CenterView:
    items: list[Notification]
    state: CenterState
    shown: int
    total: int
    matched: int
    unread_count: int
    category: Category | None = None
    search: str = ""
    decorations: dict[str, dict[str, str]] = field(default_factory=dict)

    @property
    def summary(self) -> str:
        return f"Showing {self.shown} of {self.total} notifications"

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [
                {**item.to_dict(), **self.decorations.get(item.id, {})}
                for item in self.items
            ],
            "state": self.state,
            "shown": self.shown,
            "total": self.total,
            "matched": self.matched,
            "unread_count": self.unread_count,
            "category": self.category.value if self.category is not None else None,
            "search": self.search,
            "summary": self.summary,
        }


def matches_search(notification: Notification, text: str) -> bool:
    """Case-insensitive substring match on message and category name.

    The category matches in both its ``ai-insight`` and ``ai_insight`` forms.
    """
    needle = text.strip().lower()
    if not needle:
        return True
    category = notification.category.value.lower()
    return (
        needle in notification.message.lower()
        or needle in category
        or needle in category.replace("-", "_")
    )


class NotificationCenter:
    def __init__(
        self,
        registry: NotificationRegistry,
        *,
        display_limit: int = DEFAULT_DISPLAY_LIMIT,
    ) -> None:
        self._registry = registry
        self.display_limit = max(1, int(display_limit))

    def view(
        self,
        *,
        category: Category | str | None = None,
        search: str = "",
        limit: int | None = None,
    ) -> CenterView:
        history = self._registry.history
        try:
            wanted = parse_category_filter(category)
            known_category = True
        except ValueError:
            wanted = None
            known_category = False

        filtered = [
            notification
            for notification in history
            if known_category
            and (wanted is None or notification.category is wanted)
            and matches_search(notification, search)
        ]

        cap = self.display_limit if limit is None else max(1, min(limit, self.display_limit))
        items = filtered[:cap]

        if not history:
            state: CenterState = "empty"
        elif not filtered:
            state = "no_results"
        else:
            state = "ok"

        return CenterView(
            items=items,
            state=state,
            shown=len(items),
            total=len(history),
            matched=len(filtered),
            unread_count=sum(1 for notification in history if not notification.read),
            category=wanted,
            search=search.strip(),
            decorations={
                notification.id: {
                    "icon": icon_for(notification.category),
                    "chip_color": CATEGORY_CHIP_COLORS[notification.category],
                }
                for notification in items
            },
        )

    def search(self, text: str, category: Category | str | None = None) -> list[Notification]:
        return self.view(category=category, search=text).items

    def open_item(self, notification_id: str) -> bool:
        """Mark an item read and run its first action, like a click."""
        notification = self._registry.get(notification_id)
        if notification is None:
            return False
        if not notification.read:
            self._registry.mark_read(notification_id)
        if notification.actions:
            self._registry.run_action(notification_id, 0)
        return True

    def mark_read(self, notification_id: str) -> bool:
        return self._registry.mark_read(notification_id)

    def mark_all_read(self) -> int:
        return self._registry.mark_all_read()

    def clear(self, notification_id: str) -> bool:
        return self._registry.clear(notification_id)

    def clear_all(self) -> int:
        return self._registry.clear_all()

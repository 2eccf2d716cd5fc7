"""Per-category lookup tables for icons, sounds and chip colours.

Every table must cover every :class:`Category`; this is checked at import
time so adding a category fails fast until each table is extended.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import TypeVar

from dataflow_notify.core.models import Category, Severity
from dataflow_notify.core.runtime_paths import get_assets_root

_T = TypeVar("_T")

DEFAULT_ICON = "icons/default.png"
DEFAULT_SOUND = "sounds/default.wav"

CATEGORY_ICONS: dict[Category, str] = {
    Category.SYSTEM: "icons/system.png",
    Category.AUTH: "icons/auth.png",
    Category.DATA: "icons/data.png",
    Category.ETL: "icons/etl.png",
    Category.AI_INSIGHT: "icons/ai.png",
    Category.COLLABORATION: "icons/collaboration.png",
    Category.SECURITY: "icons/security.png",
    Category.PERFORMANCE: "icons/performance.png",
    Category.BILLING: "icons/billing.png",
    Category.USER_ACTION: "icons/user.png",
}

CATEGORY_SOUNDS: dict[Category, str] = {
    Category.SYSTEM: "sounds/system.wav",
    Category.AUTH: "sounds/auth.wav",
    Category.DATA: "sounds/data.wav",
    Category.ETL: "sounds/etl.wav",
    Category.AI_INSIGHT: "sounds/ai.wav",
    Category.COLLABORATION: "sounds/collaboration.wav",
    Category.SECURITY: "sounds/security.wav",
    Category.PERFORMANCE: "sounds/performance.wav",
    Category.BILLING: "sounds/billing.wav",
    Category.USER_ACTION: "sounds/user.wav",
}

CATEGORY_CHIP_COLORS: dict[Category, str] = {
    Category.SYSTEM: "default",
    Category.AUTH: "success",
    Category.DATA: "default",
    Category.ETL: "default",
    Category.AI_INSIGHT: "secondary",
    Category.COLLABORATION: "default",
    Category.SECURITY: "error",
    Category.PERFORMANCE: "warning",
    Category.BILLING: "info",
    Category.USER_ACTION: "default",
}

# Native notifications for these categories stay until the user dismisses them.
CATEGORY_REQUIRES_INTERACTION: dict[Category, bool] = {
    category: category in (Category.SECURITY, Category.BILLING)
    for category in Category
}

SEVERITY_TITLES: dict[Severity, str] = {
    Severity.SUCCESS: "Success",
    Severity.INFO: "Information",
    Severity.WARNING: "Warning",
    Severity.ERROR: "Error",
}


def _ensure_exhaustive(table: Mapping[_T, object], keys: type[_T], name: str) -> None:
    missing = [key for key in keys if key not in table]  # type: ignore[attr-defined]
    if missing:
        names = ", ".join(str(getattr(key, "value", key)) for key in missing)
        raise RuntimeError(f"{name} is missing entries for: {names}")


_ensure_exhaustive(CATEGORY_ICONS, Category, "CATEGORY_ICONS")
_ensure_exhaustive(CATEGORY_SOUNDS, Category, "CATEGORY_SOUNDS")
_ensure_exhaustive(CATEGORY_CHIP_COLORS, Category, "CATEGORY_CHIP_COLORS")
_ensure_exhaustive(CATEGORY_REQUIRES_INTERACTION, Category, "CATEGORY_REQUIRES_INTERACTION")
_ensure_exhaustive(SEVERITY_TITLES, Severity, "SEVERITY_TITLES")


def icon_for(category: Category | None) -> str:
    """Return the relative icon path for a category."""
    if category is None:
        return DEFAULT_ICON
    return CATEGORY_ICONS[category]


def sound_for(category: Category | None) -> str:
    """Return the relative sound path for a category."""
    if category is None:
        return DEFAULT_SOUND
    return CATEGORY_SOUNDS[category]


def requires_interaction(category: Category | None) -> bool:
    if category is None:
        return False
    return CATEGORY_REQUIRES_INTERACTION[category]


def resolve_asset_path(relative: str, base_dir: str | Path | None = None) -> Path:
    """Resolve an asset path against the bundled assets root.

    A user supplied *base_dir* is flat: only the file name is joined to it.
    """
    if base_dir:
        return Path(base_dir).expanduser() / Path(relative).name
    return get_assets_root() / relative

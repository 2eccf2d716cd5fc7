"""Runtime path helpers for source and frozen execution modes."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dataflow_notify.core.app_meta import APP_NAME

SOURCE_ROOT = Path(__file__).resolve().parent.parent.parent

_RUNTIME_ROOT_ENV = "DATAFLOW_NOTIFY_HOME"


def get_bundle_root() -> Path:
    """Return base directory containing bundled read-only assets."""
    if getattr(sys, "frozen", False):
        meipass = getattr(sys, "_MEIPASS", None)
        if meipass:
            return Path(meipass)
        return Path(sys.executable).resolve().parent
    return SOURCE_ROOT


def get_runtime_root() -> Path:
    """Return writable runtime directory for config and user data.

    ``DATAFLOW_NOTIFY_HOME`` overrides the location in every mode.
    """
    override = (os.getenv(_RUNTIME_ROOT_ENV) or "").strip()
    if override:
        runtime_root = Path(override).expanduser()
        runtime_root.mkdir(parents=True, exist_ok=True)
        return runtime_root

    if getattr(sys, "frozen", False):
        local_app_data = os.getenv("LOCALAPPDATA")
        if local_app_data:
            runtime_root = Path(local_app_data) / APP_NAME.replace(" ", "")
        else:
            runtime_root = Path.home() / ".dataflow-notify"
        runtime_root.mkdir(parents=True, exist_ok=True)
        return runtime_root
    return SOURCE_ROOT


def get_assets_root() -> Path:
    """Return directory holding bundled icons and sounds."""
    return get_bundle_root() / "dataflow_notify" / "assets"

"""Configuration manager for DataFlow Notify."""

from __future__ import annotations

import logging
import os
import tempfile
from typing import Any

import yaml

from dataflow_notify.core.runtime_paths import get_runtime_root


RUNTIME_ROOT = get_runtime_root()
CONFIG_PATH = RUNTIME_ROOT / "config.yaml"

PERMISSION_ANSWERS = ("ask", "granted", "denied")

_logger = logging.getLogger(__name__)


def load_config() -> dict[str, Any]:
    """Load configuration from YAML file."""
    if not CONFIG_PATH.exists():
        return _default_config()
    try:
        with open(CONFIG_PATH, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except yaml.YAMLError:
        _logger.warning("config.yaml is malformed, falling back to defaults")
        return _default_config()
    except OSError:
        _logger.warning("config.yaml could not be read, falling back to defaults")
        return _default_config()
    if not isinstance(cfg, dict):
        _logger.warning("config.yaml is not a mapping, falling back to defaults")
        return _default_config()
    return _merge_defaults(cfg)


def save_config(cfg: dict[str, Any]) -> None:
    """Save configuration to YAML file (atomic write via temp + rename)."""
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    try:
        fd, tmp_path = tempfile.mkstemp(
            suffix=".tmp",
            prefix="config_",
            dir=str(CONFIG_PATH.parent),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.dump(
                    cfg, f, default_flow_style=False,
                    allow_unicode=True, sort_keys=False,
                )
            os.replace(tmp_path, str(CONFIG_PATH))
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
    except OSError as exc:
        _logger.error("Failed to save config.yaml: %s", exc)


def update_config(patch: dict[str, Any]) -> dict[str, Any]:
    """Merge patch into existing config and save."""
    cfg = load_config()
    _deep_merge(cfg, patch)
    save_config(cfg)
    return cfg


def _deep_merge(base: dict, override: dict) -> None:
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def _default_config() -> dict[str, Any]:
    return {
        "server": {
            "host": "127.0.0.1",
            "port": 8740,
            "token": "",
        },
        "launch": {
            "use_desktop_window": True,
            "enable_tray_on_start": True,
            "open_webui_on_start": False,
        },
        "notifications": {
            "max_notifications": 100,
            "default_auto_hide_ms": 6000,
            "display_limit": 50,
        },
        "native": {
            "enabled": True,
            "permission": "ask",
            "sound_enabled": False,
            "sound_dir": "",
            "auto_close_seconds": 5,
            "app_name": "DataFlow",
        },
    }


def _merge_defaults(cfg: dict[str, Any]) -> dict[str, Any]:
    result = _default_config()
    _deep_merge(result, cfg)

    native_section = result.get("native", {})
    if isinstance(native_section, dict):
        native_section["permission"] = normalize_permission_answer(
            native_section.get("permission")
        )

    return result


def normalize_permission_answer(value: object) -> str:
    """Normalize the configured native permission answer."""
    if not isinstance(value, str):
        return "ask"

    lowered = value.strip().lower()
    if lowered in PERMISSION_ANSWERS:
        return lowered
    return "ask"


def _positive_int(value: object, fallback: int) -> int:
    if isinstance(value, bool):
        return fallback
    try:
        parsed = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return fallback
    return parsed if parsed > 0 else fallback


def get_notification_settings(cfg: dict[str, Any] | None = None) -> dict[str, int]:
    """Return validated registry/center limits from config."""
    if cfg is None:
        cfg = load_config()
    section = cfg.get("notifications", {})
    if not isinstance(section, dict):
        section = {}
    return {
        "max_notifications": _positive_int(section.get("max_notifications"), 100),
        "default_auto_hide_ms": _positive_int(
            section.get("default_auto_hide_ms"), 6000
        ),
        "display_limit": _positive_int(section.get("display_limit"), 50),
    }


def get_native_settings(cfg: dict[str, Any] | None = None) -> dict[str, Any]:
    """Return validated native bridge settings from config."""
    if cfg is None:
        cfg = load_config()
    section = cfg.get("native", {})
    if not isinstance(section, dict):
        section = {}

    try:
        auto_close_seconds = float(section.get("auto_close_seconds", 5))
    except (TypeError, ValueError):
        auto_close_seconds = 5.0
    if auto_close_seconds <= 0:
        auto_close_seconds = 5.0

    return {
        "enabled": bool(section.get("enabled", True)),
        "permission": normalize_permission_answer(section.get("permission")),
        "sound_enabled": bool(section.get("sound_enabled", False)),
        "sound_dir": str(section.get("sound_dir") or "").strip(),
        "auto_close_seconds": auto_close_seconds,
        "app_name": str(section.get("app_name") or "DataFlow").strip() or "DataFlow",
    }

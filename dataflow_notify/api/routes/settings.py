"""Settings routes; notification and native changes apply immediately."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from dataflow_notify.api.deps import get_session
from dataflow_notify.api.schemas import (
    LaunchSettings,
    MessageResponse,
    NativeSettings,
    NotificationSettings,
    ServerSettings,
    SettingsResponse,
)
from dataflow_notify.core.app_meta import APP_VERSION
from dataflow_notify.core.config import (
    get_native_settings,
    get_notification_settings,
    load_config,
    update_config,
)
from dataflow_notify.core.session import NotificationSession

router = APIRouter()


def _patch_from(body: Any) -> dict[str, Any]:
    return {k: v for k, v in body.model_dump().items() if v is not None}


@router.get("", response_model=SettingsResponse)
async def get_settings(request: Request):
    """Return all settings; the API token itself is never echoed."""
    cfg = load_config()

    server_section = dict(cfg.get("server", {}))
    server_host = str(
        getattr(request.app.state, "runtime_host", server_section.get("host", "127.0.0.1"))
    )
    try:
        server_port = int(
            getattr(request.app.state, "runtime_port", server_section.get("port", 8740))
        )
    except (TypeError, ValueError):
        server_port = 8740

    browser_host = "127.0.0.1" if server_host in {"0.0.0.0", "::"} else server_host
    server_section["host"] = server_host
    server_section["port"] = server_port
    server_section["token_set"] = bool(server_section.pop("token", ""))
    server_section["webui_url"] = f"http://{browser_host}:{server_port}"
    server_section["docs_url"] = f"{server_section['webui_url']}/docs"
    server_section["app_version"] = APP_VERSION

    launch_raw = cfg.get("launch", {})
    launch_section = launch_raw if isinstance(launch_raw, dict) else {}

    return SettingsResponse(
        server=server_section,
        launch=dict(launch_section),
        notifications=get_notification_settings(cfg),
        native=get_native_settings(cfg),
    )


@router.put("/server", response_model=MessageResponse)
async def update_server_settings(body: ServerSettings):
    """Host, port and token; host/port take effect after restart."""
    patch = _patch_from(body)
    if not patch:
        return MessageResponse(message="Nothing to update", success=False)
    update_config({"server": patch})
    return MessageResponse(message="Server settings updated; restart to apply host/port")


@router.put("/launch", response_model=MessageResponse)
async def update_launch_settings(body: LaunchSettings):
    patch = _patch_from(body)
    if not patch:
        return MessageResponse(message="Nothing to update", success=False)
    update_config({"launch": patch})
    return MessageResponse(message="Launch settings updated; applies on next start")


@router.put("/notifications", response_model=MessageResponse)
async def update_notification_settings(
    body: NotificationSettings,
    session: NotificationSession = Depends(get_session),
):
    patch = _patch_from(body)
    if not patch:
        return MessageResponse(message="Nothing to update", success=False)
    cfg = update_config({"notifications": patch})
    session.apply_config(cfg)
    return MessageResponse(message="Notification settings updated")


@router.put("/native", response_model=MessageResponse)
async def update_native_settings(
    body: NativeSettings,
    session: NotificationSession = Depends(get_session),
):
    """Native bridge settings.

    A changed ``permission`` answer is only consulted on the next start:
    a granted or denied permission is final for the running session.
    """
    patch = _patch_from(body)
    if not patch:
        return MessageResponse(message="Nothing to update", success=False)
    cfg = update_config({"native": patch})
    session.apply_config(cfg)
    return MessageResponse(message="Native notification settings updated")

"""Pydantic schemas for the DataFlow Notify API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from dataflow_notify.core.system_notifications import is_web_url


def _check_web_url(value: str | None) -> str | None:
    value = (value or "").strip()
    if not value:
        return None
    if not is_web_url(value):
        raise ValueError("URL must use http or https")
    return value


# ── Notification schemas ───────────────────────────────────────────────────


class NotificationActionIn(BaseModel):
    label: str = Field(..., min_length=1, max_length=60)
    url: str | None = Field(None, description="Opened in the browser when clicked")
    variant: Literal["text", "outlined", "contained"] = "text"

    @field_validator("url")
    @classmethod
    def check_url_scheme(cls, value: str | None) -> str | None:
        return _check_web_url(value)


class NotificationActionOut(BaseModel):
    label: str
    variant: str = "text"
    url: str | None = None


class NotificationCreate(BaseModel):
    message: str = Field(..., min_length=1, description="Notification body text")
    severity: Literal["success", "info", "warning", "error"] = "info"
    category: str = Field("system", description="Category name, e.g. etl or security")
    persistent: bool = False
    auto_hide_ms: int | None = Field(
        None, ge=0, le=600000, description="Toast lifetime in ms; empty uses default"
    )
    title: str | None = Field(None, max_length=120)
    actions: list[NotificationActionIn] = Field(default_factory=list, max_length=5)
    metadata: dict[str, Any] = Field(default_factory=dict)
    show_native: bool = False
    play_sound: bool = False


class NotificationResponse(BaseModel):
    id: str
    message: str
    severity: str
    category: str
    created_at: str
    read: bool
    persistent: bool
    auto_hide_ms: int | None = None
    title: str | None = None
    actions: list[NotificationActionOut] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    icon: str | None = None
    chip_color: str | None = None


class CenterResponse(BaseModel):
    items: list[NotificationResponse]
    state: Literal["empty", "no_results", "ok"]
    shown: int
    total: int
    matched: int
    unread_count: int
    category: str | None = None
    search: str = ""
    summary: str


class DispatchResponse(BaseModel):
    id: str


class UnreadCountResponse(BaseModel):
    unread_count: int


class ToastResponse(BaseModel):
    toast: NotificationResponse | None = None


class BulkResponse(BaseModel):
    success: bool = True
    affected: int


class ActionResultResponse(BaseModel):
    success: bool
    notification_id: str
    index: int


# ── Scenario event schemas ─────────────────────────────────────────────────


class EtlEventRequest(BaseModel):
    pipeline_name: str = Field(..., min_length=1)
    status: Literal["started", "completed", "failed"]
    records_processed: int | None = Field(None, ge=0)
    error: str | None = None
    show_native: bool = True


class AIInsightEventRequest(BaseModel):
    insight_type: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0.0, le=1.0)
    details: str | None = None
    show_native: bool = True


class SecurityEventRequest(BaseModel):
    alert_type: str = Field(..., min_length=1)
    urgent: bool = False
    details: str | None = None
    show_native: bool = True


class PerformanceEventRequest(BaseModel):
    metric: str = Field(..., min_length=1)
    value: str = Field(..., min_length=1, description="Display value, e.g. '2.5s'")
    critical: bool = False
    show_native: bool = True


class CollaborationEventRequest(BaseModel):
    kind: Literal["comment", "invitation"]
    author: str | None = None
    workspace: str | None = None
    inviter_name: str | None = None
    workspace_name: str | None = None
    show_native: bool = True


class DataExportEventRequest(BaseModel):
    file_name: str = Field(..., min_length=1)
    download_url: str | None = None
    show_native: bool = True

    @field_validator("download_url")
    @classmethod
    def check_download_url_scheme(cls, value: str | None) -> str | None:
        return _check_web_url(value)


# ── Native bridge schemas ──────────────────────────────────────────────────


class NativeStatusResponse(BaseModel):
    permission: Literal["default", "granted", "denied", "unsupported"]
    supported: bool
    enabled: bool
    sound_enabled: bool
    auto_close_seconds: float
    app_visible: bool
    can_show: bool
    presence: dict[str, Any] = Field(default_factory=dict)


class PermissionAnswerRequest(BaseModel):
    granted: bool


class PermissionResponse(BaseModel):
    permission: Literal["default", "granted", "denied", "unsupported"]


class VisibilityRequest(BaseModel):
    visible: bool = Field(..., description="document.visibilityState == 'visible'")


class SoundRequest(BaseModel):
    category: str = "system"


# ── Settings schemas ───────────────────────────────────────────────────────


class ServerSettings(BaseModel):
    host: str | None = None
    port: int | None = Field(None, ge=1, le=65535)
    token: str | None = None


class LaunchSettings(BaseModel):
    use_desktop_window: bool | None = None
    enable_tray_on_start: bool | None = None
    open_webui_on_start: bool | None = None


class NotificationSettings(BaseModel):
    max_notifications: int | None = Field(None, ge=1, le=10000)
    default_auto_hide_ms: int | None = Field(None, ge=500, le=600000)
    display_limit: int | None = Field(None, ge=1, le=1000)


class NativeSettings(BaseModel):
    enabled: bool | None = None
    permission: Literal["ask", "granted", "denied"] | None = None
    sound_enabled: bool | None = None
    sound_dir: str | None = None
    auto_close_seconds: float | None = Field(None, gt=0, le=3600)
    app_name: str | None = Field(None, min_length=1, max_length=60)


class SettingsResponse(BaseModel):
    server: dict[str, Any]
    launch: dict[str, Any]
    notifications: dict[str, Any]
    native: dict[str, Any]


class MessageResponse(BaseModel):
    message: str
    success: bool = True

"""Native notification bridge routes: permission, visibility, sound."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dataflow_notify.api.deps import get_session, parse_category
from dataflow_notify.api.schemas import (
    MessageResponse,
    NativeStatusResponse,
    PermissionAnswerRequest,
    PermissionResponse,
    SoundRequest,
    VisibilityRequest,
)
from dataflow_notify.core.session import NotificationSession

router = APIRouter()


@router.get("/status", response_model=NativeStatusResponse)
async def get_native_status(session: NotificationSession = Depends(get_session)):
    return NativeStatusResponse(
        **session.bridge.status(),
        presence=session.presence.snapshot(),
    )


@router.post("/permission/request", response_model=PermissionResponse)
async def request_native_permission(
    session: NotificationSession = Depends(get_session),
):
    """Resolve permission once; granted/denied answers are cached."""
    state = session.bridge.request_permission()
    return PermissionResponse(permission=state.value)


@router.post("/permission", response_model=PermissionResponse)
async def answer_native_permission(
    body: PermissionAnswerRequest,
    session: NotificationSession = Depends(get_session),
):
    """Record the user's answer from the WebUI permission prompt."""
    state = session.bridge.resolve_permission(body.granted)
    return PermissionResponse(permission=state.value)


@router.put("/visibility", response_model=MessageResponse)
async def report_page_visibility(
    body: VisibilityRequest,
    session: NotificationSession = Depends(get_session),
):
    session.presence.report_page(body.visible)
    return MessageResponse(
        message="Page visible" if body.visible else "Page hidden",
    )


@router.post("/sound", response_model=MessageResponse)
async def play_category_sound(
    body: SoundRequest,
    session: NotificationSession = Depends(get_session),
):
    category = parse_category(body.category)
    if not session.bridge.play_sound(category):
        return MessageResponse(message="Sound not played", success=False)
    return MessageResponse(message="Sound played")

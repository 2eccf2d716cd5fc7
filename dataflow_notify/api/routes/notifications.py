"""Notification center routes: history, toast, read state and live stream."""

from __future__ import annotations

import asyncio
import json
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse

from dataflow_notify.api.deps import get_session, parse_category
from dataflow_notify.api.schemas import (
    ActionResultResponse,
    BulkResponse,
    CenterResponse,
    DispatchResponse,
    MessageResponse,
    NotificationActionIn,
    NotificationCreate,
    NotificationResponse,
    ToastResponse,
    UnreadCountResponse,
)
from dataflow_notify.core.category_assets import CATEGORY_CHIP_COLORS, icon_for
from dataflow_notify.core.models import (
    Category,
    DispatchOptions,
    Notification,
    NotificationAction,
)
from dataflow_notify.core.registry import NotificationEvent
from dataflow_notify.core.session import NotificationSession
from dataflow_notify.core.system_notifications import open_url_action

router = APIRouter()

_HEARTBEAT_SECONDS = 15.0


def _to_response(notification: Notification) -> NotificationResponse:
    return NotificationResponse(
        **notification.to_dict(),
        icon=icon_for(notification.category),
        chip_color=CATEGORY_CHIP_COLORS[notification.category],
    )


def _not_found(notification_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Notification not found: {notification_id}",
    )


def _build_action(raw: NotificationActionIn) -> NotificationAction:
    if raw.url:
        action = open_url_action(raw.label, raw.url)
        action.variant = raw.variant
        return action
    return NotificationAction(label=raw.label, variant=raw.variant)


def _sse(payload: dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


@router.get("", response_model=CenterResponse)
async def list_notifications(
    category: str | None = Query(None, description="Category name or 'all'"),
    search: str = Query("", max_length=200),
    limit: int | None = Query(None, ge=1),
    session: NotificationSession = Depends(get_session),
):
    """Notification center view, newest first, capped at the display limit."""
    view = session.center.view(
        category=parse_category(category), search=search, limit=limit
    )
    return CenterResponse(**view.to_dict())


@router.post("", response_model=DispatchResponse, status_code=201)
async def create_notification(
    body: NotificationCreate,
    session: NotificationSession = Depends(get_session),
):
    category = parse_category(body.category) or Category.SYSTEM
    actions = [_build_action(action) for action in body.actions]

    notification_id = session.registry.dispatch(
        body.message,
        body.severity,
        category,
        DispatchOptions(
            persistent=body.persistent,
            auto_hide_ms=body.auto_hide_ms,
            title=body.title,
            actions=actions,
            metadata=body.metadata,
            show_native=body.show_native,
            play_sound=body.play_sound,
        ),
    )
    return DispatchResponse(id=notification_id)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(session: NotificationSession = Depends(get_session)):
    return UnreadCountResponse(unread_count=session.registry.unread_count)


@router.post("/mark-all-read", response_model=BulkResponse)
async def mark_all_read(session: NotificationSession = Depends(get_session)):
    return BulkResponse(affected=session.center.mark_all_read())


@router.delete("", response_model=BulkResponse)
async def clear_all_notifications(session: NotificationSession = Depends(get_session)):
    return BulkResponse(affected=session.center.clear_all())


@router.get("/toast", response_model=ToastResponse)
async def get_active_toast(session: NotificationSession = Depends(get_session)):
    toast = session.registry.active_toast
    return ToastResponse(toast=_to_response(toast) if toast is not None else None)


@router.delete("/toast", response_model=MessageResponse)
async def dismiss_active_toast(session: NotificationSession = Depends(get_session)):
    if not session.registry.dismiss_active_toast():
        return MessageResponse(message="No active toast", success=False)
    return MessageResponse(message="Toast dismissed")


@router.get("/stream")
async def stream_notifications(
    request: Request,
    session: NotificationSession = Depends(get_session),
):
    """Server-sent events mirroring every registry change.

    The first frame is a ``snapshot`` with the current unread count and
    active toast; each later frame is one registry event
    (``dispatched``, ``read``, ``all_read``, ``cleared``, ``all_cleared``,
    ``toast_dismissed``).  Comment frames keep idle connections alive.
    """
    queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    loop = asyncio.get_running_loop()

    def on_event(event: NotificationEvent) -> None:
        try:
            _ = loop.call_soon_threadsafe(queue.put_nowait, event.to_dict())
        except RuntimeError:
            # Loop already closed during shutdown.
            pass

    async def event_generator():
        unsubscribe = session.registry.subscribe(on_event)
        try:
            toast = session.registry.active_toast
            yield _sse(
                {
                    "kind": "snapshot",
                    "unread_count": session.registry.unread_count,
                    "active_toast_id": toast.id if toast is not None else None,
                }
            )
            while True:
                if await request.is_disconnected():
                    break
                try:
                    payload = await asyncio.wait_for(
                        queue.get(), timeout=_HEARTBEAT_SECONDS
                    )
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield _sse(payload)
        finally:
            unsubscribe()

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("/{notification_id}", response_model=NotificationResponse)
async def get_notification(
    notification_id: str,
    session: NotificationSession = Depends(get_session),
):
    notification = session.registry.get(notification_id)
    if notification is None:
        raise _not_found(notification_id)
    return _to_response(notification)


@router.put("/{notification_id}/read", response_model=MessageResponse)
async def mark_notification_read(
    notification_id: str,
    session: NotificationSession = Depends(get_session),
):
    if not session.center.mark_read(notification_id):
        raise _not_found(notification_id)
    return MessageResponse(message="Notification marked as read")


@router.delete("/{notification_id}", response_model=MessageResponse)
async def clear_notification(
    notification_id: str,
    session: NotificationSession = Depends(get_session),
):
    if not session.center.clear(notification_id):
        raise _not_found(notification_id)
    return MessageResponse(message="Notification cleared")


@router.post(
    "/{notification_id}/actions/{index}", response_model=ActionResultResponse
)
async def run_notification_action(
    notification_id: str,
    index: int,
    session: NotificationSession = Depends(get_session),
):
    notification = session.registry.get(notification_id)
    if notification is None:
        toast = session.registry.active_toast
        if toast is None or toast.id != notification_id:
            raise _not_found(notification_id)
        notification = toast
    if index < 0 or index >= len(notification.actions):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Action {index} not found on {notification_id}",
        )

    succeeded = session.registry.run_action(notification_id, index)
    return ActionResultResponse(
        success=succeeded, notification_id=notification_id, index=index
    )


@router.post("/{notification_id}/open", response_model=MessageResponse)
async def open_notification(
    notification_id: str,
    session: NotificationSession = Depends(get_session),
):
    """Same as clicking an item in the center: mark read, run first action."""
    if not session.center.open_item(notification_id):
        raise _not_found(notification_id)
    return MessageResponse(message="Notification opened")

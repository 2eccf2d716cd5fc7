"""Scenario event routes: let backends raise ready-made notifications."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from dataflow_notify.api.deps import get_session
from dataflow_notify.api.schemas import (
    AIInsightEventRequest,
    CollaborationEventRequest,
    DataExportEventRequest,
    DispatchResponse,
    EtlEventRequest,
    PerformanceEventRequest,
    SecurityEventRequest,
)
from dataflow_notify.core.session import NotificationSession

router = APIRouter()


@router.post("/etl", response_model=DispatchResponse, status_code=201)
async def etl_event(
    body: EtlEventRequest,
    session: NotificationSession = Depends(get_session),
):
    """Pipeline lifecycle: started / completed / failed (failed stays put)."""
    notification_id = session.notifier.show_etl(
        body.pipeline_name,
        body.status,
        records_processed=body.records_processed,
        error=body.error,
        show_native=body.show_native,
    )
    return DispatchResponse(id=notification_id)


@router.post("/ai-insight", response_model=DispatchResponse, status_code=201)
async def ai_insight_event(
    body: AIInsightEventRequest,
    session: NotificationSession = Depends(get_session),
):
    notification_id = session.notifier.show_ai_insight(
        body.insight_type,
        body.confidence,
        show_native=body.show_native,
        details=body.details,
    )
    return DispatchResponse(id=notification_id)


@router.post("/security", response_model=DispatchResponse, status_code=201)
async def security_event(
    body: SecurityEventRequest,
    session: NotificationSession = Depends(get_session),
):
    notification_id = session.notifier.show_security_alert(
        body.alert_type,
        show_native=body.show_native,
        urgent=body.urgent,
        details=body.details,
    )
    return DispatchResponse(id=notification_id)


@router.post("/performance", response_model=DispatchResponse, status_code=201)
async def performance_event(
    body: PerformanceEventRequest,
    session: NotificationSession = Depends(get_session),
):
    notification_id = session.notifier.show_performance_alert(
        body.metric,
        body.value,
        show_native=body.show_native,
        critical=body.critical,
    )
    return DispatchResponse(id=notification_id)


@router.post("/collaboration", response_model=DispatchResponse, status_code=201)
async def collaboration_event(
    body: CollaborationEventRequest,
    session: NotificationSession = Depends(get_session),
):
    try:
        notification_id = session.notifier.show_collaboration(
            body.kind,
            author=body.author,
            workspace=body.workspace,
            inviter_name=body.inviter_name,
            workspace_name=body.workspace_name,
            show_native=body.show_native,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return DispatchResponse(id=notification_id)


@router.post("/data-export", response_model=DispatchResponse, status_code=201)
async def data_export_event(
    body: DataExportEventRequest,
    session: NotificationSession = Depends(get_session),
):
    notification_id = session.notifier.show_data_export_ready(
        body.file_name,
        show_native=body.show_native,
        download_url=body.download_url,
    )
    return DispatchResponse(id=notification_id)

"""Shared request dependencies for API routes."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from dataflow_notify.core.models import Category, parse_category_filter
from dataflow_notify.core.session import NotificationSession


def get_session(request: Request) -> NotificationSession:
    session = getattr(request.app.state, "session", None)
    if session is None or session.closed:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification session is not running",
        )
    return session


def parse_category(value: str | None) -> Category | None:
    """Parse a category query value; ``all`` and blank mean no filter."""
    try:
        return parse_category_filter(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown category: {value}",
        ) from None

"""Optional bearer token guard for the notification API."""

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from dataflow_notify.core.config import load_config

_logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


async def verify_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    token_param: str | None = Query(None, alias="token", include_in_schema=False),
) -> None:
    """FastAPI dependency; auth is off when no token is configured.

    When ``server.token`` is set, every API request must carry
    ``Authorization: Bearer <token>`` or it is answered with 401.  A
    ``?token=`` query parameter is accepted too, because EventSource
    cannot set headers.
    """
    try:
        cfg = load_config()
        token = str(cfg.get("server", {}).get("token", "") or "")
    except Exception:
        _logger.warning("Config unreadable while checking API token; allowing request")
        return

    if not token:
        return

    supplied = credentials.credentials if credentials is not None else token_param
    if supplied != token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: a valid bearer token is required",
            headers={"WWW-Authenticate": "Bearer"},
        )

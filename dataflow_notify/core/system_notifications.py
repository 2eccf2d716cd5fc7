"""Ready-made notification helpers for common application events.

Each helper picks severity, persistence, auto-hide duration and native
mirroring for its scenario, then dispatches into the registry.  All of them
return the new notification id.
"""

from __future__ import annotations

import webbrowser
from datetime import datetime, timezone
from typing import Any, Literal
from urllib.parse import urlparse

from dataflow_notify.core import templates
from dataflow_notify.core.models import (
    Category,
    DispatchOptions,
    NotificationAction,
    Severity,
)
from dataflow_notify.core.registry import NotificationRegistry

EtlStatus = Literal["started", "completed", "failed"]
CollaborationKind = Literal["comment", "invitation"]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


WEB_URL_SCHEMES = frozenset({"http", "https"})


def is_web_url(url: str) -> bool:
    parsed = urlparse(url.strip())
    return parsed.scheme.lower() in WEB_URL_SCHEMES and bool(parsed.netloc)


def open_url_action(label: str, url: str) -> NotificationAction:
    """Build an action that opens *url* in the default browser.

    Only http and https URLs are accepted; anything else raises ``ValueError``.
    """
    if not is_web_url(url):
        raise ValueError(f"Only http(s) URLs can be opened: {url!r}")

    def _open() -> None:
        webbrowser.open_new_tab(url)

    return NotificationAction(label=label, callback=_open, url=url)


class SystemNotifier:
    def __init__(self, registry: NotificationRegistry) -> None:
        self._registry = registry

    def _details(self, details: str | None) -> dict[str, Any]:
        return {"details": details} if details else {}

    # ── Generic severities ─────────────────────────────────────────────

    def show_success(
        self,
        message: str,
        *,
        category: Category | str = Category.SYSTEM,
        show_native: bool = False,
        details: str | None = None,
    ) -> str:
        return self._registry.dispatch(
            message,
            Severity.SUCCESS,
            category,
            DispatchOptions(
                auto_hide_ms=4000,
                metadata=self._details(details),
                show_native=show_native,
            ),
        )

    def show_error(
        self,
        message: str,
        *,
        category: Category | str = Category.SYSTEM,
        show_native: bool = False,
        error: str | None = None,
        persistent: bool = False,
    ) -> str:
        return self._registry.dispatch(
            message,
            Severity.ERROR,
            category,
            DispatchOptions(
                persistent=persistent,
                auto_hide_ms=None if persistent else 6000,
                metadata={"timestamp": _now_iso(), "error": error or "Unknown error"},
                show_native=show_native,
            ),
        )

    def show_warning(
        self,
        message: str,
        *,
        category: Category | str = Category.SYSTEM,
        show_native: bool = False,
        details: str | None = None,
    ) -> str:
        return self._registry.dispatch(
            message,
            Severity.WARNING,
            category,
            DispatchOptions(
                auto_hide_ms=5000,
                metadata=self._details(details),
                show_native=show_native,
            ),
        )

    def show_info(
        self,
        message: str,
        *,
        category: Category | str = Category.SYSTEM,
        show_native: bool = False,
        details: str | None = None,
    ) -> str:
        return self._registry.dispatch(
            message,
            Severity.INFO,
            category,
            DispatchOptions(
                auto_hide_ms=4000,
                metadata=self._details(details),
                show_native=show_native,
            ),
        )

    # ── Scenario helpers ───────────────────────────────────────────────

    def show_etl(
        self,
        pipeline_name: str,
        status: EtlStatus,
        *,
        records_processed: int | None = None,
        error: str | None = None,
        show_native: bool = True,
    ) -> str:
        if status == "started":
            template = templates.etl_pipeline_started(pipeline_name)
            severity = Severity.INFO
        elif status == "completed":
            template = templates.etl_pipeline_completed(pipeline_name, records_processed or 0)
            severity = Severity.SUCCESS
        elif status == "failed":
            template = templates.etl_pipeline_failed(pipeline_name, error or "Unknown error")
            severity = Severity.ERROR
        else:
            raise ValueError(f"Unknown ETL status: {status!r}")

        failed = status == "failed"
        return self._registry.dispatch(
            template.message,
            severity,
            template.category,
            DispatchOptions(
                persistent=failed,
                auto_hide_ms=None if failed else 5000,
                title=template.title,
                metadata={
                    "pipeline_name": pipeline_name,
                    "status": status,
                    "records_processed": records_processed,
                    "error": error,
                    "timestamp": _now_iso(),
                },
                show_native=show_native,
                play_sound=show_native and failed,
            ),
        )

    def show_ai_insight(
        self,
        insight_type: str,
        confidence: float,
        *,
        show_native: bool = True,
        details: str | None = None,
    ) -> str:
        template = templates.new_ai_insight(insight_type, confidence)
        return self._registry.dispatch(
            template.message,
            Severity.INFO,
            template.category,
            DispatchOptions(
                auto_hide_ms=6000,
                title=template.title,
                metadata={
                    "insight_type": insight_type,
                    "confidence": confidence,
                    "details": details,
                    "timestamp": _now_iso(),
                },
                show_native=show_native,
            ),
        )

    def show_security_alert(
        self,
        alert_type: str,
        *,
        show_native: bool = True,
        urgent: bool = False,
        details: str | None = None,
    ) -> str:
        template = templates.security_alert(alert_type)
        return self._registry.dispatch(
            template.message,
            Severity.ERROR,
            template.category,
            DispatchOptions(
                persistent=urgent,
                auto_hide_ms=None if urgent else 8000,
                title=template.title,
                metadata={
                    "alert_type": alert_type,
                    "urgent": urgent,
                    "details": details,
                    "timestamp": _now_iso(),
                },
                show_native=show_native,
                play_sound=show_native and urgent,
            ),
        )

    def show_performance_alert(
        self,
        metric: str,
        value: str,
        *,
        show_native: bool = True,
        critical: bool = False,
    ) -> str:
        template = templates.performance_degradation(metric, value)
        return self._registry.dispatch(
            template.message,
            Severity.ERROR if critical else Severity.WARNING,
            template.category,
            DispatchOptions(
                persistent=critical,
                auto_hide_ms=None if critical else 6000,
                title=template.title,
                metadata={
                    "metric": metric,
                    "value": value,
                    "critical": critical,
                    "timestamp": _now_iso(),
                },
                show_native=show_native,
                play_sound=show_native and critical,
            ),
        )

    def show_collaboration(
        self,
        kind: CollaborationKind,
        *,
        author: str | None = None,
        workspace: str | None = None,
        inviter_name: str | None = None,
        workspace_name: str | None = None,
        show_native: bool = True,
    ) -> str:
        if kind == "comment" and author and workspace:
            template = templates.new_comment(author, workspace)
        elif kind == "invitation" and inviter_name and workspace_name:
            template = templates.workspace_invitation(inviter_name, workspace_name)
        else:
            raise ValueError("Invalid collaboration notification data")

        data = {
            key: value
            for key, value in (
                ("author", author),
                ("workspace", workspace),
                ("inviter_name", inviter_name),
                ("workspace_name", workspace_name),
            )
            if value
        }
        return self._registry.dispatch(
            template.message,
            Severity.INFO,
            template.category,
            DispatchOptions(
                auto_hide_ms=5000,
                title=template.title,
                metadata={"type": kind, **data, "timestamp": _now_iso()},
                show_native=show_native,
            ),
        )

    def show_data_export_ready(
        self,
        file_name: str,
        *,
        show_native: bool = True,
        download_url: str | None = None,
    ) -> str:
        template = templates.data_export_ready(file_name)
        actions = [open_url_action("Download", download_url)] if download_url else []
        return self._registry.dispatch(
            template.message,
            Severity.SUCCESS,
            template.category,
            DispatchOptions(
                auto_hide_ms=8000,
                title=template.title,
                actions=actions,
                metadata={
                    "file_name": file_name,
                    "download_url": download_url,
                    "timestamp": _now_iso(),
                },
                show_native=show_native,
            ),
        )

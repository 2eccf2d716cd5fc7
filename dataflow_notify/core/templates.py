"""Predefined notification texts for common scenarios."""

from __future__ import annotations

from dataclasses import dataclass

from dataflow_notify.core.models import Category


@dataclass(frozen=True, slots=True)
class NotificationTemplate:
    title: str
    message: str
    category: Category


def login_success(username: str) -> NotificationTemplate:
    return NotificationTemplate(
        "Welcome Back!", f"Successfully logged in as {username}", Category.AUTH
    )


def login_failed(reason: str) -> NotificationTemplate:
    return NotificationTemplate("Login Failed", reason, Category.AUTH)


def etl_pipeline_started(pipeline_name: str) -> NotificationTemplate:
    return NotificationTemplate(
        "Pipeline Started",
        f'ETL pipeline "{pipeline_name}" has started processing',
        Category.ETL,
    )


def etl_pipeline_completed(pipeline_name: str, records_processed: int) -> NotificationTemplate:
    return NotificationTemplate(
        "Pipeline Completed",
        f'ETL pipeline "{pipeline_name}" completed successfully. '
        f"{records_processed} records processed.",
        Category.ETL,
    )


def etl_pipeline_failed(pipeline_name: str, error: str) -> NotificationTemplate:
    return NotificationTemplate(
        "Pipeline Failed",
        f'ETL pipeline "{pipeline_name}" failed: {error}',
        Category.ETL,
    )


def new_ai_insight(insight_type: str, confidence: float) -> NotificationTemplate:
    # JS Math.round semantics: halves round up.
    percent = int(confidence * 100 + 0.5)
    return NotificationTemplate(
        "New AI Insight",
        f"New {insight_type} insight detected with {percent}% confidence",
        Category.AI_INSIGHT,
    )


def security_alert(alert_type: str) -> NotificationTemplate:
    return NotificationTemplate(
        "Security Alert", f"Security alert: {alert_type}", Category.SECURITY
    )


def performance_degradation(metric: str, value: str) -> NotificationTemplate:
    return NotificationTemplate(
        "Performance Alert",
        f"Performance degradation detected: {metric} at {value}",
        Category.PERFORMANCE,
    )


def new_comment(author: str, workspace: str) -> NotificationTemplate:
    return NotificationTemplate(
        "New Comment", f"{author} commented in {workspace}", Category.COLLABORATION
    )


def workspace_invitation(inviter_name: str, workspace_name: str) -> NotificationTemplate:
    return NotificationTemplate(
        "Workspace Invitation",
        f'{inviter_name} invited you to join "{workspace_name}"',
        Category.COLLABORATION,
    )


def system_maintenance(start_time: str, duration: str) -> NotificationTemplate:
    return NotificationTemplate(
        "Scheduled Maintenance",
        f"System maintenance scheduled for {start_time}, estimated duration: {duration}",
        Category.SYSTEM,
    )


def data_export_ready(file_name: str) -> NotificationTemplate:
    return NotificationTemplate(
        "Export Ready",
        f'Your data export "{file_name}" is ready for download',
        Category.DATA,
    )

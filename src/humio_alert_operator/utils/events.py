"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_ALERT_CREATED,
    EVENT_REASON_ALERT_DELETED,
    EVENT_REASON_ALERT_UPDATED,
    EVENT_REASON_CONFIG_ERROR,
    EVENT_REASON_RECONCILE_FAILED,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Resource body (apiVersion, kind and metadata)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_config_error(body: dict[str, Any], message: str) -> None:
    """Emit cluster configuration error event."""
    emit_event(body, EVENT_REASON_CONFIG_ERROR, message, type_="Warning")


def emit_alert_created(body: dict[str, Any], alert_name: str) -> None:
    """Emit alert created event."""
    emit_event(body, EVENT_REASON_ALERT_CREATED, f"Alert {alert_name} created")


def emit_alert_updated(body: dict[str, Any], alert_name: str) -> None:
    """Emit alert updated event."""
    emit_event(body, EVENT_REASON_ALERT_UPDATED, f"Alert {alert_name} updated")


def emit_alert_deleted(body: dict[str, Any], alert_name: str) -> None:
    """Emit alert deleted event."""
    emit_event(body, EVENT_REASON_ALERT_DELETED, f"Alert {alert_name} deleted")

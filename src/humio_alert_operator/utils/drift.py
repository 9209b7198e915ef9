"""Drift detection between observed and expected Humio alerts."""

from __future__ import annotations

import dataclasses
from typing import Any

from ..services.humio.models import Alert

# Fields Humio sets on its own; they never take part in comparison.
SERVER_MANAGED_FIELDS = ("id", "time_of_last_trigger", "last_error")

# Fields produced by the alert builder and compared exactly.
COMPARABLE_FIELDS = (
    "name",
    "query_string",
    "query_start",
    "throttle_field",
    "description",
    "throttle_time_millis",
    "enabled",
    "actions",
    "labels",
)


def sanitize_alert(alert: Alert) -> Alert:
    """Return a copy of ``alert`` with server-managed fields cleared."""
    return dataclasses.replace(alert, id="", time_of_last_trigger=0, last_error="")


def alert_diff(current: Alert, expected: Alert) -> dict[str, tuple[Any, Any]]:
    """Compare two alerts field by field.

    Collections are compared in order, so a reordered list counts as drift.

    Returns:
        Mapping of field name to ``(current, expected)`` for every differing field
    """
    diff = {}
    for name in COMPARABLE_FIELDS:
        current_value = getattr(current, name)
        expected_value = getattr(expected, name)
        if current_value != expected_value:
            diff[name] = (current_value, expected_value)
    return diff

"""Status conditions for HumioAlert resources."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..constants import COND_READY


def ready_condition(
    ready: bool,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> dict[str, Any]:
    """Build a Ready condition stamped with the current time."""
    condition = {
        "type": COND_READY,
        "status": "True" if ready else "False",
        "reason": reason,
        "message": message,
        "lastTransitionTime": datetime.now(timezone.utc).isoformat(),
    }
    if observed_generation is not None:
        condition["observedGeneration"] = observed_generation
    return condition


def merge_condition(conditions: list[dict[str, Any]], condition: dict[str, Any]) -> list[dict[str, Any]]:
    """Return ``conditions`` with ``condition`` replacing the one of the same type.

    The input list is left untouched. ``lastTransitionTime`` only moves when
    the status of the condition changes.
    """
    merged = []
    replaced = False
    for existing in conditions:
        if existing.get("type") != condition["type"]:
            merged.append(dict(existing))
            continue
        new = dict(condition)
        if existing.get("status") == new["status"] and existing.get("lastTransitionTime"):
            new["lastTransitionTime"] = existing["lastTransitionTime"]
        merged.append(new)
        replaced = True
    if not replaced:
        merged.append(dict(condition))
    return merged

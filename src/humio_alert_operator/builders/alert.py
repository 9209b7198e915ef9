"""Builder for Humio alerts from HumioAlert specs."""

from __future__ import annotations

from ..constants import DEFAULT_QUERY_START
from ..models import HumioAlert
from ..services.humio.models import Alert
from ..utils.errors import TransformError


def action_ids_from_action_map(action_names: list[str], action_id_map: dict[str, str]) -> list[str]:
    """Translate action names into Humio action IDs, keeping declaration order.

    Raises:
        TransformError: If an action name has no resolved ID
    """
    action_ids = []
    for action_name in action_names:
        if action_name not in action_id_map:
            raise TransformError(f"could not find action id for action {action_name!r}")
        action_ids.append(action_id_map[action_name])
    return action_ids


def create_alert_from_spec(humio_alert: HumioAlert, action_id_map: dict[str, str]) -> Alert:
    """Build the Humio alert a HumioAlert resource asks for.

    Args:
        humio_alert: The desired HumioAlert resource
        action_id_map: Mapping of action name to Humio action ID

    Returns:
        The expected alert, without server-managed fields

    Raises:
        TransformError: If the spec references an unresolved action
    """
    spec = humio_alert.spec
    return Alert(
        name=spec.name,
        query_string=spec.query.query_string,
        query_start=spec.query.start or DEFAULT_QUERY_START,
        throttle_field=spec.throttle_field,
        description=spec.description,
        throttle_time_millis=spec.throttle_time_millis,
        enabled=not spec.silenced,
        actions=action_ids_from_action_map(spec.actions, action_id_map),
        labels=list(spec.labels) if spec.labels is not None else [],
    )

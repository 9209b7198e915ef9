"""Builders turning custom resources into Humio client objects."""

from .alert import action_ids_from_action_map, create_alert_from_spec
from .cluster import ClusterConfigResolver

__all__ = [
    "action_ids_from_action_map",
    "create_alert_from_spec",
    "ClusterConfigResolver",
]

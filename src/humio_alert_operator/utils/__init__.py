"""Utility functions for the Humio Alert Operator."""

from .cache import ClusterCache, cluster_cache
from .conditions import merge_condition, ready_condition
from .context import (
    get_context_dict,
    get_correlation_id,
    new_reconcile_id,
    with_correlation_id,
)
from .drift import alert_diff, sanitize_alert
from .errors import ClusterConfigError, ReconcileError, TransformError, find_cause
from .events import emit_event
from .rate_limit import call_with_rate_limit_retry, rate_limit_humio, rate_limit_k8s
from .secrets import get_secret_value

__all__ = [
    "merge_condition",
    "ready_condition",
    "emit_event",
    "get_secret_value",
    "ClusterCache",
    "cluster_cache",
    "rate_limit_k8s",
    "rate_limit_humio",
    "call_with_rate_limit_retry",
    "new_reconcile_id",
    "get_correlation_id",
    "with_correlation_id",
    "get_context_dict",
    "alert_diff",
    "sanitize_alert",
    "ClusterConfigError",
    "ReconcileError",
    "TransformError",
    "find_cause",
]

"""Prometheus metrics for the Humio Alert Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "humio_alert_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "humio_alert_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Remote alert operation metrics
alert_operations_total = Counter(
    "humio_alert_operator_alert_operations_total",
    "Total number of Humio alert operations",
    ["operation", "result"],
)

# Configuration drift detection metrics
drift_detected_total = Counter(
    "humio_alert_operator_drift_detected_total",
    "Total number of configuration drift detections",
    ["kind", "field"],
)

# API call metrics
api_call_total = Counter(
    "humio_alert_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "humio_alert_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "humio_alert_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)

error_total = Counter(
    "humio_alert_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

# Status metrics
state_writes_total = Counter(
    "humio_alert_operator_state_writes_total",
    "Total number of alert state writes",
    ["kind", "state"],
)

status_refresh_failures_total = Counter(
    "humio_alert_operator_status_refresh_failures_total",
    "Total number of failed best-effort status refreshes",
    ["kind"],
)

"""Kubernetes-backed storage for HumioAlert resources."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from kubernetes import client

from ... import metrics
from ...constants import API_GROUP, API_VERSION, PLURAL_ALERTS, STATE_EXISTS
from ...models import HumioAlert, ReconcileRequest
from ...utils.conditions import merge_condition, ready_condition
from ...utils.rate_limit import rate_limit_k8s

logger = logging.getLogger(__name__)


class AlertStore:
    """Loads HumioAlert objects and writes finalizers, annotations and status back."""

    def __init__(self, api: Any, request_timeout: float | None = None):
        """Initialize the store.

        Args:
            api: Kubernetes CustomObjectsApi instance
            request_timeout: Optional per-request timeout in seconds
        """
        self.api = api
        self.request_timeout = request_timeout

    def _call(self, operation: str, func: Callable[..., Any], **kwargs: Any) -> Any:
        if self.request_timeout is not None:
            kwargs["_request_timeout"] = self.request_timeout
        start_time = time.time()
        try:
            result = rate_limit_k8s(func)(
                group=API_GROUP,
                version=API_VERSION,
                plural=PLURAL_ALERTS,
                **kwargs,
            )
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
            return result
        except Exception:
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)

    def load(self, namespace: str, name: str) -> HumioAlert | None:
        """Load a HumioAlert.

        Returns:
            The HumioAlert, or None if it no longer exists
        """
        try:
            obj = self._call("get_alert", self.api.get_namespaced_custom_object, namespace=namespace, name=name)
        except client.exceptions.ApiException as e:
            if e.status == 404:
                return None
            raise
        return HumioAlert.from_object(obj)

    def list_requests(self, namespace: str | None = None) -> list[ReconcileRequest]:
        """List every HumioAlert, cluster-wide or in one namespace."""
        if namespace:
            result = self._call("list_alerts", self.api.list_namespaced_custom_object, namespace=namespace)
        else:
            result = self._call("list_alerts", self.api.list_cluster_custom_object)
        requests = []
        for item in result.get("items") or []:
            meta = item.get("metadata", {})
            requests.append(ReconcileRequest(namespace=meta.get("namespace", "default"), name=meta.get("name", "")))
        return requests

    def persist(self, humio_alert: HumioAlert) -> None:
        """Write the finalizers and annotations of a HumioAlert.

        The patch carries the last seen resourceVersion, so a concurrent
        change surfaces as a 409 conflict.
        """
        body = {
            "metadata": {
                "resourceVersion": humio_alert.resource_version,
                "finalizers": list(humio_alert.finalizers),
                "annotations": dict(humio_alert.annotations),
            }
        }
        obj = self._call(
            "patch_alert",
            self.api.patch_namespaced_custom_object,
            namespace=humio_alert.namespace,
            name=humio_alert.name,
            body=body,
        )
        self._refresh_resource_version(humio_alert, obj)

    def persist_status(self, humio_alert: HumioAlert, state: str) -> None:
        """Write the alert state and matching Ready condition."""
        conditions = merge_condition(
            humio_alert.conditions,
            ready_condition(
                state == STATE_EXISTS,
                state,
                f"Alert is in state {state}",
                observed_generation=humio_alert.generation,
            ),
        )
        body = {"status": {"state": state, "conditions": conditions}}
        obj = self._call(
            "patch_alert_status",
            self.api.patch_namespaced_custom_object_status,
            namespace=humio_alert.namespace,
            name=humio_alert.name,
            body=body,
        )
        humio_alert.state = state
        humio_alert.conditions = conditions
        self._refresh_resource_version(humio_alert, obj)

    @staticmethod
    def _refresh_resource_version(humio_alert: HumioAlert, obj: Any) -> None:
        if isinstance(obj, dict):
            resource_version = obj.get("metadata", {}).get("resourceVersion")
            if resource_version:
                humio_alert.resource_version = resource_version

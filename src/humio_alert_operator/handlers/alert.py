"""Handler for HumioAlert CRD."""

from __future__ import annotations

import contextvars
import dataclasses
import logging
import os
import threading
import time
from typing import Any, Protocol

import kopf
from kubernetes.client.exceptions import ApiException

from .. import metrics
from ..builders.alert import create_alert_from_spec
from ..builders.cluster import ClusterConfigResolver
from ..constants import (
    ANNOTATION_ALERT_ID,
    API_GROUP_VERSION,
    FINALIZER,
    KIND_ALERT,
    STATE_CONFIG_ERROR,
    STATE_EXISTS,
    STATE_NOT_FOUND,
)
from ..models import HumioAlert, ReconcileRequest, RequeueDirective
from ..services.humio.base import EntityNotFoundError, HumioClient
from ..services.humio.client import HumioGraphQLClient
from ..services.humio.models import Alert, ClientConfig
from ..services.kubernetes.store import AlertStore
from ..tracing import trace_span
from ..utils.context import new_reconcile_id, with_correlation_id
from ..utils.drift import alert_diff, sanitize_alert
from ..utils.errors import ClusterConfigError, find_cause, sanitize_exception
from ..utils.events import (
    emit_alert_created,
    emit_alert_deleted,
    emit_alert_updated,
    emit_config_error,
)
from .base import BaseHandler
from .shared import get_core_client, get_k8s_client

logger = logging.getLogger(__name__)

MAX_RESYNC_PASSES = 5


class ConfigResolver(Protocol):
    def resolve(self, humio_alert: HumioAlert) -> ClientConfig | None:
        ...


class AlertHandler(BaseHandler):
    """Drives Humio alerts toward the state declared by HumioAlert resources."""

    def __init__(
        self,
        store: AlertStore,
        humio_client: HumioClient,
        config_resolver: ConfigResolver,
        namespace: str | None = None,
    ):
        """Initialize alert handler.

        Args:
            store: Storage for HumioAlert objects
            humio_client: Client for the Humio alert API
            config_resolver: Resolves the Humio cluster a HumioAlert points at
            namespace: If set, only resources in this namespace are reconciled
        """
        super().__init__(KIND_ALERT)
        self.store = store
        self.humio_client = humio_client
        self.config_resolver = config_resolver
        self.namespace = namespace
        self._locks: dict[ReconcileRequest, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, request: ReconcileRequest) -> threading.Lock:
        """One lock per HumioAlert, so passes for the same object never overlap."""
        with self._locks_guard:
            return self._locks.setdefault(request, threading.Lock())

    def reconcile(self, request: ReconcileRequest) -> RequeueDirective:
        """Run one reconciliation pass for a HumioAlert.

        Returns:
            Whether the pass should be repeated right away

        Raises:
            Exception: Any failure; the caller retries with backoff
        """
        if self.namespace and self.namespace != request.namespace:
            return RequeueDirective.NONE

        with self._lock_for(request), with_correlation_id(new_reconcile_id()), trace_span(
            "reconcile_alert",
            kind=KIND_ALERT,
            attributes={"alert.name": request.name, "alert.namespace": request.namespace},
        ):
            humio_alert = self.store.load(request.namespace, request.name)
            if humio_alert is None:
                # Deleted after the trigger fired; nothing left to clean up.
                return RequeueDirective.NONE

            self.log_info(humio_alert.meta, "Reconciling HumioAlert", reason="Reconciling")
            config = self._resolve_config(humio_alert)
            try:
                return self._reconcile_alert(config, humio_alert)
            finally:
                self._refresh_status(config, humio_alert)

    def _resolve_config(self, humio_alert: HumioAlert) -> ClientConfig:
        try:
            config = self.config_resolver.resolve(humio_alert)
            if config is None:
                raise ClusterConfigError("no Humio client configuration available")
        except Exception as e:
            self.log_error(humio_alert.meta, "unable to obtain humio client config", error=e, reason="ConfigError")
            emit_config_error(humio_alert.body, f"Unable to obtain Humio client config: {sanitize_exception(e)}")
            try:
                self.set_state(humio_alert, STATE_CONFIG_ERROR)
            except Exception as state_error:
                raise self.log_error_and_wrap(
                    humio_alert.meta, state_error, "unable to set alert state"
                ) from state_error
            raise
        return config

    def _reconcile_alert(self, config: ClientConfig, humio_alert: HumioAlert) -> RequeueDirective:
        meta = humio_alert.meta
        identity = humio_alert.identity

        self.log_info(meta, "Checking if alert is marked to be deleted")
        if humio_alert.is_marked_for_deletion:
            self.log_info(meta, "Alert marked to be deleted", event="deletion", reason="Deletion")
            if humio_alert.has_finalizer(FINALIZER):
                # The finalizer stays until Humio confirms the delete.
                self.log_info(meta, "Deleting alert", event="deletion", reason="Deletion")
                try:
                    with trace_span("delete_alert", kind=KIND_ALERT):
                        self.humio_client.delete_alert(config, identity)
                except Exception as e:
                    metrics.alert_operations_total.labels(operation="delete", result="error").inc()
                    raise self.log_error_and_wrap(meta, e, "Delete alert returned error") from e
                metrics.alert_operations_total.labels(operation="delete", result="success").inc()
                emit_alert_deleted(humio_alert.body, identity.name)

                self.log_info(meta, "Alert Deleted. Removing finalizer", event="deletion", reason="Deletion")
                self.remove_finalizer(humio_alert, self.store.persist)
                self.log_info(meta, "Finalizer removed successfully", event="deletion", reason="FinalizerRemoved")
            return RequeueDirective.NONE

        self.log_info(meta, "Checking if alert requires finalizer")
        if not humio_alert.has_finalizer(FINALIZER):
            self.log_info(meta, "Finalizer not present, adding finalizer to alert", reason="FinalizerAdded")
            self.ensure_finalizer(humio_alert, self.store.persist)
            return RequeueDirective.IMMEDIATELY

        self.log_info(meta, "Checking if alert needs to be created")
        current_alert: Alert | None = None
        try:
            current_alert = self.humio_client.get_alert(config, identity)
        except Exception as e:
            if find_cause(e, EntityNotFoundError) is None:
                raise self.log_error_and_wrap(meta, e, "could not check if alert exists") from e
        if current_alert is None:
            self.log_info(meta, "Alert doesn't exist. Now adding alert", reason="AlertNotFound")
            return self._create_alert(config, humio_alert)

        self.log_info(meta, "Checking if alert needs to be updated")
        expected_alert = self._expected_alert(config, humio_alert)
        diff = alert_diff(sanitize_alert(current_alert), expected_alert)
        if diff:
            for field in diff:
                metrics.drift_detected_total.labels(kind=KIND_ALERT, field=field).inc()
            self.log_info(
                meta,
                "Alert differs, triggering update",
                reason="DriftDetected",
                drift={field: {"current": current, "expected": expected} for field, (current, expected) in diff.items()},
            )
            try:
                with trace_span("update_alert", kind=KIND_ALERT):
                    updated_alert = self.humio_client.update_alert(
                        config, identity, dataclasses.replace(expected_alert, id=current_alert.id)
                    )
            except Exception as e:
                metrics.alert_operations_total.labels(operation="update", result="error").inc()
                raise self.log_error_and_wrap(meta, e, "could not update alert") from e
            metrics.alert_operations_total.labels(operation="update", result="success").inc()
            emit_alert_updated(humio_alert.body, identity.name)
            if updated_alert is not None:
                self.log_info(meta, f"Updated alert {updated_alert.name!r}", reason="AlertUpdated")

        self.log_info(meta, "done reconciling", reason="Reconciled")
        return RequeueDirective.NONE

    def _create_alert(self, config: ClientConfig, humio_alert: HumioAlert) -> RequeueDirective:
        meta = humio_alert.meta
        identity = humio_alert.identity
        expected_alert = self._expected_alert(config, humio_alert)
        try:
            with trace_span("create_alert", kind=KIND_ALERT):
                added_alert = self.humio_client.add_alert(config, identity, expected_alert)
        except Exception as e:
            metrics.alert_operations_total.labels(operation="create", result="error").inc()
            raise self.log_error_and_wrap(meta, e, "could not create alert") from e
        metrics.alert_operations_total.labels(operation="create", result="success").inc()
        emit_alert_created(humio_alert.body, identity.name)
        self.log_info(meta, "Created alert", reason="AlertCreated", alert=identity.name)

        self._reconcile_annotations(humio_alert, added_alert)
        return RequeueDirective.IMMEDIATELY

    def _reconcile_annotations(self, humio_alert: HumioAlert, added_alert: Alert) -> None:
        """Record the ID Humio assigned to a newly created alert."""
        if not added_alert.id or humio_alert.annotations.get(ANNOTATION_ALERT_ID) == added_alert.id:
            return
        self.log_info(humio_alert.meta, f"Adding ID {added_alert.id} to alert {added_alert.name}")
        previous = humio_alert.annotations
        humio_alert.annotations = {**previous, ANNOTATION_ALERT_ID: added_alert.id}
        try:
            self.store.persist(humio_alert)
        except Exception as e:
            humio_alert.annotations = previous
            raise self.log_error_and_wrap(humio_alert.meta, e, "failed to add ID annotation to alert") from e

    def _expected_alert(self, config: ClientConfig, humio_alert: HumioAlert) -> Alert:
        """Resolve action IDs and build the alert Humio should hold."""
        meta = humio_alert.meta
        try:
            action_id_map = self.humio_client.get_action_ids(
                config, humio_alert.identity, humio_alert.spec.actions
            )
        except Exception as e:
            raise self.log_error_and_wrap(meta, e, "could not get action id mapping") from e
        try:
            return create_alert_from_spec(humio_alert, action_id_map)
        except Exception as e:
            raise self.log_error_and_wrap(meta, e, "could not parse expected alert") from e

    def _refresh_status(self, config: ClientConfig, humio_alert: HumioAlert) -> None:
        """Best-effort update of the alert state from what Humio reports.

        Failures are logged and counted, never raised: this runs on every
        exit path and must not replace the outcome of the pass.
        """
        try:
            self.humio_client.get_alert(config, humio_alert.identity)
        except Exception as e:
            state = STATE_NOT_FOUND if find_cause(e, EntityNotFoundError) else STATE_CONFIG_ERROR
        else:
            state = STATE_EXISTS

        try:
            self.set_state(humio_alert, state)
        except ApiException as e:
            if e.status != 404:
                self._status_refresh_failed(humio_alert, state, e)
                return
            # The last finalizer was removed and Kubernetes deleted the object.
            self.log_info(humio_alert.meta, "HumioAlert is gone, skipping state update", reason="ObjectGone")
        except Exception as e:
            self._status_refresh_failed(humio_alert, state, e)

    def _status_refresh_failed(self, humio_alert: HumioAlert, state: str, e: Exception) -> None:
        metrics.status_refresh_failures_total.labels(kind=KIND_ALERT).inc()
        self.log_warning(
            humio_alert.meta,
            f"unable to set alert state to {state}",
            reason="StatusRefreshFailed",
            error=sanitize_exception(e),
            error_type=type(e).__name__,
        )

    def set_state(self, humio_alert: HumioAlert, state: str) -> None:
        """Persist the alert state, skipping the write when it is unchanged."""
        if humio_alert.state == state:
            return
        self.log_info(humio_alert.meta, f"setting alert state to {state}", reason="StateChanged")
        self.store.persist_status(humio_alert, state)
        metrics.state_writes_total.labels(kind=KIND_ALERT, state=state).inc()

    def resync(self, max_passes: int = MAX_RESYNC_PASSES, requeue_delay: float = 1.0) -> int:
        """Reconcile every HumioAlert once, repeating passes that ask for it.

        A failing alert is logged and skipped; the next resync retries it.

        Returns:
            Number of alerts that reconciled without error
        """
        succeeded = 0
        for request in self.store.list_requests(self.namespace):
            body = {
                "apiVersion": API_GROUP_VERSION,
                "kind": KIND_ALERT,
                "metadata": {"name": request.name, "namespace": request.namespace},
            }
            try:
                for attempt in range(max_passes):
                    if attempt:
                        time.sleep(requeue_delay)
                    directive = self.reconcile_with_metrics(body, lambda: self.reconcile(request))
                    if directive is not RequeueDirective.IMMEDIATELY:
                        break
            except Exception as e:
                self.log_warning(
                    body["metadata"],
                    "resync of HumioAlert failed",
                    reason="ResyncFailed",
                    error=sanitize_exception(e),
                )
                continue
            succeeded += 1
        return succeeded


# Global handler instance, created on first use
_handler: AlertHandler | None = None


def get_handler() -> AlertHandler:
    """Get the process-wide alert handler, wiring it to the cluster on first use."""
    global _handler
    if _handler is None:
        custom_api = get_k8s_client()
        _handler = AlertHandler(
            store=AlertStore(custom_api, request_timeout=float(os.getenv("K8S_REQUEST_TIMEOUT_SECONDS", "30"))),
            humio_client=HumioGraphQLClient(),
            config_resolver=ClusterConfigResolver(custom_api, get_core_client()),
            namespace=os.getenv("WATCH_NAMESPACE") or None,
        )
    return _handler


def run_reconcile(name: str, namespace: str, body: Any) -> None:
    """Reconcile one HumioAlert and translate the outcome for kopf."""
    handler = get_handler()
    directive = handler.reconcile_with_metrics(
        body, lambda: handler.reconcile(ReconcileRequest(namespace=namespace, name=name))
    )
    if directive is RequeueDirective.IMMEDIATELY:
        raise kopf.TemporaryError(
            "Requeue requested",
            delay=float(os.getenv("REQUEUE_DELAY_SECONDS", "1")),
        )


def _resync_forever(interval: float, stop: threading.Event) -> None:
    while not stop.wait(interval):
        try:
            get_handler().resync(requeue_delay=float(os.getenv("REQUEUE_DELAY_SECONDS", "1")))
        except Exception as e:
            logger.warning(f"Unable to list HumioAlerts for resync: {sanitize_exception(e)}")


def start_resync_loop(interval: float, stop: threading.Event | None = None) -> threading.Thread:
    """Reconcile all HumioAlerts every ``interval`` seconds from a background thread.

    The thread runs inside a copy of the caller's context, so it can post
    Kubernetes events when started from a kopf startup handler.

    Args:
        interval: Seconds between resyncs
        stop: Optional event that ends the loop when set

    Returns:
        The daemon thread running the loop
    """
    ctx = contextvars.copy_context()
    thread = threading.Thread(
        target=ctx.run,
        args=(_resync_forever, interval, stop or threading.Event()),
        name="humioalert-resync",
        daemon=True,
    )
    thread.start()
    return thread


@kopf.on.create(API_GROUP_VERSION, KIND_ALERT)
@kopf.on.update(API_GROUP_VERSION, KIND_ALERT)
@kopf.on.resume(API_GROUP_VERSION, KIND_ALERT)
def handle_alert(
    name: str,
    namespace: str,
    body: Any,
    **kwargs: Any,
) -> None:
    """Handle HumioAlert resource reconciliation."""
    run_reconcile(name, namespace, body)


# optional=True keeps kopf from adding a finalizer; AlertHandler owns FINALIZER.
@kopf.on.delete(API_GROUP_VERSION, KIND_ALERT, optional=True)
def handle_alert_delete(
    name: str,
    namespace: str,
    body: Any,
    **kwargs: Any,
) -> None:
    """Handle HumioAlert resource deletion."""
    run_reconcile(name, namespace, body)

"""Shared fixtures and in-memory fakes for unit tests."""

from __future__ import annotations

import copy
from typing import Any
from unittest.mock import MagicMock

import kopf
import pytest
from kubernetes.client.exceptions import ApiException

from humio_alert_operator.constants import FINALIZER
from humio_alert_operator.models import AlertQuery, HumioAlert, HumioAlertSpec, ReconcileRequest
from humio_alert_operator.services.humio.base import EntityNotFoundError
from humio_alert_operator.services.humio.models import Alert, AlertIdentity, ClientConfig
from humio_alert_operator.utils.cache import cluster_cache

MUTATING_OPERATIONS = ("add_alert", "update_alert", "delete_alert")


@pytest.fixture(autouse=True)
def mock_kopf_event(monkeypatch):
    """Kubernetes events can only be posted inside a running operator."""
    mock_event = MagicMock()
    monkeypatch.setattr(kopf, "event", mock_event)
    return mock_event


@pytest.fixture(autouse=True)
def clear_cache():
    """Start every test with an empty lookup cache."""
    cluster_cache.clear()
    yield
    cluster_cache.clear()


class FakeHumioClient:
    """In-memory Humio alert API recording every call."""

    def __init__(self, call_log: list[str] | None = None, actions: dict[str, str] | None = None):
        self.alerts: dict[AlertIdentity, Alert] = {}
        self.actions = {"slack-ops": "action-slack-ops"} if actions is None else actions
        self.calls: list[tuple[str, Any]] = []
        self.call_log = call_log if call_log is not None else []
        self.errors: dict[str, Exception] = {}
        self._next_id = 1

    def _record(self, operation: str, payload: Any = None) -> None:
        self.calls.append((operation, payload))
        self.call_log.append(f"humio:{operation}")
        if operation in self.errors:
            raise self.errors[operation]

    @property
    def mutating_calls(self) -> list[tuple[str, Any]]:
        return [call for call in self.calls if call[0] in MUTATING_OPERATIONS]

    def calls_of(self, operation: str) -> list[Any]:
        return [payload for name, payload in self.calls if name == operation]

    def get_alert(self, config: ClientConfig, identity: AlertIdentity) -> Alert:
        self._record("get_alert", identity)
        if identity not in self.alerts:
            raise EntityNotFoundError("alert", identity.name, identity.view_name)
        return copy.deepcopy(self.alerts[identity])

    def add_alert(self, config: ClientConfig, identity: AlertIdentity, alert: Alert) -> Alert:
        self._record("add_alert", copy.deepcopy(alert))
        stored = copy.deepcopy(alert)
        stored.id = f"alert-{self._next_id}"
        self._next_id += 1
        self.alerts[identity] = stored
        return copy.deepcopy(stored)

    def update_alert(self, config: ClientConfig, identity: AlertIdentity, alert: Alert) -> Alert:
        self._record("update_alert", copy.deepcopy(alert))
        self.alerts[identity] = copy.deepcopy(alert)
        return copy.deepcopy(alert)

    def delete_alert(self, config: ClientConfig, identity: AlertIdentity) -> None:
        self._record("delete_alert", identity)
        self.alerts.pop(identity, None)

    def get_action_ids(
        self, config: ClientConfig, identity: AlertIdentity, action_names: list[str]
    ) -> dict[str, str]:
        self._record("get_action_ids", list(action_names))
        return {name: self.actions[name] for name in action_names if name in self.actions}


class FakeAlertStore:
    """In-memory HumioAlert storage mimicking the Kubernetes API."""

    def __init__(self, call_log: list[str] | None = None):
        self.objects: dict[tuple[str, str], HumioAlert] = {}
        self.persist_calls: list[HumioAlert] = []
        self.status_calls: list[str] = []
        self.call_log = call_log if call_log is not None else []
        self.persist_error: Exception | None = None
        self.status_error: Exception | None = None
        self._resource_version = 1

    def add(self, humio_alert: HumioAlert) -> HumioAlert:
        self.objects[(humio_alert.namespace, humio_alert.name)] = copy.deepcopy(humio_alert)
        return humio_alert

    def get(self, namespace: str = "default", name: str = "disk-full") -> HumioAlert | None:
        return self.objects.get((namespace, name))

    def load(self, namespace: str, name: str) -> HumioAlert | None:
        stored = self.objects.get((namespace, name))
        return copy.deepcopy(stored)

    def list_requests(self, namespace: str | None = None) -> list[ReconcileRequest]:
        return [
            ReconcileRequest(namespace=ns, name=name)
            for ns, name in sorted(self.objects)
            if not namespace or ns == namespace
        ]

    def persist(self, humio_alert: HumioAlert) -> None:
        self.persist_calls.append(copy.deepcopy(humio_alert))
        self.call_log.append("store:persist")
        if self.persist_error is not None:
            raise self.persist_error
        key = (humio_alert.namespace, humio_alert.name)
        if key not in self.objects:
            raise ApiException(status=404, reason="Not Found")
        self._resource_version += 1
        humio_alert.resource_version = str(self._resource_version)
        if humio_alert.is_marked_for_deletion and not humio_alert.finalizers:
            # Kubernetes removes the object once its last finalizer is gone
            del self.objects[key]
            return
        self.objects[key] = copy.deepcopy(humio_alert)

    def persist_status(self, humio_alert: HumioAlert, state: str) -> None:
        self.status_calls.append(state)
        self.call_log.append(f"store:status:{state}")
        if self.status_error is not None:
            raise self.status_error
        key = (humio_alert.namespace, humio_alert.name)
        if key not in self.objects:
            raise ApiException(status=404, reason="Not Found")
        humio_alert.state = state
        self.objects[key].state = state


class FakeConfigResolver:
    """Returns a fixed client configuration, or raises a configured error."""

    def __init__(self, config: ClientConfig | None = None, error: Exception | None = None):
        self.config = config
        self.error = error

    def resolve(self, humio_alert: HumioAlert) -> ClientConfig | None:
        if self.error is not None:
            raise self.error
        return self.config


def make_humio_alert(
    name: str = "disk-full",
    namespace: str = "default",
    finalizers: list[str] | None = None,
    deletion_timestamp: str | None = None,
    actions: list[str] | None = None,
    labels: list[str] | None = None,
    state: str = "",
    **spec_overrides: Any,
) -> HumioAlert:
    """Build a HumioAlert with sensible defaults."""
    spec_fields = {
        "name": name,
        "view_name": "humio",
        "query": AlertQuery(query_string="level=error", start="1h"),
        "managed_cluster_name": "humio-cluster",
        "description": "Disk is full",
        "throttle_time_millis": 60000,
        "actions": ["slack-ops"] if actions is None else actions,
        "labels": labels,
    }
    spec_fields.update(spec_overrides)
    return HumioAlert(
        name=name,
        namespace=namespace,
        spec=HumioAlertSpec(**spec_fields),
        uid="uid-1234",
        resource_version="1",
        generation=1,
        deletion_timestamp=deletion_timestamp,
        finalizers=list(finalizers or []),
        state=state,
    )


@pytest.fixture
def call_log() -> list[str]:
    return []


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(address="http://humio-cluster.default:8080/", token="test-token")


@pytest.fixture
def humio_client(call_log) -> FakeHumioClient:
    return FakeHumioClient(call_log=call_log)


@pytest.fixture
def alert_store(call_log) -> FakeAlertStore:
    return FakeAlertStore(call_log=call_log)


@pytest.fixture
def finalized_alert() -> HumioAlert:
    return make_humio_alert(finalizers=[FINALIZER])

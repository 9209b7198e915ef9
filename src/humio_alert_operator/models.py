"""Models for the HumioAlert custom resource and reconciliation results."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from .constants import API_GROUP_VERSION, KIND_ALERT
from .services.humio.models import AlertIdentity


class RequeueDirective(enum.Enum):
    """What the trigger-delivery mechanism should do after a successful pass."""

    NONE = "none"
    IMMEDIATELY = "immediately"


@dataclass(frozen=True)
class ReconcileRequest:
    """A trigger for one HumioAlert."""

    namespace: str
    name: str


@dataclass
class AlertQuery:
    """Query settings of a HumioAlert."""

    query_string: str = ""
    start: str = ""
    end: str = ""
    is_live: bool | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> AlertQuery:
        data = data or {}
        return cls(
            query_string=data.get("queryString", ""),
            start=data.get("start", ""),
            end=data.get("end", ""),
            is_live=data.get("isLive"),
        )


@dataclass
class HumioAlertSpec:
    """Desired state of a Humio alert as declared in the custom resource."""

    name: str
    view_name: str
    query: AlertQuery = field(default_factory=AlertQuery)
    managed_cluster_name: str = ""
    external_cluster_name: str = ""
    description: str = ""
    throttle_time_millis: int = 0
    throttle_field: str = ""
    silenced: bool = False
    actions: list[str] = field(default_factory=list)
    labels: list[str] | None = None

    @classmethod
    def from_dict(cls, spec: dict[str, Any]) -> HumioAlertSpec:
        return cls(
            name=spec.get("name", ""),
            view_name=spec.get("viewName", ""),
            query=AlertQuery.from_dict(spec.get("query")),
            managed_cluster_name=spec.get("managedClusterName", ""),
            external_cluster_name=spec.get("externalClusterName", ""),
            description=spec.get("description", ""),
            throttle_time_millis=int(spec.get("throttleTimeMillis", 0) or 0),
            throttle_field=spec.get("throttleField", ""),
            silenced=bool(spec.get("silenced", False)),
            actions=list(spec.get("actions") or []),
            labels=list(spec["labels"]) if spec.get("labels") is not None else None,
        )


@dataclass
class HumioAlert:
    """A HumioAlert custom resource as loaded from Kubernetes."""

    name: str
    namespace: str
    spec: HumioAlertSpec
    uid: str = ""
    resource_version: str = ""
    generation: int = 0
    deletion_timestamp: str | None = None
    finalizers: list[str] = field(default_factory=list)
    annotations: dict[str, str] = field(default_factory=dict)
    state: str = ""
    conditions: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> HumioAlert:
        """Build a HumioAlert from a custom object returned by the Kubernetes API."""
        meta = obj.get("metadata", {})
        status = obj.get("status") or {}
        return cls(
            name=meta.get("name", ""),
            namespace=meta.get("namespace", "default"),
            spec=HumioAlertSpec.from_dict(obj.get("spec") or {}),
            uid=meta.get("uid", ""),
            resource_version=meta.get("resourceVersion", ""),
            generation=meta.get("generation", 0),
            deletion_timestamp=meta.get("deletionTimestamp"),
            finalizers=list(meta.get("finalizers") or []),
            annotations=dict(meta.get("annotations") or {}),
            state=status.get("state", ""),
            conditions=list(status.get("conditions") or []),
        )

    @property
    def identity(self) -> AlertIdentity:
        return AlertIdentity(view_name=self.spec.view_name, name=self.spec.name)

    @property
    def is_marked_for_deletion(self) -> bool:
        return self.deletion_timestamp is not None

    @property
    def meta(self) -> dict[str, Any]:
        """Metadata subset used for logging."""
        return {"name": self.name, "namespace": self.namespace, "uid": self.uid}

    @property
    def body(self) -> dict[str, Any]:
        """Object reference used for posting events."""
        return {"apiVersion": API_GROUP_VERSION, "kind": KIND_ALERT, "metadata": self.meta}

    def has_finalizer(self, finalizer: str) -> bool:
        return finalizer in self.finalizers

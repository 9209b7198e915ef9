"""Models for Humio alert operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for one Humio cluster."""

    address: str
    token: str = field(repr=False)
    insecure: bool = False

    @property
    def graphql_url(self) -> str:
        return self.address.rstrip("/") + "/graphql"


@dataclass(frozen=True)
class AlertIdentity:
    """Identifies an alert inside Humio: the view it lives in and its name."""

    view_name: str
    name: str


@dataclass
class Alert:
    """An alert as stored by Humio."""

    name: str
    query_string: str = ""
    query_start: str = ""
    throttle_field: str = ""
    description: str = ""
    throttle_time_millis: int = 0
    enabled: bool = True
    actions: list[str] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    # Managed by Humio
    id: str = ""
    time_of_last_trigger: int = 0
    last_error: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Alert:
        """Build an alert from a GraphQL response object."""
        return cls(
            id=data.get("id") or "",
            name=data.get("name") or "",
            query_string=data.get("queryString") or "",
            query_start=data.get("queryStart") or "",
            throttle_field=data.get("throttleField") or "",
            description=data.get("description") or "",
            throttle_time_millis=int(data.get("throttleTimeMillis") or 0),
            enabled=bool(data.get("enabled", True)),
            actions=list(data.get("actions") or []),
            labels=list(data.get("labels") or []),
            time_of_last_trigger=int(data.get("timeOfLastTrigger") or 0),
            last_error=data.get("lastError") or "",
        )

    def to_api_input(self, view_name: str) -> dict[str, Any]:
        """Render the declarative fields as a GraphQL mutation input."""
        payload: dict[str, Any] = {
            "viewName": view_name,
            "name": self.name,
            "description": self.description,
            "queryString": self.query_string,
            "queryStart": self.query_start,
            "throttleTimeMillis": self.throttle_time_millis,
            "enabled": self.enabled,
            "actions": list(self.actions),
            "labels": list(self.labels),
        }
        if self.throttle_field:
            payload["throttleField"] = self.throttle_field
        if self.id:
            payload["id"] = self.id
        return payload

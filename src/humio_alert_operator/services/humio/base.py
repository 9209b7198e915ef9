"""Base Humio client interface."""

from __future__ import annotations

from typing import Protocol

from .models import Alert, AlertIdentity, ClientConfig


class HumioApiError(Exception):
    """The Humio API rejected a request or could not be reached."""


class EntityNotFoundError(HumioApiError):
    """The requested Humio entity does not exist."""

    def __init__(self, entity_type: str, key: str, view_name: str | None = None):
        self.entity_type = entity_type
        self.key = key
        self.view_name = view_name
        location = f" in view {view_name!r}" if view_name else ""
        super().__init__(f"{entity_type} {key!r} not found{location}")


class HumioClient(Protocol):
    """Protocol defining the Humio alert operations used by the controller."""

    def get_alert(self, config: ClientConfig, identity: AlertIdentity) -> Alert:
        """Fetch an alert, raising EntityNotFoundError if it does not exist."""
        ...

    def add_alert(self, config: ClientConfig, identity: AlertIdentity, alert: Alert) -> Alert:
        """Create an alert and return it as stored by Humio."""
        ...

    def update_alert(self, config: ClientConfig, identity: AlertIdentity, alert: Alert) -> Alert:
        """Replace an alert and return it as stored by Humio."""
        ...

    def delete_alert(self, config: ClientConfig, identity: AlertIdentity) -> None:
        """Delete an alert. Deleting an absent alert is not an error."""
        ...

    def get_action_ids(
        self, config: ClientConfig, identity: AlertIdentity, action_names: list[str]
    ) -> dict[str, str]:
        """Map each action name to its Humio ID, raising EntityNotFoundError for unknown names."""
        ...

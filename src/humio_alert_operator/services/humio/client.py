"""Humio GraphQL client implementation."""

from __future__ import annotations

import logging
import os
import time
from typing import Any

import requests

from ... import metrics
from ...utils.rate_limit import rate_limit_humio
from .base import EntityNotFoundError, HumioApiError
from .models import Alert, AlertIdentity, ClientConfig

logger = logging.getLogger(__name__)

ALERT_FIELDS = """
    id
    name
    queryString
    queryStart
    throttleField
    timeOfLastTrigger
    description
    throttleTimeMillis
    enabled
    actions
    labels
    lastError
"""

LIST_ALERTS_QUERY = f"""
query ListAlerts($viewName: String!) {{
  searchDomain(name: $viewName) {{
    alerts {{ {ALERT_FIELDS} }}
  }}
}}
"""

CREATE_ALERT_MUTATION = f"""
mutation CreateAlert($input: CreateAlert!) {{
  createAlert(input: $input) {{ {ALERT_FIELDS} }}
}}
"""

UPDATE_ALERT_MUTATION = f"""
mutation UpdateAlert($input: UpdateAlert!) {{
  updateAlert(input: $input) {{ {ALERT_FIELDS} }}
}}
"""

DELETE_ALERT_MUTATION = """
mutation DeleteAlert($viewName: String!, $id: String!) {
  deleteAlert(input: {viewName: $viewName, id: $id})
}
"""

LIST_ACTIONS_QUERY = """
query ListActions($viewName: String!) {
  searchDomain(name: $viewName) {
    actions { id name }
  }
}
"""


class HumioGraphQLClient:
    """Humio client talking to the cluster's GraphQL endpoint."""

    def __init__(self, timeout: float | None = None, session: requests.Session | None = None) -> None:
        """Initialize the client.

        Args:
            timeout: Per-request timeout in seconds
            session: Optional requests session to reuse
        """
        self.timeout = timeout if timeout is not None else float(
            os.getenv("HUMIO_REQUEST_TIMEOUT_SECONDS", "30")
        )
        self.session = session or requests.Session()

    @rate_limit_humio
    def _execute(
        self,
        config: ClientConfig,
        operation: str,
        query: str,
        variables: dict[str, Any],
    ) -> dict[str, Any]:
        """Run a GraphQL operation and return its ``data`` object."""
        start_time = time.time()
        try:
            response = self.session.post(
                config.graphql_url,
                json={"query": query, "variables": variables},
                headers={"Authorization": f"Bearer {config.token}"},
                timeout=self.timeout,
                verify=not config.insecure,
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            metrics.api_call_total.labels(api_type="humio", operation=operation, result="error").inc()
            raise HumioApiError(f"{operation} request failed: {e}") from e
        except ValueError as e:
            metrics.api_call_total.labels(api_type="humio", operation=operation, result="error").inc()
            raise HumioApiError(f"{operation} returned invalid JSON") from e
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="humio", operation=operation).observe(duration)

        errors = body.get("errors")
        if errors:
            metrics.api_call_total.labels(api_type="humio", operation=operation, result="error").inc()
            messages = "; ".join(err.get("message", str(err)) for err in errors)
            raise HumioApiError(f"{operation} failed: {messages}")

        metrics.api_call_total.labels(api_type="humio", operation=operation, result="success").inc()
        return body.get("data") or {}

    def _search_domain(self, data: dict[str, Any], view_name: str) -> dict[str, Any]:
        search_domain = data.get("searchDomain")
        if search_domain is None:
            # A missing view is a configuration problem, not a missing alert.
            raise HumioApiError(f"view {view_name!r} not found")
        return search_domain

    def list_alerts(self, config: ClientConfig, view_name: str) -> list[Alert]:
        """List all alerts in a view."""
        data = self._execute(config, "list_alerts", LIST_ALERTS_QUERY, {"viewName": view_name})
        return [Alert.from_api(item) for item in self._search_domain(data, view_name).get("alerts") or []]

    def get_alert(self, config: ClientConfig, identity: AlertIdentity) -> Alert:
        """Fetch an alert by name."""
        for alert in self.list_alerts(config, identity.view_name):
            if alert.name == identity.name:
                return alert
        raise EntityNotFoundError("alert", identity.name, identity.view_name)

    def add_alert(self, config: ClientConfig, identity: AlertIdentity, alert: Alert) -> Alert:
        """Create an alert."""
        data = self._execute(
            config,
            "create_alert",
            CREATE_ALERT_MUTATION,
            {"input": alert.to_api_input(identity.view_name)},
        )
        logger.info(f"Created alert {identity.name} in view {identity.view_name}")
        return Alert.from_api(data.get("createAlert") or {})

    def update_alert(self, config: ClientConfig, identity: AlertIdentity, alert: Alert) -> Alert:
        """Replace an alert.

        The alert ID is looked up by name when ``alert`` does not carry one.
        """
        if not alert.id:
            alert_id = self.get_alert(config, identity).id
            payload = alert.to_api_input(identity.view_name)
            payload["id"] = alert_id
        else:
            payload = alert.to_api_input(identity.view_name)
        data = self._execute(config, "update_alert", UPDATE_ALERT_MUTATION, {"input": payload})
        logger.info(f"Updated alert {identity.name} in view {identity.view_name}")
        return Alert.from_api(data.get("updateAlert") or {})

    def delete_alert(self, config: ClientConfig, identity: AlertIdentity) -> None:
        """Delete an alert, treating an already absent alert as deleted."""
        try:
            current = self.get_alert(config, identity)
        except EntityNotFoundError:
            logger.info(f"Alert {identity.name} not found in view {identity.view_name}, nothing to delete")
            return
        self._execute(
            config,
            "delete_alert",
            DELETE_ALERT_MUTATION,
            {"viewName": identity.view_name, "id": current.id},
        )
        logger.info(f"Deleted alert {identity.name} from view {identity.view_name}")

    def get_action_ids(
        self, config: ClientConfig, identity: AlertIdentity, action_names: list[str]
    ) -> dict[str, str]:
        """Resolve action names in the alert's view to action IDs."""
        if not action_names:
            return {}
        data = self._execute(config, "list_actions", LIST_ACTIONS_QUERY, {"viewName": identity.view_name})
        available = {
            action.get("name"): action.get("id")
            for action in self._search_domain(data, identity.view_name).get("actions") or []
        }
        action_ids = {}
        for name in action_names:
            if name not in available:
                raise EntityNotFoundError("action", name, identity.view_name)
            action_ids[name] = available[name]
        return action_ids

"""Builder for Humio client configurations."""

from __future__ import annotations

from typing import Any

from kubernetes import client

from ..constants import (
    ADMIN_TOKEN_SECRET_SUFFIX,
    API_TOKEN_SECRET_KEY,
    CLUSTER_PORT,
    KIND_CLUSTER,
    KIND_EXTERNAL_CLUSTER,
    PLURAL_CLUSTERS,
    PLURAL_EXTERNAL_CLUSTERS,
)
from ..handlers.shared import get_cluster_with_cache
from ..models import HumioAlert
from ..services.humio.models import ClientConfig
from ..utils.errors import ClusterConfigError
from ..utils.secrets import get_secret_value


class ClusterConfigResolver:
    """Resolves the Humio client configuration a HumioAlert points at."""

    def __init__(self, custom_api: Any, core_api: client.CoreV1Api):
        """Initialize the resolver.

        Args:
            custom_api: Kubernetes CustomObjectsApi instance
            core_api: Kubernetes CoreV1Api instance used for token secrets
        """
        self.custom_api = custom_api
        self.core_api = core_api

    def resolve(self, humio_alert: HumioAlert) -> ClientConfig:
        """Resolve the client configuration for a HumioAlert.

        Raises:
            ClusterConfigError: If the cluster reference, cluster object,
                URL or API token cannot be resolved
        """
        spec = humio_alert.spec
        namespace = humio_alert.namespace

        if spec.managed_cluster_name and spec.external_cluster_name:
            raise ClusterConfigError("cannot specify both managedClusterName and externalClusterName")
        if spec.managed_cluster_name:
            return self._resolve_managed(spec.managed_cluster_name, namespace)
        if spec.external_cluster_name:
            return self._resolve_external(spec.external_cluster_name, namespace)
        raise ClusterConfigError("must specify either managedClusterName or externalClusterName")

    def _get_cluster(self, kind: str, plural: str, name: str, namespace: str) -> dict[str, Any]:
        try:
            return get_cluster_with_cache(self.custom_api, kind, plural, name, namespace)
        except client.exceptions.ApiException as e:
            if e.status == 404:
                raise ClusterConfigError(f"{kind} {name} not found in namespace {namespace}") from e
            raise

    def _get_token(self, namespace: str, secret_name: str) -> str:
        try:
            token = get_secret_value(self.core_api, namespace, secret_name, API_TOKEN_SECRET_KEY)
        except ValueError as e:
            raise ClusterConfigError(f"unable to read API token: {e}") from e
        if not token:
            raise ClusterConfigError(f"API token in secret {secret_name} is empty")
        return token

    def _resolve_managed(self, name: str, namespace: str) -> ClientConfig:
        cluster = self._get_cluster(KIND_CLUSTER, PLURAL_CLUSTERS, name, namespace)
        tls = (cluster.get("spec") or {}).get("tls") or {}
        scheme = "https" if tls.get("enabled") else "http"
        return ClientConfig(
            address=f"{scheme}://{name}.{namespace}:{CLUSTER_PORT}/",
            token=self._get_token(namespace, f"{name}{ADMIN_TOKEN_SECRET_SUFFIX}"),
        )

    def _resolve_external(self, name: str, namespace: str) -> ClientConfig:
        cluster = self._get_cluster(KIND_EXTERNAL_CLUSTER, PLURAL_EXTERNAL_CLUSTERS, name, namespace)
        spec = cluster.get("spec") or {}
        url = spec.get("url")
        if not url:
            raise ClusterConfigError(f"{KIND_EXTERNAL_CLUSTER} {name} does not specify a url")
        secret_name = spec.get("apiTokenSecretName")
        if not secret_name:
            raise ClusterConfigError(f"{KIND_EXTERNAL_CLUSTER} {name} does not specify apiTokenSecretName")
        return ClientConfig(
            address=url,
            token=self._get_token(namespace, secret_name),
            insecure=bool(spec.get("insecure", False)),
        )

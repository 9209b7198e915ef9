"""Shared utilities for handlers."""

from __future__ import annotations

import time
from typing import Any

from kubernetes import client, config

from .. import metrics
from ..constants import API_GROUP, API_VERSION
from ..utils.cache import cluster_cache
from ..utils.rate_limit import call_with_rate_limit_retry, rate_limit_k8s


def get_cluster_with_cache(
    api: Any,
    kind: str,
    plural: str,
    name: str,
    namespace: str,
) -> dict[str, Any]:
    """Get a HumioCluster or HumioExternalCluster object with caching.

    Args:
        api: Kubernetes CustomObjectsApi instance
        kind: Resource kind, used for the cache key and metrics
        plural: Resource plural
        name: Name of the cluster object
        namespace: Namespace of the cluster object

    Returns:
        Cluster custom object

    Raises:
        client.exceptions.ApiException: If the object is not found or the API fails
    """
    operation = f"get_{kind.lower()}"
    cached_cluster = cluster_cache.get(kind, namespace, name)

    if cached_cluster is not None:
        metrics.api_call_total.labels(api_type="k8s", operation=operation, result="cache_hit").inc()
        return cached_cluster

    start_time = time.time()
    try:
        cluster_obj = call_with_rate_limit_retry(
            lambda: rate_limit_k8s(api.get_namespaced_custom_object)(
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=plural,
                name=name,
            )
        )
        metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
        cluster_cache.put(kind, namespace, name, cluster_obj)
        return cluster_obj
    except Exception:
        metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
        raise
    finally:
        duration = time.time() - start_time
        metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)


def load_k8s_config() -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


def get_k8s_client() -> client.CustomObjectsApi:
    """Get Kubernetes CustomObjectsApi client."""
    load_k8s_config()
    return client.CustomObjectsApi()


def get_core_client() -> client.CoreV1Api:
    """Get Kubernetes CoreV1Api client."""
    load_k8s_config()
    return client.CoreV1Api()

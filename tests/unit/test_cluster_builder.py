"""Tests for resolving Humio client configurations."""

from __future__ import annotations

import base64
from unittest.mock import MagicMock

import pytest
from conftest import make_humio_alert
from kubernetes.client.exceptions import ApiException

from humio_alert_operator.builders.cluster import ClusterConfigResolver
from humio_alert_operator.utils.errors import ClusterConfigError


def make_secret(data: dict[str, str]) -> MagicMock:
    secret = MagicMock()
    secret.data = {key: base64.b64encode(value.encode()).decode() for key, value in data.items()}
    return secret


@pytest.fixture(autouse=True)
def no_throttle(monkeypatch):
    """Disable the Kubernetes request throttle."""
    monkeypatch.setattr("humio_alert_operator.utils.rate_limit._K8S_RATE_LIMIT_PER_SECOND", 1e9)


@pytest.fixture
def custom_api() -> MagicMock:
    return MagicMock()


@pytest.fixture
def core_api() -> MagicMock:
    api = MagicMock()
    api.read_namespaced_secret.return_value = make_secret({"token": "admin-token"})
    return api


@pytest.fixture
def resolver(custom_api, core_api) -> ClusterConfigResolver:
    return ClusterConfigResolver(custom_api, core_api)


class TestClusterReference:
    """Test cases for validating the cluster reference."""

    def test_both_clusters_set(self, resolver):
        """Test that naming both cluster kinds is rejected."""
        humio_alert = make_humio_alert(external_cluster_name="external")

        with pytest.raises(ClusterConfigError, match="cannot specify both"):
            resolver.resolve(humio_alert)

    def test_no_cluster_set(self, resolver):
        """Test that naming no cluster is rejected."""
        humio_alert = make_humio_alert(managed_cluster_name="")

        with pytest.raises(ClusterConfigError, match="must specify either"):
            resolver.resolve(humio_alert)


class TestManagedCluster:
    """Test cases for HumioCluster references."""

    def test_plain_http(self, resolver, custom_api, core_api):
        """Test the in-cluster address of a cluster without TLS."""
        custom_api.get_namespaced_custom_object.return_value = {"spec": {}}

        config = resolver.resolve(make_humio_alert())

        assert config.address == "http://humio-cluster.default:8080/"
        assert config.token == "admin-token"
        assert config.insecure is False
        core_api.read_namespaced_secret.assert_called_once_with(
            name="humio-cluster-admin-token", namespace="default"
        )
        assert custom_api.get_namespaced_custom_object.call_args.kwargs["plural"] == "humioclusters"

    def test_tls_enabled(self, resolver, custom_api):
        """Test that a TLS-enabled cluster is addressed over https."""
        custom_api.get_namespaced_custom_object.return_value = {"spec": {"tls": {"enabled": True}}}

        config = resolver.resolve(make_humio_alert())

        assert config.address == "https://humio-cluster.default:8080/"

    def test_cluster_not_found(self, resolver, custom_api):
        """Test that a missing HumioCluster is a configuration error."""
        custom_api.get_namespaced_custom_object.side_effect = ApiException(status=404, reason="Not Found")

        with pytest.raises(ClusterConfigError, match="HumioCluster humio-cluster not found in namespace default"):
            resolver.resolve(make_humio_alert())

    def test_other_api_errors_propagate(self, resolver, custom_api):
        """Test that unexpected API errors are raised unchanged."""
        custom_api.get_namespaced_custom_object.side_effect = ApiException(status=500, reason="Internal")

        with pytest.raises(ApiException):
            resolver.resolve(make_humio_alert())

    def test_cluster_lookup_is_cached(self, resolver, custom_api):
        """Test that repeated resolutions reuse the cached cluster."""
        custom_api.get_namespaced_custom_object.return_value = {"spec": {}}

        resolver.resolve(make_humio_alert())
        resolver.resolve(make_humio_alert())

        assert custom_api.get_namespaced_custom_object.call_count == 1

    def test_missing_token_secret(self, resolver, custom_api, core_api):
        """Test that a missing token secret is a configuration error."""
        custom_api.get_namespaced_custom_object.return_value = {"spec": {}}
        core_api.read_namespaced_secret.side_effect = ApiException(status=404, reason="Not Found")

        with pytest.raises(ClusterConfigError, match="unable to read API token"):
            resolver.resolve(make_humio_alert())

    def test_empty_token(self, resolver, custom_api, core_api):
        """Test that an empty token is a configuration error."""
        custom_api.get_namespaced_custom_object.return_value = {"spec": {}}
        core_api.read_namespaced_secret.return_value = make_secret({"token": ""})

        with pytest.raises(ClusterConfigError, match="is empty"):
            resolver.resolve(make_humio_alert())


class TestExternalCluster:
    """Test cases for HumioExternalCluster references."""

    def test_external_cluster(self, resolver, custom_api, core_api):
        """Test the configuration of an external cluster."""
        custom_api.get_namespaced_custom_object.return_value = {
            "spec": {"url": "https://cloud.humio.com/", "apiTokenSecretName": "humio-token", "insecure": True}
        }
        core_api.read_namespaced_secret.return_value = make_secret({"token": "external-token"})

        config = resolver.resolve(make_humio_alert(managed_cluster_name="", external_cluster_name="cloud"))

        assert config.address == "https://cloud.humio.com/"
        assert config.token == "external-token"
        assert config.insecure is True
        core_api.read_namespaced_secret.assert_called_once_with(name="humio-token", namespace="default")

    def test_missing_url(self, resolver, custom_api):
        """Test that an external cluster without url is rejected."""
        custom_api.get_namespaced_custom_object.return_value = {"spec": {"apiTokenSecretName": "humio-token"}}

        with pytest.raises(ClusterConfigError, match="does not specify a url"):
            resolver.resolve(make_humio_alert(managed_cluster_name="", external_cluster_name="cloud"))

    def test_missing_token_secret_name(self, resolver, custom_api):
        """Test that an external cluster without token secret is rejected."""
        custom_api.get_namespaced_custom_object.return_value = {"spec": {"url": "https://cloud.humio.com/"}}

        with pytest.raises(ClusterConfigError, match="apiTokenSecretName"):
            resolver.resolve(make_humio_alert(managed_cluster_name="", external_cluster_name="cloud"))

"""Kubernetes operator that manages Humio alerts declared as HumioAlert resources."""

__version__ = "0.1.0"

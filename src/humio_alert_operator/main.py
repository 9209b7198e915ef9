"""Main entry point for the Humio Alert Operator."""

from __future__ import annotations

import os
from typing import Any

import kopf

from . import health
from . import logging as structured_logging
from .handlers import alert
from .tracing import initialize_tracing


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    structured_logging.setup_structured_logging()
    initialize_tracing()

    # Use annotation storage to avoid conflicts with status updates
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = 0
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = int(os.getenv("MAX_WORKERS", "4"))

    # Start metrics HTTP server with health check endpoints
    health.start_metrics_server(int(os.getenv("METRICS_PORT", "8080")))

    # Periodic resync of every HumioAlert
    alert.start_resync_loop(float(os.getenv("RESYNC_INTERVAL_SECONDS", "15")))


def main() -> None:
    """Run the operator."""
    namespace = os.getenv("WATCH_NAMESPACE")
    kopf.run(
        clusterwide=not namespace,
        namespaces=[namespace] if namespace else None,
    )


if __name__ == "__main__":
    main()

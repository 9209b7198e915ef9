"""Rate limiting utilities for API calls."""

from __future__ import annotations

import os
import threading
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from kubernetes.client.exceptions import ApiException

from .. import metrics

_F = TypeVar("_F", bound=Callable[..., Any])

# Rate limit configuration
_K8S_RATE_LIMIT_PER_SECOND = float(os.getenv("K8S_RATE_LIMIT_PER_SECOND", "10.0"))
_HUMIO_RATE_LIMIT_PER_SECOND = float(os.getenv("HUMIO_RATE_LIMIT_PER_SECOND", "5.0"))

_RATE_LIMIT_BACKOFF_SECONDS = (1, 2, 4)


class _Throttle:
    """Minimum-interval throttle shared by every call of one API type."""

    def __init__(self, api_type: str, per_second: Callable[[], float]):
        self.api_type = api_type
        self._per_second = per_second
        self._last_call_time = 0.0
        self._lock = threading.Lock()

    def wait(self) -> None:
        with self._lock:
            min_interval = 1.0 / self._per_second()
            time_since_last_call = time.time() - self._last_call_time
            if time_since_last_call < min_interval:
                metrics.rate_limit_hits_total.labels(api_type=self.api_type).inc()
                time.sleep(min_interval - time_since_last_call)
            self._last_call_time = time.time()


_k8s_throttle = _Throttle("k8s", lambda: _K8S_RATE_LIMIT_PER_SECOND)
_humio_throttle = _Throttle("humio", lambda: _HUMIO_RATE_LIMIT_PER_SECOND)


def rate_limit_k8s(func: _F) -> _F:
    """Decorator to rate limit Kubernetes API calls."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        _k8s_throttle.wait()
        return func(*args, **kwargs)

    return wrapper  # type: ignore


def rate_limit_humio(func: _F) -> _F:
    """Decorator to rate limit Humio API calls."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        _humio_throttle.wait()
        return func(*args, **kwargs)

    return wrapper  # type: ignore


def is_rate_limit_error(e: Exception) -> bool:
    """Check whether a Kubernetes API exception signals rate limiting."""
    if not isinstance(e, ApiException):
        return False
    return e.status == 429 or (e.status == 503 and "rate limit" in str(e).lower())


def call_with_rate_limit_retry(func: Callable[[], Any]) -> Any:
    """Call a Kubernetes API function, backing off on rate limit errors.

    Retries after 1s, 2s and 4s; any other error, or a rate limit error
    after the last backoff, is raised.
    """
    for delay in _RATE_LIMIT_BACKOFF_SECONDS:
        try:
            return func()
        except ApiException as e:
            if not is_rate_limit_error(e):
                raise
            time.sleep(delay)
    return func()

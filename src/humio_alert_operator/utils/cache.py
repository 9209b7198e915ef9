"""Short-lived cache of cluster objects read from Kubernetes."""

from __future__ import annotations

import os
import threading
import time
from typing import Any

CacheKey = tuple[str, str, str]


class ClusterCache:
    """Keeps objects by (kind, namespace, name) for ``ttl`` seconds.

    Reconciles run on kopf's worker threads and on the resync thread, so
    every access holds the lock.
    """

    def __init__(self, ttl: float):
        self.ttl = ttl
        self._entries: dict[CacheKey, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, kind: str, namespace: str, name: str) -> Any | None:
        """Return the cached object, or None when absent or expired."""
        key = (kind, namespace, name)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, obj = entry
            if time.monotonic() >= expires_at:
                del self._entries[key]
                return None
            return obj

    def put(self, kind: str, namespace: str, name: str, obj: Any) -> None:
        with self._lock:
            self._entries[(kind, namespace, name)] = (time.monotonic() + self.ttl, obj)

    def clear(self, kind: str | None = None) -> None:
        """Drop every entry, or only the entries of one kind."""
        with self._lock:
            if kind is None:
                self._entries.clear()
                return
            for key in [key for key in self._entries if key[0] == kind]:
                del self._entries[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


cluster_cache = ClusterCache(float(os.getenv("K8S_CACHE_TTL_SECONDS", "30")))

"""Process-wide cache for status and transition lookups.

Request threads and the batch job share one instance. Reads and writes take
a lock; admin commands invalidate the affected entries before they return.
"""

import threading

STATUSES = "statuses"
EDGES = "edges"
ACTIVE = "active"


class WorkflowCache:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._entries: dict[tuple[str, str], object] = {}

    def get(self, region: str, key: str):
        with self._lock:
            return self._entries.get((region, key))

    def put(self, region: str, key: str, value) -> None:
        with self._lock:
            self._entries[(region, key)] = value

    def invalidate(self, region: str, key: str | None = None) -> None:
        """Drop one entry, or the whole region when ``key`` is None."""
        with self._lock:
            if key is not None:
                self._entries.pop((region, key), None)
                return
            for entry in [e for e in self._entries if e[0] == region]:
                del self._entries[entry]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_cache: WorkflowCache | None = None
_cache_lock = threading.Lock()


def get_workflow_cache() -> WorkflowCache:
    """Return the shared cache, creating it on first use."""
    global _cache
    with _cache_lock:
        if _cache is None:
            _cache = WorkflowCache()
        return _cache


def reset_workflow_cache() -> None:
    """Discard the shared cache (useful for testing)."""
    global _cache
    with _cache_lock:
        _cache = None

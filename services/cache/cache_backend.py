# services/cache/cache_backend.py
from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, Union

# -------------------------
# Types
# -------------------------
JsonValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]


class CacheBackend(Protocol):
    def get(self, key: str, ttl_seconds: float) -> Optional[JsonValue]:
        """Return the value if it was stored at most ttl_seconds ago."""

    def set(self, key: str, payload: JsonValue) -> None:
        """Store payload under key, stamped with the current time."""

    def get_stale(self, key: str) -> Optional[JsonValue]:
        """Return the last stored value regardless of age."""

    def stored_at(self, key: str) -> Optional[float]:
        """Epoch seconds of the last set() for key, or None."""

    def clear(self, key: Optional[str] = None) -> None:
        """Drop one key, or everything when key is None."""


def _norm_key(key: str) -> str:
    return (key or "").strip()


class MemoryCache:
    """
    Process-wide key -> (stored_at, payload) map.

    Freshness is decided by the reader (each domain has its own TTL), so an
    expired entry is never evicted: it stays available to get_stale() as the
    fallback when a fresh aggregation fails. The key space is small and fixed
    (one per domain, calendar range or translated article).
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        # store: key -> (stored_at_epoch, payload)
        self._store: Dict[str, Tuple[float, JsonValue]] = {}

    def get(self, key: str, ttl_seconds: float) -> Optional[JsonValue]:
        hit = self._store.get(_norm_key(key))
        if hit is None:
            return None
        stored_at, payload = hit
        if self._clock() - stored_at > ttl_seconds:
            return None
        return payload

    def set(self, key: str, payload: JsonValue) -> None:
        k = _norm_key(key)
        if not k:
            return
        self._store[k] = (self._clock(), payload)

    def get_stale(self, key: str) -> Optional[JsonValue]:
        hit = self._store.get(_norm_key(key))
        return hit[1] if hit is not None else None

    def stored_at(self, key: str) -> Optional[float]:
        hit = self._store.get(_norm_key(key))
        return hit[0] if hit is not None else None

    def clear(self, key: Optional[str] = None) -> None:
        if key is None:
            self._store.clear()
        else:
            self._store.pop(_norm_key(key), None)


_cache_singleton: Optional[MemoryCache] = None


def get_cache() -> MemoryCache:
    """Shared cache, constructed on first use and kept for the process lifetime."""
    global _cache_singleton
    if _cache_singleton is None:
        _cache_singleton = MemoryCache()
    return _cache_singleton

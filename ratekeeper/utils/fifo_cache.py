"""Bounded in-memory cache with first-in-first-out eviction.

Insertion order is tracked in an explicit deque beside the value map, so
the eviction rule does not depend on dict iteration order. Reads never
reorder entries and entries are never overwritten once stored.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class FifoCache(Generic[K, V]):
    """Thread-safe, bounded cache evicting the oldest-inserted entry.

    Attributes:
        max_entries: Maximum number of cached items.
    """

    def __init__(self, max_entries: int = 10_000) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")

        self._max_entries = max_entries
        self._store: dict[K, V] = {}
        self._order: deque[K] = deque()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"FifoCache(max_entries={self._max_entries}, size={len(self._store)}, "
            f"hits={self._hits}, misses={self._misses}, evictions={self._evictions})"
        )

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: K) -> V | None:
        """Return the cached value for key, or None."""

        with self._lock:
            value = self._store.get(key)
            if value is None:
                self._misses += 1
                return None
            self._hits += 1
            return value

    def set(self, key: K, value: V) -> None:
        """Insert key unless already present, evicting the oldest entry when full."""

        with self._lock:
            if key in self._store:
                return
            while len(self._store) >= self._max_entries:
                oldest = self._order.popleft()
                del self._store[oldest]
                self._evictions += 1
            self._store[key] = value
            self._order.append(key)

    def keys(self) -> list[K]:
        """Keys from oldest to newest insertion."""

        with self._lock:
            return list(self._order)

    def clear(self) -> None:
        """Remove all cached entries and reset counters."""

        with self._lock:
            self._store.clear()
            self._order.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def stats(self) -> dict[str, int]:
        """Return lightweight cache metrics without exposing values."""

        with self._lock:
            return {
                "max_entries": self._max_entries,
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

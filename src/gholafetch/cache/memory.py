"""Bounded in-process response cache with first-in-first-out eviction."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional

from gholafetch.cache.base import CacheEntry


class InMemoryCache:
    """Time- and capacity-bounded dict cache.

    Entries are kept in insertion order.  When the cache is full, storing a
    new key evicts the earliest inserted entry that is still present.
    Overwriting an existing key keeps its original position.  Expired
    entries are dropped lazily on lookup.

    Args:
        max_capacity: Maximum number of entries, or ``None`` for unbounded.
        clock: Monotonic time source in seconds; injectable for tests.

    Example::

        cache = InMemoryCache(max_capacity=2)
        cache.set("a", 1, ttl=10)
        cache.set("b", 2, ttl=10)
        cache.set("c", 3, ttl=10)   # evicts "a"
    """

    def __init__(
        self,
        max_capacity: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_capacity is not None and max_capacity < 1:
            raise ValueError("max_capacity must be at least 1")
        self._max_capacity = max_capacity
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:
        entry = CacheEntry(value=value, expires_at=self._clock() + ttl)
        with self._lock:
            if key not in self._entries and self._is_full():
                self._entries.popitem(last=False)
            self._entries[key] = entry

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> list[str]:
        """Stored keys in eviction order (oldest first), expired ones included."""
        with self._lock:
            return list(self._entries)

    def _is_full(self) -> bool:
        return self._max_capacity is not None and len(self._entries) >= self._max_capacity

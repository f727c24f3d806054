"""Disk-backed response cache.

Uses :mod:`diskcache` to persist response envelopes on the filesystem so
that cached responses survive across processes (for example, repeated
``gholafetch request`` invocations).  Entries expire after the ttl given to
:meth:`DiskCache.set`; :mod:`diskcache` never serves an expired entry.

Values are pickled, so envelopes whose decoded body cannot be pickled are
skipped with a warning rather than failing the call.

See Also:
    :class:`~gholafetch.models.CacheConfig` -- selects the backend and
    directory.
"""

from __future__ import annotations

import logging
import pickle
from pathlib import Path
from typing import Any, Optional

import diskcache

logger = logging.getLogger(__name__)


class DiskCache:
    """:class:`diskcache.Cache` wrapper implementing the cache capability.

    Args:
        cache_dir: Root directory for the cache.  A ``responses/``
            subdirectory is created inside it.
        max_capacity: Optional entry limit.  When reached, the oldest stored
            entry is evicted before a new key is inserted.

    Example::

        from gholafetch.cache import DiskCache

        cache = DiskCache("/tmp/gholafetch-cache")
        cache.set("-https://api.example.com/users", envelope, ttl=60)
        hit = cache.get("-https://api.example.com/users")
    """

    def __init__(self, cache_dir: str | Path, max_capacity: Optional[int] = None) -> None:
        self._cache_dir = Path(cache_dir)
        self._max_capacity = max_capacity
        self._cache = diskcache.Cache(str(self._cache_dir / "responses"))

    def get(self, key: str) -> Optional[Any]:
        return self._cache.get(key)

    def set(self, key: str, value: Any, ttl: float) -> None:
        if self._max_capacity is not None and key not in self._cache:
            while len(self._cache) >= self._max_capacity:
                oldest = next(iter(self._cache), None)
                if oldest is None:
                    break
                self._cache.delete(oldest)
        try:
            self._cache.set(key, value, expire=ttl)
        except (pickle.PicklingError, TypeError, AttributeError) as exc:
            logger.warning("Response for %s is not cacheable: %s", key, exc)

    def remove(self, key: str) -> None:
        self._cache.delete(key)

    def clear(self) -> None:
        self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Return ``size`` (entries) and ``directory`` of the cache."""
        return {
            "size": len(self._cache),
            "directory": str(self._cache_dir / "responses"),
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()

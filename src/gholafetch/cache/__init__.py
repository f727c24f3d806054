"""Response caching for gholafetch.

Two implementations of the :class:`Cache` capability are provided:

* :class:`InMemoryCache` -- per-process, capacity bounded, FIFO eviction.
* :class:`DiskCache` -- persistent, backed by :mod:`diskcache`.

The pipeline stores a response only when it is 2xx and its
``Cache-Control`` header carries a positive ``max-age``.
"""

from gholafetch.cache.base import Cache, CacheEntry
from gholafetch.cache.disk import DiskCache
from gholafetch.cache.memory import InMemoryCache

__all__ = ["Cache", "CacheEntry", "DiskCache", "InMemoryCache"]

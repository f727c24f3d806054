"""Cache capability consumed by the request pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Optional, Protocol, Union, runtime_checkable


@dataclass(frozen=True)
class CacheEntry:
    """A cached value and the absolute time at which it stops being served."""

    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@runtime_checkable
class Cache(Protocol):
    """Key/value store for response envelopes.

    Implementations may return plain values or awaitables from any method;
    the pipeline awaits whatever it gets back.  They must tolerate
    concurrent calls without crashing, but nothing stronger than
    last-writer-wins is expected.
    """

    def get(self, key: str) -> Union[Optional[Any], Awaitable[Optional[Any]]]: ...

    def set(self, key: str, value: Any, ttl: float) -> Union[None, Awaitable[None]]:
        """Store *value* under *key* for *ttl* seconds."""
        ...

    def remove(self, key: str) -> Union[None, Awaitable[None]]: ...

    def clear(self) -> Union[None, Awaitable[None]]: ...

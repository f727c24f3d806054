"""Small helpers shared by the pipeline components."""

from __future__ import annotations

import inspect
from typing import Any


async def maybe_await(value: Any) -> Any:
    """Return *value*, awaiting it first if it is awaitable.

    Hooks and cache implementations may be plain functions or coroutines.
    """
    if inspect.isawaitable(value):
        return await value
    return value

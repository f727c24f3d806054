"""Ordered middleware registry and the pre/post hook runner.

The chain follows a pipeline pattern: each hook receives the output of the
previous one.  A hook that raises aborts the rest of the chain and the
call; the fault propagates to the caller unchanged.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Union

from gholafetch.exceptions import MiddlewareError
from gholafetch.middleware.base import FunctionMiddleware, Middleware
from gholafetch.models import RequestSpec, ResponseEnvelope
from gholafetch.utils import maybe_await

MiddlewareLike = Union[Middleware, Mapping[str, Any]]


def as_middleware(candidate: MiddlewareLike) -> Middleware:
    """Coerce *candidate* into a :class:`Middleware`.

    Accepts a ``Middleware`` instance or a mapping with any of the keys
    ``pre``, ``post`` and ``error``.

    Raises:
        MiddlewareError: For anything else.
    """
    if isinstance(candidate, Middleware):
        return candidate
    if isinstance(candidate, Mapping):
        unknown = set(candidate) - {"pre", "post", "error", "name"}
        if unknown:
            raise MiddlewareError(f"Unknown middleware hooks: {', '.join(sorted(unknown))}")
        return FunctionMiddleware(
            pre=candidate.get("pre"),
            post=candidate.get("post"),
            error=candidate.get("error"),
            name=candidate.get("name"),
        )
    raise MiddlewareError(f"Not a middleware: {candidate!r}")


class MiddlewareChain:
    """Middlewares in registration order.

    Registration is expected to be finished before concurrent traffic
    starts; the chain does not guard against mutation during iteration.
    """

    def __init__(self, middlewares: Optional[Iterable[MiddlewareLike]] = None) -> None:
        self._middlewares: list[Middleware] = []
        for candidate in middlewares or ():
            self.use(candidate)

    def use(self, candidate: MiddlewareLike) -> Middleware:
        """Append a middleware and return it in its coerced form."""
        registered = as_middleware(candidate)
        self._middlewares.append(registered)
        return registered

    @property
    def middlewares(self) -> tuple[Middleware, ...]:
        return tuple(self._middlewares)

    def __len__(self) -> int:
        return len(self._middlewares)

    def __iter__(self):
        return iter(tuple(self._middlewares))

    async def run_pre(self, spec: RequestSpec) -> RequestSpec:
        """Thread *spec* through every ``pre`` hook.

        A hook returning ``None`` leaves the spec as it was.

        Raises:
            MiddlewareError: If a hook returns something other than a
                :class:`RequestSpec`.
        """
        current = spec
        for mw in tuple(self._middlewares):
            result = await maybe_await(mw.pre(current))
            if result is None:
                continue
            if not isinstance(result, RequestSpec):
                raise MiddlewareError(
                    f"{mw.name}.pre returned {type(result).__name__}, expected RequestSpec"
                )
            current = result
        return current

    async def run_post(self, envelope: ResponseEnvelope[Any]) -> ResponseEnvelope[Any]:
        """Thread *envelope* through every ``post`` hook."""
        current = envelope
        for mw in tuple(self._middlewares):
            result = await maybe_await(mw.post(current))
            if result is None:
                continue
            if not isinstance(result, ResponseEnvelope):
                raise MiddlewareError(
                    f"{mw.name}.post returned {type(result).__name__}, expected ResponseEnvelope"
                )
            current = result
        return current

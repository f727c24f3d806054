"""Middleware records: the unit registered with ``FetchClient.use()``.

A middleware bundles up to three hooks:

* ``pre(spec) -> spec`` -- rewrite the :class:`~gholafetch.models.RequestSpec`
  before the URL is resolved and the cache consulted.
* ``post(envelope) -> envelope`` -- derive a new
  :class:`~gholafetch.models.ResponseEnvelope` from a successful response.
* ``on_error(failure, retry) -> None | envelope | FetchError`` -- observe,
  recover from, or replace a transport-originated failure.

Every hook may be a plain function or a coroutine function.  Subclass
:class:`Middleware` and override only the hooks you need, or build one from
functions with :func:`middleware`.

Example::

    class BearerAuth(Middleware):
        def __init__(self, token: str) -> None:
            self.token = token

        def pre(self, spec):
            spec.headers["Authorization"] = f"Bearer {self.token}"
            return spec

    client.use(BearerAuth("s3cret"))
    client.use(middleware(post=lambda env: env.replace(data=env.data["items"])))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

if TYPE_CHECKING:
    from gholafetch.exceptions import FetchError
    from gholafetch.models import PendingRequest, RequestSpec, ResponseEnvelope

RetryFunction = Callable[["Optional[PendingRequest]"], Awaitable["ResponseEnvelope[Any]"]]
"""Re-issues the failed call (or a replacement request) as a fresh pipeline run."""

ErrorHookResult = Union[None, "ResponseEnvelope[Any]", "FetchError"]

PreHook = Callable[["RequestSpec"], Union["RequestSpec", Awaitable["RequestSpec"]]]
PostHook = Callable[["ResponseEnvelope[Any]"], Union["ResponseEnvelope[Any]", Awaitable["ResponseEnvelope[Any]"]]]
ErrorHook = Callable[["FetchError", RetryFunction], Union[ErrorHookResult, Awaitable[ErrorHookResult]]]


class Middleware:
    """Base class for middlewares.  All hooks default to pass-through."""

    @property
    def name(self) -> str:
        """Name used in diagnostics; defaults to the class name."""
        return type(self).__name__

    def pre(self, spec: RequestSpec) -> Union[RequestSpec, Awaitable[RequestSpec]]:
        return spec

    def post(
        self, envelope: ResponseEnvelope[Any]
    ) -> Union[ResponseEnvelope[Any], Awaitable[ResponseEnvelope[Any]]]:
        return envelope

    def on_error(
        self, failure: FetchError, retry: RetryFunction
    ) -> Union[ErrorHookResult, Awaitable[ErrorHookResult]]:
        """Handle a failed call.

        Args:
            failure: The current failure record.  ``failure.request`` holds
                the endpoint and spec of the call.
            retry: Coroutine function re-running the call; pass a
                :class:`~gholafetch.models.PendingRequest` to change it.

        Returns:
            ``None`` to defer to the next hook, an envelope to resolve the
            call successfully, or a :class:`~gholafetch.exceptions.FetchError`
            to replace the failure seen by later hooks.
        """
        return None

    def __repr__(self) -> str:
        return f"<{self.name}>"


class FunctionMiddleware(Middleware):
    """Middleware assembled from optional hook functions."""

    def __init__(
        self,
        pre: Optional[PreHook] = None,
        post: Optional[PostHook] = None,
        error: Optional[ErrorHook] = None,
        name: Optional[str] = None,
    ) -> None:
        self._pre = pre
        self._post = post
        self._error = error
        self._name = name

    @property
    def name(self) -> str:
        if self._name:
            return self._name
        for hook in (self._pre, self._post, self._error):
            if hook is not None:
                return getattr(hook, "__name__", type(self).__name__)
        return type(self).__name__

    def pre(self, spec: RequestSpec) -> Union[RequestSpec, Awaitable[RequestSpec]]:
        if self._pre is None:
            return spec
        return self._pre(spec)

    def post(
        self, envelope: ResponseEnvelope[Any]
    ) -> Union[ResponseEnvelope[Any], Awaitable[ResponseEnvelope[Any]]]:
        if self._post is None:
            return envelope
        return self._post(envelope)

    def on_error(
        self, failure: FetchError, retry: RetryFunction
    ) -> Union[ErrorHookResult, Awaitable[ErrorHookResult]]:
        if self._error is None:
            return None
        return self._error(failure, retry)


def middleware(
    pre: Optional[PreHook] = None,
    post: Optional[PostHook] = None,
    error: Optional[ErrorHook] = None,
    name: Optional[str] = None,
) -> FunctionMiddleware:
    """Build a middleware from hook functions; every hook is optional."""
    return FunctionMiddleware(pre=pre, post=post, error=error, name=name)

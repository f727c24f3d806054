"""Asynchronous HTTP client with middleware, caching, and error recovery.

:class:`FetchClient` is the public face of the request pipeline.  It owns
the instance-level configuration (base URL, default headers, default
timeout, cache), the middleware registry, and the transport, and exposes
``request`` plus ``get/post/put/patch/delete`` shortcuts.

Independent calls on one client may run concurrently (``asyncio.gather``);
they share the cache and the middleware chain.  Identical concurrent calls
are not coalesced: each one that misses the cache reaches the transport.

See Also:
    :class:`~gholafetch.pipeline.RequestPipeline` for the step-by-step
    execution of a call.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from gholafetch.cache import Cache
from gholafetch.cancellation import CancellationCoordinator
from gholafetch.classifier import ErrorClassifier
from gholafetch.codec import ContentCodec
from gholafetch.config import build_cache
from gholafetch.diagnostics import DiagnosticSink, LoggingSink
from gholafetch.middleware import Middleware, MiddlewareChain
from gholafetch.middleware.chain import MiddlewareLike
from gholafetch.models import ClientConfig, HttpMethod, RequestSpec, ResponseEnvelope
from gholafetch.pipeline import RequestPipeline
from gholafetch.transport import HttpxTransport, Transport


class FetchClient:
    """HTTP client running every call through the request pipeline.

    Args:
        base_url: Prefix for every endpoint unless a call supplies its own.
        headers: Default headers; call headers win on collision.
        cache: Optional response cache (see :mod:`gholafetch.cache`).
        timeout: Default timeout in seconds, ``None`` for no timeout.
        transport: Network transport; defaults to :class:`HttpxTransport`.
        codec: Body encoder/decoder; defaults to a :class:`ContentCodec`
            reporting to *sink*.
        sink: Diagnostic sink; defaults to :class:`LoggingSink`.
        middlewares: Middlewares to register up front.

    Example::

        async with FetchClient(base_url="https://api.example.com", timeout=10) as client:
            client.use(middleware(pre=add_auth))
            user = await client.get("/users/123")
            print(user.status, user.data)
    """

    def __init__(
        self,
        base_url: str = "",
        headers: Optional[Mapping[str, Optional[str]]] = None,
        cache: Optional[Cache] = None,
        timeout: Optional[float] = None,
        transport: Optional[Transport] = None,
        codec: Optional[ContentCodec] = None,
        sink: Optional[DiagnosticSink] = None,
        middlewares: Optional[list[MiddlewareLike]] = None,
    ) -> None:
        self._sink: DiagnosticSink = sink or LoggingSink()
        self._owns_cache = False
        self._transport: Transport = transport or HttpxTransport()
        self._chain = MiddlewareChain(middlewares)
        self._pipeline = RequestPipeline(
            transport=self._transport,
            chain=self._chain,
            codec=codec or ContentCodec(self._sink),
            coordinator=CancellationCoordinator(timeout),
            classifier=ErrorClassifier(self._sink),
            base_url=base_url,
            headers=headers,
            cache=cache,
            sink=self._sink,
        )

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        transport: Optional[Transport] = None,
        sink: Optional[DiagnosticSink] = None,
    ) -> FetchClient:
        """Build a client from a :class:`~gholafetch.models.ClientConfig`."""
        sink = sink or LoggingSink()
        client = cls(
            base_url=config.base_url,
            headers=config.headers,
            cache=build_cache(config.cache),
            timeout=config.timeout,
            transport=transport,
            codec=ContentCodec(sink, strip_multipart_content_type=config.strip_multipart_content_type),
            sink=sink,
        )
        client._owns_cache = True
        return client

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> FetchClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the transport and any cache built by :meth:`from_config`."""
        aclose = getattr(self._transport, "aclose", None)
        if aclose is not None:
            await aclose()
        if self._owns_cache:
            close = getattr(self.cache, "close", None)
            if close is not None:
                close()

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    @property
    def base_url(self) -> str:
        return self._pipeline.base_url

    @base_url.setter
    def base_url(self, value: str) -> None:
        self._pipeline.base_url = value

    @property
    def headers(self) -> dict[str, Optional[str]]:
        """Default headers (mutable)."""
        return self._pipeline.headers

    @property
    def timeout(self) -> Optional[float]:
        return self._pipeline.coordinator.default_timeout

    @property
    def cache(self) -> Optional[Cache]:
        return self._pipeline.cache

    @property
    def middlewares(self) -> tuple[Middleware, ...]:
        return self._chain.middlewares

    def use(self, middleware: MiddlewareLike) -> FetchClient:
        """Register a middleware and return the client for chaining.

        Args:
            middleware: A :class:`~gholafetch.middleware.Middleware` or a
                mapping with ``pre`` / ``post`` / ``error`` hooks.

        Raises:
            MiddlewareError: If *middleware* is neither.
        """
        self._chain.use(middleware)
        return self

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def request(
        self,
        endpoint: str,
        spec: Optional[RequestSpec] = None,
        **options: Any,
    ) -> ResponseEnvelope[Any]:
        """Run a call through the pipeline.

        Args:
            endpoint: Path appended to the resolved base URL.
            spec: Full request description.  Defaults to a GET.
            **options: :class:`~gholafetch.models.RequestSpec` fields
                (``method``, ``headers``, ``params``, ``body``, ``timeout``,
                ``cancel_token``, ``cache_key_prefix``, ``base_url``)
                applied on top of *spec*.

        Returns:
            The decoded, post-processed envelope.

        Raises:
            HttpFailure: The server answered with a status >= 400.
            TimeoutFailure: The timeout elapsed first (status 408).
            TransportFailure: Network failure or external cancellation
                (status 0).
        """
        if spec is None:
            spec = RequestSpec(**options)
        elif options:
            spec = spec.copy(**options)
        return await self._pipeline.execute(endpoint, spec)

    async def get(self, endpoint: str, **options: Any) -> ResponseEnvelope[Any]:
        """Send a GET request.  *options* are forwarded to :meth:`request`."""
        return await self.request(endpoint, method=HttpMethod.GET, **options)

    async def post(self, endpoint: str, body: Any = None, **options: Any) -> ResponseEnvelope[Any]:
        """Send a POST request with *body*."""
        return await self.request(endpoint, method=HttpMethod.POST, body=body, **options)

    async def put(self, endpoint: str, body: Any = None, **options: Any) -> ResponseEnvelope[Any]:
        """Send a PUT request with *body*."""
        return await self.request(endpoint, method=HttpMethod.PUT, body=body, **options)

    async def patch(self, endpoint: str, body: Any = None, **options: Any) -> ResponseEnvelope[Any]:
        """Send a PATCH request with *body*."""
        return await self.request(endpoint, method=HttpMethod.PATCH, body=body, **options)

    async def delete(self, endpoint: str, **options: Any) -> ResponseEnvelope[Any]:
        """Send a DELETE request."""
        return await self.request(endpoint, method=HttpMethod.DELETE, **options)

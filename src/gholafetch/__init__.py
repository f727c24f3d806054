"""gholafetch -- asynchronous HTTP client with a middleware pipeline.

Every call runs through the same sequence: pre-request middleware, cache
lookup, body encoding, transport under a timeout/cancellation handle, body
decoding by media type, and then either post-response middleware (and
cache population) or the error-hook recovery protocol.

Typical usage::

    from gholafetch import FetchClient, InMemoryCache, middleware

    client = FetchClient(
        base_url="https://api.example.com",
        cache=InMemoryCache(max_capacity=256),
        timeout=10,
    )
    client.use(middleware(pre=add_auth_header))
    resp = await client.get("/users/123")

Modules:
    client: The :class:`FetchClient` public API.
    pipeline: Step-by-step execution of one call.
    codec: Request encoding and response decoding by media type.
    cache: In-memory and disk response caches.
    cancellation: Timeout and cancellation-token coordination.
    middleware: Middleware records and the chain that applies them.
    classifier: Failure taxonomy and error-hook recovery.
    config: XDG-aware configuration loading.
    default: Process-wide default client.
    app: The ``gholafetch`` command-line interface.
"""

from gholafetch.body import Blob, FormData
from gholafetch.cache import DiskCache, InMemoryCache
from gholafetch.cancellation import CancellationToken
from gholafetch.client import FetchClient
from gholafetch.default import configure, get_client, reset_client
from gholafetch.exceptions import (
    FetchError,
    GholaError,
    HttpFailure,
    SecondaryHookFailure,
    TimeoutFailure,
    TransportFailure,
)
from gholafetch.middleware import Middleware, middleware
from gholafetch.models import ClientConfig, HttpMethod, PendingRequest, RequestSpec, ResponseEnvelope

__version__ = "0.3.0"

__all__ = [
    "Blob",
    "CancellationToken",
    "ClientConfig",
    "DiskCache",
    "FetchClient",
    "FetchError",
    "FormData",
    "GholaError",
    "HttpFailure",
    "HttpMethod",
    "InMemoryCache",
    "Middleware",
    "PendingRequest",
    "RequestSpec",
    "ResponseEnvelope",
    "SecondaryHookFailure",
    "TimeoutFailure",
    "TransportFailure",
    "configure",
    "get_client",
    "middleware",
    "reset_client",
]

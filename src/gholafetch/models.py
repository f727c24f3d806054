"""Data shapes shared across all gholafetch modules.

The models fall into two groups:

**Configuration models** -- Pydantic v2 models serialised as JSON in the
user's config directory and used to construct clients:
    :class:`CacheConfig` and :class:`ClientConfig`.

**Per-call models** -- plain dataclasses owned by one pipeline call:
    :class:`RequestSpec` (mutable while pre-hooks run),
    :class:`PreparedRequest` (the frozen request handed to the transport),
    :class:`ResponseEnvelope` (the immutable decoded response), and
    :class:`PendingRequest` (endpoint + spec, as seen by error hooks).
"""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Generic, Mapping, Optional, TypeVar

import httpx
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from gholafetch.cancellation import CancellationToken

T = TypeVar("T")


class HttpMethod(str, enum.Enum):
    """HTTP methods the client can issue."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


# --- Configuration models ---


class CacheBackend(str, enum.Enum):
    """Response cache implementations selectable from configuration."""

    NONE = "none"
    MEMORY = "memory"
    DISK = "disk"


class CacheConfig(BaseModel):
    """Response cache settings embedded in :class:`ClientConfig`."""

    backend: CacheBackend = Field(
        default=CacheBackend.NONE, description="Cache backend: none, memory, disk"
    )
    max_capacity: Optional[int] = Field(
        default=None, ge=1, description="Maximum number of entries (memory backend)"
    )
    directory: Optional[str] = Field(
        default=None, description="Cache directory (disk backend); defaults to the XDG cache dir"
    )


class ClientConfig(BaseModel):
    """Construction settings for a :class:`~gholafetch.client.FetchClient`.

    Loaded by :func:`~gholafetch.config.load_config`, which layers
    environment variables over the JSON config file.

    Example::

        ClientConfig(
            base_url="https://api.example.com",
            headers={"Accept": "application/json"},
            timeout=10,
            cache=CacheConfig(backend="memory", max_capacity=128),
        )
    """

    base_url: str = Field(default="", description="Prefix for every endpoint")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Headers sent with every request"
    )
    timeout: Optional[float] = Field(
        default=None, gt=0, description="Default request timeout in seconds"
    )
    cache: CacheConfig = Field(default_factory=CacheConfig)
    strip_multipart_content_type: bool = Field(
        default=False,
        description="Drop an explicit Content-Type on multipart bodies so the transport "
        "can attach its own boundary",
    )


# --- Per-call models ---


@dataclass
class RequestSpec:
    """Logical description of one request.

    Pre-hooks receive a ``RequestSpec`` and return one; any field may be
    rewritten, including ``base_url``.  Once the pipeline hands the request
    to the transport it is frozen into a :class:`PreparedRequest`.

    Attributes:
        method: HTTP method.  Strings are normalised to :class:`HttpMethod`.
        base_url: Overrides the client's base URL for this call.
        headers: Header mapping.  A ``None`` value removes a default header.
        params: Query parameters.  Lists and dicts are sent as JSON text.
        body: Payload -- text, bytes, a structured value, a
            :class:`~gholafetch.body.Blob` or file object, a
            :class:`~gholafetch.body.FormData`, or
            :class:`httpx.QueryParams`.
        timeout: Per-call timeout in seconds, overriding the client default.
        cancel_token: External cancellation token.
        cache_key_prefix: Prefix prepended to the cache key.
    """

    method: HttpMethod = HttpMethod.GET
    base_url: Optional[str] = None
    headers: dict[str, Optional[str]] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    body: Any = None
    timeout: Optional[float] = None
    cancel_token: Optional[CancellationToken] = None
    cache_key_prefix: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.method, HttpMethod):
            self.method = HttpMethod(str(self.method).upper())

    def copy(self, **changes: Any) -> RequestSpec:
        """Return a copy with its own header and param dicts, applying *changes*.

        Raises:
            TypeError: If *changes* names a field that does not exist.
        """
        fields = {"headers": dict(self.headers), "params": dict(self.params)}
        fields.update(changes)
        return dataclasses.replace(self, **fields)


@dataclass(frozen=True)
class PreparedRequest:
    """The request exactly as handed to the transport."""

    method: HttpMethod
    url: str
    headers: Mapping[str, str]
    body: Any = None

    @classmethod
    def freeze(cls, method: HttpMethod, url: str, headers: dict[str, str], body: Any) -> PreparedRequest:
        return cls(method=method, url=url, headers=MappingProxyType(dict(headers)), body=body)


@dataclass(frozen=True)
class PendingRequest:
    """An endpoint plus the spec it was called with.

    Error hooks see the failed call through ``failure.request`` and may pass
    a modified copy to ``retry()``.
    """

    endpoint: str
    spec: RequestSpec


@dataclass(frozen=True)
class ResponseEnvelope(Generic[T]):
    """Normalised, immutable response.

    Post-hooks never mutate an envelope; they return a new one, usually via
    :meth:`replace`.

    Attributes:
        status: Numeric HTTP status (``0`` for synthesized network failures).
        status_text: Reason phrase.
        headers: Response headers (case-insensitive).
        data: Decoded body, or ``None`` when it could not be decoded.
        url: The resolved request URL.
    """

    status: int
    status_text: str = ""
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    data: Optional[T] = None
    url: str = ""

    @property
    def ok(self) -> bool:
        """``True`` for a 2xx status."""
        return 200 <= self.status < 300

    def replace(self, **changes: Any) -> ResponseEnvelope[Any]:
        """Return a new envelope with *changes* applied."""
        return dataclasses.replace(self, **changes)

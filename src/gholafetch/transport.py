"""HTTP transport capability.

The pipeline never talks to the network directly.  It hands a frozen
request to a :class:`Transport` and gets back a :class:`TransportResponse`
with the raw body bytes.  :class:`HttpxTransport` is the default
implementation, backed by :class:`httpx.AsyncClient`; tests plug in an
``httpx.MockTransport`` underneath it or provide their own ``Transport``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

import httpx

from gholafetch.body import Blob, FormData
from gholafetch.cancellation import CancellationHandle
from gholafetch.models import HttpMethod


@dataclass(frozen=True)
class TransportResponse:
    """Raw outcome of a completed exchange."""

    status: int
    status_text: str = ""
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    content: bytes = b""


@runtime_checkable
class Transport(Protocol):
    """Performs the network exchange for one call.

    ``handle`` is the call's cancellation handle; the pipeline already
    aborts the awaited ``invoke`` when it fires, so implementations only
    need it for cooperative checks of their own.
    """

    async def invoke(
        self,
        method: HttpMethod,
        url: str,
        headers: Mapping[str, str],
        body: Any,
        handle: CancellationHandle,
    ) -> TransportResponse: ...


class HttpxTransport:
    """Transport over :class:`httpx.AsyncClient`.

    Timeouts are owned by the cancellation coordinator, so the client this
    class creates has httpx's own timeout disabled.

    Args:
        client: An existing client to use.  When omitted, one is created
            (and closed by :meth:`aclose`).
        verify: TLS verification flag for the created client.
        follow_redirects: Whether the created client follows redirects.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        verify: bool = True,
        follow_redirects: bool = True,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=None,
            verify=verify,
            follow_redirects=follow_redirects,
        )

    async def invoke(
        self,
        method: HttpMethod,
        url: str,
        headers: Mapping[str, str],
        body: Any,
        handle: CancellationHandle,
    ) -> TransportResponse:
        request_headers = httpx.Headers(dict(headers))
        kwargs: dict[str, Any] = {}

        if isinstance(body, FormData):
            content_type = request_headers.get("content-type", "")
            if content_type and "boundary=" not in content_type:
                # httpx only reuses a boundary it can read from the header.
                del request_headers["content-type"]
            kwargs["files"] = _form_files(body)
        elif isinstance(body, httpx.QueryParams):
            request_headers.setdefault("content-type", "application/x-www-form-urlencoded")
            kwargs["content"] = str(body)
        elif isinstance(body, bytearray):
            # httpx treats a bytearray as a sync iterable.
            kwargs["content"] = bytes(body)
        elif body is not None:
            kwargs["content"] = body

        response = await self._client.request(
            method.value, url, headers=request_headers, **kwargs
        )
        return TransportResponse(
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=response.headers,
            content=response.content,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _form_files(form: FormData) -> list[tuple[str, tuple[Optional[str], bytes, Optional[str]]]]:
    """Express every form field in httpx's ``files=`` shape to force multipart encoding."""
    files: list[tuple[str, tuple[Optional[str], bytes, Optional[str]]]] = []
    for name, value in form.items():
        if isinstance(value, Blob):
            files.append((name, (value.filename or name, value.content, value.content_type)))
        else:
            files.append((name, (None, str(value).encode("utf-8"), None)))
    return files

"""The request execution pipeline.

:class:`RequestPipeline` turns an endpoint plus a
:class:`~gholafetch.models.RequestSpec` into a decoded
:class:`~gholafetch.models.ResponseEnvelope` or a classified
:class:`~gholafetch.exceptions.FetchError`:

1. merge default headers with call headers (call wins, ``None`` drops);
2. run pre-hooks;
3. resolve the URL and encode the query string;
4. look up ``<prefix>-<url>`` in the cache and return a hit immediately;
5. encode the body (may rewrite ``Content-Type``);
6. acquire a cancellation handle (timeout + external token);
7. invoke the transport;
8. decode whatever body came back;
9. on success run post-hooks and, for 2xx with ``max-age``, populate the
   cache;
10. on failure run the error-hook protocol and either return the recovered
    envelope or raise the final failure.

Pre- and post-hook faults propagate unwrapped.  Only transport-originated
failures reach the error hooks.
"""

from __future__ import annotations

import copy
import json
import re
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

from gholafetch.cache import Cache
from gholafetch.cancellation import CancellationCoordinator
from gholafetch.classifier import ErrorClassifier, Recover
from gholafetch.codec import ContentCodec
from gholafetch.diagnostics import DiagnosticSink, LoggingSink
from gholafetch.exceptions import FetchError
from gholafetch.middleware import MiddlewareChain
from gholafetch.models import PendingRequest, PreparedRequest, RequestSpec, ResponseEnvelope
from gholafetch.transport import Transport, TransportResponse
from gholafetch.utils import maybe_await

_MAX_AGE_RE = re.compile(r"max-age=(\d+)", re.IGNORECASE)


def merge_headers(
    defaults: Mapping[str, Optional[str]], overrides: Mapping[str, Optional[str]]
) -> dict[str, str]:
    """Merge header mappings case-insensitively; later values win, ``None`` removes."""
    merged: dict[str, Optional[str]] = {}
    for source in (defaults, overrides):
        for key, value in source.items():
            for existing in [k for k in merged if k.lower() == key.lower()]:
                del merged[existing]
            merged[key] = value
    return {key: value for key, value in merged.items() if value is not None}


def encode_query(params: Mapping[str, Any]) -> str:
    """Percent-encode *params*.

    Scalars are stringified (booleans as ``true``/``false``), lists, tuples
    and dicts are sent as JSON text, and ``None`` values are skipped.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            text = "true" if value else "false"
        elif isinstance(value, (list, tuple, dict)):
            text = json.dumps(value)
        else:
            text = str(value)
        pairs.append((str(key), text))
    return urlencode(pairs)


def build_url(base_url: str, endpoint: str, params: Mapping[str, Any]) -> str:
    url = f"{base_url}{endpoint}"
    query = encode_query(params)
    if query:
        url = f"{url}{'&' if '?' in url else '?'}{query}"
    return url


def max_age(envelope: ResponseEnvelope[Any]) -> Optional[int]:
    """Return the positive ``max-age`` of the envelope's ``Cache-Control``, if any."""
    cache_control = envelope.headers.get("cache-control")
    if not cache_control:
        return None
    match = _MAX_AGE_RE.search(cache_control)
    if match is None:
        return None
    seconds = int(match.group(1))
    return seconds if seconds > 0 else None


class RequestPipeline:
    """Executes calls for one client instance.

    The pipeline holds no per-call state, so any number of calls may be in
    flight on it at once.  They share the cache and the middleware chain.

    Args:
        transport: Performs the network exchange.
        chain: Registered middlewares.
        codec: Body encoder/decoder.
        coordinator: Produces per-call cancellation handles.
        classifier: Builds failure records and runs error hooks.
        base_url: Default prefix for endpoints.
        headers: Default headers for every call.
        cache: Optional response cache.
        sink: Diagnostic sink.
    """

    def __init__(
        self,
        transport: Transport,
        chain: MiddlewareChain,
        codec: ContentCodec,
        coordinator: CancellationCoordinator,
        classifier: ErrorClassifier,
        base_url: str = "",
        headers: Optional[Mapping[str, Optional[str]]] = None,
        cache: Optional[Cache] = None,
        sink: Optional[DiagnosticSink] = None,
    ) -> None:
        self.transport = transport
        self.chain = chain
        self.codec = codec
        self.coordinator = coordinator
        self.classifier = classifier
        self.base_url = base_url
        self.headers: dict[str, Optional[str]] = dict(headers or {})
        self.cache = cache
        self.sink: DiagnosticSink = sink or LoggingSink()

    async def execute(self, endpoint: str, spec: RequestSpec) -> ResponseEnvelope[Any]:
        """Run one call through the pipeline.

        Raises:
            FetchError: If the call failed and no error hook recovered it.
            Exception: Any fault raised by a pre- or post-hook, unchanged.
        """
        request = PendingRequest(endpoint, spec.copy())

        # 1-2. Header merge and pre-hooks, on a private copy of the spec
        merged = spec.copy(headers=merge_headers(self.headers, spec.headers))
        processed = await self.chain.run_pre(merged)

        # 3. URL resolution
        base_url = spec.base_url or processed.base_url or self.base_url or ""
        url = build_url(base_url, endpoint, processed.params)

        # 4. Cache lookup
        cache_key = f"{processed.cache_key_prefix or ''}-{url}"
        if self.cache is not None:
            cached = await maybe_await(self.cache.get(cache_key))
            if cached is not None:
                self.sink.debug(f"Cache hit: {processed.method.value} {url}")
                # Callers own their envelope; the stored body stays intact.
                return cached.replace(data=copy.deepcopy(cached.data))

        # 5. Body encoding
        headers = merge_headers({}, processed.headers)
        payload = self.codec.encode(processed.body, headers)
        prepared = PreparedRequest.freeze(processed.method, url, headers, payload)

        # 6-7. Transport under a cancellation handle
        raw: Optional[TransportResponse] = None
        failure: Optional[FetchError] = None
        with self.coordinator.acquire(processed.timeout, processed.cancel_token) as handle:
            try:
                raw = await handle.run(
                    self.transport.invoke(
                        prepared.method, prepared.url, prepared.headers, prepared.body, handle
                    )
                )
            except Exception as exc:
                failure = self.classifier.classify_exception(exc, handle, url, request)

        # 8-9. Decode and classify a completed exchange
        if raw is not None:
            envelope: ResponseEnvelope[Any] = ResponseEnvelope(
                status=raw.status,
                status_text=raw.status_text,
                headers=raw.headers,
                data=self.codec.decode(raw.content, raw.headers),
                url=url,
            )
            failure = self.classifier.classify_response(envelope, request)
            if failure is None:
                result = await self.chain.run_post(envelope)
                await self._store(cache_key, result)
                return result

        # 10. Error-hook recovery
        assert failure is not None

        async def retry(replacement: Optional[PendingRequest] = None) -> ResponseEnvelope[Any]:
            target = replacement or request
            return await self.execute(target.endpoint, target.spec.copy())

        outcome = await self.classifier.recover(failure, self.chain, retry)
        if isinstance(outcome, Recover):
            await self._store(cache_key, outcome.envelope)
            return outcome.envelope
        raise outcome

    async def _store(self, cache_key: str, envelope: ResponseEnvelope[Any]) -> None:
        """Cache a 2xx envelope for its ``max-age``, if it has one."""
        if self.cache is None or not envelope.ok:
            return
        ttl = max_age(envelope)
        if ttl is None:
            return
        await maybe_await(self.cache.set(cache_key, envelope, ttl))
        self.sink.debug(f"Cached {envelope.url} for {ttl}s")

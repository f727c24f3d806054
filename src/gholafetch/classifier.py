"""Failure classification and the error-hook recovery protocol.

Transport outcomes map onto three failure classes:

* :class:`~gholafetch.exceptions.TransportFailure` (status 0) -- the
  transport raised, or an external token cancelled the call.
* :class:`~gholafetch.exceptions.TimeoutFailure` (status 408) -- the
  timeout source of the :class:`~gholafetch.cancellation.CancellationHandle`
  fired.
* :class:`~gholafetch.exceptions.HttpFailure` (status >= 400) -- the
  transport completed with an error status.

The first two get a synthesized envelope whose body carries a readable
``message``; the third keeps the envelope built from the real response.

:meth:`ErrorClassifier.recover` then runs every ``on_error`` hook.  Hook
return values are normalised into the :data:`HookOutcome` variant so the
loop never guesses from the shape of a value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx

from gholafetch.cancellation import CancelSource, CancellationHandle, RequestCancelled
from gholafetch.diagnostics import DiagnosticSink, LoggingSink
from gholafetch.exceptions import (
    FetchError,
    HttpFailure,
    SecondaryHookFailure,
    TimeoutFailure,
    TransportFailure,
)
from gholafetch.middleware import MiddlewareChain, RetryFunction
from gholafetch.models import PendingRequest, ResponseEnvelope
from gholafetch.utils import maybe_await


@dataclass(frozen=True)
class Ignore:
    """The hook declined; the failure passes on unchanged."""


@dataclass(frozen=True)
class Recover:
    """The hook produced an envelope; the call resolves successfully."""

    envelope: ResponseEnvelope[Any]


@dataclass(frozen=True)
class Replace:
    """The hook substituted a new failure for the remaining hooks."""

    failure: FetchError


HookOutcome = Union[Ignore, Recover, Replace]


def to_outcome(value: Any) -> HookOutcome:
    """Normalise an ``on_error`` return value.

    Raises:
        TypeError: If *value* is not ``None``, an envelope, a
            :class:`FetchError`, or already a :data:`HookOutcome`.
    """
    if value is None:
        return Ignore()
    if isinstance(value, (Ignore, Recover, Replace)):
        return value
    if isinstance(value, ResponseEnvelope):
        return Recover(value)
    if isinstance(value, FetchError):
        return Replace(value)
    raise TypeError(f"error hook returned unsupported {type(value).__name__}")


class ErrorClassifier:
    """Builds failure records and drives the error-hook protocol."""

    def __init__(self, sink: Optional[DiagnosticSink] = None) -> None:
        self.sink: DiagnosticSink = sink or LoggingSink()

    def classify_response(
        self, envelope: ResponseEnvelope[Any], request: PendingRequest
    ) -> Optional[HttpFailure]:
        """Return an :class:`HttpFailure` for a status >= 400, else ``None``."""
        if envelope.status < 400:
            return None
        message = f"HTTP Error: {envelope.status} {envelope.status_text}".rstrip()
        self.sink.debug(f"{message} for {envelope.url}: {envelope.data!r}")
        return HttpFailure(message, envelope.status, envelope, request)

    def classify_exception(
        self,
        exc: BaseException,
        handle: CancellationHandle,
        url: str,
        request: PendingRequest,
    ) -> FetchError:
        """Map a transport exception (or cancellation) to a failure record."""
        if isinstance(exc, RequestCancelled) and exc.source == CancelSource.TIMEOUT:
            message = f"Request timed out after {handle.timeout:g} seconds"
            envelope: ResponseEnvelope[Any] = ResponseEnvelope(
                status=408,
                status_text="Request Timeout",
                headers=httpx.Headers(),
                data={"message": message},
                url=url,
            )
            self.sink.debug(f"{message}: {url}")
            return TimeoutFailure(message, 408, envelope, request)

        message = str(exc) or type(exc).__name__
        envelope = ResponseEnvelope(
            status=0,
            status_text="Network Error",
            headers=httpx.Headers(),
            data={"message": message, "original_error": exc},
            url=url,
        )
        self.sink.debug(f"Fetch error for {url}: {message}")
        failure = TransportFailure(message, 0, envelope, request)
        failure.__cause__ = exc
        return failure

    async def recover(
        self,
        failure: FetchError,
        chain: MiddlewareChain,
        retry: RetryFunction,
    ) -> Union[Recover, FetchError]:
        """Run every ``on_error`` hook in registration order.

        A hook that raises is recorded as a
        :class:`~gholafetch.exceptions.SecondaryHookFailure` on the current
        failure, and the next hook still runs.

        Returns:
            :class:`Recover` if a hook produced an envelope, otherwise the
            final failure record.
        """
        current = failure
        for mw in chain:
            try:
                outcome = to_outcome(await maybe_await(mw.on_error(current, retry)))
            except Exception as exc:
                secondary = SecondaryHookFailure(exc, mw.name)
                current.secondary_errors.append(secondary)
                self.sink.warning(str(secondary))
                continue

            if isinstance(outcome, Recover):
                return outcome
            if isinstance(outcome, Replace):
                replacement = outcome.failure
                if replacement is not current:
                    if replacement.request is None:
                        replacement.request = current.request
                    replacement.secondary_errors[:0] = current.secondary_errors
                current = replacement
        return current

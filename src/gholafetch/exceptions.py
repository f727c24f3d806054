"""Exception hierarchy for gholafetch.

All exceptions inherit from :class:`GholaError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`gholafetch.exit_codes`.
The CLI entry point in :func:`gholafetch.app.main` catches ``GholaError``
and exits with the appropriate code.

Transport-originated failures are :class:`FetchError` instances.  A
``FetchError`` is the failure record of one call: besides the message it
carries the numeric ``status`` (``0`` for network failures, ``408`` for
timeouts, the HTTP status otherwise), the best-effort decoded ``response``
envelope, the :class:`~gholafetch.models.PendingRequest` that failed, and
the ordered list of faults raised by error hooks while trying to recover.

Subclass hierarchy::

    GholaError (exit 1)
    +-- ConfigError            (exit 1)
    +-- InvalidUsageError      (exit 2)
    +-- MiddlewareError        (exit 10)
    +-- SecondaryHookFailure   (never raised, collected on FetchError)
    +-- FetchError             (exit 8)
        +-- HttpFailure        (exit 3 / 4 / 5 / 8 by status)
        +-- TimeoutFailure     (exit 6, status 408)
        +-- TransportFailure   (exit 6, status 0)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from gholafetch.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_MIDDLEWARE_ERROR,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)

if TYPE_CHECKING:
    from gholafetch.models import PendingRequest, ResponseEnvelope


class GholaError(Exception):
    """Base exception for all gholafetch errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`gholafetch.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(GholaError):
    """Raised for configuration problems (invalid JSON, failed validation, bad env values)."""

    exit_code = EXIT_GENERIC_FAILURE


class InvalidUsageError(GholaError):
    """Raised for invalid CLI arguments such as a malformed ``--header``."""

    exit_code = EXIT_INVALID_USAGE


class MiddlewareError(GholaError):
    """Raised when something that is not a middleware is registered with ``use()``."""

    exit_code = EXIT_MIDDLEWARE_ERROR


class SecondaryHookFailure(GholaError):
    """A fault raised by an error hook while a call was already failing.

    These are never the primary cause of a failed call.  They are appended
    to :attr:`FetchError.secondary_errors` so the original failure still
    reaches the caller.

    Args:
        error: The exception the error hook raised.
        hook_name: Name of the middleware whose ``on_error`` raised.
    """

    def __init__(self, error: BaseException, hook_name: str) -> None:
        super().__init__(f"Error hook {hook_name} raised {type(error).__name__}: {error}")
        self.error = error
        self.hook_name = hook_name
        self.__cause__ = error


class FetchError(GholaError):
    """Failure record of a single pipeline call.

    Args:
        message: Human-readable description of the failure.
        status: ``0`` for network failures, ``408`` for timeouts, or the
            HTTP status code returned by the server.
        response: Envelope carrying the decoded error body, if any.
        request: The request that failed.  Filled in by the pipeline when
            omitted.
    """

    exit_code = EXIT_HTTP_ERROR

    def __init__(
        self,
        message: str,
        status: int,
        response: Optional[ResponseEnvelope[Any]] = None,
        request: Optional[PendingRequest] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.response = response
        self.request = request
        self.secondary_errors: list[SecondaryHookFailure] = []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status}, message={self.message!r})"


class HttpFailure(FetchError):
    """The transport completed but the server answered with a status >= 400."""

    def __init__(
        self,
        message: str,
        status: int,
        response: Optional[ResponseEnvelope[Any]] = None,
        request: Optional[PendingRequest] = None,
    ) -> None:
        super().__init__(message, status, response, request)
        if status in (401, 403):
            self.exit_code = EXIT_AUTH_FAILURE
        elif status == 404:
            self.exit_code = EXIT_NOT_FOUND
        elif status >= 500:
            self.exit_code = EXIT_SERVER_ERROR


class TimeoutFailure(FetchError):
    """The call was cancelled because its configured timeout elapsed (status 408)."""

    exit_code = EXIT_CONNECTION_ERROR


class TransportFailure(FetchError):
    """The transport never completed: network failure or external cancellation (status 0)."""

    exit_code = EXIT_CONNECTION_ERROR

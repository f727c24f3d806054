"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific failure category and is referenced by the
corresponding :class:`~gholafetch.exceptions.GholaError` subclass.  The
``gholafetch`` CLI exits with these codes so that shell wrappers can tell a
rejected credential from a timeout without parsing stderr.

Example::

    $ gholafetch request GET /users/123
    $ echo $?
    4   # EXIT_NOT_FOUND -- the API answered 404
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""The remote API rejected the credentials (HTTP 401 / 403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused, cancellation)."""

EXIT_HTTP_ERROR = 8
"""The remote API returned any other HTTP 4xx status."""

EXIT_MIDDLEWARE_ERROR = 10
"""A middleware was registered incorrectly."""

"""The ``gholafetch request`` command -- run one call from the shell.

Builds a :class:`~gholafetch.client.FetchClient` from the effective
configuration (see :func:`~gholafetch.config.load_config`), applies the
command-line overrides, and prints the decoded body to stdout with the
status line on stderr.  Failures print an error and exit with the
failure's ``exit_code``.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import typer

from gholafetch.client import FetchClient
from gholafetch.config import load_config
from gholafetch.diagnostics import OutputSink
from gholafetch.exceptions import FetchError, GholaError, InvalidUsageError
from gholafetch.models import HttpMethod, ResponseEnvelope
from gholafetch.output import get_output
from gholafetch.transport import Transport


def _make_transport() -> Optional[Transport]:
    """Transport for CLI calls.  ``None`` lets the client create its default."""
    return None


def _parse_headers(values: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for raw in values:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise InvalidUsageError(f"Invalid header {raw!r}, expected 'Name: value'")
        headers[name.strip()] = value.strip()
    return headers


def _parse_params(values: list[str]) -> dict[str, str]:
    params: dict[str, str] = {}
    for raw in values:
        key, sep, value = raw.partition("=")
        if not sep or not key:
            raise InvalidUsageError(f"Invalid parameter {raw!r}, expected 'key=value'")
        params[key] = value
    return params


def _parse_body(body: Optional[str]) -> Any:
    """Parse *body* as JSON if possible, returning the raw string on failure."""
    if body is None:
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        return body


def _parse_method(method: str) -> HttpMethod:
    try:
        return HttpMethod(method.upper())
    except ValueError:
        allowed = ", ".join(m.value for m in HttpMethod)
        raise InvalidUsageError(f"Unsupported method {method!r}, expected one of {allowed}") from None


def request_command(
    method: str = typer.Argument(help="HTTP method: GET, POST, PUT, PATCH or DELETE."),
    endpoint: str = typer.Argument(help="Path appended to the base URL, e.g. '/users/123'."),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", "-b", help="Override the configured base URL."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Request header 'Name: value' (repeatable)."
    ),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-P", help="Query parameter 'key=value' (repeatable)."
    ),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="Request body; JSON when it parses, text otherwise."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", min=0, help="Timeout in seconds."
    ),
) -> None:
    """Send a request and print the decoded response body.

    Example::

        gholafetch request GET /users/123 --base-url https://api.example.com
        gholafetch request POST /users -d '{"name": "Ada"}' --json
    """
    output = get_output()
    try:
        http_method = _parse_method(method)
        headers = _parse_headers(header or [])
        params = _parse_params(param or [])
        body = _parse_body(data)

        config = load_config()
        if base_url:
            config = config.model_copy(update={"base_url": base_url})
        output.debug(f"{http_method.value} {config.base_url}{endpoint}")

        envelope = asyncio.run(
            _send(
                FetchClient.from_config(config, transport=_make_transport(), sink=OutputSink(output)),
                endpoint,
                method=http_method,
                headers=headers,
                params=params,
                body=body,
                timeout=timeout,
            )
        )
    except FetchError as exc:
        output.error(str(exc))
        if exc.status >= 400 and exc.response is not None and exc.response.data is not None:
            output.format_response(exc.response.data)
        raise typer.Exit(code=exc.exit_code) from None
    except GholaError as exc:
        output.error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    output.info(f"{envelope.status} {envelope.status_text}".rstrip())
    if envelope.data is not None:
        output.format_response(
            envelope.data, envelope.headers.get("content-type", "application/json")
        )


async def _send(client: FetchClient, endpoint: str, **options: Any) -> ResponseEnvelope[Any]:
    async with client:
        return await client.request(endpoint, **options)

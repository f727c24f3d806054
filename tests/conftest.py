"""Shared test fixtures for gholafetch.

Provides fakes for the transport, the clock and the diagnostic sink,
isolation of configuration directories and environment variables, and
automatic reset of the process-wide output manager and default client.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

import httpx
import pytest

from gholafetch.cancellation import CancellationHandle
from gholafetch.default import reset_client
from gholafetch.models import HttpMethod
from gholafetch.output import reset_output
from gholafetch.transport import HttpxTransport, TransportResponse


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_globals_between_tests() -> None:
    """Reset the global OutputManager and default client after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    """
    yield
    reset_output()
    reset_client()


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class RecordingSink:
    """Diagnostic sink that keeps every message, grouped by level."""

    def __init__(self) -> None:
        self.messages: dict[str, list[str]] = {
            "debug": [],
            "info": [],
            "warning": [],
            "error": [],
        }

    def debug(self, message: str) -> None:
        self.messages["debug"].append(message)

    def info(self, message: str) -> None:
        self.messages["info"].append(message)

    def warning(self, message: str) -> None:
        self.messages["warning"].append(message)

    def error(self, message: str) -> None:
        self.messages["error"].append(message)

    @property
    def warnings(self) -> list[str]:
        return self.messages["warning"]

    @property
    def errors(self) -> list[str]:
        return self.messages["error"]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingTransport:
    """Transport returning queued responses and recording every call.

    ``delay`` makes each call sleep first, which lets tests exercise
    timeouts and cancellation.  ``aborted`` counts calls whose sleep was
    interrupted by task cancellation.
    """

    def __init__(
        self,
        responses: Optional[list[Any]] = None,
        delay: float = 0.0,
    ) -> None:
        self.responses = list(responses or [])
        self.delay = delay
        self.calls: list[dict[str, Any]] = []
        self.aborted = 0

    async def invoke(
        self,
        method: HttpMethod,
        url: str,
        headers: Mapping[str, str],
        body: Any,
        handle: CancellationHandle,
    ) -> TransportResponse:
        self.calls.append({"method": method, "url": url, "headers": dict(headers), "body": body})
        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.aborted += 1
                raise
        if not self.responses:
            return json_response({})
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, BaseException):
            raise item
        return item


def json_response(
    data: Any,
    status: int = 200,
    status_text: str = "OK",
    headers: Optional[dict[str, str]] = None,
) -> TransportResponse:
    """Build a JSON :class:`TransportResponse`."""
    all_headers = {"content-type": "application/json"}
    all_headers.update(headers or {})
    return TransportResponse(
        status=status,
        status_text=status_text,
        headers=httpx.Headers(all_headers),
        content=json.dumps(data).encode("utf-8"),
    )


def mock_transport(handler: Callable[[httpx.Request], Any]) -> HttpxTransport:
    """An :class:`HttpxTransport` whose client is backed by ``httpx.MockTransport``."""
    return HttpxTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_CACHE_HOME to subdirectories of tmp_path
    so that tests never touch real user config, and clears all
    GHOLAFETCH_* environment variables.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("gholafetch.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    for var in [
        "GHOLAFETCH_CONFIG",
        "GHOLAFETCH_BASE_URL",
        "GHOLAFETCH_TIMEOUT",
        "GHOLAFETCH_CACHE",
    ]:
        monkeypatch.delenv(var, raising=False)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()

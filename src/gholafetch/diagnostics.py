"""Pluggable diagnostic sinks.

The pipeline never prints.  It reports decode fallbacks, unexpected content
types, failures, and swallowed hook faults to a :class:`DiagnosticSink`
injected at construction.  :class:`LoggingSink` (the default) forwards to
the standard :mod:`logging` tree under the ``gholafetch`` logger;
:class:`OutputSink` forwards to the CLI's
:class:`~gholafetch.output.OutputManager`.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable

from gholafetch.output import OutputManager, get_output


@runtime_checkable
class DiagnosticSink(Protocol):
    """Informational / warning / error channel used by the pipeline."""

    def debug(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingSink:
    """Sink that writes to a :class:`logging.Logger`."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger("gholafetch")

    def debug(self, message: str) -> None:
        self._logger.debug(message)

    def info(self, message: str) -> None:
        self._logger.info(message)

    def warning(self, message: str) -> None:
        self._logger.warning(message)

    def error(self, message: str) -> None:
        self._logger.error(message)


class OutputSink:
    """Sink that writes to an :class:`OutputManager` (the global one by default).

    The manager is looked up on every message so that a CLI which installs
    its own manager after the client was built still receives diagnostics.
    """

    def __init__(self, output: Optional[OutputManager] = None) -> None:
        self._output = output

    @property
    def output(self) -> OutputManager:
        return self._output or get_output()

    def debug(self, message: str) -> None:
        self.output.debug(message)

    def info(self, message: str) -> None:
        self.output.info(message)

    def warning(self, message: str) -> None:
        self.output.warning(message)

    def error(self, message: str) -> None:
        self.output.error(message)

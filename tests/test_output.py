"""Tests for CLI output formatting and the diagnostic sinks.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline, quiet and verbose modes
- Rendering of decoded bodies, including binary summaries
- LoggingSink and OutputSink routing
- Global instance management
"""

from __future__ import annotations

import json
import logging

import pytest

from gholafetch.body import Blob, FormData
from gholafetch.diagnostics import DiagnosticSink, LoggingSink, OutputSink
from gholafetch.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("gholafetch.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("gholafetch.output._is_tty", lambda: True)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        assert OutputManager(format=OutputFormat.AUTO, no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, non_tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_info_goes_to_stderr(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).info("200 OK")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "200 OK" in captured.err

    def test_quiet_suppresses_info_not_errors(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.warning("careful")
        mgr.error("broken")
        captured = capfd.readouterr()
        assert "hidden" not in captured.err
        assert "Warning: careful" in captured.err
        assert "Error: broken" in captured.err

    def test_debug_only_when_verbose(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).debug("quiet debug")
        OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True).debug("loud debug")
        captured = capfd.readouterr()
        assert "quiet debug" not in captured.err
        assert "[debug] loud debug" in captured.err


# ------------------------------------------------------------------ #
# Response rendering
# ------------------------------------------------------------------ #


class TestFormatResponse:
    def test_json_dict(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response({"id": 123})
        assert json.loads(capfd.readouterr().out) == {"id": 123}

    def test_plain_dict_is_tab_separated(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_response({"id": 1, "name": "Ada"})
        assert capfd.readouterr().out == "id\t1\nname\tAda\n"

    def test_plain_list_of_dicts(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_response([{"a": 1, "b": 2}])
        assert capfd.readouterr().out == "1\t2\n"

    def test_blob_is_summarised(self, capfd, non_tty):
        blob = Blob(b"\x89PNG\r\n", "image/png")
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_response(blob)
        assert capfd.readouterr().out == "<image/png, 6 bytes>\n"

    def test_raw_bytes_are_summarised(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_response(b"\x00\x01")
        assert capfd.readouterr().out == "<2 bytes>\n"

    def test_form_data_in_json(self, capfd, non_tty):
        form = FormData([("title", "report"), ("file", Blob(b"abc", "text/csv"))])
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response(form)
        assert json.loads(capfd.readouterr().out) == {"title": "report", "file": "<text/csv, 3 bytes>"}

    def test_json_mode_reparses_json_text(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).format_response('{"a":1}')
        assert json.loads(capfd.readouterr().out) == {"a": 1}


# ------------------------------------------------------------------ #
# Diagnostic sinks
# ------------------------------------------------------------------ #


class TestSinks:
    def test_logging_sink_uses_package_logger(self, caplog):
        sink = LoggingSink()
        with caplog.at_level(logging.DEBUG, logger="gholafetch"):
            sink.debug("cache hit")
            sink.warning("Unsupported content type: x/y")
        assert [(r.name, r.levelno, r.getMessage()) for r in caplog.records] == [
            ("gholafetch", logging.DEBUG, "cache hit"),
            ("gholafetch", logging.WARNING, "Unsupported content type: x/y"),
        ]

    def test_output_sink_follows_global_manager(self, capfd, non_tty):
        sink = OutputSink()
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True))
        sink.warning("No Content-Type header in response")
        assert "Warning: No Content-Type header in response" in capfd.readouterr().err

    def test_sinks_satisfy_protocol(self):
        assert isinstance(LoggingSink(), DiagnosticSink)
        assert isinstance(OutputSink(), DiagnosticSink)


class TestGlobalInstance:
    def test_get_output_is_lazy_singleton(self):
        reset_output()
        assert get_output() is get_output()

    def test_set_and_reset(self):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr
        reset_output()
        assert get_output() is not mgr

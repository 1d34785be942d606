"""Unit tests for sync_engine.logging_config."""

from __future__ import annotations

import io
import json
import logging
import sys

import pytest

from sync_engine.config import load_settings
from sync_engine.logging_config import JSONFormatter, configure_logging
from sync_engine.telemetry import profiling


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    profiling.set_profiling_enabled(True)


def _record(msg: str, *args: object, **kwargs: object) -> logging.LogRecord:
    return logging.LogRecord("sync_engine.test", logging.WARNING, __file__, 1, msg, args, None, **kwargs)


class TestJSONFormatter:
    def test_basic_fields(self):
        payload = json.loads(JSONFormatter().format(_record("Skipped %s", "fk1")))
        assert payload["level"] == "WARNING"
        assert payload["logger"] == "sync_engine.test"
        assert payload["message"] == "Skipped fk1"
        assert payload["timestamp"].endswith("+00:00")
        assert "exc_info" not in payload

    def test_context(self):
        record = _record("hi")
        record.context = {"table": "users"}
        payload = json.loads(JSONFormatter().format(record))
        assert payload["context"] == {"table": "users"}

    def test_exception(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = logging.LogRecord(
                "sync_engine.test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )
        payload = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad" in payload["exc_info"]

    def test_single_line(self):
        assert "\n" not in JSONFormatter().format(_record("line one\nline two"))


class TestConfigureLogging:
    def test_text_output(self):
        stream = io.StringIO()
        configure_logging(load_settings(log_level="warning"), stream)
        logging.getLogger("sync_engine.demo").warning("careful")
        logging.getLogger("sync_engine.demo").info("hidden")
        output = stream.getvalue()
        assert "WARNING sync_engine.demo: careful" in output
        assert "hidden" not in output

    def test_json_output(self):
        stream = io.StringIO()
        configure_logging(load_settings(structured_logging=True, log_level="WARNING"), stream)
        logging.getLogger("sync_engine.demo").warning("careful")
        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert lines[-1]["message"] == "careful"

    def test_debug_overrides_level(self):
        configure_logging(load_settings(debug=True, log_level="ERROR"), io.StringIO())
        assert logging.getLogger().level == logging.DEBUG

    def test_replaces_existing_handlers(self):
        handler = configure_logging(load_settings(), io.StringIO())
        assert logging.getLogger().handlers == [handler]

    def test_profiling_switch(self):
        configure_logging(load_settings(profiling_enabled=False), io.StringIO())
        assert profiling._enabled is False

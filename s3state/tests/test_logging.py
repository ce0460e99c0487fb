"""
Unit Tests: Structured Logging
"""

import io
import json
import logging
import sys

import pytest

from s3state.observability.logging import (
    JsonFormatter,
    LogLevel,
    current_log_context,
    log_context,
    setup_logging,
)


def make_record(msg: str = "hello %s", args=("world",), **extra) -> logging.LogRecord:
    record = logging.LogRecord("s3state.test", logging.WARNING, __file__, 1, msg, args, None)
    record.__dict__.update(extra)
    return record


class TestLogLevel:
    def test_parse_is_case_insensitive(self):
        assert LogLevel.parse("debug") == LogLevel.DEBUG
        assert LogLevel.parse("Warning") == LogLevel.WARNING

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="verbose"):
            LogLevel.parse("verbose")


class TestLogContext:
    def test_nested_context(self):
        with log_context(bucket="bot-state"):
            with log_context(operation="write"):
                assert current_log_context() == {"bucket": "bot-state", "operation": "write"}
            assert current_log_context() == {"bucket": "bot-state"}
        assert current_log_context() == {}


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_basic_fields(self):
        data = json.loads(JsonFormatter().format(make_record()))
        assert data["message"] == "hello world"
        assert data["level"] == "WARNING"
        assert data["logger"] == "s3state.test"
        assert "@timestamp" in data

    def test_context_and_extras(self):
        with log_context(bucket="bot-state", operation="read"):
            data = json.loads(JsonFormatter().format(make_record(key="user/42")))
        assert data["bucket"] == "bot-state"
        assert data["operation"] == "read"
        assert data["key"] == "user/42"

    def test_exception_included(self):
        try:
            raise RuntimeError("kaput")
        except RuntimeError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: kaput" in data["exception"]


class TestSetupLogging:
    def test_json_output(self, root_logger):
        stream = io.StringIO()
        setup_logging(LogLevel.INFO, json_output=True, stream=stream)

        logging.getLogger("s3state.test").info("stored %d bytes", 12)
        logging.getLogger("s3state.test").debug("hidden")

        lines = stream.getvalue().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["message"] == "stored 12 bytes"

    def test_plain_output(self, root_logger):
        stream = io.StringIO()
        setup_logging(LogLevel.WARNING, json_output=False, stream=stream)

        logging.getLogger("s3state.test").warning("careful")

        assert "| WARNING  | s3state.test | careful" in stream.getvalue()

    def test_quiets_botocore(self, root_logger):
        setup_logging(LogLevel.DEBUG, stream=io.StringIO())
        assert logging.getLogger("botocore").level == logging.WARNING

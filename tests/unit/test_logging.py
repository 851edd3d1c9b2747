"""
Unit tests for structured logging and context injection.
"""

import json
import logging
import sys

from inline_assist.config import Settings
from inline_assist.utils.logging import JSONFormatter, get_logger, setup_logging
from inline_assist.utils.stream_context import _stream_id_var, set_stream_id
from inline_assist.utils.tab_context import _tab_context_var, set_tab_context


def make_record(message: str = "hello", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="inline_assist.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Test the JSON log format."""

    def setup_method(self) -> None:
        """Reset context before each test."""
        _stream_id_var.set(None)
        _tab_context_var.set(None)

    def test_standard_fields(self) -> None:
        """Test the base fields of every line."""
        data = json.loads(JSONFormatter().format(make_record("stream started")))

        assert data["level"] == "INFO"
        assert data["logger"] == "inline_assist.test"
        assert data["message"] == "stream started"
        assert "timestamp" in data
        assert "request_id" not in data
        assert "tab_id" not in data

    def test_extra_fields_are_included(self) -> None:
        """Test structured extras appear as top-level keys."""
        data = json.loads(JSONFormatter().format(make_record(chunk_count=3, mode="context")))

        assert data["chunk_count"] == 3
        assert data["mode"] == "context"

    def test_context_injection(self) -> None:
        """Test the stream id and tab id are injected from context."""
        set_stream_id("stream_abc")
        set_tab_context(12)

        data = json.loads(JSONFormatter().format(make_record()))

        assert data["request_id"] == "stream_abc"
        assert data["tab_id"] == 12

    def test_unserializable_extra(self) -> None:
        """Test values JSON cannot encode are stringified."""
        data = json.loads(JSONFormatter().format(make_record(target=object())))

        assert data["target"].startswith("<object object")

    def test_exception_is_formatted(self) -> None:
        """Test exception tracebacks are included."""
        try:
            raise ValueError("bad line")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad line" in data["exception"]


class TestSetupLogging:
    """Test root logger configuration."""

    def test_json_format(self) -> None:
        """Test JSON format installs the JSON formatter at the configured level."""
        root = logging.getLogger()
        saved = root.handlers[:], root.level
        try:
            setup_logging(Settings(_env_file=None, log_level="DEBUG", log_format="json"))

            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JSONFormatter)
            assert logging.getLogger("httpx").level == logging.DEBUG
        finally:
            root.handlers[:], level = saved
            root.setLevel(level)

    def test_standard_format(self) -> None:
        """Test standard format uses a plain formatter."""
        root = logging.getLogger()
        saved = root.handlers[:], root.level
        try:
            setup_logging(Settings(_env_file=None, log_level="WARNING", log_format="standard"))

            assert root.level == logging.WARNING
            assert not isinstance(root.handlers[0].formatter, JSONFormatter)
            assert logging.getLogger("httpx").level == logging.WARNING
            assert logging.getLogger("httpcore").level == logging.WARNING
        finally:
            root.handlers[:], level = saved
            root.setLevel(level)

    def test_get_logger(self) -> None:
        """Test module loggers are named after the module."""
        assert get_logger("inline_assist.background.relay").name == "inline_assist.background.relay"

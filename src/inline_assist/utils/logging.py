"""
Structured logging configuration for inline-assist.

Provides JSON-formatted logging with stream and tab context injection.
"""

import json
import logging
import sys
from typing import Any

from inline_assist.config import Settings
from inline_assist.utils.stream_context import get_stream_id
from inline_assist.utils.tab_context import get_tab_context

STANDARD_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_QUIET_LIBRARIES = ("httpx", "httpcore")

# Standard LogRecord attributes that are never copied as extra fields
_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
        "getMessage",
    }
)


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """
        Format a log record as JSON with automatic context injection.

        Includes all standard fields plus any extra fields from record.__dict__.

        Auto-injection mechanism:
        - request_id: id of the completion stream being relayed, set by the relay
        - tab_id: id of the sender tab, set by the action dispatcher

        Args:
            record: The log record to format

        Returns:
            JSON-formatted string with all fields serialized
        """
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        request_id = get_stream_id()
        if request_id:
            log_data["request_id"] = request_id

        tab_id = get_tab_context()
        if tab_id is not None:
            log_data["tab_id"] = tab_id

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(settings: Settings) -> None:
    """
    Configure root logging for a browser session.

    Replaces any existing root handlers with a single stdout handler using
    the configured format. The HTTP client libraries log every request at
    INFO, so they are held at WARNING unless DEBUG is requested.

    Args:
        settings: Application settings containing logging configuration
    """
    log_config = settings.get_log_config()
    level = logging.getLevelName(log_config["level"])

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if log_config["format"] == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(STANDARD_FORMAT))
    root.addHandler(handler)

    library_level = logging.DEBUG if level == logging.DEBUG else logging.WARNING
    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)

    root.info(
        "Logging configured",
        extra={
            "log_level": log_config["level"],
            "log_format": log_config["format"],
            "environment": settings.environment,
        },
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)

"""
Utility modules for inline-assist.

This module provides error handling, logging, and context helpers.
"""

from inline_assist.utils.errors import (
    ChannelError,
    ConfigurationError,
    DecodeError,
    ExternalServiceError,
    HttpStatusError,
    InjectionError,
    InlineAssistError,
    ReplyAlreadySentError,
    TransportError,
)
from inline_assist.utils.logging import get_logger, setup_logging

__all__ = [
    # Errors
    "InlineAssistError",
    "ConfigurationError",
    "ChannelError",
    "ReplyAlreadySentError",
    "InjectionError",
    "DecodeError",
    "ExternalServiceError",
    "HttpStatusError",
    "TransportError",
    # Logging
    "get_logger",
    "setup_logging",
]

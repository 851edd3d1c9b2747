"""Pytest configuration and shared fixtures."""

import json
import os
from collections.abc import Callable

import pytest

from inline_assist.config import Settings
from inline_assist.content.dom import Document


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> None:
    """Set up test environment variables."""
    os.environ.setdefault("ENVIRONMENT", "test")
    os.environ.setdefault("LOG_LEVEL", "INFO")
    os.environ.setdefault("LOG_FORMAT", "standard")


@pytest.fixture
def settings() -> Settings:
    """Settings with test defaults, independent of any .env file."""
    return Settings(_env_file=None, environment="test", log_format="standard")


@pytest.fixture
def page() -> Document:
    """An empty page document."""
    return Document(title="Test Page", url="https://example.com/articles/1")


def sse_event(text: str | None) -> str:
    """One OpenAI-style stream event line carrying ``text`` as delta content."""
    delta = {} if text is None else {"content": text}
    chunk = {
        "id": "chatcmpl-test",
        "object": "chat.completion.chunk",
        "model": "test-model",
        "choices": [{"index": 0, "delta": delta, "finish_reason": None}],
    }
    return f"data: {json.dumps(chunk)}\n"


@pytest.fixture
def sse_body() -> Callable[..., str]:
    """Build a full stream body from delta texts, terminated unless told otherwise."""

    def build(*texts: str, done: bool = True) -> str:
        body = "".join(sse_event(text) + "\n" for text in texts)
        if done:
            body += "data: [DONE]\n\n"
        return body

    return build

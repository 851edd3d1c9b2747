"""
Browser session wiring for inline-assist.

Builds the background context (runtime, scripting host, relay, dispatcher)
around one shared HTTP client and opens content scripts for pages.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from pydantic import ValidationError

from inline_assist.background.dispatcher import ActionDispatcher
from inline_assist.background.relay import CompletionRelay
from inline_assist.background.scripting import ScriptingHost
from inline_assist.channel.runtime import ExtensionRuntime
from inline_assist.config import Settings
from inline_assist.content.dom import Document
from inline_assist.content.script import ContentScript
from inline_assist.utils.errors import ChannelError, ConfigurationError
from inline_assist.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


class BrowserSession:
    """
    One browsing session: a background context plus its open tabs.

    Args:
        settings: Loaded application settings
        client: HTTP client used for every endpoint call
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient) -> None:
        self.settings = settings
        self.client = client
        self.runtime = ExtensionRuntime()
        self.scripting = ScriptingHost()
        self.relay = CompletionRelay(client, self.runtime)
        self.dispatcher = ActionDispatcher(
            client,
            self.scripting,
            self.relay,
            page_content_max_length=settings.page_content_max_length,
        )
        self.runtime.on_message(self.dispatcher.handle)
        self._tabs: dict[int, ContentScript] = {}
        self._next_tab_id = 1

    @property
    def tabs(self) -> dict[int, ContentScript]:
        return dict(self._tabs)

    def open_tab(self, document: Document, tab_id: int | None = None) -> ContentScript:
        """
        Load a page into a new tab and attach its content script.

        Args:
            document: Top frame document of the page
            tab_id: Explicit tab id; the next free id when omitted

        Returns:
            The connected content script

        Raises:
            ChannelError: If the tab id is already in use
        """
        if tab_id is None:
            tab_id = self._next_tab_id
        if tab_id in self._tabs:
            raise ChannelError(f"Tab {tab_id} is already open")
        self._next_tab_id = max(self._next_tab_id, tab_id + 1)

        self.scripting.register_frame(tab_id, document)
        script = ContentScript(self.runtime, document, tab_id)
        script.connect()
        self._tabs[tab_id] = script
        logger.info("Tab opened", extra={"target_tab": tab_id, "url": document.url})
        return script

    async def close_tab(self, tab_id: int) -> None:
        script = self._tabs.pop(tab_id, None)
        if script is None:
            return
        await script.disconnect()
        self.scripting.unregister_tab(tab_id)
        logger.info("Tab closed", extra={"target_tab": tab_id})

    async def wait_idle(self) -> None:
        """Wait until every in-flight request finished and every tab drained."""
        await self.runtime.wait_idle()

    async def close(self) -> None:
        await self.runtime.close()
        for tab_id in list(self._tabs):
            self.scripting.unregister_tab(tab_id)
        self._tabs.clear()


def build_timeout(settings: Settings) -> httpx.Timeout:
    """HTTP timeout from settings; no read limit unless one is configured."""
    return httpx.Timeout(settings.http_timeout, connect=settings.http_connect_timeout)


@asynccontextmanager
async def create_session(
    settings: Settings | None = None, client: httpx.AsyncClient | None = None
) -> AsyncIterator[BrowserSession]:
    """
    Manage a browser session's lifecycle.

    Args:
        settings: Application settings; loaded from the environment when omitted
        client: HTTP client to use; one is created (and closed) when omitted

    Yields:
        The running BrowserSession

    Raises:
        ConfigurationError: If settings are loaded from an invalid environment
    """
    if settings is None:
        try:
            settings = Settings()
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid settings: {exc.error_count()} error(s)") from exc
    setup_logging(settings)

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=build_timeout(settings))

    session = BrowserSession(settings, client)
    logger.info(
        "Browser session starting",
        extra={
            "environment": settings.environment,
            "default_base_url": settings.normalized_base_url,
        },
    )
    try:
        yield session
    finally:
        await session.close()
        if owns_client:
            await client.aclose()
        logger.info("Browser session closed")

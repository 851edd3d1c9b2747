"""
Content script: the per-page half of the extension.

A ContentScript owns the page's overlay state and delivery router, receives
relayed stream messages from its tab port, and sends requests to the
background on behalf of the page UI.
"""

from typing import Any

from inline_assist.channel.runtime import ExtensionRuntime, Message, Sender
from inline_assist.content.dom import Document
from inline_assist.content.overlay import OverlayState
from inline_assist.content.router import DeliveryRouter
from inline_assist.utils.logging import get_logger
from inline_assist.utils.tab_context import set_tab_context

logger = get_logger(__name__)


class ContentScript:
    """
    Content context for one page.

    Args:
        runtime: Message runtime shared with the background
        document: The page's top frame document
        tab_id: Tab the page lives in
    """

    def __init__(self, runtime: ExtensionRuntime, document: Document, tab_id: int) -> None:
        self.document = document
        self.tab_id = tab_id
        self.overlay = OverlayState(document)
        self.router = DeliveryRouter(document, self.overlay)
        self._runtime = runtime
        self._sender = Sender(tab_id=tab_id, frame_id=document.frame_id, url=document.url)
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        """Start receiving relayed messages for this tab."""
        self._runtime.connect_tab(self.tab_id, self.on_message)
        self._connected = True
        logger.debug("Content script connected", extra={"url": self.document.url})

    async def disconnect(self) -> None:
        if self._connected:
            await self._runtime.disconnect_tab(self.tab_id)
            self._connected = False

    def on_message(self, message: Message) -> None:
        set_tab_context(self.tab_id)
        self.router.handle(message)

    async def send_message(self, message: dict[str, Any]) -> Message:
        """Send a request to the background and return its reply."""
        return await self._runtime.send_message(self._sender, message)

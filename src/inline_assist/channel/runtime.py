"""
In-process message runtime between the background and content contexts.

The two sides never share objects: every message is cloned through JSON on
the way across, the same way a browser's structured clone cuts references.

Two directions exist:

* content -> background: ``send_message`` runs the background listener as a
  task and waits for its single reply.
* background -> content: ``send_to_tab`` queues the message for the tab. One
  consumer task per tab delivers queued messages strictly in send order, so a
  stream's chunks are always processed before its completion message.
"""

import asyncio
import inspect
import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from inline_assist.utils.errors import ChannelError, ReplyAlreadySentError
from inline_assist.utils.logging import get_logger

logger = get_logger(__name__)

Message = dict[str, Any]


@dataclass(frozen=True)
class Sender:
    """Origin of a message sent by a content context."""

    tab_id: int
    frame_id: int = 0
    url: str | None = None


class ReplyHandle:
    """
    Single-shot reply capability for one inbound message.

    The first ``send`` completes the caller's pending request; any later call
    raises ReplyAlreadySentError instead of being silently ignored.
    """

    def __init__(self, action: str | None = None) -> None:
        self.action = action
        self._future: asyncio.Future[Message] = asyncio.get_running_loop().create_future()

    @property
    def replied(self) -> bool:
        return self._future.done()

    def send(self, response: Message) -> None:
        if self._future.done():
            raise ReplyAlreadySentError(self.action)
        self._future.set_result(_clone(response))

    def fail(self, exc: BaseException) -> None:
        """Propagate a listener crash to the waiting caller."""
        if self._future.done():
            raise ReplyAlreadySentError(self.action)
        self._future.set_exception(exc)

    async def wait(self) -> Message:
        return await self._future


BackgroundListener = Callable[[Message, Sender, ReplyHandle], Awaitable[None]]
TabListener = Callable[[Message], Awaitable[None] | None]


class TabPort:
    """Ordered delivery queue for one tab's content listener."""

    def __init__(self, tab_id: int, listener: TabListener) -> None:
        self.tab_id = tab_id
        self._listener = listener
        self._queue: asyncio.Queue[Message] = asyncio.Queue()
        self._consumer = asyncio.create_task(self._consume(), name=f"tab-port-{tab_id}")

    def put(self, message: Message) -> None:
        self._queue.put_nowait(message)

    async def join(self) -> None:
        await self._queue.join()

    async def close(self) -> None:
        self._consumer.cancel()
        try:
            await self._consumer
        except asyncio.CancelledError:
            pass

    async def _consume(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                result = self._listener(message)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "Content listener failed",
                    extra={"tab": self.tab_id, "action": message.get("action")},
                )
            finally:
                self._queue.task_done()


class ExtensionRuntime:
    """
    Typed, ordered, asynchronous channel between the two contexts.

    The background registers one listener with ``on_message``; each tab
    registers its content listener with ``connect_tab``.
    """

    def __init__(self) -> None:
        self._background_listener: BackgroundListener | None = None
        self._ports: dict[int, TabPort] = {}
        self._pending: set[asyncio.Task[None]] = set()

    def on_message(self, listener: BackgroundListener) -> None:
        self._background_listener = listener

    async def send_message(self, sender: Sender, message: Message) -> Message:
        """
        Send a request from a content context and wait for the reply.

        Raises:
            ChannelError: If no background listener is registered
        """
        if self._background_listener is None:
            raise ChannelError("No background listener registered")

        reply = ReplyHandle(action=message.get("action"))
        task = asyncio.create_task(
            self._run_listener(self._background_listener, _clone(message), sender, reply)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return await reply.wait()

    async def _run_listener(
        self, listener: BackgroundListener, message: Message, sender: Sender, reply: ReplyHandle
    ) -> None:
        try:
            await listener(message, sender, reply)
        except asyncio.CancelledError:
            if not reply.replied:
                reply.fail(ChannelError("Runtime closed before the request was answered"))
            raise
        except Exception as exc:
            logger.exception(
                "Background listener raised",
                extra={"action": message.get("action"), "tab": sender.tab_id},
            )
            if not reply.replied:
                reply.fail(exc)

    def connect_tab(self, tab_id: int, listener: TabListener) -> TabPort:
        if tab_id in self._ports:
            raise ChannelError(f"Tab {tab_id} already has a content listener")
        port = TabPort(tab_id, listener)
        self._ports[tab_id] = port
        logger.debug("Tab connected", extra={"tab": tab_id})
        return port

    async def disconnect_tab(self, tab_id: int) -> None:
        port = self._ports.pop(tab_id, None)
        if port is not None:
            await port.close()
            logger.debug("Tab disconnected", extra={"tab": tab_id})

    async def send_to_tab(self, tab_id: int, message: Message) -> None:
        """
        Queue a message for a tab's content listener.

        Raises:
            ChannelError: If the tab has no connected listener
        """
        port = self._ports.get(tab_id)
        if port is None:
            raise ChannelError(f"Could not establish connection to tab {tab_id}: receiving end does not exist")
        port.put(_clone(message))

    async def drain(self, tab_id: int | None = None) -> None:
        """Wait until queued messages (for one tab or all tabs) were processed."""
        ports = [self._ports[tab_id]] if tab_id is not None else list(self._ports.values())
        for port in ports:
            await port.join()

    async def wait_idle(self) -> None:
        """Wait for in-flight background listener tasks, then drain every tab."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        await self.drain()

    async def close(self) -> None:
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        for tab_id in list(self._ports):
            await self.disconnect_tab(tab_id)


def _clone(message: Message) -> Message:
    return json.loads(json.dumps(message))

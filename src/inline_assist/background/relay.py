"""
Completion relay: streams one chat completion and forwards its text to a tab.

The relay owns the HTTP request for the whole stream. Every decoded fragment
becomes a ``streamChunk``/``contextStreamChunk`` message for the target tab;
the end of the stream becomes exactly one ``*StreamComplete`` message. The
original caller learns the outcome through its reply handle:

    {"success": true}                          stream finished
    {"success": false, "error": "Request failed: 401"}   non-2xx status
    {"success": false, "error": "<transport error>"}     connection broke

A failed stream sends no completion message; the UI side is expected to
time out on its own.
"""

import time
import uuid

import httpx

from inline_assist.background.decoder import StreamEnd, TextDelta, WireDecoder
from inline_assist.channel.runtime import ExtensionRuntime, ReplyHandle
from inline_assist.models.internal import CompletionRequest, StreamState
from inline_assist.models.messages import (
    ActionResult,
    StreamChunkMessage,
    StreamCompleteMessage,
    to_wire,
)
from inline_assist.utils.errors import ChannelError, HttpStatusError, TransportError
from inline_assist.utils.logging import get_logger
from inline_assist.utils.stream_context import set_stream_id

logger = get_logger(__name__)


def new_stream_id() -> str:
    return f"stream_{uuid.uuid4().hex[:16]}"


class CompletionRelay:
    """
    Drives streamed completion requests on behalf of content contexts.

    Args:
        client: Shared async HTTP client; the relay never closes it
        runtime: Message runtime used to reach the target tab
    """

    def __init__(self, client: httpx.AsyncClient, runtime: ExtensionRuntime) -> None:
        self._client = client
        self._runtime = runtime

    async def start(self, request: CompletionRequest, target_id: int, reply: ReplyHandle) -> None:
        """
        Run one stream to its end and answer the caller exactly once.

        Args:
            request: Immutable completion request
            target_id: Tab receiving the chunk and completion messages
            reply: Caller's reply handle, resolved when the stream ends
        """
        state = StreamState(stream_id=new_stream_id())
        set_stream_id(state.stream_id)
        start_time = time.time()

        logger.info(
            "Completion stream starting",
            extra={
                "endpoint_kind": request.endpoint_kind.value,
                "mode": request.mode.value,
                "target_tab": target_id,
            },
        )

        try:
            await self._stream(request, target_id, state)
        except HttpStatusError as exc:
            logger.warning(
                f"Completion endpoint rejected request: {exc.message}",
                extra={"status_code": exc.status_code, "endpoint": request.endpoint_url},
            )
            reply.send(ActionResult.failure(exc.message).to_wire())
            return
        except (TransportError, ChannelError) as exc:
            logger.error(
                f"Completion stream aborted: {exc.message}",
                extra={
                    "error_code": exc.error_code,
                    "chunk_count": state.chunk_count,
                    "elapsed_seconds": time.time() - start_time,
                },
            )
            reply.send(ActionResult.failure(exc.message).to_wire())
            return

        logger.info(
            "Completion stream finished",
            extra={
                "chunk_count": state.chunk_count,
                "total_chars": len(state.accumulated_text),
                "elapsed_seconds": time.time() - start_time,
            },
        )
        reply.send(ActionResult.ok().to_wire())

    async def _stream(self, request: CompletionRequest, target_id: int, state: StreamState) -> None:
        decoder = WireDecoder(state)
        try:
            async with self._client.stream(
                "POST",
                request.endpoint_url,
                json=request.payload,
                headers=request.headers,
            ) as response:
                if not response.is_success:
                    raise HttpStatusError(response.status_code)

                async for fragment in response.aiter_text():
                    for event in decoder.feed(fragment):
                        if isinstance(event, TextDelta):
                            state.append(event.text)
                            await self._send_chunk(request, target_id, state, event.text)
                        elif isinstance(event, StreamEnd):
                            break
                    if decoder.terminated:
                        break
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or type(exc).__name__) from exc

        if not decoder.terminated:
            decoder.flush()
            logger.warning(
                "Stream body ended without a terminator line",
                extra={"chunk_count": state.chunk_count},
            )
        await self._send_complete(request, target_id, state)

    async def _send_chunk(
        self, request: CompletionRequest, target_id: int, state: StreamState, text: str
    ) -> None:
        message = StreamChunkMessage(
            action=request.mode.chunk_action, text=text, stream_id=state.stream_id
        )
        await self._runtime.send_to_tab(target_id, to_wire(message))

    async def _send_complete(
        self, request: CompletionRequest, target_id: int, state: StreamState
    ) -> None:
        message = StreamCompleteMessage(
            action=request.mode.complete_action, stream_id=state.stream_id
        )
        await self._runtime.send_to_tab(target_id, to_wire(message))
        state.terminated = True

"""
Action dispatcher: the background's single entry point for content requests.

Every inbound message is routed by its ``action`` tag to exactly one handler,
and every message gets exactly one reply, whatever happens:

    getSelection      -> {"data": <top frame selection>}
    writeText         -> {}
    fetchModels       -> {"success": ..., "data"|"error": ...}
    fetchCompletion   -> {"success": ..., "error"?: ...}   (after the stream ends)
    getPageContent    -> {"success": ..., "data"|"error": ...}
    anything else     -> {}
"""

from collections.abc import Awaitable, Callable

import httpx
from pydantic import ValidationError

from inline_assist.background.page_scripts import (
    MAX_CONTENT_LENGTH,
    extract_page_content,
    read_selection,
    write_text_to_input,
)
from inline_assist.background.relay import CompletionRelay
from inline_assist.background.scripting import ScriptingHost
from inline_assist.channel.runtime import Message, ReplyHandle, Sender
from inline_assist.models.internal import CompletionRequest, DeliveryMode, EndpointKind
from inline_assist.models.messages import (
    Action,
    ActionResult,
    FetchCompletionRequest,
    FetchModelsRequest,
    WriteTextRequest,
)
from inline_assist.utils.errors import InjectionError
from inline_assist.utils.logging import get_logger
from inline_assist.utils.tab_context import set_tab_context

logger = get_logger(__name__)

MODELS_PATH = "/api/models"

Handler = Callable[[Message, Sender, ReplyHandle], Awaitable[None]]


class ActionDispatcher:
    """
    Routes content requests to handlers.

    Args:
        client: Shared async HTTP client for endpoint calls
        scripting: Host used to run functions in page context
        relay: Completion relay for streamed requests
        page_content_max_length: Character limit for extracted page content
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        scripting: ScriptingHost,
        relay: CompletionRelay,
        page_content_max_length: int = MAX_CONTENT_LENGTH,
    ) -> None:
        self._client = client
        self._scripting = scripting
        self._relay = relay
        self._page_content_max_length = page_content_max_length
        self._handlers: dict[str, Handler] = {
            Action.GET_SELECTION.value: self._get_selection,
            Action.WRITE_TEXT.value: self._write_text,
            Action.FETCH_MODELS.value: self._fetch_models,
            Action.FETCH_COMPLETION.value: self._fetch_completion,
            Action.GET_PAGE_CONTENT.value: self._get_page_content,
        }

    async def handle(self, message: Message, sender: Sender, reply: ReplyHandle) -> None:
        """
        Dispatch one message and make sure it is answered exactly once.

        Args:
            message: Inbound message with an ``action`` tag
            sender: Tab and frame the message came from
            reply: Single-shot reply handle for the caller
        """
        set_tab_context(sender.tab_id)
        action = message.get("action")
        logger.debug("Message received", extra={"action": action, "frame_id": sender.frame_id})

        handler = self._handlers.get(action) if isinstance(action, str) else None
        if handler is None:
            reply.send({})
            return

        try:
            await handler(message, sender, reply)
        except ValidationError as exc:
            logger.warning(
                "Rejected malformed request",
                extra={"action": action, "errors": exc.error_count()},
            )
            if not reply.replied:
                reply.send(ActionResult.failure(f"Invalid {action} request").to_wire())
        except Exception as exc:
            logger.error(
                f"Handler for {action} failed: {exc}",
                extra={"action": action, "error_type": type(exc).__name__},
                exc_info=True,
            )
            if not reply.replied:
                reply.send(ActionResult.failure(str(exc)).to_wire())

    async def _get_selection(self, message: Message, sender: Sender, reply: ReplyHandle) -> None:
        try:
            results = await self._scripting.execute_script(
                sender.tab_id, read_selection, all_frames=True
            )
        except InjectionError as exc:
            logger.error(f"Selection read failed: {exc.message}")
            reply.send(ActionResult.failure(exc.message).to_wire())
            return
        reply.send({"data": results[0].result})

    async def _write_text(self, message: Message, sender: Sender, reply: ReplyHandle) -> None:
        request = WriteTextRequest.model_validate(message)
        try:
            await self._scripting.execute_script(
                sender.tab_id, write_text_to_input, args=(request.text,), all_frames=True
            )
        except InjectionError as exc:
            logger.warning(f"Text injection failed: {exc.message}")
        reply.send({})

    async def _fetch_models(self, message: Message, sender: Sender, reply: ReplyHandle) -> None:
        request = FetchModelsRequest.model_validate(message)
        url = f"{request.url.rstrip('/')}{MODELS_PATH}"
        try:
            response = await self._client.get(url, headers={"Authorization": f"Bearer {request.key}"})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(f"Model listing failed: {exc}", extra={"url": url})
            reply.send(ActionResult.failure(str(exc)).to_wire())
            return
        reply.send(ActionResult.ok(data).to_wire())

    async def _fetch_completion(self, message: Message, sender: Sender, reply: ReplyHandle) -> None:
        request = to_completion_request(FetchCompletionRequest.model_validate(message))
        await self._relay.start(request, sender.tab_id, reply)

    async def _get_page_content(self, message: Message, sender: Sender, reply: ReplyHandle) -> None:
        try:
            results = await self._scripting.execute_script(
                sender.tab_id,
                extract_page_content,
                args=(self._page_content_max_length,),
            )
        except InjectionError as exc:
            logger.error(f"Content extraction error: {exc.message}")
            reply.send(ActionResult.failure(exc.message).to_wire())
            return
        reply.send(ActionResult.ok(results[0].result).to_wire())


def to_completion_request(request: FetchCompletionRequest) -> CompletionRequest:
    """Translate the wire request into the relay's immutable request."""
    return CompletionRequest(
        endpoint_kind=EndpointKind.OPENAI if request.is_openai else EndpointKind.OLLAMA,
        base_url=request.url,
        api_key=request.key,
        payload=request.payload,
        mode=DeliveryMode.INLINE if request.inline_mode else DeliveryMode.CONTEXT,
    )


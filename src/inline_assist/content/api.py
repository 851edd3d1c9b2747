"""
Content-side helpers for talking to the background.

These are what the page UI calls. Each sends one request through the content
script and turns a failure reply into an ExternalServiceError.
"""

from typing import Any

from pydantic import ValidationError

from inline_assist.content.script import ContentScript
from inline_assist.models.internal import ModelInfo, PageContent
from inline_assist.models.messages import Action
from inline_assist.utils.errors import ExternalServiceError
from inline_assist.utils.logging import get_logger

logger = get_logger(__name__)

SERVICE_NAME = "background"


async def get_models(port: ContentScript, key: str, url: str) -> list[ModelInfo]:
    """
    List the server's models, sorted case-insensitively by name.

    Args:
        port: Content script of the requesting page
        key: Bearer token for the server
        url: Server base URL

    Returns:
        Non-empty model entries; entries with equal names keep server order

    Raises:
        ExternalServiceError: If the background reports a failure
    """
    response = await _request(port, {"action": Action.FETCH_MODELS.value, "key": key, "url": url})

    data = response.get("data") or {}
    entries = data.get("data") if isinstance(data, dict) else None
    try:
        models = [ModelInfo.model_validate(entry) for entry in entries or [] if entry]
    except ValidationError as exc:
        raise ExternalServiceError(
            f"Unexpected model listing: {exc.error_count()} invalid entries",
            service_name=SERVICE_NAME,
        ) from exc

    models.sort(key=lambda model: model.name.lower())
    logger.debug("Models listed", extra={"model_count": len(models)})
    return models


async def get_page_content(port: ContentScript) -> PageContent:
    """
    Extract the current page's content through the background.

    Raises:
        ExternalServiceError: If extraction could not run
    """
    response = await _request(port, {"action": Action.GET_PAGE_CONTENT.value})
    return PageContent.model_validate(response.get("data") or {})


async def request_completion(
    port: ContentScript,
    key: str,
    url: str,
    payload: dict[str, Any],
    is_openai: bool = True,
    inline_mode: bool = False,
) -> None:
    """
    Stream a completion to this page and wait for the stream to end.

    The answer itself arrives as relayed chunk messages; this only reports
    whether the stream succeeded.

    Raises:
        ExternalServiceError: If the endpoint or the transport failed
    """
    await _request(
        port,
        {
            "action": Action.FETCH_COMPLETION.value,
            "key": key,
            "url": url,
            "isOpenAI": is_openai,
            "inlineMode": inline_mode,
            "payload": payload,
        },
    )


async def _request(port: ContentScript, message: dict[str, Any]) -> dict[str, Any]:
    response = await port.send_message(message)
    if not response.get("success"):
        error = response.get("error") or "Unknown error"
        logger.error(f"{message['action']} failed: {error}")
        raise ExternalServiceError(str(error), service_name=SERVICE_NAME)
    return response

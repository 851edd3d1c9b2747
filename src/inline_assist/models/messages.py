"""
Cross-context message schema.

Messages travel between the background and content contexts as plain JSON
objects with an ``action`` tag. The models here validate inbound requests and
build outbound stream events; field aliases keep the camelCase wire names.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Action(str, Enum):
    """Action tags understood by the background dispatcher and the content router."""

    GET_SELECTION = "getSelection"
    WRITE_TEXT = "writeText"
    FETCH_MODELS = "fetchModels"
    FETCH_COMPLETION = "fetchCompletion"
    GET_PAGE_CONTENT = "getPageContent"

    STREAM_CHUNK = "streamChunk"
    STREAM_COMPLETE = "streamComplete"
    CONTEXT_STREAM_CHUNK = "contextStreamChunk"
    CONTEXT_STREAM_COMPLETE = "contextStreamComplete"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class WriteTextRequest(_WireModel):
    """Text injection request. The text is passed through unchecked."""

    text: Any = None


class FetchModelsRequest(_WireModel):
    url: str = Field(min_length=1, description="Server base URL")
    key: str = Field(default="", description="Bearer token")


class FetchCompletionRequest(_WireModel):
    """
    Streamed completion request as sent by the page UI.

    ``inlineMode`` defaults to false, i.e. the answer goes to the overlay.
    """

    url: str = Field(min_length=1, description="Server base URL")
    key: str = Field(default="", description="Bearer token")
    is_openai: bool = Field(default=False, alias="isOpenAI")
    inline_mode: bool | None = Field(default=False, alias="inlineMode")
    payload: dict[str, Any] = Field(default_factory=dict)


class StreamChunkMessage(_WireModel):
    action: Action
    text: str
    stream_id: str | None = Field(default=None, alias="streamId")


class StreamCompleteMessage(_WireModel):
    action: Action
    stream_id: str | None = Field(default=None, alias="streamId")


class ActionResult(_WireModel):
    """
    Reply to a dispatched request.

    Serialized without unset fields, so a success with no payload is
    ``{"success": true}``.
    """

    success: bool
    data: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str) -> "ActionResult":
        return cls(success=False, error=error)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


def to_wire(message: BaseModel) -> dict[str, Any]:
    """Dump a message model using wire aliases, dropping unset optionals."""
    return message.model_dump(mode="json", by_alias=True, exclude_none=True)

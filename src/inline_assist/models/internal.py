"""
Internal data models for inline-assist.

These models represent domain concepts shared by the background and content
contexts: the immutable completion request, per-stream decode state, and the
records returned by page-context scripts and the model listing.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from inline_assist.models.messages import Action

OPENAI_COMPLETIONS_PATH = "/openai/chat/completions"
OLLAMA_COMPLETIONS_PATH = "/ollama/v1/chat/completions"


class EndpointKind(str, Enum):
    """Flavour of chat-completion endpoint exposed by the server."""

    OPENAI = "openai"
    OLLAMA = "ollama"

    @property
    def path(self) -> str:
        """Fixed path suffix appended to the base URL."""
        if self is EndpointKind.OPENAI:
            return OPENAI_COMPLETIONS_PATH
        return OLLAMA_COMPLETIONS_PATH


class DeliveryMode(str, Enum):
    """
    Where the streamed answer should end up.

    INLINE types into the page's editable field; CONTEXT renders into the overlay.
    The mode decides which action names the relay uses, so the content side
    can tell the two apart without knowing anything about the request.
    """

    INLINE = "inline"
    CONTEXT = "context"

    @property
    def chunk_action(self) -> Action:
        return Action.STREAM_CHUNK if self is DeliveryMode.INLINE else Action.CONTEXT_STREAM_CHUNK

    @property
    def complete_action(self) -> Action:
        return (
            Action.STREAM_COMPLETE if self is DeliveryMode.INLINE else Action.CONTEXT_STREAM_COMPLETE
        )

    @classmethod
    def from_action(cls, action: str) -> "DeliveryMode | None":
        """Resolve the mode a relayed stream action belongs to."""
        if action in (Action.STREAM_CHUNK, Action.STREAM_COMPLETE):
            return cls.INLINE
        if action in (Action.CONTEXT_STREAM_CHUNK, Action.CONTEXT_STREAM_COMPLETE):
            return cls.CONTEXT
        return None


class CompletionRequest(BaseModel):
    """
    One streamed chat-completion call.

    Immutable once issued; owned by the relay for the lifetime of the stream.
    """

    model_config = ConfigDict(frozen=True)

    endpoint_kind: EndpointKind = Field(description="Which completion path to call")
    base_url: str = Field(min_length=1, description="Server base URL")
    api_key: str = Field(default="", description="Bearer token sent in Authorization")
    payload: dict[str, Any] = Field(default_factory=dict, description="JSON body, passed through")
    mode: DeliveryMode = Field(default=DeliveryMode.CONTEXT, description="Delivery mode")

    @property
    def endpoint_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.endpoint_kind.path}"

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }


@dataclass
class StreamState:
    """
    Mutable state of one in-flight stream.

    decode_buffer holds the partial line carried between network reads.
    accumulated_text only ever grows while the stream is alive.
    """

    stream_id: str
    decode_buffer: str = ""
    accumulated_text: str = ""
    terminated: bool = False
    chunk_count: int = field(default=0)

    def append(self, text: str) -> None:
        self.accumulated_text += text
        self.chunk_count += 1


class PageContent(BaseModel):
    """
    Summary of the current page produced by the page-content extraction script.

    Serialized with the camelCase keys the content side expects.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    url: str = ""
    meta_description: str = Field(default="", alias="metaDescription")
    main_content: str = Field(default="", alias="mainContent")
    selected_text: str = Field(default="", alias="selectedText")
    content_length: int = Field(default=0, ge=0, alias="contentLength")
    timestamp: str = ""
    domain: str = ""
    error: str | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ModelInfo(BaseModel):
    """One entry of the server's model listing; unknown fields are preserved."""

    model_config = ConfigDict(extra="allow")

    name: str = ""
    id: str | None = None

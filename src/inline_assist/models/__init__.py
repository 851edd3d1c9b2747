"""Data models for inline-assist."""

from inline_assist.models.internal import (
    CompletionRequest,
    DeliveryMode,
    EndpointKind,
    ModelInfo,
    PageContent,
    StreamState,
)
from inline_assist.models.messages import (
    Action,
    ActionResult,
    FetchCompletionRequest,
    FetchModelsRequest,
    StreamChunkMessage,
    StreamCompleteMessage,
    WriteTextRequest,
)
from inline_assist.models.openai import ChatCompletionChunk

__all__ = [
    "Action",
    "ActionResult",
    "ChatCompletionChunk",
    "CompletionRequest",
    "DeliveryMode",
    "EndpointKind",
    "FetchCompletionRequest",
    "FetchModelsRequest",
    "ModelInfo",
    "PageContent",
    "StreamChunkMessage",
    "StreamCompleteMessage",
    "StreamState",
    "WriteTextRequest",
]

"""
OpenAI-compatible streaming models for chat completions.

Only the path the relay reads, ``choices[0].delta.content``, is modelled.
Everything else in an event envelope is ignored, whatever its type, so that
servers adding or mistyping side fields never break decoding.
"""

from pydantic import BaseModel, ConfigDict, Field


class ChoiceDelta(BaseModel):
    """
    Delta content in a streaming chunk.

    Contains incremental content updates during streaming responses.
    """

    model_config = ConfigDict(extra="ignore")

    content: str | None = Field(default=None, description="Incremental text content")


class ChatCompletionStreamChoice(BaseModel):
    """A choice in a streaming chat completion chunk."""

    model_config = ConfigDict(extra="ignore")

    delta: ChoiceDelta = Field(default_factory=ChoiceDelta, description="Incremental content delta")


class ChatCompletionChunk(BaseModel):
    """
    Streaming chunk compatible with OpenAI SSE format.

    Received as the JSON body of one ``data:`` event line.
    """

    model_config = ConfigDict(extra="ignore")

    choices: list[ChatCompletionStreamChoice] = Field(
        default_factory=list, description="List of streaming choices"
    )

    @property
    def delta_text(self) -> str | None:
        """Text of the first choice's delta, or None when absent or empty."""
        if not self.choices:
            return None
        return self.choices[0].delta.content or None

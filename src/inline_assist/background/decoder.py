"""
Line-buffering decoder for streamed chat-completion bodies.

Network reads do not line up with event lines: one read can carry half a line,
or several lines and a half. The decoder keeps the unfinished tail between
calls and only interprets complete lines.

Line grammar:
    ""                      ignored
    "data: [DONE]"          end of stream, nothing is decoded afterwards
    "data: {json}"          TextDelta when choices[0].delta.content is non-empty
    anything else           ignored
"""

import json
from dataclasses import dataclass

from pydantic import ValidationError

from inline_assist.models.internal import StreamState
from inline_assist.models.openai import ChatCompletionChunk
from inline_assist.utils.errors import DecodeError
from inline_assist.utils.logging import get_logger

logger = get_logger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "data: [DONE]"


@dataclass(frozen=True)
class TextDelta:
    """One decoded text fragment of the model's answer."""

    text: str


@dataclass(frozen=True)
class StreamEnd:
    """The server sent the terminator line."""


ParsedEvent = TextDelta | StreamEnd


class WireDecoder:
    """
    Stateful parser turning raw text fragments into ParsedEvents.

    The decode buffer and terminated flag live on the StreamState handed in,
    so the relay and the decoder share one record per stream.
    """

    def __init__(self, state: StreamState | None = None) -> None:
        self.state = state or StreamState(stream_id="")

    @property
    def terminated(self) -> bool:
        return self.state.terminated

    def feed(self, fragment: str) -> list[ParsedEvent]:
        """
        Consume one raw fragment and return the events completed by it.

        Args:
            fragment: Text exactly as read from the response body

        Returns:
            Events in wire order; empty once the terminator has been seen
        """
        if self.state.terminated or not fragment:
            return []

        self.state.decode_buffer += fragment
        *lines, self.state.decode_buffer = self.state.decode_buffer.split("\n")

        events: list[ParsedEvent] = []
        for line in lines:
            event = self._process_line(line.removesuffix("\r"))
            if event is None:
                continue
            events.append(event)
            if isinstance(event, StreamEnd):
                self.state.terminated = True
                self.state.decode_buffer = ""
                break
        return events

    def flush(self) -> None:
        """Discard any incomplete trailing line at the end of the body."""
        if self.state.decode_buffer:
            logger.debug(
                "Discarding incomplete trailing stream line",
                extra={"discarded_chars": len(self.state.decode_buffer)},
            )
        self.state.decode_buffer = ""

    def _process_line(self, line: str) -> ParsedEvent | None:
        if not line.strip():
            return None
        if line == DONE_SENTINEL:
            return StreamEnd()
        if not line.startswith(DATA_PREFIX):
            return None

        try:
            chunk = self._parse_data(line)
        except DecodeError as exc:
            logger.warning(
                "Dropping undecodable stream line",
                extra={"reason": exc.reason, "line_preview": exc.line[:120]},
            )
            return None

        text = chunk.delta_text
        if text is None:
            return None
        return TextDelta(text)

    @staticmethod
    def _parse_data(line: str) -> ChatCompletionChunk:
        body = line[len(DATA_PREFIX):]
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise DecodeError(line, f"invalid JSON: {exc.msg}") from exc
        if not isinstance(data, dict):
            raise DecodeError(line, f"expected a JSON object, got {type(data).__name__}")
        try:
            return ChatCompletionChunk.model_validate(data)
        except ValidationError as exc:
            raise DecodeError(line, f"unexpected envelope: {exc.error_count()} error(s)") from exc

"""
Delivery router: decides where each streamed fragment goes on the page.

A delivery episode spans one stream, from its first chunk to its completion
message. The target is resolved once, on the first chunk, and kept for the
whole episode even if focus moves, so one answer is never split across two
destinations.

Inline streams type into the focused text field, or into the first usable
text field on the page. Without one they fall back to the overlay, unless
the focused element looks like part of an advertisement, in which case the
episode's fragments are dropped. Context streams always go to the overlay.

Stream ids carried on the messages keep overlapping streams apart: a chunk
from a new stream supersedes the running episode of the same mode, and late
messages from a superseded stream are dropped. The overlay has at most one
owning episode across both modes; a new stream bound for the overlay
supersedes whichever episode holds it.
"""

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from inline_assist.content.ad_detection import is_likely_ad
from inline_assist.content.dom import Document, Element
from inline_assist.content.overlay import OverlayState
from inline_assist.content.targets import append_text, find_live_element
from inline_assist.models.internal import DeliveryMode
from inline_assist.models.messages import StreamChunkMessage, StreamCompleteMessage
from inline_assist.utils.logging import get_logger

logger = get_logger(__name__)

RETIRED_STREAM_MEMORY = 32


@dataclass(frozen=True)
class LiveElement:
    element: Element


@dataclass(frozen=True)
class Overlay:
    state: OverlayState


@dataclass(frozen=True)
class Suppressed:
    """Overlay vetoed by the ad heuristic; fragments are dropped."""


DeliveryTarget = LiveElement | Overlay | Suppressed


@dataclass
class Episode:
    mode: DeliveryMode
    target: DeliveryTarget
    stream_id: str | None = None
    delivered_chunks: int = field(default=0)


class DeliveryRouter:
    """
    Content-side handler for relayed stream messages.

    Args:
        document: The page document
        overlay: The page's overlay state, shared with nothing else
        ad_check: Predicate vetoing the overlay for the focused element
    """

    def __init__(
        self,
        document: Document,
        overlay: OverlayState,
        ad_check: Callable[[Element | None], bool] = is_likely_ad,
    ) -> None:
        self._document = document
        self._overlay = overlay
        self._ad_check = ad_check
        self._episodes: dict[DeliveryMode, Episode] = {}
        self._retired: deque[str] = deque(maxlen=RETIRED_STREAM_MEMORY)

    def episode(self, mode: DeliveryMode) -> Episode | None:
        return self._episodes.get(mode)

    def handle(self, message: dict[str, Any]) -> None:
        """Process one chunk or completion message; other actions are ignored."""
        mode = DeliveryMode.from_action(message.get("action", ""))
        if mode is None:
            return

        try:
            if message["action"] == mode.chunk_action:
                chunk = StreamChunkMessage.model_validate(message)
                self._on_chunk(mode, chunk.text, chunk.stream_id)
            else:
                complete = StreamCompleteMessage.model_validate(message)
                self._on_complete(mode, complete.stream_id)
        except ValidationError as exc:
            logger.warning(
                "Dropping malformed stream message",
                extra={"action": message.get("action"), "errors": exc.error_count()},
            )

    def _on_chunk(self, mode: DeliveryMode, text: str, stream_id: str | None) -> None:
        if stream_id is not None and stream_id in self._retired:
            logger.debug("Dropping chunk from superseded stream", extra={"stream_id": stream_id})
            return

        episode = self._episodes.get(mode)
        if episode is not None and _is_other_stream(episode, stream_id):
            self._supersede(episode)
            episode = None

        if episode is None:
            target = self._resolve_target(mode)
            if isinstance(target, Overlay):
                owner = self._overlay_owner()
                if owner is not None:
                    self._supersede(owner)
            episode = Episode(mode=mode, target=target, stream_id=stream_id)
            self._episodes[mode] = episode
            logger.debug(
                "Delivery episode started",
                extra={
                    "mode": mode.value,
                    "target": type(episode.target).__name__,
                    "stream_id": stream_id,
                },
            )
        elif episode.stream_id is None:
            episode.stream_id = stream_id

        self._deliver(episode, text)

    def _on_complete(self, mode: DeliveryMode, stream_id: str | None) -> None:
        if stream_id is not None and stream_id in self._retired:
            logger.debug("Ignoring completion of superseded stream", extra={"stream_id": stream_id})
            return

        episode = self._episodes.get(mode)
        if episode is not None and _is_other_stream(episode, stream_id):
            # Completion of a stream that never delivered a chunk here.
            self._retire(stream_id)
            return

        self._episodes.pop(mode, None)
        self._retire(stream_id)
        if not self._overlay_in_use():
            self._overlay.reset_text()

        logger.debug(
            "Delivery episode completed",
            extra={
                "mode": mode.value,
                "stream_id": stream_id,
                "delivered_chunks": episode.delivered_chunks if episode else 0,
            },
        )

    def _resolve_target(self, mode: DeliveryMode) -> DeliveryTarget:
        if mode is DeliveryMode.CONTEXT:
            return Overlay(self._overlay)

        element = find_live_element(self._document)
        if element is not None:
            return LiveElement(element)
        if self._ad_check(self._document.active_element):
            logger.info("Focused element looks like an ad, suppressing overlay output")
            return Suppressed()
        return Overlay(self._overlay)

    def _deliver(self, episode: Episode, text: str) -> None:
        target = episode.target
        if isinstance(target, LiveElement):
            append_text(target.element, text)
        elif isinstance(target, Overlay):
            target.state.append(text)
        else:
            logger.debug("No delivery target, fragment dropped", extra={"chars": len(text)})
            return
        episode.delivered_chunks += 1

    def _supersede(self, episode: Episode) -> None:
        logger.info(
            "New stream supersedes running episode",
            extra={"mode": episode.mode.value, "stream_id": episode.stream_id},
        )
        self._retire(episode.stream_id)
        del self._episodes[episode.mode]
        if isinstance(episode.target, Overlay) and not self._overlay_in_use():
            self._overlay.reset_text()

    def _retire(self, stream_id: str | None) -> None:
        if stream_id is not None and stream_id not in self._retired:
            self._retired.append(stream_id)

    def _overlay_owner(self) -> Episode | None:
        for episode in self._episodes.values():
            if isinstance(episode.target, Overlay):
                return episode
        return None

    def _overlay_in_use(self) -> bool:
        return self._overlay_owner() is not None


def _is_other_stream(episode: Episode, stream_id: str | None) -> bool:
    return stream_id is not None and episode.stream_id is not None and stream_id != episode.stream_id

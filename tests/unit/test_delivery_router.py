"""
Unit tests for the content-side delivery router and the overlay panel.

Messages are handed to the router exactly as the tab listener would receive
them; assertions look at the page document afterwards.
"""

from typing import Any

import pytest

from inline_assist.content.dom import Document, Element
from inline_assist.content.overlay import CONTENT_ID, PANEL_ID, OverlayState
from inline_assist.content.router import DeliveryRouter, LiveElement, Overlay, Suppressed
from inline_assist.models.internal import DeliveryMode


def chunk(text: str, stream_id: str | None = "s1", inline: bool = False) -> dict[str, Any]:
    message: dict[str, Any] = {"action": "streamChunk" if inline else "contextStreamChunk", "text": text}
    if stream_id is not None:
        message["streamId"] = stream_id
    return message


def complete(stream_id: str | None = "s1", inline: bool = False) -> dict[str, Any]:
    message: dict[str, Any] = {"action": "streamComplete" if inline else "contextStreamComplete"}
    if stream_id is not None:
        message["streamId"] = stream_id
    return message


def make_router(document: Document) -> tuple[DeliveryRouter, OverlayState]:
    overlay = OverlayState(document)
    return DeliveryRouter(document, overlay), overlay


def add_field(document: Document, tag: str = "textarea", **kwargs: Any) -> Element:
    field = document.create_element(tag, **kwargs)
    document.body.append_child(field)
    return field


def panel_markup(document: Document) -> str | None:
    content = document.get_element_by_id(CONTENT_ID)
    return None if content is None else content.inner_html


class TestContextMode:
    """Test overlay delivery of context streams."""

    def test_chunks_render_progressively(self, page: Document) -> None:
        """Test the overlay re-renders the full text after every chunk."""
        router, overlay = make_router(page)
        renders: list[str | None] = []

        for text in ("Hel", "lo **wor", "ld**"):
            router.handle(chunk(text))
            renders.append(panel_markup(page))

        assert renders == [
            "<p>Hel</p>",
            "<p>Hello **wor</p>",
            "<p>Hello <strong>world</strong></p>",
        ]
        assert overlay.accumulated_text == "Hello **world**"

    def test_context_ignores_focused_field(self, page: Document) -> None:
        """Test context answers go to the overlay even with a text field focused."""
        field = add_field(page)
        field.focus()
        router, _ = make_router(page)

        router.handle(chunk("answer"))

        assert field.value == ""
        assert panel_markup(page) == "<p>answer</p>"
        episode = router.episode(DeliveryMode.CONTEXT)
        assert episode is not None
        assert isinstance(episode.target, Overlay)

    def test_complete_resets_text_and_keeps_panel(self, page: Document) -> None:
        """Test completion clears accumulated text but leaves the panel up."""
        router, overlay = make_router(page)
        router.handle(chunk("first answer"))
        router.handle(complete())

        assert overlay.accumulated_text == ""
        assert overlay.panel_present is True
        assert panel_markup(page) == "<p>first answer</p>"
        assert router.episode(DeliveryMode.CONTEXT) is None

        router.handle(chunk("second", stream_id="s2"))
        assert panel_markup(page) == "<p>second</p>"

    def test_panel_is_created_once(self, page: Document) -> None:
        """Test repeated chunks reuse a single panel element."""
        router, _ = make_router(page)
        router.handle(chunk("a"))
        router.handle(chunk("b"))

        panels = [el for el in page.body.children if el.id == PANEL_ID]
        assert len(panels) == 1


class TestInlineMode:
    """Test target resolution and live element delivery."""

    def test_focused_field_receives_text(self, page: Document) -> None:
        """Test chunks are appended to the focused field with input events."""
        field = add_field(page, value="Hi ")
        field.focus()
        inputs: list[str] = []
        field.add_event_listener("input", lambda event: inputs.append(field.value))
        router, overlay = make_router(page)

        router.handle(chunk("there", inline=True))
        router.handle(chunk(" friend", inline=True))

        assert field.value == "Hi there friend"
        assert inputs == ["Hi there", "Hi there friend"]
        assert field.selection_start == field.selection_end == len(field.value)
        assert overlay.panel_present is False

    def test_first_rendered_field_is_used_when_nothing_focused(self, page: Document) -> None:
        """Test fallback to the first usable text field in document order."""
        hidden = add_field(page, "input", hidden=True)
        disabled = add_field(page, "textarea", disabled=True)
        checkbox = add_field(page, "input")
        checkbox.set_attribute("type", "checkbox")
        search = add_field(page, "input")
        search.set_attribute("type", "search")
        router, _ = make_router(page)

        router.handle(chunk("query", inline=True))

        assert search.value == "query"
        assert page.active_element is search
        assert hidden.value == disabled.value == checkbox.value == ""

    def test_target_kept_when_focus_moves(self, page: Document) -> None:
        """Test the episode target is not re-evaluated mid-stream."""
        first = add_field(page)
        second = add_field(page)
        first.focus()
        router, _ = make_router(page)

        router.handle(chunk("one ", inline=True))
        second.focus()
        router.handle(chunk("two", inline=True))

        assert first.value == "one two"
        assert second.value == ""

        router.handle(complete(inline=True))
        router.handle(chunk("three", stream_id="s2", inline=True))
        assert second.value == "three"

    def test_no_field_falls_back_to_overlay(self, page: Document) -> None:
        """Test inline streams use the overlay on pages without text fields."""
        router, _ = make_router(page)

        router.handle(chunk("*hi*", inline=True))

        assert panel_markup(page) == "<p><em>hi</em></p>"

    def test_ad_context_suppresses_overlay(self, page: Document) -> None:
        """Test fragments are dropped when the focused element looks like an ad."""
        slot = page.create_element("div", {"class": "sponsored-slot"})
        button = page.create_element("button")
        slot.append_child(button)
        page.body.append_child(slot)
        button.focus()
        router, overlay = make_router(page)

        router.handle(chunk("buy now", inline=True))
        router.handle(chunk(" please", inline=True))

        episode = router.episode(DeliveryMode.INLINE)
        assert episode is not None
        assert isinstance(episode.target, Suppressed)
        assert episode.delivered_chunks == 0
        assert overlay.panel_present is False
        assert overlay.accumulated_text == ""

    def test_live_element_target_type(self, page: Document) -> None:
        """Test the resolved target is recorded on the episode."""
        add_field(page).focus()
        router, _ = make_router(page)
        router.handle(chunk("x", inline=True))

        episode = router.episode(DeliveryMode.INLINE)
        assert episode is not None
        assert isinstance(episode.target, LiveElement)
        assert episode.delivered_chunks == 1


class TestStreamIdentity:
    """Test that overlapping streams never mix their fragments."""

    def test_new_stream_supersedes_running_one(self, page: Document) -> None:
        """Test a chunk of a new stream restarts the overlay text."""
        router, overlay = make_router(page)
        router.handle(chunk("old ", stream_id="s1"))
        router.handle(chunk("new", stream_id="s2"))

        assert overlay.accumulated_text == "new"
        assert panel_markup(page) == "<p>new</p>"

    def test_late_messages_of_superseded_stream_are_dropped(self, page: Document) -> None:
        """Test chunks and completion of the superseded stream are ignored."""
        router, overlay = make_router(page)
        router.handle(chunk("old", stream_id="s1"))
        router.handle(chunk("new", stream_id="s2"))
        router.handle(chunk(" stale", stream_id="s1"))
        router.handle(complete(stream_id="s1"))

        assert overlay.accumulated_text == "new"
        episode = router.episode(DeliveryMode.CONTEXT)
        assert episode is not None
        assert episode.stream_id == "s2"

        router.handle(complete(stream_id="s2"))
        assert overlay.accumulated_text == ""
        assert router.episode(DeliveryMode.CONTEXT) is None

    def test_messages_without_stream_id_join_current_episode(self, page: Document) -> None:
        """Test untagged messages belong to whatever episode is running."""
        router, overlay = make_router(page)
        router.handle(chunk("a", stream_id=None))
        router.handle(chunk("b", stream_id=None))

        assert overlay.accumulated_text == "ab"
        router.handle(complete(stream_id=None))
        assert overlay.accumulated_text == ""

    def test_inline_and_context_episodes_are_separate(self, page: Document) -> None:
        """Test the two modes keep independent episodes."""
        field = add_field(page)
        field.focus()
        router, overlay = make_router(page)

        router.handle(chunk("typed", stream_id="i1", inline=True))
        router.handle(chunk("shown", stream_id="c1"))
        router.handle(complete(stream_id="i1", inline=True))

        assert field.value == "typed"
        assert overlay.accumulated_text == "shown"

    def test_overlay_fallback_and_context_never_mix(self, page: Document) -> None:
        """Test a context stream takes the overlay from an inline fallback episode."""
        router, overlay = make_router(page)

        router.handle(chunk("INLINE-", stream_id="i1", inline=True))
        router.handle(chunk("CTX-", stream_id="c1"))
        router.handle(chunk("more", stream_id="i1", inline=True))

        assert overlay.accumulated_text == "CTX-"
        assert panel_markup(page) == "<p>CTX-</p>"
        assert router.episode(DeliveryMode.INLINE) is None

        router.handle(complete(stream_id="i1", inline=True))
        assert overlay.accumulated_text == "CTX-"

        router.handle(complete(stream_id="c1"))
        assert overlay.accumulated_text == ""

    def test_inline_fallback_takes_overlay_from_context(self, page: Document) -> None:
        """Test the newest overlay-bound stream owns the overlay, whatever its mode."""
        router, overlay = make_router(page)

        router.handle(chunk("context ", stream_id="c1"))
        router.handle(chunk("inline", stream_id="i1", inline=True))
        router.handle(chunk("late", stream_id="c1"))

        assert overlay.accumulated_text == "inline"
        assert router.episode(DeliveryMode.CONTEXT) is None


class TestMalformedMessages:
    """Test that the router never raises on bad input."""

    @pytest.mark.parametrize(
        "message",
        [
            {"action": "contextStreamChunk"},
            {"action": "streamChunk", "text": None},
            {"action": "getSelection"},
            {"no": "action"},
        ],
    )
    def test_bad_messages_are_ignored(self, page: Document, message: dict[str, Any]) -> None:
        """Test malformed or foreign messages change nothing."""
        router, overlay = make_router(page)

        router.handle(message)

        assert overlay.panel_present is False
        assert router.episode(DeliveryMode.CONTEXT) is None
        assert router.episode(DeliveryMode.INLINE) is None


class TestOverlayPanel:
    """Test the overlay panel lifecycle."""

    def test_close_button_dismisses_panel(self, page: Document) -> None:
        """Test the close button removes the panel but keeps the text."""
        overlay = OverlayState(page)
        overlay.append("partial")
        close_button = overlay.panel.children[0] if overlay.panel else None
        assert close_button is not None

        close_button.click()

        assert overlay.panel_present is False
        assert page.get_element_by_id(PANEL_ID) is None
        assert overlay.accumulated_text == "partial"

    def test_next_write_recreates_dismissed_panel(self, page: Document) -> None:
        """Test a write after dismissal shows the whole accumulated answer again."""
        overlay = OverlayState(page)
        overlay.append("Hello")
        overlay.dismiss()

        overlay.append(" again")

        assert overlay.panel_present is True
        assert panel_markup(page) == "<p>Hello again</p>"

    def test_close_click_does_not_bubble(self, page: Document) -> None:
        """Test page listeners never see clicks on the close button."""
        clicks: list[str] = []
        page.body.add_event_listener("click", lambda event: clicks.append("body"))
        overlay = OverlayState(page)
        overlay.append("x")

        assert overlay.panel is not None
        overlay.panel.children[0].click()

        assert clicks == []

    def test_panel_scrolled_to_bottom(self, page: Document) -> None:
        """Test the panel scrolls with the content."""
        overlay = OverlayState(page)
        overlay.append("line")

        assert overlay.panel is not None
        assert overlay.panel.scroll_top == overlay.panel.scroll_height

    def test_removed_content_area_is_rebuilt(self, page: Document) -> None:
        """Test a page script removing the content area does not break later writes."""
        overlay = OverlayState(page)
        overlay.append("one")
        content = overlay.content_area
        assert content is not None
        content.remove()
        assert overlay.content_area is None

        overlay.append(" two")

        assert panel_markup(page) == "<p>one two</p>"

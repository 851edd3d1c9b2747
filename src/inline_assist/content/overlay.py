"""
Overlay panel that shows the rendered answer when there is no field to type into.

One OverlayState exists per page. Its two parts have separate lifecycles:

* ``accumulated_text`` grows with each chunk and is reset when a stream completes;
* the panel element is created on the first overlay write and only goes away
  when the user clicks its close button.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from inline_assist.content.dom import Document, Element, Event
from inline_assist.content.markdown import render_markdown
from inline_assist.utils.logging import get_logger

logger = get_logger(__name__)

PANEL_ID = "inline-assist-response"
CONTENT_ID = "inline-assist-content"

PANEL_STYLE = {
    "position": "fixed",
    "top": "20px",
    "right": "20px",
    "width": "350px",
    "max-height": "400px",
    "background": "#1a1a1a",
    "color": "#ffffff",
    "padding": "15px",
    "border-radius": "8px",
    "box-shadow": "0 4px 20px rgba(0,0,0,0.5)",
    "font-family": "-apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif",
    "font-size": "14px",
    "line-height": "1.4",
    "z-index": "999999999",
    "overflow-y": "auto",
    "border": "1px solid #444",
    "word-wrap": "break-word",
}

CLOSE_BUTTON_STYLE = {
    "position": "absolute",
    "top": "5px",
    "right": "10px",
    "background": "none",
    "border": "none",
    "color": "#888",
    "font-size": "20px",
    "cursor": "pointer",
}


@dataclass
class OverlayState:
    """Per-page overlay state, passed by reference to the delivery router."""

    document: Document
    renderer: Callable[[str], str] = render_markdown
    accumulated_text: str = ""
    panel: Element | None = field(default=None, repr=False)

    @property
    def panel_present(self) -> bool:
        return self.panel is not None and self.panel.is_connected

    @property
    def content_area(self) -> Element | None:
        panel = self.panel
        if panel is None or not panel.is_connected:
            return None
        return _find_content(panel)

    def append(self, text: str) -> None:
        """Add a fragment and re-render the whole answer into the panel."""
        self.accumulated_text += text
        self.show(self.renderer(self.accumulated_text))

    def show(self, markup: str) -> None:
        panel = self._ensure_panel()
        content = _find_content(panel) or _add_content_area(self.document, panel)
        content.inner_html = markup
        panel.scroll_top = panel.scroll_height

    def reset_text(self) -> None:
        self.accumulated_text = ""

    def dismiss(self) -> None:
        """Remove the panel; accumulated text is left alone."""
        if self.panel is not None:
            self.panel.remove()
            logger.debug("Overlay dismissed")
        self.panel = None

    def _ensure_panel(self) -> Element:
        if self.panel is not None and self.panel.is_connected:
            return self.panel

        document = self.document
        panel = document.create_element("div", {"id": PANEL_ID})
        panel.style.update(PANEL_STYLE)

        close_button = document.create_element("button", {"aria-label": "Close"}, text="×")
        close_button.style.update(CLOSE_BUTTON_STYLE)
        close_button.add_event_listener("click", self._on_close)
        panel.append_child(close_button)

        _add_content_area(document, panel)

        document.body.append_child(panel)
        self.panel = panel
        logger.debug("Overlay panel created")
        return panel

    def _on_close(self, event: Event) -> None:
        event.stop_propagation()
        self.dismiss()


def _find_content(panel: Element) -> Element | None:
    return next((child for child in panel.children if child.id == CONTENT_ID), None)


def _add_content_area(document: Document, panel: Element) -> Element:
    content = document.create_element("div", {"id": CONTENT_ID})
    content.style.update({"margin-top": "10px", "padding-right": "10px"})
    return panel.append_child(content)

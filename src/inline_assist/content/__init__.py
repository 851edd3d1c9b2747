"""Content context: page model, delivery routing, overlay and rendering."""

from inline_assist.content.ad_detection import is_likely_ad
from inline_assist.content.dom import Document, Element, Event
from inline_assist.content.markdown import render_markdown
from inline_assist.content.overlay import OverlayState
from inline_assist.content.router import DeliveryRouter
from inline_assist.content.script import ContentScript

__all__ = [
    "ContentScript",
    "DeliveryRouter",
    "Document",
    "Element",
    "Event",
    "OverlayState",
    "is_likely_ad",
    "render_markdown",
]

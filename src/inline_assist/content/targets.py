"""
Finding and writing to the page's live text field.

Shared by the inline delivery router and the text-injection page script so
both pick the same element for the same page.
"""

from inline_assist.content.dom import Document, Element, Event

TEXT_INPUT_SELECTOR = 'input[type="text"], input[type="search"], input:not([type]), textarea'


def is_text_field(element: Element | None) -> bool:
    """True for enabled, writable text inputs and textareas."""
    if element is None or element.disabled or element.read_only:
        return False
    return element.matches(TEXT_INPUT_SELECTOR)


def find_live_element(document: Document) -> Element | None:
    """
    Resolve the element that should receive typed text.

    The focused element wins when it is a text field. Otherwise the first
    rendered text field in document order is focused and returned.
    """
    active = document.active_element
    if is_text_field(active):
        return active

    for candidate in document.query_selector_all(TEXT_INPUT_SELECTOR):
        if candidate.is_rendered and is_text_field(candidate):
            candidate.focus()
            return candidate
    return None


def append_text(element: Element, text: str, *, notify_change: bool = False) -> None:
    """
    Append text the way a user typing at the end of the field would.

    Host page listeners see an ``input`` event (and ``change`` when asked);
    the caret ends up after the new text.
    """
    element.value += text
    element.dispatch_event(Event("input", bubbles=True))
    if notify_change:
        element.dispatch_event(Event("change", bubbles=True))

    if element.tag_name == "TEXTAREA":
        element.scroll_top = element.scroll_height

    end = len(element.value)
    element.set_selection_range(end, end)

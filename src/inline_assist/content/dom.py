"""
Minimal page DOM used by the content context and page-context scripts.

It models only what delivery needs: a tree of elements with attributes,
focus, form-control value and caret, event listeners with bubbling, a notion
of being rendered, and CSS selector queries.

Selectors are evaluated by soupsieve against a BeautifulSoup copy of the
tree (see SoupView), so the full CSS selector grammar is available and
results map back to the live Elements.
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

import soupsieve
from bs4 import BeautifulSoup, NavigableString, Tag

EventListener = Callable[["Event"], None]


@dataclass
class Event:
    """A DOM event travelling from its target up through the ancestors."""

    type: str
    bubbles: bool = False
    target: "Element | None" = None
    current_target: "Element | None" = None
    propagation_stopped: bool = field(default=False, repr=False)

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


class Element:
    """One element node; text is held directly on the element."""

    def __init__(
        self,
        tag_name: str,
        attributes: dict[str, str] | None = None,
        *,
        text: str = "",
        value: str = "",
        disabled: bool = False,
        read_only: bool = False,
        hidden: bool = False,
        children: list["Element"] | None = None,
    ) -> None:
        self.tag_name = tag_name.upper()
        self.attributes: dict[str, str] = dict(attributes or {})
        self.text = text
        self.value = value
        self.disabled = disabled
        self.read_only = read_only
        self.hidden = hidden
        self.parent: Element | None = None
        self.children: list[Element] = []
        self.owner_document: Document | None = None
        self.style: dict[str, str] = {}
        self.inner_html = ""
        self.scroll_top = 0
        self.selection_start = 0
        self.selection_end = 0
        self._listeners: dict[str, list[EventListener]] = {}
        for child in children or []:
            self.append_child(child)

    def __repr__(self) -> str:
        ident = f"#{self.id}" if self.id else ""
        return f"<Element {self.tag_name.lower()}{ident}>"

    # Attributes

    @property
    def id(self) -> str:
        return self.attributes.get("id", "")

    @property
    def class_name(self) -> str:
        return self.attributes.get("class", "")

    @property
    def class_list(self) -> list[str]:
        return self.class_name.split()

    def get_attribute(self, name: str) -> str | None:
        return self.attributes.get(name)

    def set_attribute(self, name: str, value: str) -> None:
        self.attributes[name] = value

    # Tree

    def append_child(self, child: "Element") -> "Element":
        if child.parent is not None:
            child.parent.children.remove(child)
        child.parent = self
        self.children.append(child)
        child._adopt(self.owner_document)
        return child

    def remove(self) -> None:
        document = self.owner_document
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None
        if document is not None and document.focused is not None:
            if document.focused is self or self.contains(document.focused):
                document.focused = None
        self._adopt(None)

    def _adopt(self, document: "Document | None") -> None:
        self.owner_document = document
        for child in self.children:
            child._adopt(document)

    def contains(self, other: "Element") -> bool:
        node: Element | None = other
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    @property
    def root(self) -> "Element":
        """Topmost ancestor, or the element itself when detached."""
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def ancestors(self) -> Iterator["Element"]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def iter_descendants(self) -> Iterator["Element"]:
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    @property
    def is_connected(self) -> bool:
        document = self.owner_document
        return document is not None and document.document_element.contains(self)

    @property
    def is_rendered(self) -> bool:
        """True when the element is attached and neither it nor an ancestor is hidden."""
        if not self.is_connected or self.hidden:
            return False
        return not any(ancestor.hidden for ancestor in self.ancestors())

    @property
    def text_content(self) -> str:
        return self.text + "".join(child.text_content for child in self.children)

    @text_content.setter
    def text_content(self, value: str) -> None:
        for child in list(self.children):
            child.remove()
        self.text = value

    @property
    def scroll_height(self) -> int:
        """Content extent in lines; enough to express 'scrolled to the bottom'."""
        content = self.value if self.tag_name in ("INPUT", "TEXTAREA") else self.inner_html
        return content.count("\n") + 1

    # Selectors

    def matches(self, selector: str) -> bool:
        view = SoupView(self.root)
        return soupsieve.match(selector, view.tag_for(self))

    def query_selector_all(self, selector: str) -> list["Element"]:
        view = SoupView(self.root)
        return [view.element_for(tag) for tag in soupsieve.select(selector, view.tag_for(self))]

    def query_selector(self, selector: str) -> "Element | None":
        view = SoupView(self.root)
        tag = soupsieve.select_one(selector, view.tag_for(self))
        return None if tag is None else view.element_for(tag)

    # Focus and form controls

    def focus(self) -> None:
        if self.owner_document is not None:
            self.owner_document.focused = self

    def set_selection_range(self, start: int, end: int) -> None:
        self.selection_start = start
        self.selection_end = end

    # Events

    def add_event_listener(self, event_type: str, listener: EventListener) -> None:
        self._listeners.setdefault(event_type, []).append(listener)

    def dispatch_event(self, event: Event) -> None:
        event.target = self
        path = [self, *self.ancestors()] if event.bubbles else [self]
        for node in path:
            event.current_target = node
            for listener in list(node._listeners.get(event.type, [])):
                listener(event)
            if event.propagation_stopped:
                break

    def click(self) -> None:
        self.dispatch_event(Event("click", bubbles=True))


class Document:
    """
    One frame's document.

    ``active_element`` follows browser behaviour: the focused element, or the
    body when nothing is focused.
    """

    def __init__(
        self,
        *,
        title: str = "",
        url: str = "about:blank",
        frame_id: int = 0,
        selection: str = "",
    ) -> None:
        self.title = title
        self.url = url
        self.frame_id = frame_id
        self.selection = selection
        self.focused: Element | None = None
        self.document_element = Element("html")
        self.head = Element("head")
        self.body = Element("body")
        self.document_element._adopt(self)
        self.document_element.append_child(self.head)
        self.document_element.append_child(self.body)

    @property
    def active_element(self) -> Element:
        if self.focused is not None and self.focused.is_connected:
            return self.focused
        return self.body

    def create_element(self, tag_name: str, attributes: dict[str, str] | None = None, **kwargs: Any) -> Element:
        element = Element(tag_name, attributes, **kwargs)
        element._adopt(self)
        return element

    def get_element_by_id(self, element_id: str) -> Element | None:
        for element in self.document_element.iter_descendants():
            if element.id == element_id:
                return element
        return None

    def query_selector(self, selector: str) -> Element | None:
        return self.document_element.query_selector(selector)

    def query_selector_all(self, selector: str) -> list[Element]:
        return self.document_element.query_selector_all(selector)

    def get_selection(self) -> str:
        return self.selection


class SoupView:
    """
    BeautifulSoup copy of an element tree, mapped back to the live Elements.

    A view is a snapshot: changes to either tree are not reflected in the
    other. Page scripts may freely ``decompose()`` parts of the copy.

    Args:
        root: Element whose subtree is copied
    """

    def __init__(self, root: Element) -> None:
        self.soup = BeautifulSoup("", "html.parser")
        self._elements: dict[int, Element] = {}
        self._tags: dict[int, Tag] = {}
        self.root = self._copy(root)
        self.soup.append(self.root)

    def tag_for(self, element: Element) -> Tag:
        try:
            return self._tags[id(element)]
        except KeyError:
            raise ValueError(f"{element!r} is not part of this view") from None

    def element_for(self, tag: Tag) -> Element:
        return self._elements[id(tag)]

    def _copy(self, element: Element) -> Tag:
        tag = self.soup.new_tag(element.tag_name.lower(), attrs=dict(element.attributes))
        self._elements[id(tag)] = element
        self._tags[id(element)] = tag
        if element.text:
            tag.append(NavigableString(element.text))
        for child in element.children:
            tag.append(self._copy(child))
        return tag

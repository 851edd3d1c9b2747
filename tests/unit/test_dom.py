"""
Unit tests for the page DOM's selector queries and its BeautifulSoup view.
"""

import pytest
from soupsieve import SelectorSyntaxError

from inline_assist.content.dom import Document, Element, SoupView


def listing_page() -> Document:
    document = Document()
    nav = document.create_element("nav", {"class": "menu top"})
    nav.append_child(document.create_element("a", {"href": "/"}, text="Home"))
    document.body.append_child(nav)
    for index in range(3):
        document.body.append_child(document.create_element("p", {"data-row": str(index)}, text=f"row {index}"))
    return document


class TestSelectorQueries:
    """Test CSS selector matching against live elements."""

    def test_query_returns_live_elements(self) -> None:
        """Test results are the page's own Element objects, not copies."""
        document = listing_page()

        rows = document.query_selector_all("p[data-row]")

        assert [row.text for row in rows] == ["row 0", "row 1", "row 2"]
        assert all(row.parent is document.body for row in rows)

    def test_combinators_and_pseudo_classes(self) -> None:
        """Test selectors beyond simple compounds are supported."""
        document = listing_page()

        link = document.query_selector("nav.menu > a[href='/']")
        last = document.query_selector("p:last-of-type")

        assert link is not None and link.text == "Home"
        assert last is not None and last.text == "row 2"

    def test_matches_sees_ancestors(self) -> None:
        """Test descendant selectors are evaluated in the element's whole tree."""
        document = listing_page()
        link = document.query_selector("a")
        assert link is not None

        assert link.matches("body nav a") is True
        assert link.matches("footer a") is False

    def test_detached_element(self) -> None:
        """Test an element outside any document still matches and queries."""
        wrapper = Element("div", {"class": "wrap"}, children=[Element("span", {"id": "x"})])

        assert wrapper.matches("div.wrap") is True
        assert wrapper.query_selector("#x") is wrapper.children[0]
        assert wrapper.query_selector("#missing") is None

    def test_query_excludes_the_element_itself(self) -> None:
        wrapper = Element("div", children=[Element("div")])

        assert wrapper.query_selector_all("div") == [wrapper.children[0]]

    def test_invalid_selector_raises(self) -> None:
        with pytest.raises(SelectorSyntaxError):
            Element("div").matches("div[")


class TestSoupView:
    """Test the BeautifulSoup copy used for selectors and text extraction."""

    def test_copy_maps_both_ways(self) -> None:
        """Test every element has a tag and every tag leads back to its element."""
        document = listing_page()
        view = SoupView(document.document_element)

        nav = view.root.select_one("nav")
        assert nav is not None
        element = view.element_for(nav)

        assert element.tag_name == "NAV"
        assert view.tag_for(element) is nav
        assert view.root.select_one(".top") is nav
        assert view.root.get_text(" ") == "Home row 0 row 1 row 2"

    def test_copy_is_a_snapshot(self) -> None:
        """Test decomposing parts of the copy leaves the page untouched."""
        document = listing_page()
        view = SoupView(document.document_element)

        for tag in view.root.select("p"):
            tag.decompose()

        assert len(document.query_selector_all("p")) == 3

    def test_foreign_element_is_rejected(self) -> None:
        view = SoupView(Element("div"))

        with pytest.raises(ValueError, match="not part of this view"):
            view.tag_for(Element("span"))

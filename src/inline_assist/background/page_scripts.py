"""
Functions the background injects into page context.

Each takes the frame's Document as its first argument and returns plain
JSON-compatible data.
"""

import re
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlsplit

from bs4 import Tag

from inline_assist.content.dom import Document, SoupView
from inline_assist.content.targets import append_text, find_live_element
from inline_assist.models.internal import PageContent
from inline_assist.utils.logging import get_logger

logger = get_logger(__name__)

MAX_CONTENT_LENGTH = 4000
MIN_CONTAINER_TEXT = 100
SENTENCE_CUT_RATIO = 0.7
NO_CONTENT_MESSAGE = "No suitable content found on this page."

# In order of preference
CONTENT_SELECTORS = (
    "article",
    "main",
    '[role="main"]',
    ".content",
    "#content",
    ".post-content",
    ".entry-content",
    ".article-content",
    ".page-content",
    ".post",
    ".entry",
    "body",
)

EXCLUDE_SELECTORS = (
    "nav", "header", "footer", "aside", ".sidebar", ".navigation",
    ".menu", ".nav", ".breadcrumb", ".pagination", ".social-share",
    ".comments", ".related-posts", ".advertisement", ".ad", ".ads",
    ".cookie-banner", ".newsletter", ".popup", ".modal", "script",
    "style", "noscript", ".sr-only", ".visually-hidden",
)

_WHITESPACE_RE = re.compile(r"\s+")


def read_selection(document: Document) -> str:
    return document.get_selection()


def write_text_to_input(document: Document, text: Any) -> None:
    """Append text to the page's live text field, if it has one."""
    target = find_live_element(document)
    if target is None:
        logger.info("AI response (no input field)", extra={"chars": len(_as_text(text))})
        return
    append_text(target, _as_text(text), notify_change=True)


def extract_page_content(document: Document, max_length: int = MAX_CONTENT_LENGTH) -> dict[str, Any]:
    """
    Summarize the page for use as model context.

    Returns a PageContent record in wire form. An unexpected failure still
    returns a record, with the error message in ``mainContent`` and ``error``.
    """
    try:
        main_content = _extract_main_content(document, max_length)
        content = PageContent(
            title=clean_text(document.title),
            url=document.url,
            meta_description=clean_text(_meta_description(document)),
            main_content=main_content,
            selected_text=clean_text(document.get_selection()),
            content_length=len(main_content),
            timestamp=_now_iso(),
            domain=urlsplit(document.url).hostname or "",
        )
    except Exception as exc:
        logger.exception("Content extraction error")
        content = PageContent(
            title=document.title or "Untitled Page",
            url=document.url,
            main_content=f"Error extracting page content: {exc}",
            selected_text=document.get_selection(),
            timestamp=_now_iso(),
            domain=urlsplit(document.url).hostname or "",
            error=str(exc),
        )
        return content.to_wire()

    logger.debug(
        "Content extraction result",
        extra={
            "title": content.title,
            "domain": content.domain,
            "content_length": content.content_length,
            "has_selection": bool(content.selected_text),
            "has_meta_description": bool(content.meta_description),
        },
    )
    return content.to_wire()


def clean_text(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def truncate_content(content: str, max_length: int = MAX_CONTENT_LENGTH) -> str:
    """Cut at the last sentence end past 70% of the limit, else hard-cut with '...'."""
    if len(content) <= max_length:
        return content
    truncated = content[:max_length]
    last_sentence = max(truncated.rfind("."), truncated.rfind("!"), truncated.rfind("?"))
    if last_sentence > max_length * SENTENCE_CUT_RATIO:
        return truncated[: last_sentence + 1]
    return truncated + "..."


def _extract_main_content(document: Document, max_length: int) -> str:
    page = SoupView(document.document_element).root
    container = _find_content_container(page)
    if container is None:
        return NO_CONTENT_MESSAGE
    for excluded in container.select(", ".join(EXCLUDE_SELECTORS)):
        if not excluded.decomposed:
            excluded.decompose()
    return truncate_content(clean_text(container.get_text(" ")), max_length)


def _find_content_container(page: Tag) -> Tag | None:
    for selector in CONTENT_SELECTORS:
        candidate = page.select_one(selector)
        if candidate is not None and len(candidate.get_text().strip()) > MIN_CONTAINER_TEXT:
            return candidate
    return None


def _meta_description(document: Document) -> str:
    meta = document.query_selector('meta[name="description"]')
    if meta is None:
        return ""
    return meta.get_attribute("content") or ""


def _as_text(text: Any) -> str:
    return "" if text is None else str(text)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

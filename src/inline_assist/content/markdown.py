"""
Markdown to markup conversion for the overlay panel.

The overlay re-renders the whole accumulated answer after every chunk, so the
renderer must be a pure function of its input: a half-received ``**bold``
stays literal until the closing marker arrives, then the next render picks
it up.

Pass order (each pass sees the previous pass's output):

1. HTML-escape the text.
2. Protect terminated fenced code blocks and inline code spans behind
   placeholders; no later pass touches code.
3. Headers ``#``, ``##``, ``###``.
4. Emphasis, longest marker first: ``***``, ``**``, ``*``.
5. Fenced code blocks become ``<pre><code>``.
6. Inline code becomes ``<code>``.
7. List items (``-``/``*``/``+`` unordered, ``N.`` ordered).
8. Links ``[text](url)``.
9. Paragraphs and ``<br>`` line breaks.
10. Each contiguous run of list items is wrapped in one ``<ul>``/``<ol>``.

Code placeholders are swapped back in after the block passes (5 and 6 emit
their markup there), which keeps code bodies out of the line-based passes.
"""

import html
import re
from dataclasses import dataclass

from inline_assist.utils.logging import get_logger

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"^```([^\n`]*)\n(.*?)^```[ \t]*$", re.MULTILINE | re.DOTALL)
_INLINE_CODE_RE = re.compile(r"`([^`\n]+)`")
_FENCE_TOKEN_RE = re.compile(r"^\x00F(\d+)\x00$")
_CODE_TOKEN_RE = re.compile(r"\x00C(\d+)\x00")

_HEADER_RE = re.compile(r"^(#{1,3}) (.+)$", re.MULTILINE)

_BOLD_ITALIC_RE = re.compile(r"\*\*\*(?=\S)(.+?)(?<=\S)\*\*\*")
_BOLD_RE = re.compile(r"\*\*(?=\S)(.+?)(?<=\S)\*\*")
_ITALIC_RE = re.compile(r"\*(?=\S)(.+?)(?<=\S)\*")

_UNORDERED_ITEM_RE = re.compile(r"^[ \t]*[-*+] +(.*)$")
_ORDERED_ITEM_RE = re.compile(r"^[ \t]*(\d+)\. +(.*)$")

_LINK_RE = re.compile(r"\[([^\]\n]+)\]\(([^)\s]+)\)")
_SCHEME_RE = re.compile(r"^([a-zA-Z][\w+.-]*):")
_SAFE_SCHEMES = frozenset({"http", "https", "mailto"})

_BLOCK_PREFIXES = ("<h1>", "<h2>", "<h3>")


@dataclass
class _Line:
    kind: str  # "text", "blank", "block", "ul" or "ol"
    html: str
    number: int = 1


@dataclass
class _CodeStore:
    fences: list[tuple[str, str]]
    spans: list[str]


def render_markdown(text: str | None) -> str:
    """
    Render the full accumulated text to display markup.

    Deterministic and side-effect free. Unterminated syntax is kept as
    literal text. Never raises: an internal failure falls back to the
    escaped text.
    """
    if not text:
        return ""
    try:
        return _render(text)
    except Exception:
        logger.exception("Markdown rendering failed, falling back to escaped text")
        return html.escape(text, quote=False)


def _render(text: str) -> str:
    source = html.escape(text.replace("\x00", ""), quote=False)

    store = _CodeStore(fences=[], spans=[])
    source = _protect_code(source, store)
    source = _HEADER_RE.sub(_render_header, source)
    source = _render_emphasis(source)

    lines = [_classify(line) for line in source.split("\n")]
    body = _assemble(_join_list_runs(lines), store)
    return _restore_spans(body, store)


def _protect_code(source: str, store: _CodeStore) -> str:
    def fence(match: re.Match[str]) -> str:
        language = re.sub(r"[^\w+-]", "", match.group(1))
        store.fences.append((language, match.group(2).removesuffix("\n")))
        return f"\x00F{len(store.fences) - 1}\x00"

    def span(match: re.Match[str]) -> str:
        store.spans.append(match.group(1))
        return f"\x00C{len(store.spans) - 1}\x00"

    source = _FENCE_RE.sub(fence, source)
    return _INLINE_CODE_RE.sub(span, source)


def _render_header(match: re.Match[str]) -> str:
    level = len(match.group(1))
    return f"<h{level}>{match.group(2).strip()}</h{level}>"


def _render_emphasis(source: str) -> str:
    source = _BOLD_ITALIC_RE.sub(r"<strong><em>\1</em></strong>", source)
    source = _BOLD_RE.sub(r"<strong>\1</strong>", source)
    return _ITALIC_RE.sub(r"<em>\1</em>", source)


def _render_link(match: re.Match[str]) -> str:
    label, url = match.group(1), match.group(2)
    scheme = _SCHEME_RE.match(url)
    if scheme and scheme.group(1).lower() not in _SAFE_SCHEMES:
        return match.group(0)
    href = url.replace('"', "%22")
    return f'<a href="{href}" target="_blank" rel="noopener noreferrer">{label}</a>'


def _classify(line: str) -> _Line:
    if not line.strip():
        return _Line("blank", "")
    if _FENCE_TOKEN_RE.match(line.strip()):
        return _Line("block", line.strip())
    if line.startswith(_BLOCK_PREFIXES):
        return _Line("block", _LINK_RE.sub(_render_link, line))

    item = _UNORDERED_ITEM_RE.match(line)
    if item:
        return _Line("ul", f"<li>{_LINK_RE.sub(_render_link, item.group(1))}</li>")
    item = _ORDERED_ITEM_RE.match(line)
    if item:
        return _Line(
            "ol", f"<li>{_LINK_RE.sub(_render_link, item.group(2))}</li>", int(item.group(1))
        )
    return _Line("text", _LINK_RE.sub(_render_link, line))


def _join_list_runs(lines: list[_Line]) -> list[_Line]:
    """Drop blank lines sitting between two items of the same list kind."""
    kept: list[_Line] = []
    for index, line in enumerate(lines):
        if line.kind == "blank" and kept and kept[-1].kind in ("ul", "ol"):
            following = next((nxt for nxt in lines[index + 1:] if nxt.kind != "blank"), None)
            if following is not None and following.kind == kept[-1].kind:
                continue
        kept.append(line)
    return kept


def _assemble(lines: list[_Line], store: _CodeStore) -> str:
    out: list[str] = []
    paragraph: list[str] = []
    items: list[_Line] = []

    def flush_paragraph() -> None:
        if paragraph:
            out.append("<p>" + "<br>".join(paragraph) + "</p>")
            paragraph.clear()

    def close_list() -> None:
        if not items:
            return
        kind = items[0].kind
        start = items[0].number
        opening = f'<ol start="{start}">' if kind == "ol" and start != 1 else f"<{kind}>"
        out.append(opening + "".join(item.html for item in items) + f"</{kind}>")
        items.clear()

    for line in lines:
        if line.kind in ("ul", "ol"):
            flush_paragraph()
            if items and items[0].kind != line.kind:
                close_list()
            items.append(line)
            continue

        close_list()
        if line.kind == "text":
            paragraph.append(line.html)
        elif line.kind == "blank":
            flush_paragraph()
        else:
            flush_paragraph()
            out.append(_restore_fence(line.html, store))

    close_list()
    flush_paragraph()
    return "".join(out)


def _restore_fence(block: str, store: _CodeStore) -> str:
    token = _FENCE_TOKEN_RE.match(block)
    if token is None:
        return block
    language, code = store.fences[int(token.group(1))]
    css_class = f' class="language-{language}"' if language else ""
    return f"<pre><code{css_class}>{code}</code></pre>"


def _restore_spans(body: str, store: _CodeStore) -> str:
    return _CODE_TOKEN_RE.sub(lambda m: f"<code>{store.spans[int(m.group(1))]}</code>", body)

"""Structured content parsing and rendering.

Article bodies are stored as HTML where recognised blocks are marked with
data attributes:

    <section data-component="section">...</section>
    <aside data-component="callout" data-title="Title">...</aside>

Everything else is passed through verbatim. Parsing is marker-driven regex
scanning, so it needs no DOM and behaves the same wherever it runs.
"""

from __future__ import annotations

import html
import re
from typing import NamedTuple

from markupsafe import Markup

from simplebiz.types import Callout, ContentBlock, RawHtml, Section

_FLAGS = re.IGNORECASE | re.DOTALL

_SECTION_PATTERN = re.compile(
    r"<section\b(?=[^>]*\bdata-component\s*=\s*[\"']section[\"'])[^>]*>(.*?)</section\s*>",
    _FLAGS,
)
_CALLOUT_PATTERN = re.compile(
    r"<aside\b(?=[^>]*\bdata-component\s*=\s*[\"']callout[\"'])([^>]*)>(.*?)</aside\s*>",
    _FLAGS,
)
_TITLE_PATTERN = re.compile(r"\bdata-title\s*=\s*(?:\"([^\"]*)\"|'([^']*)')", _FLAGS)

DEFAULT_CALLOUT_TITLE = "Note"


class _Match(NamedTuple):
    start: int
    end: int
    body_start: int
    body_end: int
    title: str | None  # None for sections


def _callout_title(attributes: str) -> str:
    found = _TITLE_PATTERN.search(attributes)
    if not found:
        return DEFAULT_CALLOUT_TITLE
    title = html.unescape(found.group(1) if found.group(1) is not None else found.group(2))
    return title or DEFAULT_CALLOUT_TITLE


def _find_blocks(source: str) -> list[_Match]:
    matches = [
        _Match(m.start(), m.end(), m.start(1), m.end(1), None)
        for m in _SECTION_PATTERN.finditer(source)
    ]
    matches.extend(
        _Match(m.start(), m.end(), m.start(2), m.end(2), _callout_title(m.group(1)))
        for m in _CALLOUT_PATTERN.finditer(source)
    )
    # Stable: a section and a callout at the same offset keep that order
    matches.sort(key=lambda match: match.start)
    return matches


def _body(source: str, match: _Match, matches: list[_Match]) -> str:
    """The block's inner markup with nested blocks cut out."""
    parts: list[str] = []
    cursor = match.body_start
    for inner in matches:
        if inner.start < cursor or inner.end > match.body_end:
            continue
        parts.append(source[cursor : inner.start])
        cursor = inner.end
    parts.append(source[cursor : match.body_end])
    return "".join(parts)


def _block(source: str, match: _Match, matches: list[_Match]) -> ContentBlock:
    content = _body(source, match, matches)
    if match.title is None:
        return Section(content)
    return Callout(content, match.title)


def parse_content(source: str | None) -> list[ContentBlock]:
    """Parse stored HTML into an ordered list of content blocks.

    Every marked section and callout becomes one block, in order of its
    opening tag. Markup between blocks becomes `RawHtml` (trimmed;
    whitespace-only gaps are dropped). A block nested inside another follows
    it and is cut out of the outer block's content. Input with no recognised
    blocks comes back whole as a single `RawHtml`. Never raises.
    """
    source = source or ""
    matches = _find_blocks(source)
    if not matches:
        return [RawHtml(source)]

    blocks: list[ContentBlock] = []
    consumed = 0
    for match in matches:
        if match.start > consumed:
            gap = source[consumed : match.start].strip()
            if gap:
                blocks.append(RawHtml(gap))
        blocks.append(_block(source, match, matches))
        consumed = max(consumed, match.end)

    trailing = source[consumed:].strip()
    if trailing:
        blocks.append(RawHtml(trailing))
    return blocks


def render_block(block: ContentBlock) -> Markup:
    """Render one block. Block content is trusted (sanitised upstream)."""
    if isinstance(block, Section):
        return Markup('<section class="article-section">{}</section>').format(
            Markup(block.content)
        )
    if isinstance(block, Callout):
        return Markup(
            '<aside class="callout"><h3 class="callout-title">{}</h3>'
            '<div class="callout-body">{}</div></aside>'
        ).format(block.title, Markup(block.content))
    return Markup('<div class="article-html">{}</div>').format(Markup(block.content))


def render_blocks(blocks: list[ContentBlock]) -> Markup:
    return Markup("\n").join(render_block(block) for block in blocks)


def render_content(source: str | None) -> Markup:
    """Parse and render an article body in one step."""
    return render_blocks(parse_content(source))


_JSX_SECTION_PATTERN = re.compile(r"<Section>(.*?)</Section>", re.DOTALL)
_JSX_CALLOUT_PATTERN = re.compile(r'<Callout\s+title="([^"]*)">(.*?)</Callout>', re.DOTALL)


def convert_article_to_html(article_jsx: str) -> str:
    """Convert `<Section>` / `<Callout title="...">` markup to stored HTML.

    Lets editors paste articles written as components; stored HTML passes
    through unchanged.
    """
    converted = _JSX_SECTION_PATTERN.sub(
        r'<section data-component="section">\1</section>', article_jsx
    )
    return _JSX_CALLOUT_PATTERN.sub(
        r'<aside data-component="callout" data-title="\1">\2</aside>', converted
    )


_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Build a URL slug from a title: "Bookkeeping Made Simple!" -> "bookkeeping-made-simple"."""
    return _SLUG_SEPARATORS.sub("-", title.lower()).strip("-")


__all__ = [
    "DEFAULT_CALLOUT_TITLE",
    "convert_article_to_html",
    "parse_content",
    "render_block",
    "render_blocks",
    "render_content",
    "slugify",
]

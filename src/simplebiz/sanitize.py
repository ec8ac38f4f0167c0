"""Lightweight HTML sanitising for stored article bodies.

This strips the common script vectors without a full HTML parser; it keeps
the `data-component` markers the content parser relies on.
"""

import re

ALLOWED_TAGS = frozenset(
    {
        "p",
        "br",
        "strong",
        "em",
        "u",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "ul",
        "ol",
        "li",
        "a",
        "img",
        "section",
        "aside",
        "div",
        "span",
        "blockquote",
        "code",
        "pre",
    }
)

_SCRIPT_PATTERN = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_QUOTED_HANDLER_PATTERN = re.compile(r"\son\w+\s*=\s*[\"'][^\"']*[\"']", re.IGNORECASE)
_BARE_HANDLER_PATTERN = re.compile(r"\son\w+\s*=\s*[^\s>]*", re.IGNORECASE)
_JS_PROTOCOL_PATTERN = re.compile(r"javascript:", re.IGNORECASE)
_DATA_SRC_PATTERN = re.compile(r"src\s*=\s*[\"']data:[^\"']*[\"']", re.IGNORECASE)
_OPEN_TAG_PATTERN = re.compile(r"<(\w+)[^>]*>")
_ANY_TAG_PATTERN = re.compile(r"<[^>]*>")


def sanitize_html(source: str | None) -> str:
    """Remove scripts, inline event handlers, `javascript:` and `data:` sources."""
    source = source or ""
    source = _SCRIPT_PATTERN.sub("", source)
    source = _QUOTED_HANDLER_PATTERN.sub("", source)
    source = _BARE_HANDLER_PATTERN.sub("", source)
    source = _JS_PROTOCOL_PATTERN.sub("", source)
    return _DATA_SRC_PATTERN.sub('src=""', source)


def validate_html_tags(source: str | None) -> bool:
    """True if every opening tag is in ALLOWED_TAGS."""
    return all(
        tag.lower() in ALLOWED_TAGS for tag in _OPEN_TAG_PATTERN.findall(source or "")
    )


def strip_html(source: str | None) -> str:
    if not source:
        return ""
    return _ANY_TAG_PATTERN.sub("", source)


def truncate_html(source: str | None, max_length: int) -> str:
    """Plain-text excerpt of at most `max_length` characters plus an ellipsis.

    Returns the markup unchanged when its text already fits.
    """
    source = source or ""
    stripped = strip_html(source)
    if len(stripped) <= max_length:
        return source
    return stripped[:max_length] + "..."


__all__ = [
    "ALLOWED_TAGS",
    "sanitize_html",
    "strip_html",
    "truncate_html",
    "validate_html_tags",
]

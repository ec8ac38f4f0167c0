"""Core types for the simplebiz site."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

T = TypeVar("T")

# Cache tags are plain strings: "articles", "article-{slug}", ...
CacheTag = str

# Duration type alias
Duration = str | int  # "30s", "5m", "1h30m", "3600" (seconds) or milliseconds

Fetcher = Callable[[], Awaitable[T]]


# -----------------------------------------------------------------------------
# Content blocks
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Section:
    """A `data-component="section"` block."""

    content: str
    kind: Literal["section"] = field(default="section", init=False)


@dataclass(frozen=True, slots=True)
class Callout:
    """A `data-component="callout"` block with its title."""

    content: str
    title: str = "Note"
    kind: Literal["callout"] = field(default="callout", init=False)


@dataclass(frozen=True, slots=True)
class RawHtml:
    """Markup outside any recognised block, passed through verbatim."""

    content: str
    kind: Literal["html"] = field(default="html", init=False)


ContentBlock = Section | Callout | RawHtml


# -----------------------------------------------------------------------------
# Revalidation requests
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ArticleChange:
    slug: str | None = None
    kind: Literal["article"] = field(default="article", init=False)


@dataclass(frozen=True, slots=True)
class ProductChange:
    slug: str | None = None
    kind: Literal["product"] = field(default="product", init=False)


@dataclass(frozen=True, slots=True)
class CategoryChange:
    slug: str
    kind: Literal["category"] = field(default="category", init=False)


@dataclass(frozen=True, slots=True)
class AllChange:
    kind: Literal["all"] = field(default="all", init=False)

    @property
    def slug(self) -> None:
        return None


RevalidationRequest = ArticleChange | ProductChange | CategoryChange | AllChange


@dataclass(frozen=True, slots=True)
class RevalidationResult:
    """Acknowledgement of a processed revalidation."""

    type: str
    slug: str | None
    tags: list[CacheTag]
    timestamp: str  # ISO-8601, UTC

    def to_dict(self) -> dict[str, Any]:
        return {
            "revalidated": True,
            "type": self.type,
            "slug": self.slug,
            "tags": list(self.tags),
            "timestamp": self.timestamp,
        }


# -----------------------------------------------------------------------------
# Cache
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """A cached value with metadata."""

    value: T
    tags: list[CacheTag]
    created_at: int  # Unix timestamp ms, taken when the fetch started
    revalidate_at: int  # after this the entry is served stale and regenerated


# -----------------------------------------------------------------------------
# Backend API
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ApiResponse(Generic[T]):
    """Outcome of a backend call: either data or an error message."""

    status_code: int
    data: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class ForwardedResponse:
    """Raw backend response relayed by the route proxies."""

    status_code: int
    body: bytes
    content_type: str


__all__ = [
    "AllChange",
    "ApiResponse",
    "ArticleChange",
    "CacheEntry",
    "CacheTag",
    "Callout",
    "CategoryChange",
    "ContentBlock",
    "Duration",
    "Fetcher",
    "ForwardedResponse",
    "ProductChange",
    "RawHtml",
    "RevalidationRequest",
    "RevalidationResult",
    "Section",
]

"""On-demand revalidation of cached content.

The backend calls the webhook when content changes:

    POST /api/revalidate
    X-Revalidation-Secret: <secret>
    {"type": "article", "slug": "bookkeeping-made-simple"}

The dispatcher checks the secret, maps the request to cache tags and
invalidates them. Authorization and validation both happen before any tag is
touched, so a rejected request changes nothing.
"""

from __future__ import annotations

import hmac
import logging
from datetime import datetime, timezone
from typing import Any, Protocol

from simplebiz.errors import AuthorizationFailure, InvalidRequest
from simplebiz.tags import invalidation_tags
from simplebiz.types import (
    AllChange,
    ArticleChange,
    CacheTag,
    CategoryChange,
    ProductChange,
    RevalidationRequest,
    RevalidationResult,
)

logger = logging.getLogger(__name__)


class TagInvalidator(Protocol):
    """Anything that can invalidate cache tags (normally a PageCache)."""

    async def invalidate(self, tags: list[CacheTag]) -> list[CacheTag]: ...


def _optional_slug(body: dict[str, Any]) -> str | None:
    slug = body.get("slug")
    if slug is None or slug == "":
        return None
    if not isinstance(slug, str):
        raise InvalidRequest("Slug must be a string")
    return slug


def parse_revalidation_request(body: Any) -> RevalidationRequest:
    """Build a RevalidationRequest from a decoded webhook body.

    Raises InvalidRequest for a non-object body, an unknown type, or a
    category without a slug.
    """
    if not isinstance(body, dict):
        raise InvalidRequest("Request body must be a JSON object")

    kind = body.get("type")
    if kind == "article":
        return ArticleChange(_optional_slug(body))
    if kind == "product":
        return ProductChange(_optional_slug(body))
    if kind == "category":
        slug = _optional_slug(body)
        if slug is None:
            raise InvalidRequest("Category revalidation requires a slug")
        return CategoryChange(slug)
    if kind == "all":
        return AllChange()
    raise InvalidRequest("Invalid revalidation type", {"type": kind})


class RevalidationDispatcher:
    """Turns authenticated change notifications into tag invalidations."""

    def __init__(self, cache: TagInvalidator, secret: str | None) -> None:
        self._cache = cache
        self._secret = secret

    def authorize(self, presented: str | None) -> None:
        """Raise AuthorizationFailure unless `presented` matches the secret."""
        if not self._secret or presented is None:
            raise AuthorizationFailure()
        if not hmac.compare_digest(presented.encode(), self._secret.encode()):
            raise AuthorizationFailure()

    async def dispatch(
        self, request: RevalidationRequest, presented_secret: str | None
    ) -> RevalidationResult:
        """Authorize, then invalidate the tags for `request`."""
        try:
            self.authorize(presented_secret)
        except AuthorizationFailure:
            logger.warning("Rejected revalidation of %s: bad secret", request.kind)
            raise
        return await self.apply(request)

    async def apply(self, request: RevalidationRequest) -> RevalidationResult:
        """Invalidate the tags for an already-trusted request.

        Used directly by the admin editors after a successful save.
        """
        tags = invalidation_tags(request)
        done = await self._cache.invalidate(tags)
        logger.info(
            "Revalidated %s%s: %s",
            request.kind,
            f" {request.slug}" if request.slug else "",
            ", ".join(done),
        )
        return RevalidationResult(
            type=request.kind,
            slug=request.slug,
            tags=done,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )


__all__ = [
    "RevalidationDispatcher",
    "TagInvalidator",
    "parse_revalidation_request",
]

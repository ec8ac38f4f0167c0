"""Cache tags for published content.

Every tagged fetch registers its coarse collection tag plus, for single
items, a per-item tag, so both collection-level and item-level
revalidations reach it.
"""

from simplebiz.errors import InvalidRequest
from simplebiz.types import (
    AllChange,
    ArticleChange,
    CacheTag,
    CategoryChange,
    ProductChange,
    RevalidationRequest,
)

ARTICLES: CacheTag = "articles"
PRODUCTS: CacheTag = "products"


def article_tag(slug: str) -> CacheTag:
    return f"article-{slug}"


def product_tag(slug: str) -> CacheTag:
    return f"product-{slug}"


def category_tag(slug: str) -> CacheTag:
    return f"category-{slug}"


def article_fetch_tags(slug: str | None = None) -> list[CacheTag]:
    """Tags registered by a read of one article, or of the article list."""
    return [ARTICLES, article_tag(slug)] if slug else [ARTICLES]


def product_fetch_tags(slug: str | None = None) -> list[CacheTag]:
    return [PRODUCTS, product_tag(slug)] if slug else [PRODUCTS]


def category_fetch_tags(slug: str | None = None) -> list[CacheTag]:
    return [PRODUCTS, category_tag(slug)] if slug else [PRODUCTS]


def invalidation_tags(request: RevalidationRequest) -> list[CacheTag]:
    """Map a revalidation request to the tags it invalidates, in order.

    Raises InvalidRequest for a category without a slug or an unknown kind.
    """
    if isinstance(request, ArticleChange):
        return article_fetch_tags(request.slug)
    if isinstance(request, ProductChange):
        return product_fetch_tags(request.slug)
    if isinstance(request, CategoryChange):
        if not request.slug:
            raise InvalidRequest("Category revalidation requires a slug")
        return category_fetch_tags(request.slug)
    if isinstance(request, AllChange):
        return [ARTICLES, PRODUCTS]
    raise InvalidRequest("Invalid revalidation type")


__all__ = [
    "ARTICLES",
    "PRODUCTS",
    "article_fetch_tags",
    "article_tag",
    "category_fetch_tags",
    "category_tag",
    "invalidation_tags",
    "product_fetch_tags",
    "product_tag",
]

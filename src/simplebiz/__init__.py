"""simplebiz - Catalog site with tag-based revalidation."""

from contextlib import suppress

# Adapters
from simplebiz.adapters import AsyncCacheAdapter, AsyncMemoryAdapter

# Backend API
from simplebiz.api import ApiConfig, BackendClient

# Tag cache
from simplebiz.cache import PageCache, create_cache
from simplebiz.config import Settings

# Content
from simplebiz.content import parse_content, render_blocks, render_content
from simplebiz.duration import parse_duration
from simplebiz.errors import AuthorizationFailure, InvalidRequest, SiteError, UpstreamFailure
from simplebiz.revalidation import RevalidationDispatcher, parse_revalidation_request

# Core types
from simplebiz.types import (
    AllChange,
    ArticleChange,
    CacheEntry,
    Callout,
    CategoryChange,
    ContentBlock,
    ProductChange,
    RawHtml,
    RevalidationRequest,
    RevalidationResult,
    Section,
)

# Optional adapter imports - only available when dependencies are installed
with suppress(ImportError):
    from simplebiz.adapters import AsyncRedisAdapter

__version__ = "0.1.0"

__all__ = [
    "AllChange",
    "ApiConfig",
    "ArticleChange",
    "AsyncCacheAdapter",
    "AsyncMemoryAdapter",
    "AsyncRedisAdapter",
    "AuthorizationFailure",
    "BackendClient",
    "CacheEntry",
    "Callout",
    "CategoryChange",
    "ContentBlock",
    "InvalidRequest",
    "PageCache",
    "ProductChange",
    "RawHtml",
    "RevalidationDispatcher",
    "RevalidationRequest",
    "RevalidationResult",
    "Section",
    "Settings",
    "SiteError",
    "UpstreamFailure",
    "create_cache",
    "parse_content",
    "parse_duration",
    "parse_revalidation_request",
    "render_blocks",
    "render_content",
]

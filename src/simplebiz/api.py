"""Client for the backend REST API.

Each logical request builds its own `ApiConfig` (base URL plus an optional
bearer token) and its own `BackendClient`; there is no shared client holding
credentials. Reads of published content are registered with cache tags and
go through the tag cache when one is given; admin calls are never cached.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from types import TracebackType
from typing import Any, TypeVar
from urllib.parse import quote

import httpx

from simplebiz.cache import PageCache
from simplebiz.config import DEFAULT_API_URL
from simplebiz.errors import UpstreamFailure
from simplebiz.models import Article, ProductCategory, ProductItem
from simplebiz.tags import article_fetch_tags, category_fetch_tags, product_fetch_tags
from simplebiz.types import ApiResponse, CacheTag, Duration, ForwardedResponse

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ApiConfig:
    """Where to reach the backend and which credential to present."""

    base_url: str = DEFAULT_API_URL
    token: str | None = None
    timeout: float = 30.0

    def with_token(self, token: str | None) -> ApiConfig:
        return replace(self, token=token)


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _article(raw: Any) -> Article:
    return Article.from_api(raw)


def _articles(raw: Any) -> list[Article]:
    return [Article.from_api(item) for item in raw or []]


def _product(raw: Any) -> ProductItem:
    return ProductItem.from_api(raw)


def _category(raw: Any) -> ProductCategory:
    return ProductCategory.from_api(raw)


def _categories(raw: Any) -> list[ProductCategory]:
    return [ProductCategory.from_api(item) for item in raw or []]


def _passthrough(raw: Any) -> Any:
    return raw


class BackendClient:
    """Async client for the backend API."""

    def __init__(
        self,
        config: ApiConfig,
        *,
        cache: PageCache | None = None,
        revalidate: Duration | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._cache = cache
        self._revalidate = revalidate
        headers = {"Accept": "application/json"}
        if config.token:
            headers["Authorization"] = f"Bearer {config.token}"
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers=headers,
            timeout=config.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> BackendClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def config(self) -> ApiConfig:
        return self._config

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def _request(
        self, method: str, endpoint: str, *, body: Any = None
    ) -> tuple[int, Any]:
        """Call the backend; return status and the unwrapped JSON payload.

        Raises UpstreamFailure for transport errors and non-2xx answers.
        """
        try:
            response = await self._client.request(method, endpoint, json=body)
        except httpx.HTTPError as e:
            raise UpstreamFailure(str(e) or type(e).__name__, status_code=500) from e

        if not response.is_success:
            message = None
            try:
                error_body = response.json()
                if isinstance(error_body, dict):
                    message = error_body.get("message")
            except ValueError:
                pass
            raise UpstreamFailure(
                message or f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )

        if not response.content:
            return response.status_code, None
        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamFailure("Backend returned invalid JSON") from e

        # Some endpoints wrap the payload as {"data": ...}
        if isinstance(payload, dict) and "data" in payload:
            payload = payload["data"]
        return response.status_code, payload

    async def _call(
        self,
        method: str,
        endpoint: str,
        parse: Callable[[Any], T],
        *,
        body: Any = None,
        tags: list[CacheTag] | None = None,
    ) -> ApiResponse[T]:
        async def load() -> Any:
            _, payload = await self._request(method, endpoint, body=body)
            return payload

        try:
            if tags and self._cache is not None:
                status = 200
                raw = await self._cache.query(
                    key=f"{method} {endpoint}",
                    tags=tags,
                    fn=load,
                    revalidate=self._revalidate,
                )
            else:
                status, raw = await self._request(method, endpoint, body=body)
        except UpstreamFailure as e:
            logger.warning("Backend %s %s failed: %s", method, endpoint, e.message)
            return ApiResponse(status_code=e.status_code, error=e.message)

        if raw is None:
            return ApiResponse(status_code=status)
        try:
            return ApiResponse(status_code=status, data=parse(raw))
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Unexpected payload from %s %s: %s", method, endpoint, e)
            return ApiResponse(status_code=502, error="Unexpected response from backend")

    async def forward(
        self,
        method: str,
        endpoint: str,
        *,
        body: bytes | None = None,
        content_type: str | None = None,
    ) -> ForwardedResponse:
        """Relay a request verbatim and return the backend's raw answer."""
        headers = {"Content-Type": content_type or "application/json"} if body else {}
        try:
            response = await self._client.request(
                method, endpoint, content=body, headers=headers
            )
        except httpx.HTTPError as e:
            raise UpstreamFailure(str(e) or type(e).__name__) from e
        return ForwardedResponse(
            status_code=response.status_code,
            body=response.content,
            content_type=response.headers.get("content-type", "text/plain"),
        )

    # ==================== ARTICLES ====================

    async def get_articles(self) -> ApiResponse[list[Article]]:
        """All published articles."""
        return await self._call(
            "GET", "/api/articles?status=published", _articles, tags=article_fetch_tags()
        )

    async def get_article_by_slug(self, slug: str) -> ApiResponse[Article]:
        return await self._call(
            "GET",
            f"/api/articles/slug/{_segment(slug)}",
            _article,
            tags=article_fetch_tags(slug),
        )

    async def get_all_articles(self) -> ApiResponse[list[Article]]:
        """All articles including drafts (admin)."""
        return await self._call("GET", "/api/articles", _articles)

    async def get_article_by_id(self, article_id: str) -> ApiResponse[Article]:
        return await self._call("GET", f"/api/articles/{_segment(article_id)}", _article)

    async def create_article(self, article: dict[str, Any]) -> ApiResponse[Article]:
        return await self._call("POST", "/api/articles", _article, body=article)

    async def update_article(
        self, article_id: str, article: dict[str, Any]
    ) -> ApiResponse[Article]:
        return await self._call(
            "PUT", f"/api/articles/{_segment(article_id)}", _article, body=article
        )

    async def delete_article(self, article_id: str) -> ApiResponse[None]:
        return await self._call(
            "DELETE", f"/api/articles/{_segment(article_id)}", _passthrough
        )

    # ==================== PRODUCTS ====================

    async def get_product_categories(self) -> ApiResponse[list[ProductCategory]]:
        """All categories with their items."""
        return await self._call(
            "GET", "/api/products/categories", _categories, tags=category_fetch_tags()
        )

    async def get_category_by_slug(self, slug: str) -> ApiResponse[ProductCategory]:
        return await self._call(
            "GET",
            f"/api/products/categories/slug/{_segment(slug)}",
            _category,
            tags=category_fetch_tags(slug),
        )

    async def get_product_by_slug(
        self, category_slug: str, product_slug: str
    ) -> ApiResponse[ProductItem]:
        return await self._call(
            "GET",
            f"/api/products/slug/{_segment(category_slug)}/{_segment(product_slug)}",
            _product,
            tags=product_fetch_tags(product_slug),
        )

    async def get_product_by_id(self, product_id: str) -> ApiResponse[ProductItem]:
        return await self._call("GET", f"/api/products/{_segment(product_id)}", _product)

    async def create_product(self, product: dict[str, Any]) -> ApiResponse[ProductItem]:
        return await self._call("POST", "/api/products", _product, body=product)

    async def update_product(
        self, product_id: str, product: dict[str, Any]
    ) -> ApiResponse[ProductItem]:
        return await self._call(
            "PUT", f"/api/products/{_segment(product_id)}", _product, body=product
        )

    async def delete_product(self, product_id: str) -> ApiResponse[None]:
        return await self._call(
            "DELETE", f"/api/products/{_segment(product_id)}", _passthrough
        )

    # ==================== CATEGORIES ====================

    async def get_category_by_id(self, category_id: str) -> ApiResponse[ProductCategory]:
        return await self._call(
            "GET", f"/api/products/categories/{_segment(category_id)}", _category
        )

    async def create_category(
        self, category: dict[str, Any]
    ) -> ApiResponse[ProductCategory]:
        return await self._call("POST", "/api/products/categories", _category, body=category)

    async def update_category(
        self, category_id: str, category: dict[str, Any]
    ) -> ApiResponse[ProductCategory]:
        return await self._call(
            "PUT",
            f"/api/products/categories/{_segment(category_id)}",
            _category,
            body=category,
        )

    async def delete_category(self, category_id: str) -> ApiResponse[None]:
        return await self._call(
            "DELETE", f"/api/products/categories/{_segment(category_id)}", _passthrough
        )

    # ==================== AUTH ====================

    async def login(self, email: str, password: str) -> ApiResponse[dict[str, Any]]:
        """Exchange admin credentials for a backend token: {"token", "user"}."""
        return await self._call(
            "POST",
            "/api/auth/login",
            _passthrough,
            body={"email": email, "password": password},
        )


__all__ = ["ApiConfig", "BackendClient"]

"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlencode

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response

from simplebiz.adapters import AsyncCacheAdapter, AsyncMemoryAdapter
from simplebiz.api import ApiConfig
from simplebiz.auth import LOGIN_PATH, SessionStore
from simplebiz.cache import PageCache, create_cache
from simplebiz.config import Settings
from simplebiz.dependencies import current_session
from simplebiz.errors import SiteError
from simplebiz.revalidation import RevalidationDispatcher
from simplebiz.routes import admin, pages, proxy, revalidate

logger = logging.getLogger(__name__)


def build_adapter(settings: Settings) -> AsyncCacheAdapter:
    """Redis when REDIS_URL is set, otherwise an in-process cache."""
    if settings.redis_url:
        from simplebiz.adapters.redis import AsyncRedisAdapter

        return AsyncRedisAdapter.from_url(settings.redis_url, prefix=settings.cache_prefix)
    return AsyncMemoryAdapter(max_items=settings.cache_max_items)


async def _site_error_handler(request: Request, exc: SiteError) -> Response:
    return JSONResponse(exc.to_response(), status_code=exc.status_code)


def create_app(
    settings: Settings | None = None,
    *,
    cache: PageCache | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the site.

    Args:
        settings: Site settings (default: read from the environment)
        cache: Tag cache (default: built from settings)
        transport: httpx transport for backend calls; tests pass a mock
    """
    settings = settings or Settings.from_env()
    if cache is None:
        cache = create_cache(
            adapter=build_adapter(settings),
            prefix=settings.cache_prefix,
            default_revalidate=settings.revalidate,
        )
    if not settings.revalidation_secret:
        logger.warning("REVALIDATION_SECRET is not set; revalidation webhook is disabled")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await cache.disconnect()

    app = FastAPI(title=settings.site_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.cache = cache
    app.state.sessions = SessionStore(settings.session_ttl_ms)
    app.state.dispatcher = RevalidationDispatcher(cache, settings.revalidation_secret)
    app.state.api_config = ApiConfig(base_url=settings.api_url, timeout=settings.api_timeout)
    app.state.transport = transport

    app.add_exception_handler(SiteError, _site_error_handler)  # type: ignore[arg-type]

    @app.middleware("http")
    async def protect_admin(request: Request, call_next):  # type: ignore[no-untyped-def]
        path = request.url.path
        if path.startswith("/admin") and not path.startswith(LOGIN_PATH):
            if current_session(request) is None:
                query = urlencode({"callbackUrl": path})
                return RedirectResponse(f"{LOGIN_PATH}?{query}", status_code=303)
        return await call_next(request)

    app.include_router(revalidate.router)
    app.include_router(proxy.router)
    app.include_router(pages.router)
    app.include_router(admin.router)
    return app


__all__ = ["build_adapter", "create_app"]

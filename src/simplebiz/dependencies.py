"""Request-scoped dependencies shared by the routers."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

from fastapi import Depends, Request
from fastapi.templating import Jinja2Templates

from simplebiz.api import ApiConfig, BackendClient
from simplebiz.auth import SESSION_COOKIE, Session, SessionStore
from simplebiz.config import Settings
from simplebiz.errors import AuthorizationFailure
from simplebiz.revalidation import RevalidationDispatcher
from simplebiz.sanitize import strip_html, truncate_html

EXCERPT_LENGTH = 160


def excerpt(source: str | None, length: int = EXCERPT_LENGTH) -> str:
    """Plain-text preview of stored HTML for listings."""
    return strip_html(truncate_html(source, length))


templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
templates.env.filters["excerpt"] = excerpt


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_dispatcher(request: Request) -> RevalidationDispatcher:
    return request.app.state.dispatcher


def get_sessions(request: Request) -> SessionStore:
    return request.app.state.sessions


def current_session(request: Request) -> Session | None:
    store: SessionStore = request.app.state.sessions
    return store.get(request.cookies.get(SESSION_COOKIE))


def require_session(request: Request) -> Session:
    """The signed-in admin; API callers without one get a 401."""
    session = current_session(request)
    if session is None:
        raise AuthorizationFailure("Unauthorized - No session found. Please log in again.")
    return session


def _client(request: Request, config: ApiConfig, *, cached: bool) -> BackendClient:
    state = request.app.state
    return BackendClient(
        config,
        cache=state.cache if cached else None,
        revalidate=state.settings.revalidate,
        transport=state.transport,
    )


async def public_api(request: Request) -> AsyncIterator[BackendClient]:
    """Anonymous, tag-cached client for published content."""
    async with _client(request, request.app.state.api_config, cached=True) as api:
        yield api


async def anonymous_api(request: Request) -> AsyncIterator[BackendClient]:
    """Anonymous, uncached client (sign-in, public proxies)."""
    async with _client(request, request.app.state.api_config, cached=False) as api:
        yield api


async def admin_api(
    request: Request, session: Session = Depends(require_session)
) -> AsyncIterator[BackendClient]:
    """Uncached client carrying the signed-in admin's backend token."""
    config = request.app.state.api_config.with_token(session.access_token)
    async with _client(request, config, cached=False) as api:
        yield api

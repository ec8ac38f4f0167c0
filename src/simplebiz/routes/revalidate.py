"""Revalidation webhook called by the backend when content changes."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse

from simplebiz.dependencies import get_dispatcher
from simplebiz.errors import InvalidRequest, SiteError
from simplebiz.revalidation import RevalidationDispatcher, parse_revalidation_request

router = APIRouter(prefix="/api", tags=["revalidate"])

logger = logging.getLogger(__name__)


@router.post("/revalidate")
async def revalidate(
    request: Request,
    x_revalidation_secret: str | None = Header(default=None),
    dispatcher: RevalidationDispatcher = Depends(get_dispatcher),
) -> Any:
    """Invalidate the cache tags for `{"type": ..., "slug": ...}`."""
    try:
        body = await request.json()
    except ValueError:
        body = None

    try:
        change = parse_revalidation_request(body)
    except InvalidRequest:
        # A bad secret is reported before a bad body
        dispatcher.authorize(x_revalidation_secret)
        raise

    try:
        result = await dispatcher.dispatch(change, x_revalidation_secret)
    except SiteError:
        raise
    except Exception:
        logger.exception("Revalidation error")
        return JSONResponse({"error": "Revalidation failed"}, status_code=500)
    return result.to_dict()

"""Stateless proxies for catalog writes.

Reads are public. Writes need an admin session; the session's backend token
is forwarded as a bearer credential together with the untouched body.
"""

from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from simplebiz.api import BackendClient
from simplebiz.dependencies import admin_api, anonymous_api
from simplebiz.types import ForwardedResponse

router = APIRouter(prefix="/api/products", tags=["proxy"])


def _relay(forwarded: ForwardedResponse) -> Response:
    return Response(
        content=forwarded.body,
        status_code=forwarded.status_code,
        media_type=forwarded.content_type,
    )


async def _forward(request: Request, api: BackendClient, endpoint: str) -> Response:
    body = await request.body()
    forwarded = await api.forward(
        request.method,
        endpoint,
        body=body or None,
        content_type=request.headers.get("content-type"),
    )
    return _relay(forwarded)


# Category routes come first so "categories" is never taken for a product id


@router.get("/categories")
async def list_categories(
    request: Request, api: BackendClient = Depends(anonymous_api)
) -> Response:
    return await _forward(request, api, "/api/products/categories")


@router.post("/categories")
async def create_category(
    request: Request, api: BackendClient = Depends(admin_api)
) -> Response:
    return await _forward(request, api, "/api/products/categories")


@router.get("/categories/{category_id}")
async def get_category(
    category_id: str, request: Request, api: BackendClient = Depends(anonymous_api)
) -> Response:
    return await _forward(
        request, api, f"/api/products/categories/{quote(category_id, safe='')}"
    )


@router.put("/categories/{category_id}")
@router.delete("/categories/{category_id}")
async def write_category(
    category_id: str, request: Request, api: BackendClient = Depends(admin_api)
) -> Response:
    return await _forward(
        request, api, f"/api/products/categories/{quote(category_id, safe='')}"
    )


@router.get("/{product_id}")
async def get_product(
    product_id: str, request: Request, api: BackendClient = Depends(anonymous_api)
) -> Response:
    return await _forward(request, api, f"/api/products/{quote(product_id, safe='')}")


@router.put("/{product_id}")
@router.delete("/{product_id}")
async def write_product(
    product_id: str, request: Request, api: BackendClient = Depends(admin_api)
) -> Response:
    return await _forward(request, api, f"/api/products/{quote(product_id, safe='')}")

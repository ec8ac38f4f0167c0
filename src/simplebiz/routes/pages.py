"""Public pages: blog and product catalog.

Data comes through the tag-cached client, so a page is regenerated after its
revalidate window or as soon as the backend revalidates one of its tags.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from simplebiz.api import BackendClient
from simplebiz.content import render_content
from simplebiz.dependencies import public_api, templates
from simplebiz.sanitize import sanitize_html, strip_html

router = APIRouter(tags=["pages"])


def not_found(request: Request) -> Response:
    return templates.TemplateResponse(request, "not_found.html", status_code=404)


@router.get("/", include_in_schema=False)
async def home() -> Response:
    return RedirectResponse("/blog")


@router.get("/blog", response_class=HTMLResponse)
async def blog_index(request: Request, api: BackendClient = Depends(public_api)) -> Response:
    response = await api.get_articles()
    articles = sorted(response.data or [], key=lambda a: a.date_iso, reverse=True)
    return templates.TemplateResponse(request, "blog_index.html", {"articles": articles})


@router.get("/blog/{slug}", response_class=HTMLResponse)
async def blog_post(
    slug: str, request: Request, api: BackendClient = Depends(public_api)
) -> Response:
    response = await api.get_article_by_slug(slug)
    article = response.data
    if article is None:
        return not_found(request)

    return templates.TemplateResponse(
        request,
        "article.html",
        {
            "article": article,
            "body": render_content(sanitize_html(article.content)),
            "page_title": article.seo_title or article.title,
            "page_description": article.seo_description or strip_html(article.description),
            "og_image": article.og_image or article.featured_image,
            "canonical_url": article.canonical_url or f"/blog/{article.slug}",
        },
    )


@router.get("/products", response_class=HTMLResponse)
async def products_index(
    request: Request, api: BackendClient = Depends(public_api)
) -> Response:
    response = await api.get_product_categories()
    return templates.TemplateResponse(
        request, "products_index.html", {"categories": response.data or []}
    )


@router.get("/products/{category_slug}", response_class=HTMLResponse)
async def category_page(
    category_slug: str, request: Request, api: BackendClient = Depends(public_api)
) -> Response:
    response = await api.get_category_by_slug(category_slug)
    category = response.data
    if category is None:
        return not_found(request)

    return templates.TemplateResponse(
        request, "category.html", {"category": category, "items": category.items}
    )


@router.get("/products/{category_slug}/{product_slug}", response_class=HTMLResponse)
async def product_page(
    category_slug: str,
    product_slug: str,
    request: Request,
    api: BackendClient = Depends(public_api),
) -> Response:
    response = await api.get_product_by_slug(category_slug, product_slug)
    product = response.data
    if product is None:
        return not_found(request)

    category = (await api.get_category_by_slug(category_slug)).data
    return templates.TemplateResponse(
        request, "product.html", {"product": product, "category": category}
    )

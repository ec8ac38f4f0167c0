"""Admin CMS: sign-in and the article, product and category editors.

Every page except the sign-in form sits behind the admin middleware. Editors
call the backend with the admin's own token and, after a successful save,
revalidate the tags of what they changed.
"""

from __future__ import annotations

import logging
from typing import Any, cast

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from starlette.datastructures import FormData

from simplebiz.api import BackendClient
from simplebiz.auth import (
    LOGIN_PATH,
    SESSION_COOKIE,
    SessionStore,
    safe_callback_url,
    sign_in,
)
from simplebiz.config import Settings
from simplebiz.content import convert_article_to_html, slugify
from simplebiz.dependencies import (
    admin_api,
    anonymous_api,
    current_session,
    get_dispatcher,
    get_sessions,
    get_settings,
    templates,
)
from simplebiz.errors import AuthorizationFailure, InvalidRequest
from simplebiz.models import Article, ProductCategory, ProductItem, Status
from simplebiz.revalidation import RevalidationDispatcher
from simplebiz.sanitize import validate_html_tags
from simplebiz.types import ArticleChange, CategoryChange, ProductChange, RevalidationRequest

router = APIRouter(prefix="/admin", tags=["admin"], include_in_schema=False)

logger = logging.getLogger(__name__)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=303)


def _text(form: FormData, name: str) -> str:
    value = form.get(name)
    return value.strip() if isinstance(value, str) else ""


def _optional_text(form: FormData, name: str) -> str | None:
    return _text(form, name) or None


def _split(value: str, separator: str) -> list[str]:
    return [part.strip() for part in value.split(separator) if part.strip()]


def _check_status(status: str) -> None:
    if status not in ("draft", "published"):
        raise InvalidRequest(f"Unknown status: {status}")


def _payload(record: Article | ProductItem | ProductCategory) -> dict[str, Any]:
    """Backend JSON for a record edited in a form; the id travels in the URL."""
    payload = record.to_api()
    payload.pop("id", None)
    payload.pop("items", None)
    return payload


def article_from_form(form: FormData, article_id: str = "") -> Article:
    """The article as entered, so a rejected form can be shown again."""
    title = _text(form, "title")
    reading_minutes = _text(form, "readingMinutes")
    return Article(
        id=article_id,
        title=title,
        slug=_text(form, "slug") or slugify(title),
        subtitle=_optional_text(form, "subtitle"),
        description=_text(form, "description"),
        content=convert_article_to_html(_text(form, "content")),
        date_iso=_text(form, "dateISO"),
        category=_text(form, "category"),
        reading_minutes=int(reading_minutes) if reading_minutes.isdigit() else 0,
        badges=_split(_text(form, "badges"), ","),
        featured_image=_optional_text(form, "featuredImage"),
        header_image=_optional_text(form, "headerImage"),
        status=cast(Status, _text(form, "status") or "draft"),
        seo_title=_optional_text(form, "seoTitle"),
        seo_description=_optional_text(form, "seoDescription"),
        og_image=_optional_text(form, "ogImage"),
        canonical_url=_optional_text(form, "canonicalUrl"),
    )


def article_payload(form: FormData, article: Article) -> dict[str, Any]:
    """Validate the form and return the backend JSON for `article`."""
    if not article.title:
        raise InvalidRequest("Title is required")
    reading_minutes = _text(form, "readingMinutes")
    if reading_minutes and not reading_minutes.isdigit():
        raise InvalidRequest("Reading minutes must be a whole number")
    _check_status(article.status)
    if not validate_html_tags(article.content):
        raise InvalidRequest("Content contains disallowed HTML tags")
    return _payload(article)


def product_from_form(form: FormData, product_id: str = "") -> ProductItem:
    title = _text(form, "title")
    return ProductItem(
        id=product_id,
        title=title,
        slug=_text(form, "slug") or slugify(title),
        problem=_text(form, "problem"),
        description=_optional_text(form, "description"),
        bullets=_split(_text(form, "bullets"), "\n"),
        image=_text(form, "image"),
        etsy_url=_text(form, "etsyUrl"),
        price=_text(form, "price"),
        category_id=_text(form, "categoryId"),
        status=cast(Status, _text(form, "status") or "draft"),
    )


def product_payload(product: ProductItem) -> dict[str, Any]:
    if not product.title:
        raise InvalidRequest("Title is required")
    if not product.category_id:
        raise InvalidRequest("Category is required")
    _check_status(product.status)
    return _payload(product)


def category_from_form(form: FormData, category_id: str = "") -> ProductCategory:
    name = _text(form, "name")
    return ProductCategory(
        id=category_id,
        name=name,
        slug=_text(form, "slug") or slugify(name),
        summary=_text(form, "summary"),
        how_this_helps=_text(form, "howThisHelps"),
        hero_image=_text(form, "heroImage"),
    )


def category_payload(category: ProductCategory) -> dict[str, Any]:
    if not category.name:
        raise InvalidRequest("Name is required")
    return _payload(category)


async def _revalidate(dispatcher: RevalidationDispatcher, change: RevalidationRequest) -> None:
    """Revalidate after a save; the save itself already succeeded."""
    try:
        await dispatcher.apply(change)
    except Exception:
        logger.exception("Revalidation after save failed for %s", change.kind)


def _form_page(
    request: Request,
    name: str,
    context: dict[str, Any],
    *,
    error: str | None = None,
    status_code: int = 200,
) -> Response:
    return templates.TemplateResponse(
        request,
        name,
        {**context, "error": error, "session": current_session(request)},
        status_code=status_code,
    )


# ==================== SIGN-IN ====================


@router.get("/login", response_class=HTMLResponse)
async def login_form(
    request: Request, callback_url: str | None = Query(None, alias="callbackUrl")
) -> Response:
    return _form_page(
        request, "admin/login.html", {"callback_url": safe_callback_url(callback_url)}
    )


@router.post("/login")
async def login(
    request: Request,
    api: BackendClient = Depends(anonymous_api),
    sessions: SessionStore = Depends(get_sessions),
    settings: Settings = Depends(get_settings),
) -> Response:
    form = await request.form()
    callback_url = safe_callback_url(_text(form, "callbackUrl"))
    try:
        session = await sign_in(api, sessions, _text(form, "email"), _text(form, "password"))
    except AuthorizationFailure as e:
        return _form_page(
            request,
            "admin/login.html",
            {"callback_url": callback_url, "email": _text(form, "email")},
            error=e.message,
            status_code=401,
        )

    response = _redirect(callback_url)
    response.set_cookie(
        SESSION_COOKIE,
        session.session_id,
        max_age=settings.session_ttl_ms // 1000,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return response


@router.get("/logout")
async def logout(
    request: Request, sessions: SessionStore = Depends(get_sessions)
) -> Response:
    sessions.delete(request.cookies.get(SESSION_COOKIE))
    response = _redirect(LOGIN_PATH)
    response.delete_cookie(SESSION_COOKIE)
    return response


# ==================== DASHBOARD ====================


@router.get("", response_class=HTMLResponse)
async def dashboard(
    request: Request, api: BackendClient = Depends(admin_api)
) -> Response:
    articles = await api.get_all_articles()
    categories = await api.get_product_categories()
    return _form_page(
        request,
        "admin/dashboard.html",
        {
            "article_count": len(articles.data or []),
            "category_count": len(categories.data or []),
            "product_count": sum(len(c.items) for c in categories.data or []),
            "errors": [r.error for r in (articles, categories) if r.error],
        },
    )


# ==================== ARTICLES ====================


async def _article_list_page(
    request: Request,
    api: BackendClient,
    *,
    error: str | None = None,
    status_code: int = 200,
) -> Response:
    response = await api.get_all_articles()
    return _form_page(
        request,
        "admin/articles.html",
        {"articles": response.data or []},
        error=error or response.error,
        status_code=status_code,
    )


@router.get("/articles", response_class=HTMLResponse)
async def article_list(request: Request, api: BackendClient = Depends(admin_api)) -> Response:
    return await _article_list_page(request, api)


@router.get("/articles/new", response_class=HTMLResponse)
async def new_article_form(request: Request) -> Response:
    return _form_page(request, "admin/article_form.html", {"article": Article(), "is_new": True})


@router.post("/articles/new")
async def create_article(
    request: Request,
    api: BackendClient = Depends(admin_api),
    dispatcher: RevalidationDispatcher = Depends(get_dispatcher),
) -> Response:
    form = await request.form()
    article = article_from_form(form)
    context: dict[str, Any] = {"article": article, "is_new": True}
    try:
        payload = article_payload(form, article)
    except InvalidRequest as e:
        return _form_page(
            request, "admin/article_form.html", context, error=e.message, status_code=400
        )

    response = await api.create_article(payload)
    if not response.ok:
        return _form_page(
            request,
            "admin/article_form.html",
            context,
            error=response.error,
            status_code=response.status_code,
        )

    await _revalidate(dispatcher, ArticleChange(article.slug))
    return _redirect("/admin/articles")


@router.get("/articles/{article_id}/edit", response_class=HTMLResponse)
async def edit_article_form(
    article_id: str, request: Request, api: BackendClient = Depends(admin_api)
) -> Response:
    response = await api.get_article_by_id(article_id)
    if response.data is None:
        return templates.TemplateResponse(request, "not_found.html", status_code=404)
    return _form_page(request, "admin/article_form.html", {"article": response.data, "is_new": False})


@router.post("/articles/{article_id}/edit")
async def update_article(
    article_id: str,
    request: Request,
    api: BackendClient = Depends(admin_api),
    dispatcher: RevalidationDispatcher = Depends(get_dispatcher),
) -> Response:
    form = await request.form()
    previous_slug = _text(form, "previousSlug")
    article = article_from_form(form, article_id)
    context: dict[str, Any] = {
        "article": article,
        "is_new": False,
        "previous_slug": previous_slug,
    }
    try:
        payload = article_payload(form, article)
    except InvalidRequest as e:
        return _form_page(
            request, "admin/article_form.html", context, error=e.message, status_code=400
        )

    response = await api.update_article(article_id, payload)
    if not response.ok:
        return _form_page(
            request,
            "admin/article_form.html",
            context,
            error=response.error,
            status_code=response.status_code,
        )

    await _revalidate(dispatcher, ArticleChange(article.slug))
    if previous_slug and previous_slug != article.slug:
        await _revalidate(dispatcher, ArticleChange(previous_slug))
    return _redirect("/admin/articles")


@router.post("/articles/{article_id}/delete")
async def delete_article(
    article_id: str,
    request: Request,
    api: BackendClient = Depends(admin_api),
    dispatcher: RevalidationDispatcher = Depends(get_dispatcher),
) -> Response:
    form = await request.form()
    response = await api.delete_article(article_id)
    if not response.ok:
        return await _article_list_page(
            request,
            api,
            error=response.error or "Failed to delete article",
            status_code=response.status_code,
        )
    await _revalidate(dispatcher, ArticleChange(_text(form, "slug") or None))
    return _redirect("/admin/articles")


# ==================== PRODUCTS ====================


async def _categories(api: BackendClient) -> list[ProductCategory]:
    return (await api.get_product_categories()).data or []


async def _product_list_page(
    request: Request,
    api: BackendClient,
    *,
    error: str | None = None,
    status_code: int = 200,
) -> Response:
    response = await api.get_product_categories()
    return _form_page(
        request,
        "admin/products.html",
        {"categories": response.data or []},
        error=error or response.error,
        status_code=status_code,
    )


@router.get("/products", response_class=HTMLResponse)
async def product_list(request: Request, api: BackendClient = Depends(admin_api)) -> Response:
    return await _product_list_page(request, api)


@router.get("/products/new", response_class=HTMLResponse)
async def new_product_form(
    request: Request,
    api: BackendClient = Depends(admin_api),
    category_id: str = Query("", alias="categoryId"),
) -> Response:
    return _form_page(
        request,
        "admin/product_form.html",
        {
            "product": ProductItem(category_id=category_id),
            "categories": await _categories(api),
            "is_new": True,
        },
    )


async def _save_product(
    request: Request,
    api: BackendClient,
    dispatcher: RevalidationDispatcher,
    product_id: str | None,
) -> Response:
    form = await request.form()
    product = product_from_form(form, product_id or "")
    try:
        payload = product_payload(product)
    except InvalidRequest as e:
        error, status_code = e.message, 400
    else:
        if product_id is None:
            response = await api.create_product(payload)
        else:
            response = await api.update_product(product_id, payload)
        if response.ok:
            await _revalidate(dispatcher, ProductChange(product.slug))
            return _redirect("/admin/products")
        error, status_code = response.error, response.status_code

    return _form_page(
        request,
        "admin/product_form.html",
        {
            "product": product,
            "categories": await _categories(api),
            "is_new": product_id is None,
        },
        error=error,
        status_code=status_code,
    )


@router.post("/products/new")
async def create_product(
    request: Request,
    api: BackendClient = Depends(admin_api),
    dispatcher: RevalidationDispatcher = Depends(get_dispatcher),
) -> Response:
    return await _save_product(request, api, dispatcher, None)


@router.get("/products/{product_id}/edit", response_class=HTMLResponse)
async def edit_product_form(
    product_id: str, request: Request, api: BackendClient = Depends(admin_api)
) -> Response:
    response = await api.get_product_by_id(product_id)
    if response.data is None:
        return templates.TemplateResponse(request, "not_found.html", status_code=404)
    return _form_page(
        request,
        "admin/product_form.html",
        {"product": response.data, "categories": await _categories(api), "is_new": False},
    )


@router.post("/products/{product_id}/edit")
async def update_product(
    product_id: str,
    request: Request,
    api: BackendClient = Depends(admin_api),
    dispatcher: RevalidationDispatcher = Depends(get_dispatcher),
) -> Response:
    return await _save_product(request, api, dispatcher, product_id)


@router.post("/products/{product_id}/delete")
async def delete_product(
    product_id: str,
    request: Request,
    api: BackendClient = Depends(admin_api),
    dispatcher: RevalidationDispatcher = Depends(get_dispatcher),
) -> Response:
    form = await request.form()
    response = await api.delete_product(product_id)
    if not response.ok:
        return await _product_list_page(
            request,
            api,
            error=response.error or "Failed to delete product",
            status_code=response.status_code,
        )
    await _revalidate(dispatcher, ProductChange(_text(form, "slug") or None))
    return _redirect("/admin/products")


# ==================== CATEGORIES ====================


async def _category_list_page(
    request: Request,
    api: BackendClient,
    *,
    error: str | None = None,
    status_code: int = 200,
) -> Response:
    response = await api.get_product_categories()
    return _form_page(
        request,
        "admin/categories.html",
        {"categories": response.data or []},
        error=error or response.error,
        status_code=status_code,
    )


@router.get("/categories", response_class=HTMLResponse)
async def category_list(request: Request, api: BackendClient = Depends(admin_api)) -> Response:
    return await _category_list_page(request, api)


@router.get("/categories/new", response_class=HTMLResponse)
async def new_category_form(request: Request) -> Response:
    return _form_page(
        request, "admin/category_form.html", {"category": ProductCategory(), "is_new": True}
    )


async def _save_category(
    request: Request,
    api: BackendClient,
    dispatcher: RevalidationDispatcher,
    category_id: str | None,
) -> Response:
    form = await request.form()
    category = category_from_form(form, category_id or "")
    try:
        payload = category_payload(category)
    except InvalidRequest as e:
        error, status_code = e.message, 400
    else:
        if category_id is None:
            response = await api.create_category(payload)
        else:
            response = await api.update_category(category_id, payload)
        if response.ok:
            await _revalidate(dispatcher, CategoryChange(category.slug))
            return _redirect("/admin/categories")
        error, status_code = response.error, response.status_code

    return _form_page(
        request,
        "admin/category_form.html",
        {"category": category, "is_new": category_id is None},
        error=error,
        status_code=status_code,
    )


@router.post("/categories/new")
async def create_category(
    request: Request,
    api: BackendClient = Depends(admin_api),
    dispatcher: RevalidationDispatcher = Depends(get_dispatcher),
) -> Response:
    return await _save_category(request, api, dispatcher, None)


@router.get("/categories/{category_id}/edit", response_class=HTMLResponse)
async def edit_category_form(
    category_id: str, request: Request, api: BackendClient = Depends(admin_api)
) -> Response:
    response = await api.get_category_by_id(category_id)
    if response.data is None:
        return templates.TemplateResponse(request, "not_found.html", status_code=404)
    return _form_page(
        request, "admin/category_form.html", {"category": response.data, "is_new": False}
    )


@router.post("/categories/{category_id}/edit")
async def update_category(
    category_id: str,
    request: Request,
    api: BackendClient = Depends(admin_api),
    dispatcher: RevalidationDispatcher = Depends(get_dispatcher),
) -> Response:
    return await _save_category(request, api, dispatcher, category_id)


@router.post("/categories/{category_id}/delete")
async def delete_category(
    category_id: str,
    request: Request,
    api: BackendClient = Depends(admin_api),
    dispatcher: RevalidationDispatcher = Depends(get_dispatcher),
) -> Response:
    form = await request.form()
    response = await api.delete_category(category_id)
    if not response.ok:
        return await _category_list_page(
            request,
            api,
            error=response.error or "Failed to delete category",
            status_code=response.status_code,
        )
    slug = _text(form, "slug")
    await _revalidate(dispatcher, CategoryChange(slug) if slug else ProductChange())
    return _redirect("/admin/categories")

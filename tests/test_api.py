"""Tests for the backend API client."""

import json

import httpx
import pytest
import respx

from simplebiz import PageCache
from simplebiz.api import ApiConfig, BackendClient
from simplebiz.errors import UpstreamFailure
from simplebiz.models import Article, ProductCategory, ProductItem

API_URL = "http://backend.test"

ARTICLE = {
    "id": "1",
    "slug": "bookkeeping-made-simple",
    "title": "Bookkeeping Made Simple",
    "description": "Start here",
    "content": "<p>Hi</p>",
    "dateISO": "2024-03-01",
    "category": "Finance",
    "readingMinutes": 4,
    "status": "published",
    "badges": ["new"],
}

CATEGORY = {
    "id": "c1",
    "slug": "planners",
    "name": "Planners",
    "summary": "Plan things",
    "howThisHelps": "It helps",
    "heroImage": "/hero.png",
    "items": [
        {
            "id": "p1",
            "title": "Budget Planner",
            "slug": "budget-planner",
            "problem": "Money",
            "bullets": ["a", "b"],
            "image": "/p1.png",
            "etsyUrl": "https://etsy.example/p1",
            "price": "9.99",
            "categoryId": "c1",
            "status": "published",
        }
    ],
}


class TestReads:
    async def test_articles_are_parsed(self, api: BackendClient, backend: respx.Router) -> None:
        backend.get("/api/articles", params={"status": "published"}).respond(json=[ARTICLE])

        response = await api.get_articles()

        assert response.ok
        assert response.status_code == 200
        [article] = response.data
        assert isinstance(article, Article)
        assert article.date_iso == "2024-03-01"
        assert article.reading_minutes == 4
        assert article.badges == ["new"]
        assert article.subtitle is None

    async def test_data_envelope_is_unwrapped(
        self, api: BackendClient, backend: respx.Router
    ) -> None:
        backend.get("/api/articles/slug/bookkeeping-made-simple").respond(json={"data": ARTICLE})

        response = await api.get_article_by_slug("bookkeeping-made-simple")

        assert response.data.title == "Bookkeeping Made Simple"

    async def test_categories_nest_items(self, api: BackendClient, backend: respx.Router) -> None:
        backend.get("/api/products/categories").respond(json=[CATEGORY])

        response = await api.get_product_categories()

        [category] = response.data
        assert isinstance(category, ProductCategory)
        assert category.how_this_helps == "It helps"
        assert isinstance(category.items[0], ProductItem)
        assert category.items[0].etsy_url == "https://etsy.example/p1"

    async def test_product_by_slug(self, api: BackendClient, backend: respx.Router) -> None:
        route = backend.get("/api/products/slug/planners/budget-planner").respond(
            json=CATEGORY["items"][0]
        )

        response = await api.get_product_by_slug("planners", "budget-planner")

        assert route.called
        assert response.data.category_id == "c1"

    async def test_null_fields_keep_defaults(
        self, api: BackendClient, backend: respx.Router
    ) -> None:
        backend.get("/api/articles/slug/draft-notes").respond(
            json={
                "id": "9",
                "slug": "draft-notes",
                "title": "Draft notes",
                "content": None,
                "description": None,
                "dateISO": None,
                "badges": None,
                "subtitle": None,
            }
        )

        article = (await api.get_article_by_slug("draft-notes")).data

        assert article.content == ""
        assert article.description == ""
        assert article.date_iso == ""
        assert article.badges == []
        assert article.subtitle is None

    def test_null_items_become_empty_list(self) -> None:
        category = ProductCategory.from_api({"id": "c1", "name": "Planners", "items": None})
        assert category.items == []


class TestErrors:
    async def test_backend_message_is_used(self, api: BackendClient, backend: respx.Router) -> None:
        backend.get("/api/articles/slug/missing").respond(404, json={"message": "Article not found"})

        response = await api.get_article_by_slug("missing")

        assert not response.ok
        assert response.status_code == 404
        assert response.error == "Article not found"
        assert response.data is None

    async def test_status_line_without_message(
        self, api: BackendClient, backend: respx.Router
    ) -> None:
        backend.get("/api/products/categories").respond(500, text="oops")

        response = await api.get_product_categories()

        assert response.status_code == 500
        assert response.error == "HTTP 500: Internal Server Error"

    async def test_transport_error_is_500(self, api: BackendClient, backend: respx.Router) -> None:
        backend.get("/api/products/categories").mock(side_effect=httpx.ConnectError)

        response = await api.get_product_categories()

        assert response.status_code == 500
        assert response.error

    async def test_unexpected_payload_is_502(
        self, api: BackendClient, backend: respx.Router
    ) -> None:
        backend.get("/api/articles", params={"status": "published"}).respond(json=[42])

        response = await api.get_articles()

        assert response.status_code == 502
        assert response.error == "Unexpected response from backend"


class TestCaching:
    async def test_tagged_reads_are_cached(self, api: BackendClient, backend: respx.Router) -> None:
        route = backend.get("/api/articles", params={"status": "published"}).respond(
            json=[ARTICLE]
        )

        await api.get_articles()
        second = await api.get_articles()

        assert route.call_count == 1
        assert second.data[0].slug == "bookkeeping-made-simple"

    async def test_invalidation_refetches(
        self, api: BackendClient, backend: respx.Router, cache: PageCache
    ) -> None:
        route = backend.get("/api/articles/slug/bookkeeping-made-simple").respond(json=ARTICLE)

        await api.get_article_by_slug("bookkeeping-made-simple")
        await cache.invalidate(["article-bookkeeping-made-simple"])
        await api.get_article_by_slug("bookkeeping-made-simple")

        assert route.call_count == 2

    async def test_collection_tag_reaches_item_reads(
        self, api: BackendClient, backend: respx.Router, cache: PageCache
    ) -> None:
        route = backend.get("/api/products/categories/slug/planners").respond(json=CATEGORY)

        await api.get_category_by_slug("planners")
        await cache.invalidate(["products"])
        await api.get_category_by_slug("planners")

        assert route.call_count == 2

    async def test_errors_are_not_cached(self, api: BackendClient, backend: respx.Router) -> None:
        route = backend.get("/api/products/categories").mock(
            side_effect=[httpx.Response(503), httpx.Response(200, json=[CATEGORY])]
        )

        first = await api.get_product_categories()
        second = await api.get_product_categories()

        assert first.status_code == 503
        assert second.ok
        assert route.call_count == 2

    async def test_admin_reads_bypass_cache(self, api: BackendClient, backend: respx.Router) -> None:
        route = backend.get("/api/articles").respond(json=[ARTICLE])

        await api.get_all_articles()
        await api.get_all_articles()

        assert route.call_count == 2


class TestCredentials:
    async def test_anonymous_sends_no_token(
        self, api: BackendClient, backend: respx.Router
    ) -> None:
        route = backend.get("/api/products/categories").respond(json=[])

        await api.get_product_categories()

        assert "authorization" not in route.calls.last.request.headers

    async def test_token_is_sent_as_bearer(
        self, backend: respx.Router, transport: httpx.MockTransport
    ) -> None:
        route = backend.post("/api/articles").respond(201, json=ARTICLE)

        async with BackendClient(
            ApiConfig(base_url=API_URL, token="tok"), transport=transport
        ) as client:
            response = await client.create_article({"title": "Bookkeeping Made Simple"})

        request = route.calls.last.request
        assert request.headers["authorization"] == "Bearer tok"
        assert json.loads(request.content) == {"title": "Bookkeeping Made Simple"}
        assert response.status_code == 201
        assert response.data.id == "1"

    def test_with_token_copies_config(self) -> None:
        config = ApiConfig(base_url=API_URL)
        assert config.with_token("t") == ApiConfig(base_url=API_URL, token="t")
        assert config.token is None


class TestWrites:
    async def test_delete_without_body(self, api: BackendClient, backend: respx.Router) -> None:
        backend.delete("/api/articles/1").respond(204)

        response = await api.delete_article("1")

        assert response.ok
        assert response.status_code == 204
        assert response.data is None

    async def test_login(self, api: BackendClient, backend: respx.Router) -> None:
        route = backend.post("/api/auth/login").respond(
            json={"token": "jwt", "user": {"email": "a@b.c", "name": "Ann"}}
        )

        response = await api.login("a@b.c", "pw")

        assert response.data["token"] == "jwt"
        assert json.loads(route.calls.last.request.content) == {
            "email": "a@b.c",
            "password": "pw",
        }

    async def test_forward_relays_raw_response(
        self, api: BackendClient, backend: respx.Router
    ) -> None:
        route = backend.put("/api/products/p1").respond(
            422, content=b'{"message":"bad"}', headers={"content-type": "application/json"}
        )

        forwarded = await api.forward(
            "PUT", "/api/products/p1", body=b'{"title":"x"}', content_type="application/json"
        )

        assert forwarded.status_code == 422
        assert forwarded.body == b'{"message":"bad"}'
        assert forwarded.content_type == "application/json"
        assert route.calls.last.request.content == b'{"title":"x"}'

    async def test_forward_transport_error_raises(
        self, api: BackendClient, backend: respx.Router
    ) -> None:
        backend.get("/api/products/p1").mock(side_effect=httpx.ConnectError)

        with pytest.raises(UpstreamFailure):
            await api.forward("GET", "/api/products/p1")

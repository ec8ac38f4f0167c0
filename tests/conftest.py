"""Shared pytest fixtures."""

import httpx
import pytest
import respx

from simplebiz import AsyncMemoryAdapter, PageCache, create_cache
from simplebiz.api import ApiConfig, BackendClient
from simplebiz.config import Settings

API_URL = "http://backend.test"
SECRET = "test-secret"


@pytest.fixture
def async_adapter() -> AsyncMemoryAdapter:
    """Create a fresh AsyncMemoryAdapter for each test."""
    return AsyncMemoryAdapter()


@pytest.fixture
def cache(async_adapter: AsyncMemoryAdapter) -> PageCache:
    return create_cache(adapter=async_adapter, default_revalidate="1h")


@pytest.fixture
def settings() -> Settings:
    return Settings(api_url=API_URL, revalidation_secret=SECRET)


@pytest.fixture
def backend() -> respx.Router:
    """Mocked backend API; unmatched requests fail the test."""
    return respx.Router(base_url=API_URL, assert_all_called=False)


@pytest.fixture
def transport(backend: respx.Router) -> httpx.MockTransport:
    return httpx.MockTransport(backend.handler)


@pytest.fixture
async def api(cache: PageCache, transport: httpx.MockTransport):
    """Anonymous, tag-cached backend client."""
    async with BackendClient(
        ApiConfig(base_url=API_URL), cache=cache, transport=transport
    ) as client:
        yield client

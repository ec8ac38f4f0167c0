"""Integration tests for the Redis adapter using testcontainers."""

import pytest

# Skip all tests if redis or testcontainers are not installed
pytest.importorskip("redis")
pytest.importorskip("testcontainers")

import redis.asyncio
from testcontainers.redis import RedisContainer

from simplebiz import CacheEntry, create_cache
from simplebiz.adapters.redis import AsyncRedisAdapter


@pytest.fixture(scope="module")
def redis_container():
    """Start a Redis container for the test module."""
    with RedisContainer() as container:
        yield container


@pytest.fixture
async def async_redis_client(redis_container):
    client = redis.asyncio.Redis(
        host=redis_container.get_container_host_ip(),
        port=redis_container.get_exposed_port(6379),
        decode_responses=False,
    )
    yield client
    await client.flushdb()
    await client.aclose()


@pytest.fixture
def async_redis_adapter(async_redis_client) -> AsyncRedisAdapter:
    """Create an AsyncRedisAdapter with a test prefix."""
    return AsyncRedisAdapter(async_redis_client, prefix="test")


def make_entry(value: object = "test", tags: list[str] | None = None) -> CacheEntry[object]:
    return CacheEntry(value=value, tags=tags or [], created_at=1000, revalidate_at=2000)


class TestAsyncRedisAdapter:
    """Integration tests for AsyncRedisAdapter."""

    async def test_get_nonexistent_returns_none(
        self, async_redis_adapter: AsyncRedisAdapter
    ) -> None:
        assert await async_redis_adapter.get("nonexistent") is None

    async def test_set_and_get(self, async_redis_adapter: AsyncRedisAdapter) -> None:
        """Entries survive a JSON round trip through Redis."""
        await async_redis_adapter.set(
            "key1", make_entry({"id": "123", "items": [1, 2]}, ["articles", "article-a"])
        )
        result = await async_redis_adapter.get("key1")
        assert result == make_entry({"id": "123", "items": [1, 2]}, ["articles", "article-a"])

    async def test_delete(self, async_redis_adapter: AsyncRedisAdapter) -> None:
        await async_redis_adapter.set("key1", make_entry())
        await async_redis_adapter.delete("key1")
        assert await async_redis_adapter.get("key1") is None

    async def test_invalidate_tag(self, async_redis_adapter: AsyncRedisAdapter) -> None:
        await async_redis_adapter.set("a", make_entry(tags=["articles", "article-a"]))
        await async_redis_adapter.set("b", make_entry(tags=["articles"]))
        await async_redis_adapter.set("p", make_entry(tags=["products"]))

        assert await async_redis_adapter.invalidate_tag("articles", 1500) == 2

        assert await async_redis_adapter.get("a") is None
        assert await async_redis_adapter.get("b") is None
        assert await async_redis_adapter.get("p") is not None
        assert await async_redis_adapter.get_tag_invalidation_time("articles") == 1500
        assert await async_redis_adapter.get_tag_invalidation_time("products") is None

    async def test_clear(self, async_redis_adapter: AsyncRedisAdapter) -> None:
        await async_redis_adapter.set("key1", make_entry(tags=["articles"]))
        await async_redis_adapter.invalidate_tag("products", 1500)

        await async_redis_adapter.clear()

        assert await async_redis_adapter.get("key1") is None
        assert await async_redis_adapter.get_tag_invalidation_time("products") is None

    async def test_prefixes_are_isolated(self, async_redis_client) -> None:
        first = AsyncRedisAdapter(async_redis_client, prefix="one")
        second = AsyncRedisAdapter(async_redis_client, prefix="two")
        await first.set("key", make_entry(tags=["articles"]))

        await second.invalidate_tag("articles", 1500)

        assert await first.get("key") is not None
        assert await second.get("key") is None


class TestCacheOnRedis:
    async def test_revalidation_across_instances(self, async_redis_client) -> None:
        """Two site processes sharing Redis see each other's invalidations."""
        writer = create_cache(adapter=AsyncRedisAdapter(async_redis_client, prefix="site"))
        reader = create_cache(adapter=AsyncRedisAdapter(async_redis_client, prefix="site"))
        calls = 0

        async def fetch() -> dict:
            nonlocal calls
            calls += 1
            return {"count": calls}

        await writer.query(key="articles", tags=["articles"], fn=fetch)
        assert await reader.query(key="articles", tags=["articles"], fn=fetch) == {"count": 1}

        await reader.invalidate(["articles"])

        assert await writer.get("articles") is None

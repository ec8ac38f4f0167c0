"""Tests for memory adapter."""

import pytest

from simplebiz import AsyncMemoryAdapter, CacheEntry


def make_entry(value: object = "test", tags: list[str] | None = None) -> CacheEntry[object]:
    return CacheEntry(value=value, tags=tags or [], created_at=1000, revalidate_at=2000)


class TestAsyncMemoryAdapter:
    """Tests for async AsyncMemoryAdapter."""

    @pytest.mark.asyncio
    async def test_get_nonexistent_returns_none(
        self, async_adapter: AsyncMemoryAdapter
    ) -> None:
        """Test that getting a nonexistent key returns None."""
        assert await async_adapter.get("nonexistent") is None

    @pytest.mark.asyncio
    async def test_set_and_get(self, async_adapter: AsyncMemoryAdapter) -> None:
        """Test setting and getting a value."""
        await async_adapter.set("key1", make_entry({"id": "123"}, ["articles"]))
        result = await async_adapter.get("key1")
        assert result is not None
        assert result.value == {"id": "123"}
        assert result.tags == ["articles"]

    @pytest.mark.asyncio
    async def test_delete(self, async_adapter: AsyncMemoryAdapter) -> None:
        await async_adapter.set("key1", make_entry())
        await async_adapter.delete("key1")
        assert await async_adapter.get("key1") is None
        assert len(async_adapter) == 0

    @pytest.mark.asyncio
    async def test_clear(self, async_adapter: AsyncMemoryAdapter) -> None:
        """Test clearing all entries and invalidation times."""
        await async_adapter.set("key1", make_entry())
        await async_adapter.set("key2", make_entry())
        await async_adapter.invalidate_tag("articles", 1000)
        await async_adapter.clear()
        assert await async_adapter.get("key1") is None
        assert await async_adapter.get("key2") is None
        assert await async_adapter.get_tag_invalidation_time("articles") is None


class TestTagInvalidation:
    @pytest.mark.asyncio
    async def test_invalidation_time(self, async_adapter: AsyncMemoryAdapter) -> None:
        assert await async_adapter.get_tag_invalidation_time("articles") is None
        await async_adapter.invalidate_tag("articles", 1000)
        assert await async_adapter.get_tag_invalidation_time("articles") == 1000

    @pytest.mark.asyncio
    async def test_drops_tagged_entries(self, async_adapter: AsyncMemoryAdapter) -> None:
        await async_adapter.set("a", make_entry(tags=["articles", "article-a"]))
        await async_adapter.set("b", make_entry(tags=["articles", "article-b"]))
        await async_adapter.set("p", make_entry(tags=["products"]))

        assert await async_adapter.invalidate_tag("article-a", 1500) == 1
        assert await async_adapter.get("a") is None
        assert await async_adapter.get("b") is not None

        assert await async_adapter.invalidate_tag("articles", 1600) == 1
        assert await async_adapter.get("b") is None
        assert await async_adapter.get("p") is not None

    @pytest.mark.asyncio
    async def test_overwrite_reindexes_tags(self, async_adapter: AsyncMemoryAdapter) -> None:
        await async_adapter.set("k", make_entry(tags=["articles"]))
        await async_adapter.set("k", make_entry(tags=["products"]))

        assert await async_adapter.invalidate_tag("articles", 1500) == 0
        assert await async_adapter.get("k") is not None

    @pytest.mark.asyncio
    async def test_unknown_tag(self, async_adapter: AsyncMemoryAdapter) -> None:
        assert await async_adapter.invalidate_tag("category-none", 1500) == 0


class TestEviction:
    @pytest.mark.asyncio
    async def test_lru_eviction(self) -> None:
        """Test LRU eviction when max_items is set."""
        adapter = AsyncMemoryAdapter(max_items=2)
        await adapter.set("key1", make_entry(tags=["articles"]))
        await adapter.set("key2", make_entry())

        # Touch key1 so key2 is the least recently used
        await adapter.get("key1")
        await adapter.set("key3", make_entry())

        assert await adapter.get("key1") is not None
        assert await adapter.get("key2") is None
        assert await adapter.get("key3") is not None
        assert len(adapter) == 2

    @pytest.mark.asyncio
    async def test_evicted_entries_leave_tag_index(self) -> None:
        adapter = AsyncMemoryAdapter(max_items=1)
        await adapter.set("key1", make_entry(tags=["articles"]))
        await adapter.set("key2", make_entry(tags=["products"]))

        assert await adapter.invalidate_tag("articles", 1500) == 0

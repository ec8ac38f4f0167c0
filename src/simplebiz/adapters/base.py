"""Base adapter protocol for cache storage backends."""

from typing import Protocol, runtime_checkable

from simplebiz.types import CacheEntry, CacheTag


@runtime_checkable
class AsyncCacheAdapter(Protocol):
    """Async storage adapter interface."""

    async def get(self, key: str) -> CacheEntry[object] | None:
        """Get a cache entry by key."""
        ...

    async def set(self, key: str, entry: CacheEntry[object]) -> None:
        """Store a cache entry and index it under its tags."""
        ...

    async def delete(self, key: str) -> None:
        """Delete a cache entry."""
        ...

    async def invalidate_tag(self, tag: CacheTag, timestamp: int) -> int:
        """Discard every entry carrying `tag` and record the invalidation time.

        Returns the number of entries discarded.
        """
        ...

    async def get_tag_invalidation_time(self, tag: CacheTag) -> int | None:
        """Get the last invalidation timestamp for a tag."""
        ...

    async def clear(self) -> None:
        """Clear all cached entries."""
        ...

    async def disconnect(self) -> None:
        """Disconnect from the storage backend."""
        ...

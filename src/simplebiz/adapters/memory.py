"""In-memory storage adapter."""

import asyncio
from collections import OrderedDict

from simplebiz.types import CacheEntry, CacheTag


class AsyncMemoryAdapter:
    """Async in-memory storage adapter with optional LRU eviction."""

    def __init__(self, max_items: int | None = None) -> None:
        self._cache: OrderedDict[str, CacheEntry[object]] = OrderedDict()
        self._tag_keys: dict[CacheTag, set[str]] = {}
        self._invalidations: dict[CacheTag, int] = {}
        self._max_items = max_items
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> CacheEntry[object] | None:
        """Get a cache entry by key."""
        async with self._lock:
            entry = self._cache.get(key)
            if entry:
                self._cache.move_to_end(key)  # LRU touch
            return entry

    async def set(self, key: str, entry: CacheEntry[object]) -> None:
        """Store a cache entry and index it under its tags."""
        async with self._lock:
            self._drop(key)
            self._cache[key] = entry
            for tag in entry.tags:
                self._tag_keys.setdefault(tag, set()).add(key)
            if self._max_items and len(self._cache) > self._max_items:
                oldest = next(iter(self._cache))
                self._drop(oldest)

    async def delete(self, key: str) -> None:
        """Delete a cache entry."""
        async with self._lock:
            self._drop(key)

    async def invalidate_tag(self, tag: CacheTag, timestamp: int) -> int:
        """Discard every entry carrying `tag` and record the invalidation time."""
        async with self._lock:
            keys = self._tag_keys.pop(tag, set())
            for key in keys:
                self._drop(key)
            self._invalidations[tag] = timestamp
            return len(keys)

    async def get_tag_invalidation_time(self, tag: CacheTag) -> int | None:
        """Get the last invalidation timestamp for a tag."""
        async with self._lock:
            return self._invalidations.get(tag)

    async def clear(self) -> None:
        """Clear all cached entries."""
        async with self._lock:
            self._cache.clear()
            self._tag_keys.clear()
            self._invalidations.clear()

    async def disconnect(self) -> None:
        """Disconnect from the storage backend (no-op for memory)."""
        pass

    def __len__(self) -> int:
        return len(self._cache)

    def _drop(self, key: str) -> None:
        entry = self._cache.pop(key, None)
        if entry is None:
            return
        for tag in entry.tags:
            keys = self._tag_keys.get(tag)
            if keys is None:
                continue
            keys.discard(key)
            if not keys:
                del self._tag_keys[tag]

"""Redis storage adapter.

Entries live under ``{prefix}:cache:{key}``; every tag keeps a set of the
cache keys carrying it under ``{prefix}:tagkeys:{tag}`` and its last
invalidation time under ``{prefix}:tag:{tag}``.
"""

from __future__ import annotations

import json
from typing import Any

from simplebiz.types import CacheEntry, CacheTag


def _serialize_entry(entry: CacheEntry[object]) -> str:
    """Serialize a cache entry to JSON."""
    return json.dumps(
        {
            "value": entry.value,
            "tags": list(entry.tags),
            "created_at": entry.created_at,
            "revalidate_at": entry.revalidate_at,
        }
    )


def _deserialize_entry(data: bytes | str) -> CacheEntry[object]:
    """Deserialize JSON to a cache entry."""
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    obj = json.loads(data)
    return CacheEntry(
        value=obj["value"],
        tags=list(obj["tags"]),
        created_at=obj["created_at"],
        revalidate_at=obj["revalidate_at"],
    )


class AsyncRedisAdapter:
    """Async Redis storage adapter. Values must be JSON serialisable."""

    def __init__(
        self,
        client: Any,  # redis.asyncio.Redis
        *,
        prefix: str = "simplebiz",
    ) -> None:
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, *, prefix: str = "simplebiz") -> AsyncRedisAdapter:
        import redis.asyncio

        return cls(redis.asyncio.Redis.from_url(url), prefix=prefix)

    def _cache_key(self, key: str) -> str:
        return f"{self._prefix}:cache:{key}"

    def _tag_key(self, tag: CacheTag) -> str:
        return f"{self._prefix}:tag:{tag}"

    def _tag_keys_key(self, tag: CacheTag) -> str:
        return f"{self._prefix}:tagkeys:{tag}"

    async def get(self, key: str) -> CacheEntry[object] | None:
        """Get a cache entry by key."""
        data = await self._client.get(self._cache_key(key))
        if data is None:
            return None
        return _deserialize_entry(data)

    async def set(self, key: str, entry: CacheEntry[object]) -> None:
        """Store a cache entry and index it under its tags."""
        cache_key = self._cache_key(key)
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.set(cache_key, _serialize_entry(entry))
            for tag in entry.tags:
                pipe.sadd(self._tag_keys_key(tag), cache_key)
            await pipe.execute()

    async def delete(self, key: str) -> None:
        """Delete a cache entry."""
        await self._client.delete(self._cache_key(key))

    async def invalidate_tag(self, tag: CacheTag, timestamp: int) -> int:
        """Discard every entry carrying `tag` and record the invalidation time."""
        tag_keys_key = self._tag_keys_key(tag)
        keys = await self._client.smembers(tag_keys_key)
        async with self._client.pipeline(transaction=True) as pipe:
            if keys:
                pipe.delete(*keys)
            pipe.delete(tag_keys_key)
            # Invalidation times don't expire; fetches compare against them
            pipe.set(self._tag_key(tag), str(timestamp))
            await pipe.execute()
        return len(keys)

    async def get_tag_invalidation_time(self, tag: CacheTag) -> int | None:
        """Get the last invalidation timestamp for a tag."""
        data = await self._client.get(self._tag_key(tag))
        if data is None:
            return None
        return int(data)

    async def clear(self) -> None:
        """Clear everything stored under the prefix."""
        for kind in ("cache", "tag", "tagkeys"):
            pattern = f"{self._prefix}:{kind}:*"
            cursor: int = 0
            while True:
                result = await self._client.scan(cursor, match=pattern, count=100)
                cursor = result[0]
                keys = result[1]
                if keys:
                    await self._client.delete(*keys)
                if cursor == 0:
                    break

    async def disconnect(self) -> None:
        """Close the Redis connection."""
        await self._client.aclose()

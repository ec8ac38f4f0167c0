"""Tag cache for data behind rendered pages.

This module provides the regeneration cache the revalidation webhook acts on:
- query(): Cached fetch with stampede protection and stale-while-revalidate
- get(), set(), delete(): Raw escape hatches
- invalidate(): Tag-based invalidation
- clear(), disconnect(): Lifecycle methods

An entry older than its revalidate window is still served, once, while a
background task regenerates it. An entry whose tag was invalidated is gone:
the next read fetches synchronously.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar, cast

from simplebiz.adapters.base import AsyncCacheAdapter
from simplebiz.duration import parse_duration
from simplebiz.types import CacheEntry, CacheTag, Duration

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class PageCache:
    """Async tag cache with stampede protection."""

    _adapter: AsyncCacheAdapter
    _prefix: str
    _default_revalidate: int
    _in_flight: dict[str, asyncio.Future[Any]] = field(default_factory=dict)
    _refreshing: set[str] = field(default_factory=set)
    _background: set[asyncio.Task[None]] = field(default_factory=set)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def query(
        self,
        *,
        key: str,
        tags: list[CacheTag],
        fn: Callable[[], Awaitable[T]],
        revalidate: Duration | None = None,
    ) -> T:
        """Fetch with caching, stampede protection and background regeneration.

        Args:
            key: Cache key
            tags: Tags the value depends on
            fn: Async function producing the value; exceptions propagate and
                nothing is stored
            revalidate: Age after which the value is regenerated
                (default: cache default)

        Returns:
            Cached or fresh data
        """
        full_key = f"{self._prefix}:{key}"

        async def fetch() -> T:
            entry = await self._adapter.get(full_key)

            if entry is not None and not await self._is_invalidated(entry):
                if _now_ms() > entry.revalidate_at:
                    self._schedule_refresh(full_key, tags, fn, revalidate)
                return cast(T, entry.value)

            # Cache miss or invalidated - fetch synchronously
            return await self._fetch_and_store(full_key, tags, fn, revalidate)

        return await self._coalesce(full_key, fetch)

    async def get(self, key: str) -> Any | None:
        """Raw get - escape hatch for manual cache access."""
        full_key = f"{self._prefix}:{key}"
        entry = await self._adapter.get(full_key)
        if entry is None or await self._is_invalidated(entry):
            return None
        return entry.value

    async def set(
        self,
        key: str,
        value: T,
        *,
        tags: list[CacheTag],
        revalidate: Duration | None = None,
    ) -> None:
        """Raw set - escape hatch for manual cache population."""
        full_key = f"{self._prefix}:{key}"
        await self._store(full_key, value, tags, revalidate, _now_ms())

    async def delete(self, key: str) -> None:
        """Raw delete - escape hatch for manual cache removal."""
        full_key = f"{self._prefix}:{key}"
        await self._adapter.delete(full_key)

    async def invalidate(self, tags: Iterable[CacheTag]) -> list[CacheTag]:
        """Invalidate every entry carrying any of `tags`.

        Invalidating an already-invalid tag is a no-op. Returns the tags
        processed, in order.
        """
        now = _now_ms()
        done: list[CacheTag] = []
        for tag in tags:
            removed = await self._adapter.invalidate_tag(tag, now)
            logger.debug("Invalidated tag %s (%d entries)", tag, removed)
            done.append(tag)
        return done

    async def clear(self) -> None:
        """Clear all cached entries."""
        await self._adapter.clear()

    async def disconnect(self) -> None:
        """Wait for background regenerations and close the storage backend."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        await self._adapter.disconnect()

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    async def _fetch_and_store(
        self,
        key: str,
        tags: list[CacheTag],
        fn: Callable[[], Awaitable[T]],
        revalidate: Duration | None,
    ) -> T:
        started = _now_ms()
        value = await fn()
        await self._store(key, value, tags, revalidate, started)
        return value

    async def _store(
        self,
        key: str,
        value: Any,
        tags: list[CacheTag],
        revalidate: Duration | None,
        created_at: int,
    ) -> None:
        window = (
            parse_duration(revalidate)
            if revalidate is not None
            else self._default_revalidate
        )
        entry: CacheEntry[object] = CacheEntry(
            value=value,
            tags=list(tags),
            created_at=created_at,
            revalidate_at=created_at + window,
        )
        await self._adapter.set(key, entry)

    async def _is_invalidated(self, entry: CacheEntry[Any]) -> bool:
        """Check if any tag was invalidated after the entry's fetch started."""
        for tag in entry.tags:
            inv_time = await self._adapter.get_tag_invalidation_time(tag)
            if inv_time is not None and inv_time >= entry.created_at:
                return True
        return False

    def _schedule_refresh(
        self,
        key: str,
        tags: list[CacheTag],
        fn: Callable[[], Awaitable[Any]],
        revalidate: Duration | None,
    ) -> None:
        if key in self._refreshing:
            return
        self._refreshing.add(key)
        task = asyncio.create_task(self._refresh_in_background(key, tags, fn, revalidate))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _refresh_in_background(
        self,
        key: str,
        tags: list[CacheTag],
        fn: Callable[[], Awaitable[Any]],
        revalidate: Duration | None,
    ) -> None:
        """Regenerate a stale entry; the stale value stays on failure."""
        try:
            await self._fetch_and_store(key, tags, fn, revalidate)
        except Exception:
            logger.warning("Background regeneration of %s failed", key, exc_info=True)
        finally:
            self._refreshing.discard(key)

    async def _coalesce(self, key: str, fetch: Callable[[], Awaitable[T]]) -> T:
        """Coalesce concurrent requests for same key (stampede protection)."""
        async with self._lock:
            existing_future = self._in_flight.get(key)
            if existing_future is None:
                new_future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
                self._in_flight[key] = new_future

        if existing_future is not None:
            # Wait for the request already in flight, outside the lock
            result: T = await asyncio.shield(existing_future)
            return result

        try:
            result = await fetch()
            new_future.set_result(result)
            return result
        except asyncio.CancelledError:
            new_future.cancel()
            raise
        except BaseException as e:
            new_future.set_exception(e)
            # Mark retrieved so an unshared failure is not reported as unhandled
            new_future.exception()
            raise
        finally:
            async with self._lock:
                del self._in_flight[key]


def create_cache(
    *,
    adapter: AsyncCacheAdapter,
    prefix: str = "simplebiz",
    default_revalidate: Duration = "1h",
) -> PageCache:
    """Create a tag cache.

    Args:
        adapter: Storage adapter
        prefix: Key prefix for all cache entries
        default_revalidate: Age after which entries are regenerated

    Returns:
        PageCache instance
    """
    return PageCache(
        _adapter=adapter,
        _prefix=prefix,
        _default_revalidate=parse_duration(default_revalidate),
    )


__all__ = ["PageCache", "create_cache"]

"""Cache storage adapters."""

from contextlib import suppress

from simplebiz.adapters.base import AsyncCacheAdapter
from simplebiz.adapters.memory import AsyncMemoryAdapter

# Optional adapters - only available when dependencies are installed
with suppress(ImportError):
    from simplebiz.adapters.redis import AsyncRedisAdapter

__all__ = [
    "AsyncCacheAdapter",
    "AsyncMemoryAdapter",
    "AsyncRedisAdapter",
]

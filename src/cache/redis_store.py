# src/cache/redis_store.py — v3
"""Redis-based cache store (CACHE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable for distributed/multi-instance deployments: entries expire via SETEX,
bulk invalidation walks the keyspace with SCAN MATCH (never KEYS), counters use
INCRBY so concurrent increments from every instance are atomic.
"""

from __future__ import annotations

import logging

from ragcache.cache.base_cache_store import BaseCacheStore, DeletedCallback

logger = logging.getLogger(__name__)

_SCAN_COUNT = 100
_DELETE_BATCH = 500


class RedisCacheStore(BaseCacheStore):
    """Async Redis-backed cache store.

    Args:
        redis_url: Connection URL, e.g. ``redis://localhost:6379/0``.
        namespace: Optional physical prefix prepended to every key and pattern,
            so several deployments can share one Redis database.
    """

    def __init__(self, redis_url: str, namespace: str = "") -> None:
        try:
            import redis.asyncio as redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = redis.from_url(redis_url, decode_responses=True)
        self._namespace = namespace

    async def get(self, key: str) -> str | None:
        return await self._client.get(self._make_key(key))

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._client.setex(self._make_key(key), ttl_seconds, value)

    async def delete(self, key: str) -> int:
        return int(await self._client.delete(self._make_key(key)))

    async def delete_by_pattern(
        self, pattern: str, on_deleted: DeletedCallback | None = None
    ) -> int:
        """Delete all keys matching pattern, in batches, as the scan proceeds."""
        deleted = 0
        batch: list[str] = []
        async for key in self._client.scan_iter(
            match=self._make_key(pattern), count=_SCAN_COUNT
        ):
            batch.append(key)
            if len(batch) >= _DELETE_BATCH:
                deleted += await self._delete_batch(batch, on_deleted)
                batch = []
        if batch:
            deleted += await self._delete_batch(batch, on_deleted)
        logger.debug("Deleted %d keys matching %s", deleted, pattern)
        return deleted

    async def increment(self, key: str, amount: int = 1) -> int:
        return int(await self._client.incrby(self._make_key(key), amount))

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self._client.aclose()

    @property
    def provider_name(self) -> str:
        return "redis"

    async def _delete_batch(
        self, batch: list[str], on_deleted: DeletedCallback | None
    ) -> int:
        count = int(await self._client.delete(*batch))
        if on_deleted is not None:
            on_deleted(count)
        return count

    def _make_key(self, key: str) -> str:
        return f"{self._namespace}{key}"

# src/cache/adapter.py — v2
"""Cache store adapter: bounded-time, typed access to a BaseCacheStore.

Every backend call is wrapped in ``asyncio.wait_for``. Single-key operations
use a short timeout; pattern deletion walks the keyspace and gets its own,
longer one. Backend errors and timeouts surface as CacheUnavailable so callers
handle one failure type. A failed pattern deletion reports in
``CacheUnavailable.deleted`` how many keys were removed before it stopped.
Cancellation of the calling task is never converted: CancelledError propagates.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

from pydantic import ValidationError

from ragcache.cache.base_cache_store import BaseCacheStore
from ragcache.cache.errors import CacheUnavailable
from ragcache.cache.models import CacheEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_S = 0.5
DEFAULT_BULK_TIMEOUT_S = 30.0


class CacheStoreAdapter:
    """Typed view over a raw backend with per-operation timeouts."""

    def __init__(
        self,
        backend: BaseCacheStore,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        bulk_timeout_s: float = DEFAULT_BULK_TIMEOUT_S,
    ) -> None:
        self._backend = backend
        self._timeout_s = timeout_s
        self._bulk_timeout_s = bulk_timeout_s

    @property
    def backend(self) -> BaseCacheStore:
        return self._backend

    async def get(self, key: str) -> CacheEntry | None:
        """Fetch a cache entry. Undecodable payloads are treated as absent.

        Raises:
            CacheUnavailable: The backend failed or timed out.
        """
        data = await self._call("get", key, self._backend.get(key))
        if data is None:
            return None
        try:
            return CacheEntry.model_validate_json(data)
        except ValidationError as e:
            logger.warning("Failed to deserialize cache entry %s: %s", key, e)
            return None

    async def set(self, key: str, entry: CacheEntry, ttl_seconds: int) -> None:
        """Store a cache entry with expiry.

        Raises:
            CacheUnavailable: The backend failed or timed out.
        """
        payload = entry.model_dump_json()
        await self._call("set", key, self._backend.set(key, payload, ttl_seconds))

    async def delete_by_pattern(self, pattern: str) -> int:
        """Delete all keys matching a glob pattern.

        Raises:
            CacheUnavailable: The backend failed or timed out. ``deleted`` holds
                the number of keys already removed.
        """
        deleted = 0

        def _on_deleted(count: int) -> None:
            nonlocal deleted
            deleted += count

        try:
            return await asyncio.wait_for(
                self._backend.delete_by_pattern(pattern, on_deleted=_on_deleted),
                timeout=self._bulk_timeout_s,
            )
        except Exception as e:
            raise CacheUnavailable("delete_by_pattern", pattern, e, deleted=deleted) from e

    async def increment(self, key: str, amount: int = 1) -> int:
        return await self._call("increment", key, self._backend.increment(key, amount))

    async def get_counter(self, key: str) -> int:
        """Read an integer counter; absent counters read as 0."""
        raw = await self._call("get", key, self._backend.get(key))
        if raw is None:
            return 0
        try:
            return int(raw)
        except ValueError as e:
            raise CacheUnavailable("get", key, e) from e

    async def close(self) -> None:
        await self._backend.close()

    async def _call(self, operation: str, key: str, aw: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(aw, timeout=self._timeout_s)
        except Exception as e:
            raise CacheUnavailable(operation, key, e) from e

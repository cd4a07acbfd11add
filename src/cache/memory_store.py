# src/cache/memory_store.py — v1
"""In-process cache store (CACHE_BACKEND=memory).

Single-process deployments and tests. TTL is enforced lazily on read and on
pattern scans; patterns use the same glob syntax as Redis ``SCAN MATCH``.
"""

from __future__ import annotations

import fnmatch
import threading
import time
from typing import Callable

from ragcache.cache.base_cache_store import BaseCacheStore, DeletedCallback


class MemoryCacheStore(BaseCacheStore):
    """Dict-backed store with per-key expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._values: dict[str, str] = {}
        self._expires_at: dict[str, float] = {}
        self._counters: dict[str, int] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> str | None:
        with self._lock:
            if key in self._counters:
                return str(self._counters[key])
            if self._expired(key):
                self._evict(key)
                return None
            return self._values.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._values[key] = value
            self._expires_at[key] = self._clock() + ttl_seconds

    async def delete(self, key: str) -> int:
        with self._lock:
            if self._expired(key):
                self._evict(key)
                return 0
            removed = int(key in self._values) + int(key in self._counters)
            self._evict(key)
            self._counters.pop(key, None)
            return min(removed, 1)

    async def delete_by_pattern(
        self, pattern: str, on_deleted: DeletedCallback | None = None
    ) -> int:
        with self._lock:
            deleted = 0
            for key in list(self._values):
                if not fnmatch.fnmatchcase(key, pattern):
                    continue
                if not self._expired(key):
                    deleted += 1
                self._evict(key)
            for key in list(self._counters):
                if fnmatch.fnmatchcase(key, pattern):
                    del self._counters[key]
                    deleted += 1
        if on_deleted is not None and deleted:
            on_deleted(deleted)
        return deleted

    async def increment(self, key: str, amount: int = 1) -> int:
        with self._lock:
            value = self._counters.get(key, 0) + amount
            self._counters[key] = value
            return value

    def keys(self) -> list[str]:
        """Live (unexpired) keys, for inspection."""
        with self._lock:
            live = [k for k in self._values if not self._expired(k)]
            return sorted(live + list(self._counters))

    @property
    def provider_name(self) -> str:
        return "memory"

    def _expired(self, key: str) -> bool:
        expires_at = self._expires_at.get(key)
        return expires_at is not None and self._clock() >= expires_at

    def _evict(self, key: str) -> None:
        self._values.pop(key, None)
        self._expires_at.pop(key, None)

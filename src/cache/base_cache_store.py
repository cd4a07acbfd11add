# src/cache/base_cache_store.py — v3
"""Abstract key/value backend behind the cache store adapter.

Backends deal in raw strings and plain integer counters. They may raise any
exception on failure; CacheStoreAdapter turns those (and timeouts) into
CacheUnavailable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

DeletedCallback = Callable[[int], None]


class BaseCacheStore(ABC):
    """Unified interface for shared key/value storage backends."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value that expires after ttl_seconds."""

    @abstractmethod
    async def delete(self, key: str) -> int:
        """Remove one key. Returns the number of keys removed (0 or 1)."""

    @abstractmethod
    async def delete_by_pattern(
        self, pattern: str, on_deleted: DeletedCallback | None = None
    ) -> int:
        """Remove every key matching a glob pattern. Returns the count removed.

        Backends that delete in several round trips call ``on_deleted(n)`` after
        each committed batch, so a caller interrupted mid-way still knows how
        many keys are already gone.
        """

    @abstractmethod
    async def increment(self, key: str, amount: int = 1) -> int:
        """Atomically add amount to an integer counter and return the new value."""

    async def close(self) -> None:
        """Release backend resources."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Backend identifier (memory, redis)."""

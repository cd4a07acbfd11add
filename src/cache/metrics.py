# src/cache/metrics.py — v1
"""Process-wide cache hit/miss counters.

Two implementations share one contract:
    InMemoryMetricsCounter  lock-guarded integer pair (tests, single process)
    StoreMetricsCounter     atomic INCR on ``metrics:`` keys of the shared store

Recording is best-effort: a failure is logged and never reaches the search caller.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Literal

from ragcache.cache.adapter import CacheStoreAdapter
from ragcache.cache.errors import CacheUnavailable
from ragcache.cache.models import MetricsSnapshot

logger = logging.getLogger(__name__)

MetricKind = Literal["hit", "miss"]

METRICS_PREFIX = "metrics:"
HITS_KEY = f"{METRICS_PREFIX}cache_hits"
MISSES_KEY = f"{METRICS_PREFIX}cache_misses"


class MetricsCounter(ABC):
    """Hit/miss counter contract."""

    @abstractmethod
    async def increment(self, kind: MetricKind) -> None:
        """Record one hit or miss. Never raises."""

    @abstractmethod
    async def snapshot(self) -> MetricsSnapshot:
        """Current totals."""


class InMemoryMetricsCounter(MetricsCounter):
    """Counters held in process memory, safe across threads and tasks."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    async def increment(self, kind: MetricKind) -> None:
        with self._lock:
            if kind == "hit":
                self._hits += 1
            else:
                self._misses += 1

    async def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return MetricsSnapshot(hits=self._hits, misses=self._misses)


class StoreMetricsCounter(MetricsCounter):
    """Counters kept in the shared store, shared by every process using it."""

    def __init__(self, store: CacheStoreAdapter) -> None:
        self._store = store

    async def increment(self, kind: MetricKind) -> None:
        key = HITS_KEY if kind == "hit" else MISSES_KEY
        try:
            await self._store.increment(key)
        except CacheUnavailable as e:
            logger.warning("Failed to record cache %s: %s", kind, e)

    async def snapshot(self) -> MetricsSnapshot:
        try:
            hits = await self._store.get_counter(HITS_KEY)
            misses = await self._store.get_counter(MISSES_KEY)
        except CacheUnavailable as e:
            logger.warning("Failed to read cache metrics: %s", e)
            return MetricsSnapshot()
        return MetricsSnapshot(hits=hits, misses=misses)

# src/search/orchestrator.py — v2
"""Search cache orchestrator: cache-aside in front of the vector search.

Per call:
    1. validate the request (InvalidRequest, before any I/O)
    2. derive the cache key
    3. hit  -> record hit, return cached results as stored
    4. miss -> record miss, run search_fn, store results best-effort, return them

The cache never changes what a caller receives: a store that is down, slow or
returning garbage only turns hits into misses. Errors from search_fn and task
cancellation propagate untouched, and nothing is written in either case.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Sequence

from ragcache.cache.adapter import CacheStoreAdapter
from ragcache.cache.cache_key import build_cache_key
from ragcache.cache.errors import CacheUnavailable, InvalidRequest
from ragcache.cache.metrics import MetricsCounter
from ragcache.cache.models import CacheEntry, MetricsSnapshot, SearchRequest, SearchResult
from ragcache.logging.context import (
    get_context,
    set_operation_context,
    set_student_context,
)

logger = logging.getLogger(__name__)

SearchFn = Callable[[SearchRequest], Awaitable[Sequence[SearchResult]]]

DEFAULT_TTL_SECONDS = 600


def validate_request(request: SearchRequest) -> None:
    """Raise InvalidRequest listing every malformed field."""
    violations: list[str] = []
    if not request.query_text or not request.query_text.strip():
        violations.append("query_text must be non-empty")
    if request.match_count <= 0:
        violations.append(f"match_count must be > 0 (got {request.match_count})")
    if not 0.0 <= request.similarity_threshold <= 1.0:
        violations.append(
            f"similarity_threshold must be within [0, 1] (got {request.similarity_threshold})"
        )
    if violations:
        raise InvalidRequest(violations)


class SearchCache:
    """Caches search results in the shared store and keeps hit/miss counters.

    Args:
        store: Adapter over the shared key/value store.
        metrics: Hit/miss counter.
        default_ttl_seconds: Entry lifetime when a call does not override it.
        enabled: Default for the per-call ``use_cache`` switch.
    """

    def __init__(
        self,
        store: CacheStoreAdapter,
        metrics: MetricsCounter,
        default_ttl_seconds: int = DEFAULT_TTL_SECONDS,
        enabled: bool = True,
    ) -> None:
        self._store = store
        self._metrics = metrics
        self._default_ttl = default_ttl_seconds
        self._enabled = enabled

    async def search(
        self,
        request: SearchRequest,
        search_fn: SearchFn,
        *,
        ttl_seconds: int | None = None,
        use_cache: bool | None = None,
    ) -> list[SearchResult]:
        """Serve a search from cache, or run it and cache the outcome.

        Args:
            request: The search to perform.
            search_fn: Underlying vector search, invoked only on a miss.
            ttl_seconds: Entry lifetime for this call (default 600).
            use_cache: False bypasses the cache entirely: no lookup, no write,
                no metrics.

        Raises:
            InvalidRequest: Malformed request; neither store nor search_fn is touched.
            Exception: Whatever search_fn raises, unchanged.
        """
        validate_request(request)
        previous = get_context()
        set_operation_context("search")
        set_student_context(request.student_id or None)
        try:
            enabled = self._enabled if use_cache is None else use_cache
            if not enabled:
                return list(await search_fn(request))

            ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
            key = build_cache_key(request)

            cached = await self._read(key)
            if cached is not None:
                await self._metrics.increment("hit")
                logger.debug(
                    "Cache hit for query %r (%d results)",
                    request.query_text[:50], len(cached.results),
                )
                return cached.results

            await self._metrics.increment("miss")
            logger.debug("Cache miss for query %r", request.query_text[:50])

            results = list(await search_fn(request))

            await self._write(key, results, ttl)
            return results
        finally:
            set_operation_context(previous.operation)
            set_student_context(previous.student_id)

    async def get_metrics_snapshot(self) -> MetricsSnapshot:
        return await self._metrics.snapshot()

    async def _read(self, key: str) -> CacheEntry | None:
        try:
            return await self._store.get(key)
        except CacheUnavailable as e:
            logger.warning("Cache read failed, continuing with search: %s", e)
            return None

    async def _write(self, key: str, results: list[SearchResult], ttl: int) -> None:
        entry = CacheEntry(
            key=key,
            results=results,
            created_at=datetime.now(timezone.utc),
            ttl_seconds=ttl,
        )
        try:
            await self._store.set(key, entry, ttl)
        except CacheUnavailable as e:
            logger.warning("Cache write failed, results not cached: %s", e)

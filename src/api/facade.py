# src/api/facade.py — v1
"""Public facade — the single entry point for chat/API handlers and admin tooling.

Usage:
    service = SearchCacheService.from_settings(
        settings, search_fn=searcher, directory=content_directory,
    )
    results = await service.search(SearchRequest(query_text="how to get started"))
    await service.invalidate_for_video("video_123")
    snapshot = await service.get_metrics_snapshot()
"""

from __future__ import annotations

import logging

from ragcache.cache.adapter import CacheStoreAdapter
from ragcache.cache.cache_factory import create_metrics_counter, create_store_adapter
from ragcache.cache.metrics import MetricsCounter
from ragcache.cache.models import MetricsSnapshot, SearchRequest, SearchResult
from ragcache.cache.retry import RetryConfig
from ragcache.config.settings import Settings
from ragcache.search.collaborators import BaseContentDirectory
from ragcache.search.invalidation import InvalidationManager
from ragcache.search.orchestrator import SearchCache, SearchFn

logger = logging.getLogger(__name__)


class SearchCacheService:
    """Search, invalidation and metrics behind one object."""

    def __init__(
        self,
        store: CacheStoreAdapter,
        metrics: MetricsCounter,
        search_fn: SearchFn | None = None,
        directory: BaseContentDirectory | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or Settings(_env_file=None)  # type: ignore[call-arg]
        self._settings = settings
        self._store = store
        self._search_fn = search_fn
        self._directory = directory
        self.cache = SearchCache(
            store,
            metrics,
            default_ttl_seconds=settings.search_cache_ttl_seconds,
            enabled=settings.search_cache_enabled,
        )
        self.invalidation = InvalidationManager(
            store,
            directory=directory,
            concurrency=settings.invalidation_concurrency,
            retry_config=RetryConfig(
                max_retries=1, base_delay_s=settings.invalidation_retry_delay_s
            ),
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        search_fn: SearchFn | None = None,
        directory: BaseContentDirectory | None = None,
    ) -> SearchCacheService:
        store = create_store_adapter(settings)
        metrics = create_metrics_counter(store, settings)
        logger.info(
            "Search cache ready (backend=%s, metrics=%s, ttl=%ds, enabled=%s)",
            store.backend.provider_name, settings.metrics_backend,
            settings.search_cache_ttl_seconds, settings.search_cache_enabled,
        )
        return cls(store, metrics, search_fn=search_fn, directory=directory, settings=settings)

    def request(self, query_text: str, **fields: object) -> SearchRequest:
        """Build a SearchRequest with configured defaults for unspecified fields."""
        fields.setdefault("match_count", self._settings.search_default_match_count)
        fields.setdefault(
            "similarity_threshold", self._settings.search_default_similarity_threshold
        )
        return SearchRequest(query_text=query_text, **fields)  # type: ignore[arg-type]

    async def search(
        self,
        request: SearchRequest,
        search_fn: SearchFn | None = None,
        *,
        ttl_seconds: int | None = None,
        use_cache: bool | None = None,
    ) -> list[SearchResult]:
        fn = search_fn or self._search_fn
        if fn is None:
            raise ValueError("No search function configured")
        return await self.cache.search(
            request, fn, ttl_seconds=ttl_seconds, use_cache=use_cache
        )

    async def search_within_course(
        self,
        course_id: str,
        request: SearchRequest,
        *,
        ttl_seconds: int | None = None,
        use_cache: bool | None = None,
    ) -> list[SearchResult]:
        """Search restricted to the videos of one course."""
        video_ids = await self._require_directory().video_ids_for_course(course_id)
        if not video_ids:
            logger.warning("No videos found for course %s", course_id)
            return []
        logger.info("Searching within course %s (%d videos)", course_id, len(video_ids))
        return await self.search(
            request.scoped_to(video_ids), ttl_seconds=ttl_seconds, use_cache=use_cache
        )

    async def search_creator_content(
        self,
        creator_id: str,
        request: SearchRequest,
        *,
        ttl_seconds: int | None = None,
        use_cache: bool | None = None,
    ) -> list[SearchResult]:
        """Search restricted to one creator's videos."""
        video_ids = await self._require_directory().video_ids_for_creator(creator_id)
        if not video_ids:
            logger.warning("No videos found for creator %s", creator_id)
            return []
        logger.info("Searching creator %s content (%d videos)", creator_id, len(video_ids))
        return await self.search(
            request.scoped_to(video_ids), ttl_seconds=ttl_seconds, use_cache=use_cache
        )

    async def invalidate_for_video(self, video_id: str) -> int:
        return await self.invalidation.invalidate_for_video(video_id)

    async def invalidate_for_creator(self, creator_id: str) -> int:
        return await self.invalidation.invalidate_for_creator(creator_id)

    async def invalidate_all(self) -> int:
        return await self.invalidation.invalidate_all()

    async def get_metrics_snapshot(self) -> MetricsSnapshot:
        return await self.cache.get_metrics_snapshot()

    async def close(self) -> None:
        await self._store.close()

    def _require_directory(self) -> BaseContentDirectory:
        if self._directory is None:
            raise ValueError("No content directory configured")
        return self._directory

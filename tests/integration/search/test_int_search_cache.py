# tests/integration/search/test_int_search_cache.py — v1
"""End-to-end search caching over the in-memory backend.

No external services required.
Coverage targets: api/facade.py, search/enhanced.py, search/orchestrator.py,
search/invalidation.py, cache/metrics.py, cache/cache_factory.py
"""

from __future__ import annotations

import pytest

from ragcache.api.facade import SearchCacheService
from ragcache.cache.models import SearchRequest
from ragcache.config.settings import Settings
from ragcache.search.enhanced import EnhancedSearcher


@pytest.fixture
def service(keyword_embedder, transcript_index) -> SearchCacheService:
    settings = Settings(_env_file=None)
    searcher = EnhancedSearcher.from_settings(settings, keyword_embedder, transcript_index)
    return SearchCacheService.from_settings(settings, search_fn=searcher)


class TestSearchCacheEndToEnd:

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, service, transcript_index):
        request = service.request("create your first course")

        first = await service.search(request)
        second = await service.search(request)

        assert [r.chunk_id for r in first] == ["c1"]
        assert first[0].rank_score is not None
        assert second == first
        assert transcript_index.calls == 1

        snap = await service.get_metrics_snapshot()
        assert (snap.hits, snap.misses, snap.hit_rate) == (1, 1, 0.5)

    @pytest.mark.asyncio
    async def test_scoped_search_respects_filter(self, service):
        request = service.request("your course", similarity_threshold=0.5, video_ids=("v2",))
        results = await service.search(request)
        assert {r.video_id for r in results} == {"v2"}

    @pytest.mark.asyncio
    async def test_video_invalidation_forces_fresh_search(self, service, transcript_index):
        scoped = service.request("create your first course", video_ids=("v1",))
        unrelated = service.request("export analytics", video_ids=("v3",), similarity_threshold=0.5)
        unscoped = service.request("create your first course")
        for request in (scoped, unrelated, unscoped):
            await service.search(request)
        assert transcript_index.calls == 3

        assert await service.invalidate_for_video("v1") == 2

        await service.search(unrelated)
        assert transcript_index.calls == 3
        await service.search(scoped)
        await service.search(unscoped)
        assert transcript_index.calls == 5

    @pytest.mark.asyncio
    async def test_flush_keeps_metrics(self, service):
        request = SearchRequest(query_text="create your first course")
        await service.search(request)
        await service.search(request)

        assert await service.invalidate_all() == 1

        snap = await service.get_metrics_snapshot()
        assert snap.total == 2

    @pytest.mark.asyncio
    async def test_bypass_cache(self, service, transcript_index):
        request = service.request("create your first course")
        await service.search(request, use_cache=False)
        await service.search(request, use_cache=False)
        assert transcript_index.calls == 2
        assert (await service.get_metrics_snapshot()).total == 0

# tests/conftest.py — v1
"""Shared test fixtures for unit and integration tests.

Provides sample search results, an in-memory store driven by a fake clock,
and a counting search function. No external services.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from ragcache.cache.adapter import CacheStoreAdapter
from ragcache.cache.memory_store import MemoryCacheStore
from ragcache.cache.metrics import InMemoryMetricsCounter
from ragcache.cache.models import SearchRequest, SearchResult
from ragcache.logging.context import clear_context
from ragcache.search.orchestrator import SearchCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_request() -> SearchRequest:
    return SearchRequest(
        query_text="how to get started",
        video_ids=("v2", "v1"),
        student_id=None,
        match_count=5,
        similarity_threshold=0.7,
    )


@pytest.fixture
def sample_results() -> list[SearchResult]:
    return [
        SearchResult(
            chunk_id="chunk_001",
            video_id="v1",
            video_title="Getting Started",
            chunk_text="First, open the dashboard and create your first course.",
            start_time_seconds=12.0,
            end_time_seconds=31.5,
            similarity=0.91,
        ),
        SearchResult(
            chunk_id="chunk_014",
            video_id="v2",
            video_title="Course Setup",
            chunk_text="Modules group lessons; add one before uploading videos.",
            start_time_seconds=95.0,
            end_time_seconds=120.0,
            similarity=0.78,
            metadata={"creator_id": "creator_1"},
        ),
    ]


# === FIXTURES: Cache components ===


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(fake_clock: FakeClock) -> MemoryCacheStore:
    return MemoryCacheStore(clock=fake_clock)


@pytest.fixture
def store_adapter(memory_store: MemoryCacheStore) -> CacheStoreAdapter:
    return CacheStoreAdapter(memory_store, timeout_s=1.0)


@pytest.fixture
def metrics() -> InMemoryMetricsCounter:
    return InMemoryMetricsCounter()


@pytest.fixture
def search_cache(
    store_adapter: CacheStoreAdapter, metrics: InMemoryMetricsCounter
) -> SearchCache:
    return SearchCache(store_adapter, metrics)


@pytest.fixture
def search_fn(sample_results: list[SearchResult]) -> AsyncMock:
    """Mock vector search returning a fixed result set."""
    return AsyncMock(return_value=sample_results)


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()

# src/cache/models.py — v1
"""Search cache domain models: SearchRequest, SearchResult, CacheEntry, MetricsSnapshot.

SearchRequest is intentionally permissive at construction time: field-level
validation (non-empty query, positive match count, threshold range) happens in
the orchestrator so that it can surface a single InvalidRequest error before any
I/O is attempted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SearchRequest(BaseModel):
    """Value object describing one semantic search over transcript chunks."""

    model_config = ConfigDict(frozen=True)

    query_text: str
    video_ids: tuple[str, ...] | None = None
    student_id: str | None = None
    match_count: int = 5
    similarity_threshold: float = 0.7

    @property
    def is_unscoped(self) -> bool:
        """True when the request searches every video ("all")."""
        return not self.video_ids

    def scoped_to(self, video_ids: list[str] | tuple[str, ...]) -> SearchRequest:
        """Return a copy restricted to the given video ids."""
        return self.model_copy(update={"video_ids": tuple(video_ids)})


class RankBreakdown(BaseModel):
    """Per-factor contributions behind a result's rank score."""

    similarity_score: float
    recency_boost: float = 0.0
    popularity_boost: float = 0.0
    view_history_boost: float = 0.0


class SearchResult(BaseModel):
    """One transcript chunk returned by a search."""

    chunk_id: str
    video_id: str
    chunk_text: str
    start_time_seconds: float
    end_time_seconds: float
    similarity: float
    video_title: str | None = None
    rank_score: float | None = None
    rank_breakdown: RankBreakdown | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class CacheEntry(BaseModel):
    """Cached value for one search key: ordered results plus entry metadata."""

    key: str
    results: list[SearchResult]
    created_at: datetime
    ttl_seconds: int


class MetricsSnapshot(BaseModel):
    """Point-in-time view of cache hit/miss counters."""

    hits: int = 0
    misses: int = 0

    @property
    def total(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Hits over total lookups; 0 when nothing was recorded yet."""
        if self.total == 0:
            return 0.0
        return self.hits / self.total

    def as_dict(self) -> dict[str, float | int]:
        return {
            "cache_hits": self.hits,
            "cache_misses": self.misses,
            "cache_hit_rate": self.hit_rate,
            "total_searches": self.total,
        }

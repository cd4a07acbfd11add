# src/search/ranking.py — v1
"""Multi-factor ranking of vector search candidates.

rank_score = w_sim * similarity
           + w_rec * recency       exp(-age_days / decay_days), newer is higher
           + w_pop * popularity    views, AI interactions and completion rate
           + w_view * view_history the student's recent chats about the video

Results are then optionally deduplicated: near-identical chunks from the same
video collapse to the best-ranked one.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable

from ragcache.cache.models import RankBreakdown, SearchResult
from ragcache.config.settings import Settings
from ragcache.search.collaborators import BaseRankingSignals, VideoEngagement

logger = logging.getLogger(__name__)

_VIEWS_CAP = 1000
_INTERACTIONS_CAP = 500
_VIEW_HISTORY_DECAY_DAYS = 7.0
_VIEW_HISTORY_NORMALIZER = 5.0
_VIEW_HISTORY_MAX_EVENTS = 10
_SECONDS_PER_DAY = 86400.0


@dataclass(frozen=True)
class RankingOptions:
    """Ranking weights and switches."""

    enable_recency_boost: bool = True
    enable_popularity_boost: bool = True
    similarity_weight: float = 0.6
    recency_weight: float = 0.15
    popularity_weight: float = 0.15
    view_history_weight: float = 0.1
    recency_decay_days: float = 90.0
    deduplicate: bool = True
    dedup_similarity_threshold: float = 0.95

    @classmethod
    def from_settings(cls, settings: Settings) -> RankingOptions:
        return cls(
            similarity_weight=settings.ranking_w_similarity,
            recency_weight=settings.ranking_w_recency,
            popularity_weight=settings.ranking_w_popularity,
            view_history_weight=settings.ranking_w_view_history,
            recency_decay_days=settings.ranking_recency_decay_days,
            deduplicate=settings.ranking_deduplicate,
            dedup_similarity_threshold=settings.ranking_dedup_threshold,
        )


def recency_score(
    created_at: datetime | None, now: datetime, decay_days: float = 90.0
) -> float:
    """Exponential decay on video age; 0 when the creation date is unknown."""
    if created_at is None:
        return 0.0
    age_days = (now - created_at).total_seconds() / _SECONDS_PER_DAY
    return _clamp(math.exp(-age_days / decay_days))


def popularity_score(engagement: VideoEngagement | None) -> float:
    if engagement is None:
        return 0.0
    view_score = min(engagement.views / _VIEWS_CAP, 1.0)
    interaction_score = min(engagement.ai_interactions / _INTERACTIONS_CAP, 1.0)
    completion_score = engagement.avg_completion_rate / 100.0
    return _clamp(view_score * 0.3 + interaction_score * 0.4 + completion_score * 0.3)


def view_history_score(interactions: list[datetime], now: datetime) -> float:
    """Recent interactions weigh more; saturates at 1."""
    recent = sorted(interactions, reverse=True)[:_VIEW_HISTORY_MAX_EVENTS]
    score = 0.0
    for at in recent:
        age_days = (now - at).total_seconds() / _SECONDS_PER_DAY
        score += math.exp(-age_days / _VIEW_HISTORY_DECAY_DAYS)
    return min(score / _VIEW_HISTORY_NORMALIZER, 1.0)


async def rank_search_results(
    results: list[SearchResult],
    signals: BaseRankingSignals | None = None,
    options: RankingOptions | None = None,
    student_id: str | None = None,
    now: datetime | None = None,
) -> list[SearchResult]:
    """Score, sort and (optionally) deduplicate search candidates.

    Args:
        results: Raw vector search candidates.
        signals: Source of recency/popularity/history data. None ranks on
            similarity alone.
        options: Weights and switches.
        student_id: Enables the view-history factor for this student.
        now: Reference time for age computations (defaults to UTC now).

    Returns:
        New SearchResult objects carrying rank_score and rank_breakdown,
        best first.
    """
    if not results:
        return []

    opts = options or RankingOptions()
    now = now or datetime.now(timezone.utc)
    video_ids = list(dict.fromkeys(r.video_id for r in results))

    created_at: dict[str, datetime] = {}
    engagement: dict[str, VideoEngagement] = {}
    history: dict[str, list[datetime]] = {}
    if signals is not None:
        created_at, engagement, history = await asyncio.gather(
            _fetch_signal(
                "created_at",
                signals.video_created_at(video_ids) if opts.enable_recency_boost else None,
            ),
            _fetch_signal(
                "engagement",
                signals.video_engagement(video_ids) if opts.enable_popularity_boost else None,
            ),
            _fetch_signal(
                "view_history",
                signals.student_interactions(student_id, video_ids) if student_id else None,
            ),
        )

    ranked: list[SearchResult] = []
    for result in results:
        breakdown = RankBreakdown(
            similarity_score=result.similarity,
            recency_boost=(
                recency_score(created_at.get(result.video_id), now, opts.recency_decay_days)
                if opts.enable_recency_boost else 0.0
            ),
            popularity_boost=(
                popularity_score(engagement.get(result.video_id))
                if opts.enable_popularity_boost else 0.0
            ),
            view_history_boost=(
                view_history_score(history.get(result.video_id, []), now)
                if student_id else 0.0
            ),
        )
        rank_score = (
            breakdown.similarity_score * opts.similarity_weight
            + breakdown.recency_boost * opts.recency_weight
            + breakdown.popularity_boost * opts.popularity_weight
            + breakdown.view_history_boost * opts.view_history_weight
        )
        ranked.append(
            result.model_copy(update={"rank_score": rank_score, "rank_breakdown": breakdown})
        )

    ranked.sort(key=lambda r: r.rank_score or 0.0, reverse=True)

    if opts.deduplicate:
        deduplicated = deduplicate_results(ranked, opts.dedup_similarity_threshold)
        if len(deduplicated) < len(ranked):
            logger.debug("Deduplicated %d similar chunks", len(ranked) - len(deduplicated))
        return deduplicated
    return ranked


def deduplicate_results(
    results: list[SearchResult], threshold: float
) -> list[SearchResult]:
    """Keep one chunk per video unless a later chunk is distinct enough.

    A chunk whose similarity exceeds ``threshold`` is treated as a duplicate of
    the first chunk seen for its video and only replaces it if it ranks higher.
    """
    deduplicated: list[SearchResult] = []
    kept_index: dict[str, int] = {}

    for result in results:
        index = kept_index.get(result.video_id)
        if index is None:
            kept_index[result.video_id] = len(deduplicated)
            deduplicated.append(result)
            continue

        if result.similarity > threshold:
            if (result.rank_score or 0.0) > (deduplicated[index].rank_score or 0.0):
                deduplicated[index] = result
        else:
            deduplicated.append(result)

    return deduplicated


def boost_video_in_results(
    results: list[SearchResult], video_id: str, boost_factor: float = 1.2
) -> list[SearchResult]:
    """Multiply rank scores of one video's chunks (follow-up questions) and re-sort."""
    boosted = [
        r.model_copy(update={"rank_score": (r.rank_score or 0.0) * boost_factor})
        if r.video_id == video_id else r
        for r in results
    ]
    return sorted(boosted, key=lambda r: r.rank_score or 0.0, reverse=True)


def filter_by_rank_score(
    results: list[SearchResult], min_score: float
) -> list[SearchResult]:
    return [r for r in results if (r.rank_score or 0.0) >= min_score]


def ensure_result_diversity(
    results: list[SearchResult], max_per_video: int = 2
) -> list[SearchResult]:
    """Cap how many chunks a single video may contribute, preserving order."""
    counts: dict[str, int] = {}
    diverse: list[SearchResult] = []
    for result in results:
        count = counts.get(result.video_id, 0)
        if count < max_per_video:
            diverse.append(result)
            counts[result.video_id] = count + 1
    return diverse


async def _fetch_signal(name: str, aw: Awaitable[dict[str, Any]] | None) -> dict[str, Any]:
    if aw is None:
        return {}
    try:
        return await aw
    except Exception as e:
        logger.warning("Ranking signal '%s' unavailable, ignoring it: %s", name, e)
        return {}


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))

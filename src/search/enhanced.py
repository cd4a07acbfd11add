# src/search/enhanced.py — v2
"""Default search function: vector search with candidate expansion and ranking.

The vector index is asked for more candidates than requested
(``match_count * multiplier``, capped) so that ranking can promote recent,
popular or previously-viewed videos above slightly more similar chunks.

Embedding and vector index failures surface as SearchFailure.
"""

from __future__ import annotations

import logging

from ragcache.cache.cache_key import NO_STUDENT, normalize_student_id
from ragcache.cache.errors import SearchFailure
from ragcache.cache.models import SearchRequest, SearchResult
from ragcache.config.settings import Settings
from ragcache.search.collaborators import (
    BaseEmbedder,
    BaseRankingSignals,
    BaseVectorSearch,
)
from ragcache.search.ranking import RankingOptions, rank_search_results

logger = logging.getLogger(__name__)

DEFAULT_CANDIDATE_MULTIPLIER = 3
DEFAULT_MAX_CANDIDATES = 20


def expanded_match_count(
    match_count: int,
    multiplier: int = DEFAULT_CANDIDATE_MULTIPLIER,
    max_candidates: int = DEFAULT_MAX_CANDIDATES,
) -> int:
    """Candidates to fetch for ranking; never fewer than requested."""
    return max(match_count, min(match_count * multiplier, max_candidates))


def personalization_student_id(student_id: str | None) -> str | None:
    """Student to personalize for; None for anything the cache key reads as no student."""
    if normalize_student_id(student_id) == NO_STUDENT:
        return None
    return student_id


class EnhancedSearcher:
    """Callable usable as ``search_fn`` for SearchCache.search()."""

    def __init__(
        self,
        embedder: BaseEmbedder,
        vector_search: BaseVectorSearch,
        signals: BaseRankingSignals | None = None,
        ranking: RankingOptions | None = None,
        candidate_multiplier: int = DEFAULT_CANDIDATE_MULTIPLIER,
        max_candidates: int = DEFAULT_MAX_CANDIDATES,
    ) -> None:
        self._embedder = embedder
        self._vector_search = vector_search
        self._signals = signals
        self._ranking = ranking or RankingOptions()
        self._candidate_multiplier = candidate_multiplier
        self._max_candidates = max_candidates

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        embedder: BaseEmbedder,
        vector_search: BaseVectorSearch,
        signals: BaseRankingSignals | None = None,
    ) -> EnhancedSearcher:
        return cls(
            embedder=embedder,
            vector_search=vector_search,
            signals=signals,
            ranking=RankingOptions.from_settings(settings),
            candidate_multiplier=settings.search_candidate_multiplier,
            max_candidates=settings.search_max_candidates,
        )

    async def __call__(self, request: SearchRequest) -> list[SearchResult]:
        candidate_count = expanded_match_count(
            request.match_count, self._candidate_multiplier, self._max_candidates
        )
        logger.debug(
            "Searching for %r (fetching %d candidates)",
            request.query_text[:50], candidate_count,
        )

        try:
            embedding = await self._embedder.embed_query(request.query_text)
        except Exception as e:
            raise SearchFailure(f"Query embedding failed: {e}") from e

        try:
            candidates = await self._vector_search.search(
                embedding,
                match_count=candidate_count,
                similarity_threshold=request.similarity_threshold,
                video_ids=list(request.video_ids) if request.video_ids else None,
            )
        except Exception as e:
            raise SearchFailure(f"Vector search failed: {e}") from e

        if not candidates:
            logger.debug("No results found for query")
            return []

        ranked = await rank_search_results(
            candidates,
            signals=self._signals,
            options=self._ranking,
            student_id=personalization_student_id(request.student_id),
        )
        top = ranked[: request.match_count]
        logger.debug(
            "Returning top %d of %d ranked candidates", len(top), len(candidates)
        )
        return top

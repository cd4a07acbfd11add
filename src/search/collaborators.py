# src/search/collaborators.py — v1
"""Abstract interfaces of the external systems the search layer depends on.

None of these are implemented here: embeddings, the vector index, the content
database and engagement analytics belong to the host application.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel

from ragcache.cache.models import SearchResult


class VideoEngagement(BaseModel):
    """Aggregated recent analytics for one video."""

    views: int = 0
    ai_interactions: int = 0
    avg_completion_rate: float = 0.0  # percent, 0-100


class BaseEmbedder(ABC):
    """Turns query text into a fixed-dimension vector."""

    @abstractmethod
    async def embed_query(self, query: str) -> list[float]:
        """Embed a single query."""

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Output vector dimensions."""


class BaseVectorSearch(ABC):
    """Nearest-neighbour search over transcript chunk embeddings."""

    @abstractmethod
    async def search(
        self,
        query_embedding: list[float],
        match_count: int,
        similarity_threshold: float,
        video_ids: list[str] | None = None,
    ) -> list[SearchResult]:
        """Return up to match_count chunks at or above the threshold, best first."""


class BaseContentDirectory(ABC):
    """Lookups of which videos belong to a creator or a course."""

    @abstractmethod
    async def video_ids_for_creator(self, creator_id: str) -> list[str]:
        """All (non-deleted) video ids owned by a creator."""

    @abstractmethod
    async def video_ids_for_course(self, course_id: str) -> list[str]:
        """All video ids referenced by a course's modules."""


class BaseRankingSignals(ABC):
    """Data the ranker combines with vector similarity."""

    @abstractmethod
    async def video_created_at(self, video_ids: list[str]) -> dict[str, datetime]:
        """Creation timestamps per video id (missing ids are unknown)."""

    @abstractmethod
    async def video_engagement(self, video_ids: list[str]) -> dict[str, VideoEngagement]:
        """Last-30-days engagement per video id."""

    @abstractmethod
    async def student_interactions(
        self, student_id: str, video_ids: list[str]
    ) -> dict[str, list[datetime]]:
        """Timestamps of the student's recent chat references to each video."""

# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for cache, search, ranking and logging settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Search cache ===
    search_cache_enabled: bool = True
    search_cache_ttl_seconds: int = 600

    # === Cache store ===
    cache_backend: Literal["memory", "redis"] = "memory"
    cache_redis_url: str = ""
    cache_namespace: str = ""
    cache_operation_timeout_s: float = 0.5
    cache_invalidation_timeout_s: float = 30.0

    # === Metrics ===
    metrics_backend: Literal["memory", "store"] = "store"

    # === Invalidation ===
    invalidation_concurrency: int = 10
    invalidation_retry_delay_s: float = 0.1

    # === Search defaults ===
    search_default_match_count: int = 5
    search_default_similarity_threshold: float = 0.7
    search_candidate_multiplier: int = 3
    search_max_candidates: int = 20

    # === Ranking weights ===
    ranking_w_similarity: float = 0.6
    ranking_w_recency: float = 0.15
    ranking_w_popularity: float = 0.15
    ranking_w_view_history: float = 0.1
    ranking_recency_decay_days: float = 90.0
    ranking_deduplicate: bool = True
    ranking_dedup_threshold: float = 0.95

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("invalidation_concurrency", "search_candidate_multiplier")
    @classmethod
    def validate_at_least_one(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_REDIS_URL must be set when CACHE_BACKEND=redis")

        if self.search_cache_ttl_seconds <= 0:
            errors.append("SEARCH_CACHE_TTL_SECONDS must be > 0")

        if self.cache_operation_timeout_s <= 0:
            errors.append("CACHE_OPERATION_TIMEOUT_S must be > 0")

        if self.cache_invalidation_timeout_s <= 0:
            errors.append("CACHE_INVALIDATION_TIMEOUT_S must be > 0")

        if not 0.0 <= self.search_default_similarity_threshold <= 1.0:
            errors.append("SEARCH_DEFAULT_SIMILARITY_THRESHOLD must be within [0, 1]")

        if self.search_default_match_count <= 0:
            errors.append("SEARCH_DEFAULT_MATCH_COUNT must be > 0")

        if self.search_max_candidates < self.search_default_match_count:
            errors.append("SEARCH_MAX_CANDIDATES must be >= SEARCH_DEFAULT_MATCH_COUNT")

        if self.ranking_recency_decay_days <= 0:
            errors.append("RANKING_RECENCY_DECAY_DAYS must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-call-site config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]

# src/__init__.py — v1
"""ragcache — cached semantic search over video transcript chunks."""

from ragcache.api.facade import SearchCacheService
from ragcache.cache.cache_key import build_cache_key
from ragcache.cache.errors import (
    CacheUnavailable,
    InvalidationFailed,
    InvalidRequest,
    SearchFailure,
)
from ragcache.cache.models import MetricsSnapshot, SearchRequest, SearchResult
from ragcache.search.invalidation import InvalidationManager
from ragcache.search.orchestrator import SearchCache
from ragcache.version import __version__

__all__ = [
    "CacheUnavailable",
    "InvalidRequest",
    "InvalidationFailed",
    "InvalidationManager",
    "MetricsSnapshot",
    "SearchCache",
    "SearchCacheService",
    "SearchFailure",
    "SearchRequest",
    "SearchResult",
    "__version__",
    "build_cache_key",
]

# src/cache/cache_factory.py — v4
"""Factories for cache store and metrics counter instantiation."""

from __future__ import annotations

from ragcache.cache.adapter import CacheStoreAdapter
from ragcache.cache.base_cache_store import BaseCacheStore
from ragcache.cache.metrics import (
    InMemoryMetricsCounter,
    MetricsCounter,
    StoreMetricsCounter,
)
from ragcache.config.settings import Settings


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to the in-memory backend.

    Returns:
        Configured BaseCacheStore implementation.
    """
    backend = "memory" if settings is None else settings.cache_backend

    if backend == "memory":
        from ragcache.cache.memory_store import MemoryCacheStore
        return MemoryCacheStore()

    if backend == "redis":
        from ragcache.cache.redis_store import RedisCacheStore
        if settings is None or not settings.cache_redis_url:
            raise ValueError(
                "CACHE_REDIS_URL must be set when CACHE_BACKEND=redis"
            )
        return RedisCacheStore(
            redis_url=settings.cache_redis_url,
            namespace=settings.cache_namespace,
        )

    raise ValueError(f"Unsupported cache backend: {backend!r}")


def create_store_adapter(settings: Settings | None = None) -> CacheStoreAdapter:
    """Backend wrapped with the configured single-key and bulk-delete timeouts."""
    backend = create_cache_store(settings)
    if settings is None:
        return CacheStoreAdapter(backend)
    return CacheStoreAdapter(
        backend,
        timeout_s=settings.cache_operation_timeout_s,
        bulk_timeout_s=settings.cache_invalidation_timeout_s,
    )


def create_metrics_counter(
    store: CacheStoreAdapter, settings: Settings | None = None
) -> MetricsCounter:
    """Store-backed counters unless METRICS_BACKEND=memory."""
    if settings is not None and settings.metrics_backend == "memory":
        return InMemoryMetricsCounter()
    return StoreMetricsCounter(store)

# src/search/invalidation.py — v2
"""Targeted invalidation of cached search results when video content changes.

A changed video can appear in two kinds of entries: those whose filter lists
it, and unscoped ("all") entries. Which unscoped entries actually returned
chunks of the video cannot be told from the key, so every unscoped entry is
dropped along with the video's scoped ones. Over-invalidation is accepted; a
stale entry surviving is not.

Store failures on individual pattern deletes are retried once, then logged and
skipped. The returned count reflects what was actually deleted, including keys
removed by an attempt that failed part-way.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Iterator

from ragcache.cache.adapter import CacheStoreAdapter
from ragcache.cache.cache_key import namespace_pattern, unscoped_pattern, video_pattern
from ragcache.cache.errors import CacheUnavailable, InvalidationFailed
from ragcache.cache.retry import RetryConfig, RetryExhausted, with_retry
from ragcache.logging.context import get_context, set_operation_context
from ragcache.search.collaborators import BaseContentDirectory

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 10


@contextmanager
def _operation(name: str) -> Iterator[None]:
    previous = get_context().operation
    set_operation_context(name)
    try:
        yield
    finally:
        set_operation_context(previous)


class InvalidationManager:
    """Deletes cache entries made stale by content changes.

    Args:
        store: Adapter over the shared key/value store.
        directory: Resolves a creator's video ids. Required only for
            invalidate_for_creator.
        concurrency: Max per-video deletions in flight during creator-level
            invalidation.
        retry_config: Retry policy for each pattern deletion.
    """

    def __init__(
        self,
        store: CacheStoreAdapter,
        directory: BaseContentDirectory | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        retry_config: RetryConfig | None = None,
    ) -> None:
        self._store = store
        self._directory = directory
        self._concurrency = concurrency
        self._retry_config = retry_config or RetryConfig(max_retries=1)

    async def invalidate_for_video(self, video_id: str) -> int:
        """Drop entries scoped to this video plus every unscoped entry."""
        with _operation("invalidate_video"):
            scoped = await self._delete_pattern(video_pattern(video_id))
            unscoped = await self._delete_pattern(unscoped_pattern())
            deleted = scoped + unscoped
            logger.info(
                "Invalidated %d cache entries for video %s (%d scoped, %d unscoped)",
                deleted, video_id, scoped, unscoped,
            )
            return deleted

    async def invalidate_for_creator(self, creator_id: str) -> int:
        """Invalidate every video of a creator, with bounded concurrency.

        Scoped patterns fan out per video; unscoped entries are dropped once.

        Raises:
            InvalidationFailed: The creator's videos could not be resolved.
        """
        with _operation("invalidate_creator"):
            if self._directory is None:
                raise InvalidationFailed(creator_id, "no content directory configured")

            try:
                video_ids = await self._directory.video_ids_for_creator(creator_id)
            except Exception as e:
                raise InvalidationFailed(creator_id, f"video lookup failed: {e}") from e

            if not video_ids:
                logger.info("Creator %s has no videos, nothing to invalidate", creator_id)
                return 0

            semaphore = asyncio.Semaphore(self._concurrency)

            async def _bounded(video_id: str) -> int:
                async with semaphore:
                    return await self._delete_pattern(video_pattern(video_id))

            unique_ids = list(dict.fromkeys(video_ids))
            counts = await asyncio.gather(*(_bounded(v) for v in unique_ids))
            scoped = sum(counts)
            unscoped = await self._delete_pattern(unscoped_pattern())
            deleted = scoped + unscoped
            logger.info(
                "Invalidated %d cache entries for creator %s "
                "(%d videos, %d scoped, %d unscoped)",
                deleted, creator_id, len(unique_ids), scoped, unscoped,
            )
            return deleted

    async def invalidate_all(self) -> int:
        """Flush every cached search result. Metrics are untouched."""
        with _operation("invalidate_all"):
            deleted = await self._delete_pattern(namespace_pattern())
            logger.info("Invalidated %d search cache entries", deleted)
            return deleted

    async def _delete_pattern(self, pattern: str) -> int:
        deleted = 0

        async def _attempt() -> None:
            nonlocal deleted
            try:
                deleted += await self._store.delete_by_pattern(pattern)
            except CacheUnavailable as e:
                deleted += e.deleted
                raise

        try:
            await with_retry(
                _attempt,
                operation=f"delete_by_pattern({pattern})",
                config=self._retry_config,
            )
        except RetryExhausted as e:
            logger.warning(
                "Skipping invalidation of %s after %d deleted: %s", pattern, deleted, e
            )
        return deleted

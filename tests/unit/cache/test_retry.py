# tests/unit/cache/test_retry.py — v1
"""Tests for cache/retry.py — single retry then RetryExhausted."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from ragcache.cache.retry import RetryConfig, RetryExhausted, _compute_delay, with_retry


class TestWithRetry:
    @pytest.mark.asyncio
    async def test_success_first_try(self):
        fn = AsyncMock(return_value=3)
        assert await with_retry(fn, "search:*", operation="delete") == 3
        fn.assert_awaited_once_with("search:*")

    @pytest.mark.asyncio
    async def test_retries_once_then_succeeds(self):
        fn = AsyncMock(side_effect=[ConnectionError("blip"), 7])
        with patch("ragcache.cache.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await with_retry(fn, operation="delete") == 7
        assert fn.await_count == 2
        sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_exhausted(self):
        error = ConnectionError("down")
        fn = AsyncMock(side_effect=error)
        with patch("ragcache.cache.retry.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(RetryExhausted) as exc_info:
                await with_retry(fn, operation="delete", config=RetryConfig(max_retries=1))
        assert exc_info.value.attempts == 2
        assert exc_info.value.last_error is error
        assert fn.await_count == 2

    @pytest.mark.asyncio
    async def test_no_retries(self):
        fn = AsyncMock(side_effect=ValueError("bad"))
        with pytest.raises(RetryExhausted):
            await with_retry(fn, config=RetryConfig(max_retries=0))
        fn.assert_awaited_once()


class TestComputeDelay:
    def test_without_jitter(self):
        config = RetryConfig(base_delay_s=0.1, backoff_factor=2.0, jitter=False)
        assert _compute_delay(config, 0) == pytest.approx(0.1)
        assert _compute_delay(config, 2) == pytest.approx(0.4)

    def test_jitter_bounds(self):
        config = RetryConfig(base_delay_s=1.0, backoff_factor=1.0, jitter=True)
        for _ in range(50):
            assert 0.5 <= _compute_delay(config, 0) <= 1.5

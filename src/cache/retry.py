# src/cache/retry.py — v1
"""Retry policy for cache store operations.

Bulk deletions get one extra attempt after a short pause; anything still
failing is reported to the caller as RetryExhausted.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class RetryExhausted(Exception):
    """All attempts failed for a cache operation."""

    def __init__(self, operation: str, attempts: int, last_error: Exception):
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Cache operation '{operation}' failed after {attempts} attempts: {last_error}"
        )


@dataclass(frozen=True)
class RetryConfig:
    """How many times to retry, and how long to wait in between."""

    max_retries: int = 1
    base_delay_s: float = 0.1
    backoff_factor: float = 2.0
    jitter: bool = True


def _compute_delay(config: RetryConfig, attempt: int) -> float:
    """Compute delay for a given attempt (0-based)."""
    delay = config.base_delay_s * (config.backoff_factor ** attempt)
    if config.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    return delay


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    operation: str = "unknown",
    config: RetryConfig | None = None,
    **kwargs: Any,
) -> Any:
    """Execute an async function, retrying on any exception.

    Raises:
        RetryExhausted: If every attempt failed.
    """
    config = config or RetryConfig()
    attempts = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except Exception as e:
            attempts += 1
            if attempts > config.max_retries:
                raise RetryExhausted(operation, attempts, e) from e

            delay = _compute_delay(config, attempts - 1)
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.2fs: %s",
                operation, attempts, config.max_retries + 1, delay, e,
            )
            await asyncio.sleep(delay)

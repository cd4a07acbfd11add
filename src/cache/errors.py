# src/cache/errors.py — v1
"""Error taxonomy for the search cache.

Propagation rules:
    InvalidRequest      always surfaced, raised before any I/O.
    SearchFailure       surfaced unchanged; never cached.
    CacheUnavailable    absorbed at the orchestrator/metrics boundary and logged.
    InvalidationFailed  surfaced when an invalidation could not start at all.
"""

from __future__ import annotations


class RagCacheError(Exception):
    """Base class for all search cache errors."""


class InvalidRequest(RagCacheError, ValueError):
    """Malformed search parameters."""

    def __init__(self, violations: list[str]):
        self.violations = violations
        super().__init__("Invalid search request: " + "; ".join(violations))


class SearchFailure(RagCacheError):
    """The underlying vector search collaborator failed."""


class CacheUnavailable(RagCacheError):
    """A cache store read, write, delete or counter operation failed or timed out."""

    def __init__(
        self,
        operation: str,
        key: str,
        cause: BaseException | None = None,
        deleted: int = 0,
    ):
        self.operation = operation
        self.key = key
        self.cause = cause
        # keys a bulk delete had already removed when it failed
        self.deleted = deleted
        detail = f": {type(cause).__name__}: {cause}" if cause is not None else ""
        super().__init__(f"Cache {operation} failed for {key!r}{detail}")


class InvalidationFailed(RagCacheError):
    """Creator-level invalidation could not resolve the creator's videos."""

    def __init__(self, creator_id: str, reason: str):
        self.creator_id = creator_id
        super().__init__(f"Invalidation for creator {creator_id!r} failed: {reason}")

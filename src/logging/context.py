# src/logging/context.py — v1
"""Contextual logging support — attach request_id, operation, student_id to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging — set per search/invalidation call.
_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)
_student_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "student_id", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    request_id: str | None = None
    operation: str | None = None
    student_id: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        request_id=_request_id.get(),
        operation=_operation.get(),
        student_id=_student_id.get(),
    )


def set_request_context(request_id: str, student_id: str | None = None) -> None:
    """Set request-level context (called once per incoming request)."""
    _request_id.set(request_id)
    _student_id.set(student_id)


def set_operation_context(operation: str | None) -> None:
    """Set the cache operation currently executing (search, invalidate_video...)."""
    _operation.set(operation)


def set_student_context(student_id: str | None) -> None:
    """Set the student a search is served for (None for anonymous searches)."""
    _student_id.set(student_id)


def clear_context() -> None:
    """Reset all context variables."""
    _request_id.set(None)
    _operation.set(None)
    _student_id.set(None)

# src/logging/logger.py — v2
"""Logger factory, context stamping and JSON/text formatters.

Context (request_id, operation, student_id) is captured by ContextFilter when
a record is created, not when it is formatted, so records handed to another
thread or buffered by a handler keep the context of the search or
invalidation that produced them.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

from ragcache.logging.context import get_context

_CONTEXT_FIELDS = ("request_id", "operation", "student_id")

# Third-party loggers that are chatty at DEBUG (connection pool churn).
_LIBRARY_LOGGERS = ("redis", "asyncio")


class ContextFilter(logging.Filter):
    """Copy the current log context onto each record as attributes."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = get_context()
        for name in _CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, getattr(ctx, name))
        return True


def _record_context(record: logging.LogRecord) -> dict[str, Any]:
    return {
        name: getattr(record, name)
        for name in _CONTEXT_FIELDS
        if getattr(record, name, None) is not None
    }


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, context, data."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = _record_context(record)
        if context:
            entry["context"] = context

        # logger.info(..., extra={"data": {"deleted": 3}})
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line human-readable format for terminals and the admin CLI."""

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            _timestamp(record).strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname:8s}]",
            record.name,
        ]
        context = _record_context(record)
        if "request_id" in context:
            parts.append(f"[{context['request_id']}]")
        if "operation" in context:
            parts.append(f"({context['operation']})")
        if "student_id" in context:
            parts.append(f"student={context['student_id']}")
        parts.append(f"— {record.getMessage()}")
        line = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def get_logger(name: str) -> logging.Logger:
    """Get a named logger under the ragcache hierarchy."""
    return logging.getLogger(f"ragcache.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 30,
    stream: TextIO | None = None,
    library_level: str = "WARNING",
) -> None:
    """Configure the ragcache logger hierarchy.

    Re-running replaces previously installed handlers.

    Args:
        level: Log level for ragcache loggers.
        log_format: "json" or "text".
        log_file: Optional rotating log file, in addition to the console.
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.
        stream: Console stream (default stdout).
        library_level: Level applied to redis/asyncio loggers.
    """
    root_logger = logging.getLogger("ragcache")
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers.clear()

    formatter: logging.Formatter = (
        JsonFormatter() if log_format == "json" else TextFormatter()
    )
    context_filter = ContextFilter()

    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stdout)]
    if log_file:
        from ragcache.logging.handlers import create_rotating_handler

        handlers.append(
            create_rotating_handler(log_file, rotation=rotation, retention=retention)
        )

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root_logger.addHandler(handler)

    library = getattr(logging, library_level.upper(), logging.WARNING)
    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library)

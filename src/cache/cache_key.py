# src/cache/cache_key.py — v1
"""Deterministic cache keys for search requests, and the matching invalidation patterns.

Key layout (fields in this fixed order, ``:`` separated)::

    search:v1:f=<filter>:s=<student>:n=<match_count>:t=<threshold>:q=<query digest>

- ``<filter>`` is the literal ``all`` for unscoped requests, otherwise the
  de-duplicated, lexicographically sorted video ids wrapped in commas
  (``,v1,v2,``) so every id is delimited on both sides.
- ``<student>`` is the student id, or the literal ``none``.
- ids are percent-encoded, so ``:``, ``,``, ``%`` and the glob metacharacters
  ``* ? [ ] \\`` can never appear raw inside a field.
- ``<query digest>`` is the SHA-256 hex digest of the UTF-8 query text: fixed
  length regardless of query size, and free of delimiters.

Because of the encoding, ``*,<id>,*`` only ever matches inside the filter
segment, and ``f=all:`` only ever matches unscoped keys.
"""

from __future__ import annotations

import hashlib
from urllib.parse import quote

from ragcache.cache.models import SearchRequest

KEY_PREFIX = "search:"
KEY_VERSION = "v1"
ALL_VIDEOS = "all"
NO_STUDENT = "none"
FILTER_DELIMITER = ","


def build_cache_key(request: SearchRequest) -> str:
    """Derive the cache key for a search request. Pure and deterministic."""
    fields = [
        f"f={normalize_video_filter(request.video_ids)}",
        f"s={normalize_student_id(request.student_id)}",
        f"n={int(request.match_count)}",
        f"t={_format_threshold(request.similarity_threshold)}",
        f"q={query_digest(request.query_text)}",
    ]
    return f"{KEY_PREFIX}{KEY_VERSION}:" + ":".join(fields)


def normalize_video_filter(video_ids: tuple[str, ...] | list[str] | None) -> str:
    """Order-independent filter segment; ``all`` when unrestricted."""
    if not video_ids:
        return ALL_VIDEOS
    encoded = sorted({_encode(v) for v in video_ids})
    return FILTER_DELIMITER + FILTER_DELIMITER.join(encoded) + FILTER_DELIMITER


def normalize_student_id(student_id: str | None) -> str:
    if not student_id:
        return NO_STUDENT
    return _encode(student_id)


def query_digest(query_text: str) -> str:
    return hashlib.sha256(query_text.encode("utf-8")).hexdigest()


def video_pattern(video_id: str) -> str:
    """Glob pattern matching every key whose filter contains ``video_id``."""
    return f"{KEY_PREFIX}{KEY_VERSION}:f=*{FILTER_DELIMITER}{_encode(video_id)}{FILTER_DELIMITER}*"


def unscoped_pattern() -> str:
    """Glob pattern matching every key whose filter is ``all``."""
    return f"{KEY_PREFIX}{KEY_VERSION}:f={ALL_VIDEOS}:*"


def namespace_pattern() -> str:
    """Glob pattern matching every search key, any version."""
    return f"{KEY_PREFIX}*"


def _format_threshold(value: float) -> str:
    # repr() is the shortest round-tripping form: 0.7 -> "0.7", 1 -> "1.0"
    return repr(float(value))


def _encode(value: str) -> str:
    # quote() leaves only [A-Za-z0-9_.~-] unescaped
    return quote(value, safe="")

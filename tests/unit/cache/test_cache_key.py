# tests/unit/cache/test_cache_key.py — v1
"""Tests for cache/cache_key.py — deterministic keys and invalidation patterns."""

from __future__ import annotations

import fnmatch

import pytest

from ragcache.cache.cache_key import (
    build_cache_key,
    namespace_pattern,
    normalize_student_id,
    normalize_video_filter,
    query_digest,
    unscoped_pattern,
    video_pattern,
)
from ragcache.cache.models import SearchRequest


def _req(**overrides) -> SearchRequest:
    fields = dict(
        query_text="how to get started",
        video_ids=("v1", "v2"),
        student_id=None,
        match_count=5,
        similarity_threshold=0.7,
    )
    fields.update(overrides)
    return SearchRequest(**fields)


class TestBuildCacheKey:
    def test_filter_order_does_not_matter(self):
        a = _req(video_ids=["v2", "v1"], student_id="none")
        b = _req(video_ids=["v1", "v2"], student_id="none")
        assert build_cache_key(a) == build_cache_key(b)

    def test_deterministic(self):
        assert build_cache_key(_req()) == build_cache_key(_req())

    def test_duplicate_video_ids_collapse(self):
        assert build_cache_key(_req(video_ids=["v1", "v2", "v1"])) == build_cache_key(_req())

    def test_namespace_prefix(self):
        assert build_cache_key(_req()).startswith("search:")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"query_text": "how to get paid"},
            {"student_id": "student_42"},
            {"match_count": 6},
            {"similarity_threshold": 0.75},
            {"video_ids": ("v1",)},
            {"video_ids": None},
        ],
    )
    def test_distinct_fields_give_distinct_keys(self, overrides):
        assert build_cache_key(_req(**overrides)) != build_cache_key(_req())

    def test_empty_filter_equals_no_filter(self):
        assert build_cache_key(_req(video_ids=())) == build_cache_key(_req(video_ids=None))

    def test_empty_student_equals_none(self):
        assert build_cache_key(_req(student_id="")) == build_cache_key(_req(student_id=None))

    def test_long_query_has_fixed_length_key(self):
        short_key = build_cache_key(_req(query_text="x"))
        long_key = build_cache_key(_req(query_text="x" * 100_000))
        assert len(short_key) == len(long_key)

    def test_query_with_delimiters_is_not_embedded(self):
        key = build_cache_key(_req(query_text="a:b,c*d"))
        assert "a:b" not in key
        assert key.endswith(query_digest("a:b,c*d"))

    def test_field_boundaries_cannot_be_forged(self):
        """An id containing the delimiter must not look like two ids."""
        forged = build_cache_key(_req(video_ids=("v1,v2",)))
        genuine = build_cache_key(_req(video_ids=("v1", "v2")))
        assert forged != genuine


class TestNormalization:
    def test_all_when_unrestricted(self):
        assert normalize_video_filter(None) == "all"
        assert normalize_video_filter([]) == "all"

    def test_sorted_and_wrapped(self):
        assert normalize_video_filter(["b", "a"]) == ",a,b,"

    def test_special_characters_encoded(self):
        assert normalize_video_filter(["a:b*"]) == ",a%3Ab%2A,"

    def test_student_none(self):
        assert normalize_student_id(None) == "none"
        assert normalize_student_id("s1") == "s1"


class TestPatterns:
    def test_video_pattern_matches_scoped_key(self):
        key = build_cache_key(_req(video_ids=("v1", "v2")))
        assert fnmatch.fnmatchcase(key, video_pattern("v2"))

    def test_video_pattern_skips_other_videos(self):
        key = build_cache_key(_req(video_ids=("v10", "v3")))
        assert not fnmatch.fnmatchcase(key, video_pattern("v1"))

    def test_video_pattern_skips_unscoped_key(self):
        key = build_cache_key(_req(video_ids=None))
        assert not fnmatch.fnmatchcase(key, video_pattern("v1"))

    def test_video_pattern_ignores_student_field(self):
        key = build_cache_key(_req(video_ids=("v9",), student_id="v1"))
        assert not fnmatch.fnmatchcase(key, video_pattern("v1"))

    def test_unscoped_pattern(self):
        assert fnmatch.fnmatchcase(build_cache_key(_req(video_ids=None)), unscoped_pattern())
        assert not fnmatch.fnmatchcase(build_cache_key(_req()), unscoped_pattern())

    def test_video_called_all_is_not_unscoped(self):
        key = build_cache_key(_req(video_ids=("all",)))
        assert not fnmatch.fnmatchcase(key, unscoped_pattern())
        assert fnmatch.fnmatchcase(key, video_pattern("all"))

    def test_namespace_pattern_matches_everything(self):
        assert fnmatch.fnmatchcase(build_cache_key(_req()), namespace_pattern())
        assert not fnmatch.fnmatchcase("metrics:cache_hits", namespace_pattern())

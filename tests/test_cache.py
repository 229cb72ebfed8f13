"""Tests for the Redis-backed recommendation cache."""

import json

import pytest

from src.recommender.cache import CacheEntry, RecommendationCache
from src.recommender.types import RecommendationResult


def _results(*product_ids):
    return [RecommendationResult(product_id=p, score=float(10 - i)) for i, p in enumerate(product_ids)]


@pytest.fixture
def cache(fake_redis) -> RecommendationCache:
    return RecommendationCache(client=fake_redis, ttl_seconds=3600, key_prefix="recommendations:")


def test_set_then_get_returns_entry(cache, fake_redis):
    cache.set("alice", _results("p1", "p2"), limit=2)

    entry = cache.get("alice")

    assert entry == CacheEntry(limit=2, results=_results("p1", "p2"))
    assert fake_redis.ttls["recommendations:alice"] == 3600
    assert json.loads(fake_redis.data["recommendations:alice"])["limit"] == 2


def test_missing_key_is_a_miss(cache):
    assert cache.get("nobody") is None


def test_explicit_ttl_overrides_default(cache, fake_redis):
    cache.set("alice", _results("p1"), limit=1, ttl_seconds=60)

    assert fake_redis.ttls["recommendations:alice"] == 60


@pytest.mark.parametrize(
    "cached_limit, cached_count, requested, expected",
    [
        (10, 10, 5, True),
        (10, 10, 10, True),
        (10, 10, 20, False),
        (10, 4, 20, True),
    ],
)
def test_entry_covers_requested_limit(cached_limit, cached_count, requested, expected):
    """Test that larger requests bypass unless the cached list was already exhaustive."""
    entry = CacheEntry(limit=cached_limit, results=_results(*[f"p{i}" for i in range(cached_count)]))

    assert entry.covers(requested) is expected


def test_read_failure_is_a_miss(cache, fake_redis):
    cache.set("alice", _results("p1"), limit=1)
    fake_redis.fail = True

    assert cache.get("alice") is None


def test_write_failure_is_swallowed(cache, fake_redis):
    fake_redis.fail = True

    cache.set("alice", _results("p1"), limit=1)

    fake_redis.fail = False
    assert cache.get("alice") is None


def test_unreadable_entry_is_a_miss(cache, fake_redis):
    fake_redis.data["recommendations:alice"] = b"not json"

    assert cache.get("alice") is None


def test_invalidate_all_only_touches_prefixed_keys(cache, fake_redis):
    for user_id in ["alice", "bob", "carol"]:
        cache.set(user_id, _results("p1"), limit=1)
    fake_redis.data["sessions:alice"] = b"keep"

    deleted = cache.invalidate_all()

    assert deleted == 3
    assert list(fake_redis.data) == ["sessions:alice"]


def test_invalidate_all_failure_is_swallowed(cache, fake_redis):
    cache.set("alice", _results("p1"), limit=1)
    fake_redis.fail = True

    assert cache.invalidate_all() == 0


def test_disabled_cache_is_inert():
    cache = RecommendationCache.from_url(None)

    cache.set("alice", _results("p1"), limit=1)

    assert not cache.enabled
    assert cache.get("alice") is None
    assert cache.invalidate_all() == 0

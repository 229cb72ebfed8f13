"""Tests for popularity and same-shop rankings."""

import pytest

from src.recommender.fallback import FallbackRanker
from src.recommender.store import InMemoryProductStatsStore
from src.recommender.types import ProductStats


@pytest.fixture
def ranker(stats_store) -> FallbackRanker:
    return FallbackRanker(stats_store)


def test_popular_orders_by_views_then_product_id(ranker):
    """Test descending views with ties broken by product ID ascending."""
    results = ranker.popular(10)

    assert [r.product_id for r in results] == ["p5", "p1", "p2", "p3", "p4", "p6"]
    assert [r.score for r in results] == [60.0, 40.0, 25.0, 25.0, 10.0, 5.0]


def test_popular_scores_never_increase(ranker):
    scores = [r.score for r in ranker.popular(10)]

    assert all(a >= b for a, b in zip(scores, scores[1:]))


def test_popular_respects_limit(ranker):
    assert len(ranker.popular(2)) == 2
    assert ranker.popular(0) == []


def test_popular_with_no_stats_is_empty():
    assert FallbackRanker(InMemoryProductStatsStore()).popular(5) == []


def test_similar_returns_same_shop_without_source(ranker):
    results = ranker.similar("p4", 10)

    assert [r.product_id for r in results] == ["p5", "p3"]


def test_similar_for_unknown_product_uses_popular(ranker):
    results = ranker.similar("nope", 3)

    assert [r.product_id for r in results] == ["p5", "p1", "p2"]


def test_similar_for_only_product_in_shop_uses_popular_without_it(ranker):
    """Test that the popular fallback still leaves out the source product."""
    results = ranker.similar("p6", 10)

    assert "p6" not in [r.product_id for r in results]
    assert [r.product_id for r in results] == ["p5", "p1", "p2", "p3", "p4"]


def test_similar_without_shop_uses_popular():
    store = InMemoryProductStatsStore([
        ProductStats(product_id="solo", views=100),
        ProductStats(product_id="other", views=1),
    ])

    results = FallbackRanker(store).similar("solo", 5)

    assert [r.product_id for r in results] == ["other"]


@pytest.mark.parametrize("product_id", ["p1", "p2", "p3", "p4", "p5", "p6", "unknown"])
def test_similar_never_contains_source(ranker, product_id):
    assert product_id not in [r.product_id for r in ranker.similar(product_id, 100)]

"""Shared fixtures for the MarketRec test suite."""

import fnmatch
from typing import Dict, List, Optional

import pytest
import redis

from src.api.metrics import metrics_service
from src.recommender.cache import RecommendationCache
from src.recommender.service import RecommendationService
from src.recommender.store import InMemoryInteractionStore, InMemoryProductStatsStore
from src.recommender.types import InteractionEvent, ProductStats


class FakeRedis:
    """Dictionary-backed stand-in for the redis client calls the cache makes.

    Set ``fail = True`` to make every call raise ``redis.ConnectionError``.
    """

    def __init__(self) -> None:
        self.data: Dict[str, bytes] = {}
        self.ttls: Dict[str, int] = {}
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise redis.ConnectionError("redis is down")

    def get(self, key: str) -> Optional[bytes]:
        self._check()
        return self.data.get(key)

    def setex(self, key: str, ttl: int, value) -> bool:
        self._check()
        self.data[key] = value.encode() if isinstance(value, str) else value
        self.ttls[key] = ttl
        return True

    def scan_iter(self, match: Optional[str] = None, count: Optional[int] = None):
        self._check()
        for key in list(self.data):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    def delete(self, *keys: str) -> int:
        self._check()
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                self.ttls.pop(key, None)
                removed += 1
        return removed


def _make_events(user_id: str, actions: List[tuple]) -> List[InteractionEvent]:
    """Events for one user from (product_id, action) or (product_id, action, shop_id)."""
    events = []
    for item in actions:
        product_id, action = item[0], item[1]
        shop_id = item[2] if len(item) > 2 else None
        events.append(InteractionEvent(
            user_id=user_id, product_id=product_id, action=action, shop_id=shop_id
        ))
    return events


@pytest.fixture(autouse=True)
def reset_metrics():
    """Metrics are a process-wide singleton; start every test from zero."""
    metrics_service.reset()
    yield
    metrics_service.reset()


@pytest.fixture
def make_events():
    """Factory for one user's events; see _make_events."""
    return _make_events


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def sample_events() -> List[InteractionEvent]:
    """Three users with distinct tastes over five products in two shops."""
    return (
        _make_events("alice", [
            ("p1", "purchase", "shop-a"),
            ("p2", "view", "shop-a"),
            ("p1", "view", "shop-a"),
            ("p5", "cart_remove", "shop-b"),
        ])
        + _make_events("bob", [
            ("p3", "cart_add", "shop-b"),
            ("p4", "purchase", "shop-b"),
            ("p5", "view", "shop-b"),
        ])
        + _make_events("carol", [
            ("p2", "wishlist_add", "shop-a"),
            ("p3", "view", "shop-b"),
            ("p1", "view", "shop-a"),
        ])
    )


@pytest.fixture
def sample_stats() -> List[ProductStats]:
    return [
        ProductStats(product_id="p1", shop_id="shop-a", views=40),
        ProductStats(product_id="p2", shop_id="shop-a", views=25),
        ProductStats(product_id="p3", shop_id="shop-b", views=25),
        ProductStats(product_id="p4", shop_id="shop-b", views=10),
        ProductStats(product_id="p5", shop_id="shop-b", views=60),
        ProductStats(product_id="p6", shop_id="shop-c", views=5),
    ]


@pytest.fixture
def interaction_store(sample_events) -> InMemoryInteractionStore:
    return InMemoryInteractionStore(sample_events)


@pytest.fixture
def stats_store(sample_stats) -> InMemoryProductStatsStore:
    return InMemoryProductStatsStore(sample_stats)


@pytest.fixture
def service(tmp_path, interaction_store, stats_store, fake_redis) -> RecommendationService:
    """Service over in-memory stores, a fake Redis and an empty model directory."""
    return RecommendationService(
        interaction_store=interaction_store,
        stats_store=stats_store,
        cache=RecommendationCache(client=fake_redis),
        model_dir=tmp_path / "model",
        timeout_seconds=60,
    )

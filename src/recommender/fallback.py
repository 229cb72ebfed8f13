"""Popularity and shop-affinity rankings for non-personalized requests."""

import logging
from typing import Iterable, List

from src.recommender.store import ProductStatsStore
from src.recommender.types import ProductStats, RecommendationResult

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10


def _rank_by_views(stats: Iterable[ProductStats], limit: int) -> List[RecommendationResult]:
    ranked = sorted(stats, key=lambda s: (-s.views, s.product_id))
    return [
        RecommendationResult(product_id=s.product_id, score=float(s.views))
        for s in ranked[:max(limit, 0)]
    ]


class FallbackRanker:
    """Ranks products by aggregate view counts."""

    def __init__(self, stats_store: ProductStatsStore) -> None:
        self.stats_store = stats_store

    def popular(self, limit: int = DEFAULT_LIMIT) -> List[RecommendationResult]:
        """Most viewed products, ties broken by product ID ascending."""
        return _rank_by_views(self.stats_store.all_stats(), limit)

    def similar(self, product_id: str, limit: int = DEFAULT_LIMIT) -> List[RecommendationResult]:
        """Most viewed other products from the same shop as ``product_id``.

        Falls back to the popular ranking when the product or its shop is
        unknown or the shop has no other products. ``product_id`` itself is
        never returned, including from the fallback.
        """
        all_stats = self.stats_store.all_stats()
        others = [s for s in all_stats if s.product_id != product_id]

        source = self.stats_store.get(product_id)
        if source is None or not source.shop_id:
            logger.debug(f"No shop known for product {product_id}, using popular products")
            return _rank_by_views(others, limit)

        same_shop = [s for s in others if s.shop_id == source.shop_id]
        if not same_shop:
            logger.debug(f"Shop {source.shop_id} has no other products, using popular products")
            return _rank_by_views(others, limit)

        return _rank_by_views(same_shop, limit)

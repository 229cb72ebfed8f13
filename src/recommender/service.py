"""Recommendation service facade.

Wires the predictor, cache, fallback ranker and trainer together behind the
four operations exposed to callers: personalized recommendations, training,
popular products and similar products.
"""

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from src import config
from src.api.metrics import metrics_service
from src.recommender.cache import RecommendationCache
from src.recommender.fallback import FallbackRanker
from src.recommender.infer import ModelHolder, Predictor, load_model_state
from src.recommender.store import (
    CsvInteractionStore,
    CsvProductStatsStore,
    InteractionStore,
    ProductStatsStore,
)
from src.recommender.train import Trainer
from src.recommender.types import RecommendationResult, TrainingStats

# Configure module logger
logger = logging.getLogger(__name__)


class RecommendationService:
    """Entry point used by the API, the scheduler and the CLI tools."""

    def __init__(
        self,
        interaction_store: InteractionStore,
        stats_store: ProductStatsStore,
        cache: Optional[RecommendationCache] = None,
        model_dir: Union[str, Path] = config.MODEL_DIR,
        holder: Optional[ModelHolder] = None,
        timeout_seconds: Optional[float] = config.TRAINING_TIMEOUT_SECONDS,
    ):
        self.model_dir = Path(model_dir)
        self.holder = holder if holder is not None else ModelHolder(load_model_state(self.model_dir))
        self.cache = cache if cache is not None else RecommendationCache(client=None)
        self.predictor = Predictor(self.holder)
        self.fallback = FallbackRanker(stats_store)
        self.trainer = Trainer(
            store=interaction_store,
            holder=self.holder,
            cache=self.cache,
            model_dir=self.model_dir,
            timeout_seconds=timeout_seconds,
        )

    @classmethod
    def from_config(cls) -> "RecommendationService":
        """Build the service from environment configuration."""
        interactions = CsvInteractionStore(config.INTERACTIONS_CSV)
        return cls(
            interaction_store=interactions,
            stats_store=CsvProductStatsStore(config.PRODUCT_STATS_CSV, interactions=interactions),
            cache=RecommendationCache.from_url(config.REDIS_URL),
            model_dir=config.MODEL_DIR,
            timeout_seconds=config.TRAINING_TIMEOUT_SECONDS,
        )

    def get_recommendations(
        self, user_id: str, limit: int = config.DEFAULT_LIMIT
    ) -> List[RecommendationResult]:
        """Personalized recommendations, or popular products as a fallback.

        Cached lists are reused only when they were computed by the model
        being served for at least ``limit`` results.
        """
        logger.info(f"Getting recommendations for user {user_id}, limit={limit}")

        state = self.holder.current()
        entry = self.cache.get(user_id)
        if entry is not None and (state is None or entry.model_version != state.version):
            # Written for a model that has since been replaced.
            entry = None
        if entry is not None and entry.covers(limit):
            metrics_service.record_cache(hit=True)
            return entry.results[:limit]
        if entry is not None:
            metrics_service.record_cache_bypass()
        else:
            metrics_service.record_cache(hit=False)

        start_time = time.time()
        try:
            results = self.predictor.predict(user_id, limit)
        except Exception as e:
            logger.error(
                "Personalized scoring failed, falling back to popular products",
                extra={"user_id": user_id, "error": str(e), "error_type": type(e).__name__},
                exc_info=True,
            )
            results = []

        if results:
            metrics_service.record_inference((time.time() - start_time) * 1000)
            # A swap during scoring means these came from the replaced model.
            if state is not None and self.holder.current() is state:
                self.cache.set(user_id, results, limit, model_version=state.version)
            return results

        logger.debug(
            f"No ML predictions for user {user_id}, falling back to popular products"
        )
        metrics_service.record_fallback()
        return self._safe_fallback(self.fallback.popular, limit)

    def train(self) -> TrainingStats:
        return self.trainer.train()

    def get_popular(self, limit: int = config.DEFAULT_LIMIT) -> List[RecommendationResult]:
        return self._safe_fallback(self.fallback.popular, limit)

    def get_similar(
        self, product_id: str, limit: int = config.DEFAULT_LIMIT
    ) -> List[RecommendationResult]:
        return self._safe_fallback(self.fallback.similar, product_id, limit)

    def status(self) -> Dict[str, object]:
        state = self.holder.current()
        return {
            "model_loaded": state is not None,
            "timestamp_last_loaded": state.trained_at.isoformat() if state else None,
            "model_version": state.version if state else None,
            "num_users": state.mapping.num_users if state else 0,
            "num_products": state.mapping.num_products if state else 0,
            "training_in_progress": self.trainer.is_training,
            "cache_enabled": self.cache.enabled,
        }

    def _safe_fallback(
        self, rank: Callable[..., List[RecommendationResult]], *rank_args: Any
    ) -> List[RecommendationResult]:
        """Run a fallback ranking; a failing stats store yields an empty list."""
        try:
            return rank(*rank_args)
        except Exception as e:
            logger.error(
                "Fallback ranking unavailable",
                extra={
                    "ranking": rank.__name__,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            return []

"""Embedding model training module.

This module orchestrates a full training run: it pulls interaction history
from the store, rebuilds the ID mapping and dataset, fits a fresh two-tower
embedding model, persists the artifacts, swaps them into serving and clears
cached recommendation lists. Only one run may be active at a time.
"""

import logging
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from src import config
from src.recommender.exceptions import InteractionStoreError, TrainingInProgressError
from src.api.metrics import metrics_service
from src.recommender.cache import RecommendationCache
from src.recommender.dataset import build_with_registry
from src.recommender.infer import ModelHolder, ModelState
from src.recommender.model import DEFAULT_RANDOM_STATE, EmbeddingModel
from src.recommender.store import InteractionStore
from src.recommender.types import TrainingStats
from src.recommender.utils import save_model_artifacts

# Configure module logger
logger = logging.getLogger(__name__)


class Trainer:
    """Runs training and publishes the result to the serving path.

    The scheduled and on-demand triggers share one instance so they share
    the single-flight guard: a second call while a run is active raises
    :class:`TrainingInProgressError` instead of waiting.
    """

    def __init__(
        self,
        store: InteractionStore,
        holder: ModelHolder,
        cache: RecommendationCache,
        model_dir: Union[str, Path] = config.MODEL_DIR,
        timeout_seconds: Optional[float] = config.TRAINING_TIMEOUT_SECONDS,
        random_state: int = DEFAULT_RANDOM_STATE,
    ):
        self.store = store
        self.holder = holder
        self.cache = cache
        self.model_dir = Path(model_dir)
        self.timeout_seconds = timeout_seconds
        self.random_state = random_state

        self._guard = threading.Lock()
        self._started_at: Optional[datetime] = None

    @property
    def is_training(self) -> bool:
        return self._guard.locked()

    def train(self) -> TrainingStats:
        """Run one complete training cycle.

        Returns:
            Counts of interactions, users and products used. All zero when
            the store holds no usable interactions, in which case the served
            model and saved artifacts are left as they were.

        Raises:
            TrainingInProgressError: If another run is active.
            InteractionStoreError: If the interaction history cannot be read.
            TrainingTimeoutError: If fitting exceeds the configured cap.
            ModelSaveError: If the artifacts cannot be persisted; the new
                model is not served in that case.
        """
        if not self._guard.acquire(blocking=False):
            started = self._started_at.isoformat() if self._started_at else None
            logger.warning("Training requested while a run is in progress, rejecting")
            raise TrainingInProgressError(started_at=started)

        self._started_at = datetime.now(timezone.utc)
        start_time = time.time()
        try:
            logger.info("=" * 60)
            logger.info("Starting model training")
            logger.info("=" * 60)

            stats = self._run()
            duration = time.time() - start_time
            metrics_service.record_training(duration * 1000, stats.to_dict())

            logger.info(
                f"Training complete: {stats.interactions} interactions, "
                f"{stats.users} users, {stats.products} products",
                extra={"duration_ms": round(duration * 1000, 2)},
            )
            return stats
        except Exception as e:
            logger.error(f"Training failed: {e}", exc_info=True)
            raise
        finally:
            self._started_at = None
            self._guard.release()

    def _run(self) -> TrainingStats:
        # Step 1: Pull every user's interaction history
        try:
            user_interactions = self.store.load_user_interactions()
        except Exception as e:
            raise InteractionStoreError(self.store.describe(), e) from e

        # Step 2: Rebuild mapping and dataset from scratch
        dataset, registry = build_with_registry(user_interactions)

        # Step 3: Nothing to learn from, keep the current model
        if dataset.is_empty:
            logger.warning("No interaction data found. Skipping training.")
            return TrainingStats(interactions=0, users=0, products=0)

        # Step 4: Fit a fresh model sized to the new mapping
        model = EmbeddingModel(
            num_users=dataset.num_users,
            num_products=dataset.num_products,
            random_state=self.random_state,
        )
        model.fit(dataset, timeout_seconds=self.timeout_seconds)

        # Step 5: Persist before serving so memory and disk never diverge
        save_model_artifacts(model, registry, self.model_dir)

        # Step 6: Serve the new pair
        self.holder.swap(ModelState(model=model, mapping=registry))

        # Step 7: Cached lists were computed by the previous model
        self.cache.invalidate_all()

        return TrainingStats(
            interactions=len(dataset),
            users=dataset.num_users,
            products=dataset.num_products,
        )

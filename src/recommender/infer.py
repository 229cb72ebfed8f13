"""Module for getting personalized recommendations.

Scores every known product for a user against the model that is currently
being served. Unknown users and a missing model yield an empty list, which
callers treat as the signal to fall back to popularity ranking.
"""

import hashlib
import logging
import pickle
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

import numpy as np

from src.recommender.mapping import IdMappingRegistry
from src.recommender.model import EmbeddingModel
from src.recommender.types import RecommendationResult
from src.recommender.utils import check_model_exists, get_model_paths, load_model_artifacts

# Configure module logger
logger = logging.getLogger(__name__)

# Default parameters
DEFAULT_TOP_N = 10


@dataclass(frozen=True)
class ModelState:
    """A trained model together with the mapping it was trained against."""

    model: EmbeddingModel
    mapping: IdMappingRegistry
    trained_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: str = ""

    def __post_init__(self) -> None:
        if not self.version:
            object.__setattr__(self, "version", model_fingerprint(self.model, self.mapping))


def model_fingerprint(model: EmbeddingModel, mapping: IdMappingRegistry) -> str:
    """Short digest of the weights and IDs.

    Identical artifacts give the same value in every process, so cache
    entries written by one replica are valid for another serving the same
    model.
    """
    digest = hashlib.sha1()
    digest.update(model.user_embeddings.tobytes())
    digest.update(model.product_embeddings.tobytes())
    digest.update("\n".join(mapping.users.ids()).encode("utf-8"))
    digest.update(b"\0")
    digest.update("\n".join(mapping.products.ids()).encode("utf-8"))
    return digest.hexdigest()[:16]


class ModelHolder:
    """The model/mapping pair currently used for serving.

    Readers take one reference per request, so a swap is never observed
    half-way.
    """

    def __init__(self, state: Optional[ModelState] = None) -> None:
        self._lock = threading.Lock()
        self._state = state

    def current(self) -> Optional[ModelState]:
        with self._lock:
            return self._state

    def swap(self, state: ModelState) -> Optional[ModelState]:
        """Install a new pair and return the one it replaced."""
        with self._lock:
            previous, self._state = self._state, state
        return previous

    @property
    def is_loaded(self) -> bool:
        return self.current() is not None


def load_model_state(model_dir: Union[str, Path]) -> Optional[ModelState]:
    """Load persisted artifacts, or None when they are missing or unusable.

    Load failures are logged as warnings; the service then runs in
    fallback-only mode until the next successful training run.
    """
    if not check_model_exists(model_dir):
        logger.warning(
            "No saved model found, serving fallback recommendations only",
            extra={"model_dir": str(model_dir)},
        )
        return None

    try:
        model, mapping = load_model_artifacts(model_dir)
    except FileNotFoundError as e:
        logger.warning(
            "No usable saved model, serving fallback recommendations only",
            extra={"model_dir": str(model_dir), "error": str(e)},
        )
        return None
    except (OSError, ValueError, EOFError, pickle.UnpicklingError) as e:
        logger.warning(
            "Failed to load saved model, serving fallback recommendations only",
            extra={
                "model_dir": str(model_dir),
                "error": str(e),
                "error_type": type(e).__name__,
            },
        )
        return None

    weights_path, _ = get_model_paths(model_dir)
    trained_at = datetime.fromtimestamp(weights_path.stat().st_mtime, tz=timezone.utc)
    logger.info(
        "Recommendation model and ID mappings ready for inference",
        extra={"num_users": mapping.num_users, "num_products": mapping.num_products},
    )
    return ModelState(model=model, mapping=mapping, trained_at=trained_at)


class Predictor:
    """Ranks the catalog for a user with the currently served model."""

    def __init__(self, holder: ModelHolder) -> None:
        self.holder = holder

    def predict(self, user_id: str, top_n: int = DEFAULT_TOP_N) -> List[RecommendationResult]:
        """Get the top-N products for a user.

        Args:
            user_id: External user ID.
            top_n: Maximum number of results.

        Returns:
            Results ordered by score descending, ties broken by product index
            ascending. Empty when no model is loaded or the user is unknown.
        """
        state = self.holder.current()
        if state is None:
            logger.warning("Model not trained yet. Returning empty recommendations.")
            return []

        user_index = state.mapping.user_index(user_id)
        if user_index is None:
            logger.debug(f"Unknown user {user_id}, no personalized recommendations")
            return []

        if top_n <= 0:
            return []

        start_time = time.time()
        recommendations = _rank_products(state, user_index, top_n)

        logger.debug(
            "Computed recommendations",
            extra={
                "user_id": user_id,
                "num_recommendations": len(recommendations),
                "compute_time_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        return recommendations


def _rank_products(state: ModelState, user_index: int, top_n: int) -> List[RecommendationResult]:
    scores = state.model.score_all_products(user_index)
    product_indices = np.arange(len(scores))

    # lexsort sorts by the last key first.
    order = np.lexsort((product_indices, -scores))[:top_n]

    return [
        RecommendationResult(
            product_id=state.mapping.product_id(int(idx)),
            score=float(scores[idx]),
        )
        for idx in order
    ]

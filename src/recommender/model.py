"""Two-tower embedding model for implicit-feedback recommendations.

A user tower and a product tower are plain embedding tables; the predicted
affinity for a (user, product) pair is the dot product of the two rows. The
model is fit with mini-batch Adam on the squared error between that dot
product and the implicit score of each interaction.
"""

import logging
import time
from typing import Callable, Dict, List, Optional

import numpy as np
from sklearn.metrics import mean_squared_error
from sklearn.model_selection import train_test_split

from src.recommender.exceptions import TrainingTimeoutError
from src.recommender.types import TrainingDataset

# Configure module logger
logger = logging.getLogger(__name__)

# Model configuration constants
EMBEDDING_DIM = 32
LEARNING_RATE = 0.001
EPOCHS = 20
BATCH_SIZE = 64
VALIDATION_SPLIT = 0.1
INIT_STD = 0.01
DEFAULT_RANDOM_STATE = 42

ADAM_BETA1 = 0.9
ADAM_BETA2 = 0.999
ADAM_EPSILON = 1e-7

LOG_EVERY_N_EPOCHS = 5


class _AdamSlots:
    """First and second moment estimates for one embedding table."""

    def __init__(self, shape) -> None:
        self.m = np.zeros(shape, dtype=np.float32)
        self.v = np.zeros(shape, dtype=np.float32)


class EmbeddingModel:
    """User and product embedding tables scored by dot product."""

    def __init__(
        self,
        num_users: int,
        num_products: int,
        embedding_dim: int = EMBEDDING_DIM,
        random_state: int = DEFAULT_RANDOM_STATE,
    ):
        if num_users <= 0 or num_products <= 0:
            raise ValueError(
                f"Embedding tables need at least one row, got "
                f"num_users={num_users}, num_products={num_products}"
            )

        self.embedding_dim = embedding_dim
        self.random_state = random_state
        self._rng = np.random.default_rng(random_state)

        self.user_embeddings = self._rng.normal(
            0.0, INIT_STD, size=(num_users, embedding_dim)
        ).astype(np.float32)
        self.product_embeddings = self._rng.normal(
            0.0, INIT_STD, size=(num_products, embedding_dim)
        ).astype(np.float32)

        self._user_slots: Optional[_AdamSlots] = None
        self._product_slots: Optional[_AdamSlots] = None
        self._step = 0

        logger.info(
            f"Model built: {num_users} users, {num_products} products, "
            f"{embedding_dim}d embeddings"
        )

    @property
    def num_users(self) -> int:
        return self.user_embeddings.shape[0]

    @property
    def num_products(self) -> int:
        return self.product_embeddings.shape[0]

    @classmethod
    def from_weights(
        cls,
        user_embeddings: np.ndarray,
        product_embeddings: np.ndarray,
    ) -> "EmbeddingModel":
        """Rebuild a model from saved embedding tables."""
        user_embeddings = np.asarray(user_embeddings, dtype=np.float32)
        product_embeddings = np.asarray(product_embeddings, dtype=np.float32)
        if user_embeddings.ndim != 2 or product_embeddings.ndim != 2:
            raise ValueError("Embedding tables must be 2-dimensional")
        if user_embeddings.shape[1] != product_embeddings.shape[1]:
            raise ValueError(
                f"Embedding dimensions differ: users {user_embeddings.shape[1]}, "
                f"products {product_embeddings.shape[1]}"
            )

        model = cls.__new__(cls)
        model.embedding_dim = user_embeddings.shape[1]
        model.random_state = DEFAULT_RANDOM_STATE
        model._rng = np.random.default_rng(DEFAULT_RANDOM_STATE)
        model.user_embeddings = user_embeddings
        model.product_embeddings = product_embeddings
        model._user_slots = None
        model._product_slots = None
        model._step = 0
        return model

    def get_weights(self) -> Dict[str, object]:
        return {
            "embedding_dim": self.embedding_dim,
            "user_embeddings": self.user_embeddings,
            "product_embeddings": self.product_embeddings,
        }

    def predict(self, user_indices: np.ndarray, product_indices: np.ndarray) -> np.ndarray:
        """Predicted affinity for each (user, product) pair."""
        users = self.user_embeddings[user_indices]
        products = self.product_embeddings[product_indices]
        return np.sum(users * products, axis=1)

    def score_all_products(self, user_index: int) -> np.ndarray:
        """Affinity of one user against every product, in one matrix product."""
        return self.product_embeddings @ self.user_embeddings[user_index]

    def fit(
        self,
        dataset: TrainingDataset,
        epochs: int = EPOCHS,
        batch_size: int = BATCH_SIZE,
        learning_rate: float = LEARNING_RATE,
        validation_split: float = VALIDATION_SPLIT,
        timeout_seconds: Optional[float] = None,
        on_epoch_end: Optional[Callable[[int, Dict[str, float]], None]] = None,
    ) -> Dict[str, List[float]]:
        """Fit both embedding tables on the dataset.

        Rows are shuffled before the validation rows are held out, and the
        training rows are reshuffled every epoch.

        Args:
            dataset: Training rows; every index must fit the tables.
            epochs: Passes over the training rows.
            batch_size: Rows per Adam step.
            learning_rate: Adam step size.
            validation_split: Fraction of rows held out (rounded down).
            timeout_seconds: Wall-clock cap for the whole fit.
            on_epoch_end: Optional callback receiving (epoch, logs).

        Returns:
            History dictionary with per-epoch "loss" and "val_loss".

        Raises:
            ValueError: If the dataset is empty or indexes outside the tables.
            TrainingTimeoutError: If the fit exceeds timeout_seconds.
        """
        users = np.asarray(dataset.user_indices, dtype=np.int64)
        products = np.asarray(dataset.product_indices, dtype=np.int64)
        ratings = np.asarray(dataset.ratings, dtype=np.float32)

        if len(ratings) == 0:
            raise ValueError("Cannot fit on an empty dataset")
        if users.max() >= self.num_users or products.max() >= self.num_products:
            raise ValueError(
                "Dataset indices exceed embedding table sizes "
                f"({self.num_users} users, {self.num_products} products)"
            )

        n_rows = len(ratings)
        n_val = int(n_rows * validation_split)
        all_rows = np.arange(n_rows)
        if n_val > 0:
            train_rows, val_rows = train_test_split(
                all_rows, test_size=n_val, shuffle=True, random_state=self.random_state
            )
        else:
            train_rows, val_rows = self._rng.permutation(all_rows), all_rows[:0]

        history: Dict[str, List[float]] = {"loss": [], "val_loss": []}
        deadline = time.monotonic() + timeout_seconds if timeout_seconds else None

        logger.info(
            f"Training on {len(train_rows)} interactions "
            f"({len(val_rows)} held out for validation)"
        )

        self._user_slots = _AdamSlots(self.user_embeddings.shape)
        self._product_slots = _AdamSlots(self.product_embeddings.shape)
        self._step = 0
        epoch = 0
        try:
            for epoch in range(epochs):
                order = self._rng.permutation(train_rows)
                weighted_loss = 0.0
                for start in range(0, len(order), batch_size):
                    batch = order[start:start + batch_size]
                    weighted_loss += self._train_step(
                        users[batch], products[batch], ratings[batch], learning_rate
                    ) * len(batch)
                    if deadline is not None and time.monotonic() > deadline:
                        raise TrainingTimeoutError(timeout_seconds, epoch)

                logs = {"loss": weighted_loss / max(len(order), 1)}
                if len(val_rows) > 0:
                    val_pred = self.predict(users[val_rows], products[val_rows])
                    logs["val_loss"] = float(mean_squared_error(ratings[val_rows], val_pred))
                else:
                    logs["val_loss"] = float("nan")

                history["loss"].append(logs["loss"])
                history["val_loss"].append(logs["val_loss"])

                if epoch % LOG_EVERY_N_EPOCHS == 0:
                    logger.info(
                        f"Epoch {epoch}: loss={logs['loss']:.4f}, "
                        f"val_loss={logs['val_loss']:.4f}"
                    )
                if on_epoch_end is not None:
                    on_epoch_end(epoch, logs)
        finally:
            # Optimizer state is only needed while fitting.
            self._user_slots = None
            self._product_slots = None
            self._step = 0

        return history

    def _train_step(
        self,
        users: np.ndarray,
        products: np.ndarray,
        ratings: np.ndarray,
        learning_rate: float,
    ) -> float:
        """One Adam step on a batch; returns the batch MSE before the step."""
        user_vecs = self.user_embeddings[users]
        product_vecs = self.product_embeddings[products]
        errors = np.sum(user_vecs * product_vecs, axis=1) - ratings
        loss = float(np.mean(errors ** 2))

        # d(mean squared error) / d(prediction)
        grad_pred = (2.0 / len(ratings)) * errors[:, None]

        self._step += 1
        self._apply_adam(
            self.user_embeddings, self._user_slots, users,
            grad_pred * product_vecs, learning_rate,
        )
        self._apply_adam(
            self.product_embeddings, self._product_slots, products,
            grad_pred * user_vecs, learning_rate,
        )
        return loss

    def _apply_adam(
        self,
        table: np.ndarray,
        slots: _AdamSlots,
        rows: np.ndarray,
        row_grads: np.ndarray,
        learning_rate: float,
    ) -> None:
        # Only rows touched by the batch are updated.
        unique_rows, inverse = np.unique(rows, return_inverse=True)
        grads = np.zeros((len(unique_rows), table.shape[1]), dtype=np.float32)
        np.add.at(grads, inverse, row_grads)

        m = ADAM_BETA1 * slots.m[unique_rows] + (1.0 - ADAM_BETA1) * grads
        v = ADAM_BETA2 * slots.v[unique_rows] + (1.0 - ADAM_BETA2) * grads ** 2
        slots.m[unique_rows] = m
        slots.v[unique_rows] = v

        m_hat = m / (1.0 - ADAM_BETA1 ** self._step)
        v_hat = v / (1.0 - ADAM_BETA2 ** self._step)
        table[unique_rows] -= (learning_rate * m_hat / (np.sqrt(v_hat) + ADAM_EPSILON)).astype(
            np.float32
        )

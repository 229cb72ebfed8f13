"""Custom exceptions for the MarketRec API.

The hierarchy lives in :mod:`src.recommender.exceptions` so the numeric core
does not depend on the HTTP layer; it is re-exported here for the app's
exception handler and API callers.
"""

from src.recommender.exceptions import (
    InteractionStoreError,
    MarketRecException,
    ModelNotLoadedError,
    ModelSaveError,
    TrainingInProgressError,
    TrainingTimeoutError,
)

__all__ = [
    "InteractionStoreError",
    "MarketRecException",
    "ModelNotLoadedError",
    "ModelSaveError",
    "TrainingInProgressError",
    "TrainingTimeoutError",
]

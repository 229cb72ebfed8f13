"""Exceptions raised by the recommendation core.

Each carries the HTTP status code the API answers with. Inference never
raises these for cold-start users; they describe failed training runs.
"""

from typing import Any, Dict, Optional


class MarketRecException(Exception):
    """Base exception for MarketRec errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code for API responses
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class ModelNotLoadedError(MarketRecException):
    """Raised when a caller requires a trained model and none is loaded."""

    def __init__(self, model_dir: str, details: Optional[Dict[str, Any]] = None):
        message = f"No recommendation model loaded from '{model_dir}'. Train a model first."
        super().__init__(
            message=message,
            status_code=503,
            details=details or {"model_dir": model_dir},
        )


class TrainingInProgressError(MarketRecException):
    """Raised when a training run is requested while another one is running."""

    def __init__(self, started_at: Optional[str] = None):
        super().__init__(
            message="A training run is already in progress.",
            status_code=409,
            details={"started_at": started_at},
        )


class TrainingTimeoutError(MarketRecException):
    """Raised when fitting exceeds the configured time cap."""

    def __init__(self, timeout_seconds: float, epochs_completed: int):
        message = (
            f"Training exceeded {timeout_seconds:.0f}s after "
            f"{epochs_completed} epoch(s); previous model kept."
        )
        super().__init__(
            message=message,
            status_code=504,
            details={
                "timeout_seconds": timeout_seconds,
                "epochs_completed": epochs_completed,
            },
        )


class ModelSaveError(MarketRecException):
    """Raised when trained artifacts cannot be persisted."""

    def __init__(self, model_dir: str, error: Exception):
        message = f"Failed to save model artifacts to '{model_dir}': {str(error)}"
        super().__init__(
            message=message,
            status_code=500,
            details={
                "model_dir": model_dir,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )


class InteractionStoreError(MarketRecException):
    """Raised when interaction history cannot be read for training."""

    def __init__(self, source: str, error: Exception):
        message = f"Failed to read interactions from '{source}': {str(error)}"
        super().__init__(
            message=message,
            status_code=502,
            details={
                "source": source,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )

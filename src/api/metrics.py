"""Metrics service for tracking recommendation performance.

Singleton service to track inference calls, cache effectiveness, fallback
usage and training runs.
"""

import threading
from typing import Dict, Optional


class MetricsService:
    """Singleton service for tracking service metrics.

    Thread-safe counters and latency tracking.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        """Create singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(MetricsService, cls).__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize metrics counters."""
        if self._initialized:
            return

        self._lock = threading.Lock()
        self._reset_counters()
        self._initialized = True

    def _reset_counters(self) -> None:
        self._inference_count = 0
        self._total_latency_ms = 0.0
        self._min_latency_ms = float('inf')
        self._max_latency_ms = 0.0
        self._cache_hits = 0
        self._cache_misses = 0
        self._cache_bypasses = 0
        self._fallback_count = 0
        self._training_runs = 0
        self._last_training_ms: Optional[float] = None
        self._last_training_stats: Optional[Dict[str, int]] = None

    def record_inference(self, latency_ms: float) -> None:
        """Record a personalized model forward pass with its latency.

        Args:
            latency_ms: Latency in milliseconds
        """
        with self._lock:
            self._inference_count += 1
            self._total_latency_ms += latency_ms

            if latency_ms < self._min_latency_ms:
                self._min_latency_ms = latency_ms

            if latency_ms > self._max_latency_ms:
                self._max_latency_ms = latency_ms

    def record_cache(self, hit: bool) -> None:
        with self._lock:
            if hit:
                self._cache_hits += 1
            else:
                self._cache_misses += 1

    def record_cache_bypass(self) -> None:
        """A cached list existed but was computed for a smaller limit."""
        with self._lock:
            self._cache_bypasses += 1

    def record_fallback(self) -> None:
        with self._lock:
            self._fallback_count += 1

    def record_training(self, duration_ms: float, stats: Dict[str, int]) -> None:
        with self._lock:
            self._training_runs += 1
            self._last_training_ms = duration_ms
            self._last_training_stats = dict(stats)

    def get_metrics(self) -> Dict:
        """Get current metrics.

        Returns:
            Dictionary with metrics including:
            - inference_count: Total number of model forward passes
            - average_latency_ms / min_latency_ms / max_latency_ms
            - cache_hits / cache_misses / cache_bypasses
            - fallback_count: Requests answered by the popularity ranking
            - training_runs, last_training_ms, last_training_stats
        """
        with self._lock:
            avg_latency = (
                self._total_latency_ms / self._inference_count
                if self._inference_count > 0
                else 0.0
            )

            return {
                "inference_count": self._inference_count,
                "average_latency_ms": round(avg_latency, 2),
                "min_latency_ms": round(self._min_latency_ms, 2) if self._min_latency_ms != float('inf') else 0.0,
                "max_latency_ms": round(self._max_latency_ms, 2),
                "cache_hits": self._cache_hits,
                "cache_misses": self._cache_misses,
                "cache_bypasses": self._cache_bypasses,
                "fallback_count": self._fallback_count,
                "training_runs": self._training_runs,
                "last_training_ms": (
                    round(self._last_training_ms, 2) if self._last_training_ms is not None else None
                ),
                "last_training_stats": self._last_training_stats,
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._reset_counters()


# Global singleton instance
metrics_service = MetricsService()

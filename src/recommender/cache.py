"""Short-lived cache of per-user recommendation lists.

Entries live in Redis under ``<prefix><user_id>`` as JSON holding the limit
that was requested when the list was computed and the version of the model
that computed it. A hit only counts when that limit covers the limit being
requested now and the version matches the model being served. Redis failures never reach the
caller: reads degrade to a miss and writes are skipped.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

import redis

from src import config
from src.recommender.types import RecommendationResult

# Configure module logger
logger = logging.getLogger(__name__)

_DECODE_ERRORS = (ValueError, KeyError, TypeError)


@dataclass(frozen=True)
class CacheEntry:
    limit: int
    results: List[RecommendationResult]
    model_version: Optional[str] = None

    def covers(self, limit: int) -> bool:
        """Whether this entry can answer a request for ``limit`` results.

        A list shorter than the limit it was computed for already holds every
        available product, so it covers any larger request too.
        """
        return limit <= self.limit or len(self.results) < self.limit


class RecommendationCache:
    """Per-user memoization of recommendation lists."""

    def __init__(
        self,
        client: Optional[Any] = None,
        ttl_seconds: int = config.CACHE_TTL_SECONDS,
        key_prefix: str = config.CACHE_KEY_PREFIX,
    ) -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: Optional[str], **kwargs: Any) -> "RecommendationCache":
        """Build a cache for a Redis URL; caching is disabled when url is None."""
        if not url:
            logger.info("REDIS_URL not set, recommendation caching disabled")
            return cls(client=None, **kwargs)
        return cls(client=redis.Redis.from_url(url), **kwargs)

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _key(self, user_id: str) -> str:
        return f"{self.key_prefix}{user_id}"

    def get(self, user_id: str) -> Optional[CacheEntry]:
        if self.client is None:
            return None
        try:
            raw = self.client.get(self._key(user_id))
        except redis.RedisError as e:
            logger.warning(
                "Cache read failed, treating as miss",
                extra={"user_id": user_id, "error": str(e)},
            )
            return None
        if raw is None:
            return None

        try:
            payload = json.loads(raw)
            return CacheEntry(
                limit=int(payload["limit"]),
                model_version=payload.get("model_version"),
                results=[
                    RecommendationResult(product_id=str(r["product_id"]), score=float(r["score"]))
                    for r in payload["results"]
                ],
            )
        except _DECODE_ERRORS as e:
            logger.warning(
                "Discarding unreadable cache entry",
                extra={"user_id": user_id, "error": str(e)},
            )
            return None

    def set(
        self,
        user_id: str,
        results: List[RecommendationResult],
        limit: int,
        model_version: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
    ) -> None:
        if self.client is None:
            return
        payload = json.dumps({
            "limit": limit,
            "model_version": model_version,
            "results": [r.to_dict() for r in results],
        })
        try:
            self.client.setex(self._key(user_id), ttl_seconds or self.ttl_seconds, payload)
        except redis.RedisError as e:
            logger.warning(
                "Cache write failed, skipping",
                extra={"user_id": user_id, "error": str(e)},
            )

    def invalidate_all(self) -> int:
        """Delete every recommendation entry; returns how many were removed."""
        if self.client is None:
            return 0
        deleted = 0
        try:
            batch = []
            for key in self.client.scan_iter(match=f"{self.key_prefix}*", count=500):
                batch.append(key)
                if len(batch) >= 500:
                    deleted += self.client.delete(*batch)
                    batch = []
            if batch:
                deleted += self.client.delete(*batch)
        except redis.RedisError as e:
            logger.warning(
                "Cache invalidation failed",
                extra={"deleted": deleted, "error": str(e)},
            )
            return deleted

        logger.info(f"Invalidated {deleted} cached recommendation lists")
        return deleted

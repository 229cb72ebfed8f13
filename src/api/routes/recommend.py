"""Recommendation endpoints for the MarketRec API.

This module provides API endpoints for personalized recommendations, the
popularity and same-shop fallbacks, and on-demand training.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from src import config
from src.recommender.service import RecommendationService
from src.recommender.types import RecommendationResult

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(
    prefix="/recommend",
    tags=["recommendations"],
)

# Service shared by every request
_service: Optional[RecommendationService] = None


class RecommendationItem(BaseModel):
    product_id: str = Field(..., description="Recommended product ID")
    score: float = Field(..., description="Model affinity or view count")


class RecommendationResponse(BaseModel):
    """Response model for personalized recommendation requests."""

    user_id: str = Field(..., description="User ID for recommendations")
    recommendations: List[RecommendationItem] = Field(
        ..., description="Recommended products, best first"
    )


class ProductListResponse(BaseModel):
    """Response model for popular and similar product requests."""

    product_id: Optional[str] = Field(
        default=None, description="Source product for similar-product requests"
    )
    recommendations: List[RecommendationItem]


class TrainingResponse(BaseModel):
    interactions: int
    users: int
    products: int


def get_service() -> RecommendationService:
    """Return the shared service, building it from configuration on first use."""
    global _service

    if _service is None:
        logger.info("Initializing recommendation service")
        _service = RecommendationService.from_config()
    return _service


def set_service(service: Optional[RecommendationService]) -> None:
    """Replace the shared service (None forces a rebuild on next use)."""
    global _service
    _service = service


def _items(results: List[RecommendationResult]) -> List[RecommendationItem]:
    return [RecommendationItem(product_id=r.product_id, score=r.score) for r in results]


LimitQuery = Query(config.DEFAULT_LIMIT, ge=1, le=config.MAX_LIMIT)


@router.get("/popular", response_model=ProductListResponse)
def get_popular(
    limit: int = LimitQuery,
    service: RecommendationService = Depends(get_service),
) -> ProductListResponse:
    """Most viewed products.

    Example:
        GET /recommend/popular?limit=5
    """
    return ProductListResponse(recommendations=_items(service.get_popular(limit)))


@router.get("/similar/{product_id}", response_model=ProductListResponse)
def get_similar(
    product_id: str,
    limit: int = LimitQuery,
    service: RecommendationService = Depends(get_service),
) -> ProductListResponse:
    """Most viewed products from the same shop, excluding the product itself."""
    return ProductListResponse(
        product_id=product_id,
        recommendations=_items(service.get_similar(product_id, limit)),
    )


@router.post("/train", response_model=TrainingResponse)
def train_model(service: RecommendationService = Depends(get_service)) -> TrainingResponse:
    """Retrain the model from the full interaction history.

    Raises:
        TrainingInProgressError: 409 when another run is active.
        ModelSaveError: 500 when the trained model could not be saved.
    """
    logger.info("On-demand training requested")
    stats = service.train()
    return TrainingResponse(**stats.to_dict())


@router.get("/{user_id}", response_model=RecommendationResponse)
def get_recommendations(
    user_id: str,
    limit: int = LimitQuery,
    service: RecommendationService = Depends(get_service),
) -> RecommendationResponse:
    """Get product recommendations for a user.

    Personalized when the model knows the user, otherwise the most popular
    products.

    Example:
        GET /recommend/42?limit=5
        Returns up to 5 recommendations for user 42.
    """
    results = service.get_recommendations(user_id, limit)
    return RecommendationResponse(user_id=user_id, recommendations=_items(results))

"""Data types shared across the recommender.

Interaction events come from the marketplace event bus; everything else is
produced by training or inference.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class ActionType(str, Enum):
    """User actions that carry an implicit preference signal."""

    VIEW = "view"
    WISHLIST_ADD = "wishlist_add"
    WISHLIST_REMOVE = "wishlist_remove"
    CART_ADD = "cart_add"
    CART_REMOVE = "cart_remove"
    PURCHASE = "purchase"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ActionType"]:
        """Resolve a raw action name, accepting the event-bus spelling.

        Returns None for anything that is not a recognized action.
        """
        if value is None:
            return None
        if isinstance(value, ActionType):
            return value
        name = str(value).strip().lower()
        if name in _EVENT_BUS_ALIASES:
            return _EVENT_BUS_ALIASES[name]
        try:
            return cls(name)
        except ValueError:
            return None


_EVENT_BUS_ALIASES: Dict[str, ActionType] = {
    "product_view": ActionType.VIEW,
    "add_to_wishlist": ActionType.WISHLIST_ADD,
    "remove_from_wishlist": ActionType.WISHLIST_REMOVE,
    "add_to_cart": ActionType.CART_ADD,
    "remove_from_cart": ActionType.CART_REMOVE,
}

# Implicit score per action. Higher means stronger purchase intent.
ACTION_SCORES: Dict[ActionType, int] = {
    ActionType.VIEW: 1,
    ActionType.WISHLIST_ADD: 2,
    ActionType.CART_ADD: 3,
    ActionType.PURCHASE: 5,
    ActionType.WISHLIST_REMOVE: -1,
    ActionType.CART_REMOVE: -1,
}


@dataclass(frozen=True)
class InteractionEvent:
    """A single user action on a product, as stored upstream.

    ``action`` is kept as the raw string so unrecognized actions can be
    skipped during dataset building instead of failing at load time.
    """

    user_id: str
    product_id: Optional[str]
    action: str
    shop_id: Optional[str] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class RecommendationResult:
    product_id: str
    score: float

    def to_dict(self) -> Dict[str, object]:
        return {"product_id": self.product_id, "score": self.score}


@dataclass
class TrainingDataset:
    """Parallel arrays of training rows, one row per raw interaction."""

    user_indices: List[int] = field(default_factory=list)
    product_indices: List[int] = field(default_factory=list)
    ratings: List[float] = field(default_factory=list)
    num_users: int = 0
    num_products: int = 0

    def __len__(self) -> int:
        return len(self.ratings)

    @property
    def is_empty(self) -> bool:
        return len(self.ratings) == 0


@dataclass(frozen=True)
class TrainingStats:
    interactions: int
    users: int
    products: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "interactions": self.interactions,
            "users": self.users,
            "products": self.products,
        }


@dataclass(frozen=True)
class ProductStats:
    """Aggregate counters for one product, maintained by the ingestion side."""

    product_id: str
    shop_id: Optional[str] = None
    views: int = 0
    cart_adds: int = 0
    wishlist_adds: int = 0
    purchases: int = 0

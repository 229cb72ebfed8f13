"""Bidirectional string ID <-> dense index translation.

Indices are assigned in first-seen order while scanning interactions and are
only meaningful for the model trained alongside them. A new registry is built
for every training run.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

# Configure module logger
logger = logging.getLogger(__name__)


class IdIndex:
    """One bijection between external IDs and contiguous indices 0..n-1."""

    def __init__(self) -> None:
        self._id_to_index: Dict[str, int] = {}
        self._index_to_id: Dict[int, str] = {}

    def __len__(self) -> int:
        return len(self._id_to_index)

    def __contains__(self, external_id: object) -> bool:
        return external_id in self._id_to_index

    def assign(self, external_id: str) -> int:
        index = self._id_to_index.get(external_id)
        if index is None:
            index = len(self._id_to_index)
            self._id_to_index[external_id] = index
            self._index_to_id[index] = external_id
        return index

    def index_of(self, external_id: str) -> Optional[int]:
        return self._id_to_index.get(external_id)

    def id_of(self, index: int) -> Optional[str]:
        return self._index_to_id.get(index)

    def ids(self) -> List[str]:
        """External IDs ordered by index."""
        return [self._index_to_id[i] for i in range(len(self._index_to_id))]

    def forward_pairs(self) -> List[Tuple[str, int]]:
        return list(self._id_to_index.items())

    def reverse_pairs(self) -> List[Tuple[int, str]]:
        return list(self._index_to_id.items())

    @classmethod
    def from_pairs(
        cls,
        forward: List[Tuple[str, int]],
        reverse: List[Tuple[int, str]],
        label: str,
    ) -> "IdIndex":
        """Rebuild an index from serialized pairs, validating the bijection.

        Raises:
            ValueError: If the pairs are not exact inverses or the indices
                are not a contiguous 0..n-1 range.
        """
        index = cls()
        index._id_to_index = {str(k): int(v) for k, v in forward}
        index._index_to_id = {int(k): str(v) for k, v in reverse}

        if len(index._id_to_index) != len(index._index_to_id):
            raise ValueError(
                f"{label} mapping size mismatch: "
                f"{len(index._id_to_index)} ids vs {len(index._index_to_id)} indices"
            )
        if set(index._index_to_id) != set(range(len(index._index_to_id))):
            raise ValueError(f"{label} indices are not contiguous")
        for external_id, i in index._id_to_index.items():
            if index._index_to_id.get(i) != external_id:
                raise ValueError(f"{label} mapping is not a bijection at {external_id!r}")
        return index


class IdMappingRegistry:
    """User and product ID translation owned by one trained model."""

    def __init__(self) -> None:
        self.users = IdIndex()
        self.products = IdIndex()

    @property
    def num_users(self) -> int:
        return len(self.users)

    @property
    def num_products(self) -> int:
        return len(self.products)

    def assign_user(self, user_id: str) -> int:
        return self.users.assign(user_id)

    def assign_product(self, product_id: str) -> int:
        return self.products.assign(product_id)

    def user_index(self, user_id: str) -> Optional[int]:
        return self.users.index_of(user_id)

    def product_id(self, index: int) -> Optional[str]:
        return self.products.id_of(index)

    def serialize(self) -> Dict[str, List[List[Any]]]:
        """Four arrays of [key, value] pairs, JSON friendly."""
        return {
            "userIdToIndex": [[k, v] for k, v in self.users.forward_pairs()],
            "indexToUserId": [[k, v] for k, v in self.users.reverse_pairs()],
            "productIdToIndex": [[k, v] for k, v in self.products.forward_pairs()],
            "indexToProductId": [[k, v] for k, v in self.products.reverse_pairs()],
        }

    @classmethod
    def deserialize(cls, data: Dict[str, List[List[Any]]]) -> "IdMappingRegistry":
        """Rebuild a registry from :meth:`serialize` output.

        Raises:
            ValueError: If a section is missing or the pairs are inconsistent.
        """
        required = ("userIdToIndex", "indexToUserId", "productIdToIndex", "indexToProductId")
        missing = [key for key in required if key not in data]
        if missing:
            raise ValueError(f"Mapping data missing sections: {missing}")

        registry = cls()
        registry.users = IdIndex.from_pairs(
            data["userIdToIndex"], data["indexToUserId"], "user"
        )
        registry.products = IdIndex.from_pairs(
            data["productIdToIndex"], data["indexToProductId"], "product"
        )
        logger.debug(
            f"Deserialized mapping: {registry.num_users} users, "
            f"{registry.num_products} products"
        )
        return registry

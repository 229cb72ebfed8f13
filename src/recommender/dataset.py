"""Training set construction from per-user interaction histories."""

import logging
from typing import Dict, Iterable, Tuple

from src.recommender.mapping import IdMappingRegistry
from src.recommender.types import ACTION_SCORES, ActionType, InteractionEvent, TrainingDataset

# Configure module logger
logger = logging.getLogger(__name__)


def build_training_dataset(
    user_interactions: Dict[str, Iterable[InteractionEvent]],
    registry: IdMappingRegistry,
) -> TrainingDataset:
    """Convert raw interaction histories into (user, product, score) rows.

    Every usable event becomes its own row; repeated actions on the same
    product are not merged. Events without a product ID and events with an
    unrecognized action are skipped. A user only gets an index once they have
    at least one usable event.

    Args:
        user_interactions: Mapping of user ID to that user's events, in the
            order the store returned them.
        registry: Empty registry that receives the index assignments.

    Returns:
        TrainingDataset sized to the registry after the scan.
    """
    dataset = TrainingDataset()
    skipped_no_product = 0
    skipped_unknown_action = 0

    for user_id, events in user_interactions.items():
        for event in events:
            if not event.product_id:
                skipped_no_product += 1
                continue

            action = ActionType.parse(event.action)
            if action is None:
                skipped_unknown_action += 1
                continue

            dataset.user_indices.append(registry.assign_user(user_id))
            dataset.product_indices.append(registry.assign_product(event.product_id))
            dataset.ratings.append(float(ACTION_SCORES[action]))

    dataset.num_users = registry.num_users
    dataset.num_products = registry.num_products

    logger.info(
        "Built training dataset",
        extra={
            "interactions": len(dataset),
            "num_users": dataset.num_users,
            "num_products": dataset.num_products,
            "skipped_no_product": skipped_no_product,
            "skipped_unknown_action": skipped_unknown_action,
        },
    )
    return dataset


def build_with_registry(
    user_interactions: Dict[str, Iterable[InteractionEvent]],
) -> Tuple[TrainingDataset, IdMappingRegistry]:
    """Build a dataset together with a fresh registry."""
    registry = IdMappingRegistry()
    return build_training_dataset(user_interactions, registry), registry

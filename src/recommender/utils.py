"""Utility functions for recommendation model artifacts.

This module provides helpers to persist and reload the embedding weights
together with the ID mapping they were trained against. The two files are
only ever used as a pair.
"""

import json
import logging
import os
from pathlib import Path
from typing import Tuple, Union

import joblib

from src.recommender.exceptions import ModelSaveError
from src.recommender.mapping import IdMappingRegistry
from src.recommender.model import EmbeddingModel

# Configure module logger
logger = logging.getLogger(__name__)

# Model artifact filenames
MODEL_FILENAME = "model_weights.joblib"
MAPPING_FILENAME = "id_mappings.json"
TMP_SUFFIX = ".tmp"

PathLike = Union[str, Path]


def get_model_paths(model_dir: PathLike) -> Tuple[Path, Path]:
    """Get file paths for model artifacts without loading them.

    Args:
        model_dir: Directory path where artifacts are stored.

    Returns:
        A tuple containing Path objects for:
            - Weights bundle path
            - Mapping file path
    """
    model_path = Path(model_dir)
    return model_path / MODEL_FILENAME, model_path / MAPPING_FILENAME


def check_model_exists(model_dir: PathLike) -> bool:
    """Check if both model artifacts exist.

    Args:
        model_dir: Directory path where artifacts should be stored.

    Returns:
        True if the weights and mapping files both exist, False otherwise.
    """
    weights_path, mapping_path = get_model_paths(model_dir)
    return weights_path.is_file() and mapping_path.is_file()


def save_model_artifacts(
    model: EmbeddingModel,
    registry: IdMappingRegistry,
    output_dir: PathLike,
) -> None:
    """Save trained embeddings and ID mapping to disk.

    Both files are written to temporary siblings first and moved into place
    only after both writes succeed, so a failed save leaves the previous pair
    untouched.

    Args:
        model: Trained embedding model.
        registry: ID mapping the model was trained against.
        output_dir: Directory path where artifacts will be saved.

    Raises:
        ModelSaveError: If the directory cannot be created or a file cannot
            be written or moved into place.
    """
    output_path = Path(output_dir)
    weights_path, mapping_path = get_model_paths(output_path)
    weights_tmp = weights_path.with_name(weights_path.name + TMP_SUFFIX)
    mapping_tmp = mapping_path.with_name(mapping_path.name + TMP_SUFFIX)

    logger.info(f"Saving model artifacts to {output_dir}")

    try:
        output_path.mkdir(parents=True, exist_ok=True)

        joblib.dump(model.get_weights(), weights_tmp)
        with open(mapping_tmp, "w", encoding="utf-8") as f:
            json.dump(registry.serialize(), f)

        os.replace(weights_tmp, weights_path)
        os.replace(mapping_tmp, mapping_path)
    except Exception as e:
        for tmp in (weights_tmp, mapping_tmp):
            try:
                tmp.unlink(missing_ok=True)
            except OSError as cleanup_error:
                logger.debug(f"Could not remove {tmp}: {cleanup_error}")
        logger.error(f"Failed to save model artifacts: {e}", exc_info=True)
        raise ModelSaveError(str(output_dir), e) from e

    logger.info(f"Saved model to {weights_path}")
    logger.info(f"Saved ID mappings to {mapping_path}")


def load_model_artifacts(model_dir: PathLike) -> Tuple[EmbeddingModel, IdMappingRegistry]:
    """Load trained embeddings and ID mapping from disk.

    Args:
        model_dir: Directory path where artifacts are stored.

    Returns:
        A tuple containing:
            - Loaded EmbeddingModel
            - IdMappingRegistry the model was trained against

    Raises:
        FileNotFoundError: If either artifact file is missing.
        ValueError: If the files are malformed or disagree on table sizes.
    """
    model_path = Path(model_dir)
    weights_path, mapping_path = get_model_paths(model_path)

    if not model_path.exists():
        raise FileNotFoundError(f"Model directory does not exist: {model_dir}")
    if not weights_path.exists():
        raise FileNotFoundError(f"Model weights not found: {weights_path}")
    if not mapping_path.exists():
        raise FileNotFoundError(f"ID mapping file not found: {mapping_path}")

    logger.info(f"Loading model artifacts from {model_dir}")

    weights = joblib.load(weights_path)
    try:
        model = EmbeddingModel.from_weights(
            weights["user_embeddings"], weights["product_embeddings"]
        )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed weights bundle {weights_path}: {e}") from e
    logger.info(f"Loaded model from {weights_path}")

    with open(mapping_path, "r", encoding="utf-8") as f:
        registry = IdMappingRegistry.deserialize(json.load(f))
    logger.info(f"Loaded ID mappings from {mapping_path}")

    if model.num_users != registry.num_users or model.num_products != registry.num_products:
        raise ValueError(
            f"Model tables ({model.num_users} users, {model.num_products} products) "
            f"do not match mappings ({registry.num_users} users, "
            f"{registry.num_products} products)"
        )

    logger.info(f"Number of users: {registry.num_users}")
    logger.info(f"Number of products: {registry.num_products}")
    return model, registry

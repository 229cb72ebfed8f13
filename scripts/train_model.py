"""Command-line interface for training the recommendation model.

This script runs one complete training cycle from an interaction log stored
in CSV format and writes the model artifacts to the model directory.

Example:
    Train a model with default settings:
        $ python scripts/train_model.py data/interactions.csv

    Train into a custom directory with a time cap:
        $ python scripts/train_model.py data/interactions.csv \\
            --model-dir models/production \\
            --timeout 600
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src import config
from src.recommender.exceptions import MarketRecException
from src.recommender.cache import RecommendationCache
from src.recommender.infer import ModelHolder, load_model_state
from src.recommender.model import DEFAULT_RANDOM_STATE
from src.recommender.store import CsvInteractionStore
from src.recommender.train import Trainer


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the script.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise, use INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_arguments() -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Namespace object containing parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="Train the two-tower recommendation model from an interaction log.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Train with default settings
  python scripts/train_model.py data/interactions.csv

  # Train into a custom directory
  python scripts/train_model.py data/interactions.csv --model-dir models/prod

  # Clear cached recommendation lists in Redis after training
  python scripts/train_model.py data/interactions.csv --redis-url redis://localhost:6379/0
        """,
    )

    parser.add_argument(
        "csv_path",
        type=str,
        nargs="?",
        default=str(config.INTERACTIONS_CSV),
        help="CSV file with columns: user_id, product_id, shop_id, action, timestamp "
        f"(default: {config.INTERACTIONS_CSV})",
    )
    parser.add_argument(
        "--model-dir",
        type=str,
        default=str(config.MODEL_DIR),
        help=f"Directory where model artifacts will be saved (default: {config.MODEL_DIR})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=config.TRAINING_TIMEOUT_SECONDS,
        help=f"Maximum seconds for fitting (default: {config.TRAINING_TIMEOUT_SECONDS:.0f})",
    )
    parser.add_argument(
        "--random-state",
        type=int,
        default=DEFAULT_RANDOM_STATE,
        help=f"Random seed for reproducibility (default: {DEFAULT_RANDOM_STATE})",
    )
    parser.add_argument(
        "--redis-url",
        type=str,
        default=config.REDIS_URL,
        help="Redis URL of the recommendation cache to invalidate (default: $REDIS_URL)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    return parser.parse_args()


def main() -> int:
    """Main entry point for the training script.

    Returns:
        Exit code: 0 on success, 1 on error.
    """
    try:
        args = parse_arguments()
        setup_logging(verbose=args.verbose)
        logger = logging.getLogger(__name__)

        store = CsvInteractionStore(args.csv_path)
        if not store.csv_path.is_file():
            raise FileNotFoundError(f"CSV file not found: {args.csv_path}")

        logger.info("=" * 70)
        logger.info("Training Configuration")
        logger.info("=" * 70)
        logger.info(f"CSV path:         {args.csv_path}")
        logger.info(f"Model directory:  {args.model_dir}")
        logger.info(f"Timeout:          {args.timeout:.0f}s")
        logger.info(f"Random state:     {args.random_state}")
        logger.info("=" * 70)

        trainer = Trainer(
            store=store,
            holder=ModelHolder(load_model_state(args.model_dir)),
            cache=RecommendationCache.from_url(args.redis_url),
            model_dir=args.model_dir,
            timeout_seconds=args.timeout,
            random_state=args.random_state,
        )
        stats = trainer.train()

        logger.info("=" * 70)
        logger.info("Training Summary")
        logger.info("=" * 70)
        logger.info(f"Interactions:     {stats.interactions}")
        logger.info(f"Users:            {stats.users}")
        logger.info(f"Products:         {stats.products}")
        if stats.interactions == 0:
            logger.warning("No usable interactions; existing model left unchanged")
        else:
            logger.info(f"Model saved to:   {Path(args.model_dir).absolute()}")
        logger.info("=" * 70)
        return 0

    except FileNotFoundError as e:
        logging.error(f"File error: {e}")
        return 1
    except MarketRecException as e:
        logging.error(f"Training error: {e.message}")
        return 1
    except KeyboardInterrupt:
        logging.warning("Training interrupted by user")
        return 130
    except Exception as e:
        logging.error(f"Unexpected error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())

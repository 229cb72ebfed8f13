"""CLI script for getting product recommendations.

Useful for testing and evaluation. Loads the saved model and prints
recommendations for a user, or popular / same-shop products.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src import config
from src.recommender.exceptions import MarketRecException, ModelNotLoadedError
from src.recommender.service import RecommendationService
from src.recommender.store import CsvInteractionStore, CsvProductStatsStore

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s"
)
logger = logging.getLogger(__name__)


def build_service(model_dir: str, interactions_csv: str, stats_csv: str) -> RecommendationService:
    """Service over CSV stores without a cache."""
    interactions = CsvInteractionStore(interactions_csv)
    return RecommendationService(
        interaction_store=interactions,
        stats_store=CsvProductStatsStore(stats_csv, interactions=interactions),
        model_dir=model_dir,
    )


def main() -> None:
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description="Get product recommendations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/predict_cli.py user 42
  python scripts/predict_cli.py user 42 --limit 5
  python scripts/predict_cli.py popular --limit 20
  python scripts/predict_cli.py similar prod-7
        """
    )

    parser.add_argument(
        "kind",
        choices=["user", "popular", "similar"],
        help="What to recommend for"
    )
    parser.add_argument(
        "target_id",
        nargs="?",
        help="User ID for 'user', product ID for 'similar'"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=config.DEFAULT_LIMIT,
        help=f"Number of recommendations to return (default: {config.DEFAULT_LIMIT})"
    )
    parser.add_argument(
        "--model-dir",
        type=str,
        default=str(config.MODEL_DIR),
        help=f"Directory containing model files (default: {config.MODEL_DIR})"
    )
    parser.add_argument(
        "--interactions",
        type=str,
        default=str(config.INTERACTIONS_CSV),
        help="Interaction log CSV"
    )
    parser.add_argument(
        "--product-stats",
        type=str,
        default=str(config.PRODUCT_STATS_CSV),
        help="Product stats CSV (aggregated from the interaction log if missing)"
    )
    parser.add_argument(
        "--personalized-only",
        action="store_true",
        help="Fail instead of falling back to popular products when no model is loaded"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    if args.kind in ("user", "similar") and not args.target_id:
        parser.error(f"'{args.kind}' needs a target ID")

    service = build_service(args.model_dir, args.interactions, args.product_stats)

    try:
        if args.kind == "user":
            if args.personalized_only and not service.holder.is_loaded:
                raise ModelNotLoadedError(args.model_dir)
            personalized = service.predictor.predict(args.target_id, args.limit)
            results = personalized or service.get_popular(args.limit)
            label = f"user {args.target_id} ({'personalized' if personalized else 'popular fallback'})"
        elif args.kind == "popular":
            results = service.get_popular(args.limit)
            label = "popular products"
        else:
            results = service.get_similar(args.target_id, args.limit)
            label = f"products similar to {args.target_id}"
    except MarketRecException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"\nRecommendations for {label}:")
    for rank, result in enumerate(results, start=1):
        print(f"  {rank:2d}. {result.product_id:<20} score={result.score:.4f}")
    if not results:
        print("  (none)")
    print()


if __name__ == "__main__":
    main()

"""Generate fake marketplace interaction data for testing and development.

This module creates a synthetic interaction log (views, wishlist and cart
changes, purchases) across a set of shops, plus the per-product aggregate
counters derived from it.

Example:
    Run the script directly to generate default data:
        $ python scripts/generate_fake_data.py

    Or import and use programmatically:
        from scripts.generate_fake_data import generate_fake_interactions
        df = generate_fake_interactions(num_users=100, num_products=200)
"""

import random
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

import pandas as pd

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.recommender.store import (
    INTERACTION_COLUMNS,
    STATS_COLUMNS,
    CsvInteractionStore,
    aggregate_product_stats,
)

# Default configuration constants
DEFAULT_NUM_USERS = 50
DEFAULT_NUM_PRODUCTS = 100
DEFAULT_NUM_SHOPS = 10
DEFAULT_NUM_EVENTS = 3000
DEFAULT_DAYS_BACK = 90

# Relative frequency of each upstream action name
ACTION_WEIGHTS = {
    "product_view": 60,
    "add_to_wishlist": 10,
    "remove_from_wishlist": 3,
    "add_to_cart": 15,
    "remove_from_cart": 5,
    "purchase": 7,
}


def generate_fake_interactions(
    num_users: int = DEFAULT_NUM_USERS,
    num_products: int = DEFAULT_NUM_PRODUCTS,
    num_shops: int = DEFAULT_NUM_SHOPS,
    num_events: int = DEFAULT_NUM_EVENTS,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    seed: Optional[int] = None,
) -> pd.DataFrame:
    """Generate a synthetic interaction log.

    Each product belongs to one shop. Every user has a couple of favourite
    shops and picks products from them most of the time, so the log carries
    a learnable preference signal.

    Args:
        num_users: Number of unique users to simulate. Must be positive.
        num_products: Number of products in the catalog. Must be positive.
        num_shops: Number of shops owning the products. Must be positive.
        num_events: Total number of events to generate. Must be positive.
        start_date: Start of the timestamp range (default: 90 days ago).
        end_date: End of the timestamp range (default: now).
        seed: Optional random seed.

    Returns:
        DataFrame with columns user_id, product_id, shop_id, action and
        timestamp, sorted by timestamp.

    Raises:
        ValueError: If a count is non-positive or the date range is empty.
    """
    if min(num_users, num_products, num_shops, num_events) <= 0:
        raise ValueError(
            "num_users, num_products, num_shops and num_events must be positive"
        )

    if end_date is None:
        end_date = datetime.now()
    if start_date is None:
        start_date = end_date - timedelta(days=DEFAULT_DAYS_BACK)
    if start_date >= end_date:
        raise ValueError("start_date must be before end_date")

    rng = random.Random(seed)
    product_shop = {f"prod-{p}": f"shop-{rng.randint(1, num_shops)}" for p in range(1, num_products + 1)}
    products_by_shop = {}
    for product_id, shop_id in product_shop.items():
        products_by_shop.setdefault(shop_id, []).append(product_id)
    shops = sorted(products_by_shop)

    favourites = {
        f"user-{u}": rng.sample(shops, k=min(2, len(shops)))
        for u in range(1, num_users + 1)
    }
    actions = list(ACTION_WEIGHTS)
    weights = list(ACTION_WEIGHTS.values())
    span_seconds = int((end_date - start_date).total_seconds())

    events = []
    for _ in range(num_events):
        user_id = f"user-{rng.randint(1, num_users)}"
        if rng.random() < 0.8:
            shop_id = rng.choice(favourites[user_id])
            product_id = rng.choice(products_by_shop[shop_id])
        else:
            product_id = rng.choice(list(product_shop))
        events.append({
            "user_id": user_id,
            "product_id": product_id,
            "shop_id": product_shop[product_id],
            "action": rng.choices(actions, weights=weights)[0],
            "timestamp": start_date + timedelta(seconds=rng.randrange(span_seconds)),
        })

    df = pd.DataFrame(events, columns=INTERACTION_COLUMNS)
    return df.sort_values("timestamp").reset_index(drop=True)


def main() -> None:
    """Generate default data into data/interactions.csv and data/product_stats.csv."""
    print(f"Generating {DEFAULT_NUM_EVENTS} fake interactions...")
    print(f"Users: {DEFAULT_NUM_USERS}, Products: {DEFAULT_NUM_PRODUCTS}, Shops: {DEFAULT_NUM_SHOPS}")

    try:
        df = generate_fake_interactions(seed=42)
    except ValueError as e:
        print(f"Error generating data: {e}")
        return

    data_dir = project_root / "data"
    data_dir.mkdir(exist_ok=True)

    interactions_path = data_dir / "interactions.csv"
    df.to_csv(interactions_path, index=False)

    stats = aggregate_product_stats(CsvInteractionStore(interactions_path).read_events())
    stats_df = pd.DataFrame([vars(s) for s in stats], columns=STATS_COLUMNS)
    stats_path = data_dir / "product_stats.csv"
    stats_df.to_csv(stats_path, index=False)

    print("\nData generated successfully!")
    print(f"Saved interactions to: {interactions_path}")
    print(f"Saved product stats to: {stats_path}")
    print("\nData summary:")
    print(f"  Total events: {len(df)}")
    print(f"  Unique users: {df['user_id'].nunique()}")
    print(f"  Unique products: {df['product_id'].nunique()}")
    print("  Events per action:")
    for action, count in df["action"].value_counts().items():
        print(f"    {action:<22} {count}")


if __name__ == "__main__":
    main()

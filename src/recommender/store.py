"""Read-only access to the data the recommender consumes.

Interaction histories and aggregate product counters are owned by other
services. The classes here adapt them to what training and the fallback
ranker need: in-memory variants for embedding and tests, CSV variants for
local runs and the command-line tools.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

from src.recommender.types import ActionType, InteractionEvent, ProductStats

# Configure module logger
logger = logging.getLogger(__name__)

INTERACTION_COLUMNS = ["user_id", "product_id", "shop_id", "action", "timestamp"]
STATS_COLUMNS = ["product_id", "shop_id", "views", "cart_adds", "wishlist_adds", "purchases"]
_COUNTER_BY_ACTION = {
    ActionType.VIEW: "views",
    ActionType.CART_ADD: "cart_adds",
    ActionType.WISHLIST_ADD: "wishlist_adds",
    ActionType.PURCHASE: "purchases",
}


class InteractionStore:
    """Source of per-user interaction histories."""

    def load_user_interactions(self) -> Dict[str, List[InteractionEvent]]:
        raise NotImplementedError

    def describe(self) -> str:
        return type(self).__name__


class ProductStatsStore:
    """Source of per-product aggregate counters."""

    def all_stats(self) -> List[ProductStats]:
        raise NotImplementedError

    def get(self, product_id: str) -> Optional[ProductStats]:
        for stats in self.all_stats():
            if stats.product_id == product_id:
                return stats
        return None


class InMemoryInteractionStore(InteractionStore):
    def __init__(self, events: Iterable[InteractionEvent] = ()) -> None:
        self._events: List[InteractionEvent] = list(events)

    def add(self, event: InteractionEvent) -> None:
        self._events.append(event)

    def clear(self) -> None:
        self._events = []

    def load_user_interactions(self) -> Dict[str, List[InteractionEvent]]:
        return group_by_user(self._events)


class InMemoryProductStatsStore(ProductStatsStore):
    def __init__(self, stats: Iterable[ProductStats] = ()) -> None:
        self._stats: Dict[str, ProductStats] = {s.product_id: s for s in stats}

    def put(self, stats: ProductStats) -> None:
        self._stats[stats.product_id] = stats

    def all_stats(self) -> List[ProductStats]:
        return list(self._stats.values())

    def get(self, product_id: str) -> Optional[ProductStats]:
        return self._stats.get(product_id)


class CsvInteractionStore(InteractionStore):
    """Interaction log stored as CSV with one row per event.

    Expected columns: user_id, product_id, action and optionally shop_id and
    timestamp.
    """

    def __init__(self, csv_path: Union[str, Path]) -> None:
        self.csv_path = Path(csv_path)

    def describe(self) -> str:
        return str(self.csv_path)

    def read_events(self) -> List[InteractionEvent]:
        """Read every event in file order.

        Raises:
            FileNotFoundError: If the CSV file does not exist.
            ValueError: If required columns are missing.
        """
        if not self.csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {self.csv_path}")

        logger.info(f"Loading interactions from {self.csv_path}")
        df = pd.read_csv(self.csv_path, dtype=str, keep_default_na=False)

        required_columns = {"user_id", "product_id", "action"}
        if not required_columns.issubset(df.columns):
            missing = required_columns - set(df.columns)
            raise ValueError(f"CSV missing required columns: {missing}")

        for optional in ("shop_id", "timestamp"):
            if optional not in df.columns:
                df[optional] = ""

        timestamps = pd.to_datetime(df["timestamp"], errors="coerce")
        events = [
            InteractionEvent(
                user_id=row.user_id,
                product_id=row.product_id or None,
                action=row.action,
                shop_id=row.shop_id or None,
                timestamp=None if pd.isna(ts) else ts.to_pydatetime(),
            )
            for row, ts in zip(df.itertuples(index=False), timestamps)
        ]
        logger.info(f"Loaded {len(events)} interaction records")
        return events

    def load_user_interactions(self) -> Dict[str, List[InteractionEvent]]:
        return group_by_user(self.read_events())


class CsvProductStatsStore(ProductStatsStore):
    """Aggregate counters stored as CSV.

    When the stats file does not exist and an interaction store is given,
    the counters are aggregated from the interaction log instead. The parsed
    file is reused until its modification time changes.
    """

    def __init__(
        self,
        csv_path: Union[str, Path],
        interactions: Optional[CsvInteractionStore] = None,
    ) -> None:
        self.csv_path = Path(csv_path)
        self.interactions = interactions
        self._cached: Optional[List[ProductStats]] = None
        self._cached_mtime: Optional[float] = None

    def all_stats(self) -> List[ProductStats]:
        if not self.csv_path.exists():
            if self.interactions is not None and self.interactions.csv_path.exists():
                return aggregate_product_stats(self.interactions.read_events())
            logger.warning(f"Product stats not found at {self.csv_path}")
            return []

        mtime = self.csv_path.stat().st_mtime
        if self._cached is not None and self._cached_mtime == mtime:
            return self._cached

        df = pd.read_csv(self.csv_path, dtype={"product_id": str, "shop_id": str})
        if "product_id" not in df.columns:
            raise ValueError("CSV missing required columns: {'product_id'}")
        for column in STATS_COLUMNS[2:]:
            if column not in df.columns:
                df[column] = 0
        if "shop_id" not in df.columns:
            df["shop_id"] = None
        df[STATS_COLUMNS[2:]] = df[STATS_COLUMNS[2:]].fillna(0).astype(int)

        self._cached = [
            ProductStats(
                product_id=row.product_id,
                shop_id=None if pd.isna(row.shop_id) else row.shop_id,
                views=int(row.views),
                cart_adds=int(row.cart_adds),
                wishlist_adds=int(row.wishlist_adds),
                purchases=int(row.purchases),
            )
            for row in df[STATS_COLUMNS].itertuples(index=False)
        ]
        self._cached_mtime = mtime
        return self._cached


def group_by_user(events: Iterable[InteractionEvent]) -> Dict[str, List[InteractionEvent]]:
    """Group events per user, keeping first-seen user order and event order."""
    grouped: Dict[str, List[InteractionEvent]] = {}
    for event in events:
        grouped.setdefault(event.user_id, []).append(event)
    return grouped


def aggregate_product_stats(events: Iterable[InteractionEvent]) -> List[ProductStats]:
    """Derive per-product counters from an interaction log.

    Products appear in first-seen order. The shop of a product is taken from
    the first event that names one.
    """
    rows = []
    for event in events:
        action = ActionType.parse(event.action)
        if not event.product_id or action is None:
            continue
        rows.append({
            "product_id": event.product_id,
            "shop_id": event.shop_id,
            "counter": _COUNTER_BY_ACTION.get(action),
        })

    if not rows:
        return []

    df = pd.DataFrame(rows)
    counted = df.dropna(subset=["counter"])
    if counted.empty:
        counts = pd.DataFrame(columns=STATS_COLUMNS[2:])
    else:
        counts = pd.crosstab(counted["product_id"], counted["counter"]).reindex(
            columns=STATS_COLUMNS[2:], fill_value=0
        )
    shops = df.dropna(subset=["shop_id"]).groupby("product_id", sort=False)["shop_id"].first()

    stats = []
    for product_id in df["product_id"].drop_duplicates():
        counters = {column: 0 for column in STATS_COLUMNS[2:]}
        if product_id in counts.index:
            counters.update({k: int(v) for k, v in counts.loc[product_id].items()})
        stats.append(ProductStats(
            product_id=product_id,
            shop_id=shops.get(product_id),
            **counters,
        ))
    return stats

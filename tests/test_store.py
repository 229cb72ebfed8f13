"""Tests for interaction and product stats stores."""

import pandas as pd
import pytest

from src.recommender.store import (
    CsvInteractionStore,
    CsvProductStatsStore,
    InMemoryProductStatsStore,
    aggregate_product_stats,
    group_by_user,
)
from src.recommender.types import InteractionEvent, ProductStats


@pytest.fixture
def interactions_csv(tmp_path):
    path = tmp_path / "interactions.csv"
    pd.DataFrame([
        {"user_id": "u1", "product_id": "p1", "shop_id": "s1", "action": "product_view",
         "timestamp": "2024-03-01 10:00:00"},
        {"user_id": "u2", "product_id": "p2", "shop_id": "s2", "action": "add_to_cart",
         "timestamp": "2024-03-01 11:00:00"},
        {"user_id": "u1", "product_id": "p2", "shop_id": "s2", "action": "purchase",
         "timestamp": ""},
        {"user_id": "u1", "product_id": "", "shop_id": "", "action": "product_view",
         "timestamp": "2024-03-02 09:00:00"},
    ]).to_csv(path, index=False)
    return path


def test_csv_store_reads_events_in_file_order(interactions_csv):
    events = CsvInteractionStore(interactions_csv).read_events()

    assert [e.user_id for e in events] == ["u1", "u2", "u1", "u1"]
    assert events[0].timestamp.year == 2024
    assert events[2].timestamp is None
    assert events[3].product_id is None
    assert events[3].shop_id is None


def test_csv_store_groups_by_user(interactions_csv):
    grouped = CsvInteractionStore(interactions_csv).load_user_interactions()

    assert list(grouped) == ["u1", "u2"]
    assert [e.product_id for e in grouped["u1"]] == ["p1", "p2", None]


def test_csv_store_keeps_ids_as_strings(tmp_path):
    path = tmp_path / "numeric.csv"
    path.write_text("user_id,product_id,action\n007,0042,view\n")

    events = CsvInteractionStore(path).read_events()

    assert events[0].user_id == "007"
    assert events[0].product_id == "0042"


def test_csv_store_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        CsvInteractionStore(tmp_path / "absent.csv").read_events()


def test_csv_store_missing_columns(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("user_id,item\nu1,p1\n")

    with pytest.raises(ValueError, match="missing required columns"):
        CsvInteractionStore(path).read_events()


def test_group_by_user_keeps_first_seen_order():
    events = [
        InteractionEvent(user_id="b", product_id="p1", action="view"),
        InteractionEvent(user_id="a", product_id="p2", action="view"),
        InteractionEvent(user_id="b", product_id="p3", action="view"),
    ]

    grouped = group_by_user(events)

    assert list(grouped) == ["b", "a"]
    assert [e.product_id for e in grouped["b"]] == ["p1", "p3"]


def test_aggregate_counts_each_counter():
    events = [
        InteractionEvent(user_id="u1", product_id="p1", action="view", shop_id="s1"),
        InteractionEvent(user_id="u2", product_id="p1", action="product_view", shop_id="s1"),
        InteractionEvent(user_id="u1", product_id="p1", action="purchase", shop_id="s1"),
        InteractionEvent(user_id="u1", product_id="p2", action="add_to_wishlist"),
        InteractionEvent(user_id="u1", product_id="p2", action="cart_add", shop_id="s2"),
        InteractionEvent(user_id="u1", product_id="p3", action="cart_remove", shop_id="s3"),
        InteractionEvent(user_id="u1", product_id="p4", action="share", shop_id="s4"),
    ]

    stats = aggregate_product_stats(events)

    assert stats == [
        ProductStats(product_id="p1", shop_id="s1", views=2, purchases=1),
        ProductStats(product_id="p2", shop_id="s2", cart_adds=1, wishlist_adds=1),
        ProductStats(product_id="p3", shop_id="s3"),
    ]


def test_aggregate_empty_log():
    assert aggregate_product_stats([]) == []


def test_stats_csv_is_read(tmp_path):
    path = tmp_path / "product_stats.csv"
    path.write_text(
        "product_id,shop_id,views,cart_adds,wishlist_adds,purchases\n"
        "p1,s1,10,1,0,2\n"
        "p2,,3,0,0,0\n"
    )

    store = CsvProductStatsStore(path)

    assert store.get("p1") == ProductStats("p1", "s1", 10, 1, 0, 2)
    assert store.get("p2").shop_id is None
    assert store.get("missing") is None


def test_stats_fall_back_to_interaction_log(tmp_path, interactions_csv):
    store = CsvProductStatsStore(
        tmp_path / "absent.csv", interactions=CsvInteractionStore(interactions_csv)
    )

    stats = {s.product_id: s for s in store.all_stats()}

    assert stats["p1"].views == 1
    assert stats["p2"].cart_adds == 1
    assert stats["p2"].purchases == 1


def test_stats_missing_everywhere_is_empty(tmp_path):
    assert CsvProductStatsStore(tmp_path / "absent.csv").all_stats() == []


def test_in_memory_stats_put_replaces():
    store = InMemoryProductStatsStore([ProductStats("p1", views=1)])

    store.put(ProductStats("p1", views=9))

    assert store.get("p1").views == 9
    assert len(store.all_stats()) == 1

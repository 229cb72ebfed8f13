"""Tests for training set construction."""

from src.recommender.dataset import build_training_dataset, build_with_registry
from src.recommender.mapping import IdMappingRegistry
from src.recommender.types import ActionType, InteractionEvent


def test_scores_follow_action_weights(make_events):
    """Test that each action maps to its implicit score."""
    events = make_events("u1", [
        ("p1", "view"),
        ("p2", "wishlist_add"),
        ("p3", "cart_add"),
        ("p4", "purchase"),
        ("p5", "wishlist_remove"),
        ("p6", "cart_remove"),
    ])

    dataset, registry = build_with_registry({"u1": events})

    assert dataset.ratings == [1.0, 2.0, 3.0, 5.0, -1.0, -1.0]
    assert dataset.user_indices == [0] * 6
    assert dataset.product_indices == [0, 1, 2, 3, 4, 5]
    assert dataset.num_users == 1
    assert dataset.num_products == 6
    assert registry.products.ids() == ["p1", "p2", "p3", "p4", "p5", "p6"]


def test_event_bus_action_names_are_accepted(make_events):
    events = make_events("u1", [
        ("p1", "product_view"),
        ("p1", "add_to_cart"),
        ("p1", "remove_from_wishlist"),
    ])

    dataset, _ = build_with_registry({"u1": events})

    assert dataset.ratings == [1.0, 3.0, -1.0]


def test_repeated_interactions_are_not_merged(make_events):
    """Test that three views of one product give three rows."""
    events = make_events("u1", [("p1", "view")] * 3)

    dataset, _ = build_with_registry({"u1": events})

    assert len(dataset) == 3
    assert dataset.product_indices == [0, 0, 0]


def test_unusable_events_are_skipped():
    """Test that events without a product or with unknown actions are dropped."""
    events = [
        InteractionEvent(user_id="u1", product_id=None, action="view"),
        InteractionEvent(user_id="u1", product_id="", action="purchase"),
        InteractionEvent(user_id="u1", product_id="p1", action="share"),
        InteractionEvent(user_id="u1", product_id="p2", action="purchase"),
    ]

    dataset, registry = build_with_registry({"u1": events})

    assert dataset.ratings == [5.0]
    assert registry.products.ids() == ["p2"]


def test_user_without_usable_events_gets_no_index(make_events):
    user_interactions = {
        "ghost": [InteractionEvent(user_id="ghost", product_id="p1", action="share")],
        "real": make_events("real", [("p1", "view")]),
    }

    dataset, registry = build_with_registry(user_interactions)

    assert registry.user_index("ghost") is None
    assert registry.user_index("real") == 0
    assert dataset.num_users == 1


def test_empty_input_gives_empty_dataset():
    registry = IdMappingRegistry()

    dataset = build_training_dataset({}, registry)

    assert dataset.is_empty
    assert dataset.num_users == 0
    assert dataset.num_products == 0


def test_action_parse_is_case_insensitive():
    assert ActionType.parse(" Purchase ") is ActionType.PURCHASE
    assert ActionType.parse("unknown") is None
    assert ActionType.parse(None) is None

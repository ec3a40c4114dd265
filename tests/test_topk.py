"""
Tests for bounded top-k selection.
"""

import random

import pytest

from src.vector.topk import TopK


def _by_score(item):
    return item[1]


def test_holds_at_most_k():
    top = TopK(3, _by_score)
    for i in range(10):
        top.offer((f"item_{i}", float(i)))

    assert len(top) == 3
    assert [name for name, _ in top.values_sorted_desc()] == ["item_9", "item_8", "item_7"]


def test_fewer_items_than_k():
    top = TopK(5, _by_score)
    top.offer(("a", 0.2))
    top.offer(("b", 0.9))

    assert top.values_sorted_desc() == [("b", 0.9), ("a", 0.2)]


@pytest.mark.parametrize("k, expected", [
    (0, 1),
    (-4, 1),
    (2.9, 2),
    (float("inf"), 1),
    (float("nan"), 1),
    ("nope", 1),
    (None, 1),
    (7, 7),
])
def test_capacity_is_clamped(k, expected):
    assert TopK(k, _by_score).capacity == expected


def test_matches_brute_force():
    """Top-k over a random stream equals a full sort truncated to k."""
    rng = random.Random(42)
    for trial in range(50):
        k = rng.randint(1, 12)
        # Distinct scores so the expected ordering is unambiguous
        scores = rng.sample(range(-1000, 1000), rng.randint(0, 40))
        items = [(f"id_{i}", s / 1000.0) for i, s in enumerate(scores)]

        top = TopK(k, _by_score)
        for item in items:
            top.offer(item)

        expected = sorted(items, key=_by_score, reverse=True)[:k]
        assert top.values_sorted_desc() == expected


def test_tie_with_minimum_does_not_evict():
    """At capacity, an equal score keeps the earlier resident."""
    top = TopK(2, _by_score)
    top.offer(("first", 0.5))
    top.offer(("high", 0.9))
    top.offer(("late_tie", 0.5))

    assert top.values_sorted_desc() == [("high", 0.9), ("first", 0.5)]


def test_replace_ties_evicts_on_equal_score():
    top = TopK(2, _by_score, replace_ties=True)
    top.offer(("first", 0.5))
    top.offer(("high", 0.9))
    top.offer(("late_tie", 0.5))

    assert top.values_sorted_desc() == [("high", 0.9), ("late_tie", 0.5)]


def test_tied_minimums_evict_latest_first():
    """Among several residents tied at the minimum, the newest leaves first."""
    top = TopK(3, _by_score)
    top.offer(("a", 0.1))
    top.offer(("b", 0.1))
    top.offer(("c", 0.1))
    top.offer(("d", 0.7))

    assert top.values_sorted_desc() == [("d", 0.7), ("a", 0.1), ("b", 0.1)]


def test_sorted_output_breaks_ties_by_offer_order():
    top = TopK(4, _by_score)
    for name in ["w", "x", "y", "z"]:
        top.offer((name, 0.3))

    assert [name for name, _ in top.values_sorted_desc()] == ["w", "x", "y", "z"]


def test_lower_score_rejected_at_capacity():
    top = TopK(1, _by_score)
    top.offer(("keep", 0.8))
    top.offer(("drop", 0.2))

    assert top.values_sorted_desc() == [("keep", 0.8)]


def test_nan_scores_are_ignored():
    top = TopK(2, _by_score)
    for item in [("nan", float("nan")), ("low", 0.1), ("hi", 0.9), ("mid", 0.5)]:
        top.offer(item)

    assert top.values_sorted_desc() == [("hi", 0.9), ("mid", 0.5)]

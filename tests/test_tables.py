from __future__ import annotations

from sniffly.models import Bucket, TopRow
from sniffly.tables import aggregate_counts, top_k


def test_top_k_orders_and_truncates():
    assert top_k({"a": 5, "b": 9, "c": 1}, limit=2) == [TopRow("b", 9), TopRow("a", 5)]


def test_top_k_ties_keep_input_order():
    rows = top_k({"x": 1, "y": 3, "z": 3, "w": 1})
    assert [r.key for r in rows] == ["y", "z", "x", "w"]


def test_top_k_missing_input_is_empty():
    assert top_k(None) == []
    assert top_k([("a", 1)]) == []  # type: ignore[arg-type]


def test_top_k_default_limit_is_thirty():
    stats = {f"k{i}": i for i in range(50)}
    rows = top_k(stats)
    assert len(rows) == 30
    assert rows[0] == TopRow("k49", 49)


def test_top_k_coerces_bad_values_to_zero():
    assert top_k({"a": None, "b": "7"}) == [TopRow("b", 7), TopRow("a", 0)]


def test_aggregate_counts_sums_in_first_seen_order():
    buckets = [Bucket(0, {"b": 1, "a": 2}), Bucket(60, {"c": 4, "a": 1})]
    assert aggregate_counts(buckets) == {"b": 1, "a": 3, "c": 4}
    assert list(aggregate_counts(buckets)) == ["b", "a", "c"]

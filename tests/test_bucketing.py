import pytest

from sov_engine.aggregations import AggregatedEntry, BrandBreakdown, brand_totals
from sov_engine.bucketing import bucket_breakdown, bucket_entries, others_label


def test_sov_example_folds_into_others(mixed_records):
    totals = brand_totals(mixed_records)
    out = bucket_entries(totals.entries, 2, totals.total)
    assert [e.to_dict() for e in out] == [
        {"name": "A", "value": 700.0, "percentage": 70.0},
        {"name": "Others (2 brands)", "value": 300.0, "percentage": 30.0, "other_brands": ["B", "C"]},
    ]


def test_others_value_is_exact_sum_of_folded():
    entries = [AggregatedEntry(name=f"b{i}", value=0.1 * (10 - i), percentage=0.0) for i in range(10)]
    out = bucket_entries(entries, 4, denominator=5.5)
    others = out[-1]
    assert others.value == sum(e.value for e in entries[3:])
    assert others.other_brands == [f"b{i}" for i in range(3, 10)]
    assert others.percentage == pytest.approx(others.value / 5.5 * 100)


def test_no_bucketing_at_or_under_limit():
    entries = [AggregatedEntry(name="a", value=1, percentage=50), AggregatedEntry(name="b", value=1, percentage=50)]
    assert bucket_entries(entries, 2, 2) == entries
    assert bucket_entries([], 1, 0) == []


def test_limit_of_one_folds_everything():
    entries = [AggregatedEntry(name="a", value=3, percentage=75), AggregatedEntry(name="b", value=1, percentage=25)]
    out = bucket_entries(entries, 1, 4)
    assert len(out) == 1
    assert out[0].name == others_label(2)
    assert out[0].percentage == 100.0


def test_breakdown_others_recomputes_its_own_shares():
    rows = [
        BrandBreakdown(name="A", values={"TV": 80.0, "Online": 20.0}),
        BrandBreakdown(name="B", values={"TV": 30.0}),
        BrandBreakdown(name="C", values={"Online": 10.0, "Radio": 10.0}),
    ]
    out = bucket_breakdown(rows, 2)
    assert [r.name for r in out] == ["A", "Others (2 brands)"]
    others = out[1]
    assert others.values == {"TV": 30.0, "Online": 10.0, "Radio": 10.0}
    assert others.total == 50.0
    assert others.shares == pytest.approx({"TV": 60.0, "Online": 20.0, "Radio": 20.0})
    assert others.to_dict()["other_brands"] == ["B", "C"]

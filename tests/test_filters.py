import pytest

from sov_engine.filters import ChartFilterSet, apply_filters, filter_options, normalize_filters, select_all

from conftest import rec


def test_empty_filter_set_passes_everything(mixed_records):
    assert apply_filters(mixed_records, ChartFilterSet()) == mixed_records
    assert apply_filters(mixed_records, None) == mixed_records


def test_and_across_dimensions_or_within(mixed_records):
    filters = normalize_filters({"brands": ["A", "B"], "months": ["January"]})
    out = apply_filters(mixed_records, filters)
    assert [(r.brand_name, r.month) for r in out] == [("A", "January"), ("B", "January")]


def test_unmatched_value_excludes_all(mixed_records):
    filters = normalize_filters({"years": ["1999"]})
    assert apply_filters(mixed_records, filters) == []


def test_filter_on_absent_dimension_excludes_record():
    records = [rec("A", "2024", "January", "1")]
    assert apply_filters(records, normalize_filters({"ad_types": ["Spot"]})) == []


def test_with_value_toggles():
    f = ChartFilterSet().with_value("brands", "A", True).with_value("brands", "B", True)
    assert f.brands == frozenset({"A", "B"})
    f = f.with_value("brands", "A", False)
    assert f.brands == frozenset({"B"})
    with pytest.raises(KeyError):
        f.with_value("colors", "red", True)


def test_normalize_filters_coerces_values():
    f = normalize_filters({"years": [2024, None, "2023"], "brands": "A"})
    assert f.years == frozenset({"2024", "2023"})
    assert f.brands == frozenset({"A"})
    assert normalize_filters({}).is_empty


def test_filter_options(mixed_records):
    opts = filter_options(mixed_records)
    assert opts.file_names == ["a.xlsx", "b.xlsx"]
    assert opts.brands == ["A", "B", "C"]
    assert opts.years == ["2023", "2024"]
    assert opts.months == ["January", "February", "March"]
    assert opts.ad_types == ["Spot", "Banner", "Video"]
    assert opts.media_types == ["TV", "Online"]


def test_filter_options_without_optional_dimensions():
    opts = filter_options([rec("A", "2024", "January", "1")])
    assert opts.ad_types == [] and opts.media_types == []


def test_select_all_keeps_every_record(mixed_records):
    assert apply_filters(mixed_records, select_all(mixed_records)) == mixed_records

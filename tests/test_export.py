import io

import pandas as pd

from sov_engine.aggregations import brand_category_breakdown, brand_totals, sov_crosstab
from sov_engine.bucketing import bucket_entries
from sov_engine.charts import chart_for_view, to_vega_spec
from sov_engine.config import ColumnConfig
from sov_engine.export import format_number, records_to_csv, records_to_tsv, view_payload, view_to_tsv

from conftest import rec


BRAND_ONLY = ColumnConfig(include_brand=True, include_media_type=False, include_ad_type=False)


def test_records_tsv_uses_display_names():
    records = [rec("A", "2024", "January", "1,000"), rec("B", "2024", "February", "5")]
    text = records_to_tsv(records, BRAND_ONLY, {"Brand Name": "Advertiser"})
    lines = text.split("\n")
    assert lines[0] == "File Name\tAdvertiser\tYear\tMonth\tImpression (ad contact)"
    assert lines[1] == "a.xlsx\tA\t2024\tJanuary\t1,000"
    assert records_to_tsv([], BRAND_ONLY) == ""


def test_records_csv_round_trips_through_pandas():
    records = [rec("A", "2024", "January", "1,000")]
    df = pd.read_csv(io.BytesIO(records_to_csv(records, BRAND_ONLY)), dtype=str)
    assert list(df.columns) == ["File Name", "Brand Name", "Year", "Month", "Impression (ad contact)"]
    assert df.iloc[0]["Impression (ad contact)"] == "1,000"


def test_sov_tsv_lists_others_constituents(mixed_records):
    totals = brand_totals(mixed_records)
    result = type(totals)(entries=bucket_entries(totals.entries, 2, totals.total), total=totals.total)
    lines = view_to_tsv("sov", result).split("\n")
    assert lines[0] == "Share of Voice (SOV) - Impression Distribution"
    assert lines[2] == "Brand\tImpressions\tPercentage\tIncluded Brands"
    assert lines[3] == "A\t700\t70.0%\t"
    assert lines[4] == "Others (2 brands)\t300\t30.0%\tB, C"


def test_breakdown_tsv_has_percent_and_value_columns(mixed_records):
    rows = brand_category_breakdown(mixed_records, None, "ad_type")
    lines = view_to_tsv("ad_type", rows).split("\n")
    assert lines[2] == "Brand\tSpot %\tBanner %\tVideo %\tSpot Value\tBanner Value\tVideo Value\tIncluded Brands"
    assert lines[4] == "B\t75.0%\t25.0%\t0.0%\t150\t50\t0\t"


def test_crosstab_tsv_and_payload():
    records = [rec("A", "2024", "January", "100"), rec("B", "2024", "February", "300")]
    table = sov_crosstab(records, None, "month")
    lines = view_to_tsv("crosstab", table, "percentage").split("\n")
    # brands ordered by total impressions
    assert lines[2] == "Period\tB\tA\tTotal"
    assert lines[-1] == "Year Total\t75.0%\t25.0%\t100.0%"
    payload = view_payload("crosstab", table, "value")
    assert payload["grand_total"] == 400.0
    assert payload["rows"][-1]["total"] == 400.0


def test_empty_view_exports_nothing():
    assert view_to_tsv("sov", brand_totals([])) == ""


def test_format_number():
    assert format_number(700.0) == "700"
    assert format_number(15.5) == "15.5"


def test_chart_specs_are_vega_lite_dicts(mixed_records):
    for view, result in (
        ("sov", brand_totals(mixed_records)),
        ("ad_type", brand_category_breakdown(mixed_records, None, "ad_type")),
        ("crosstab", sov_crosstab(mixed_records, None, "year")),
    ):
        spec = to_vega_spec(chart_for_view(view, result))
        assert "$schema" in spec
        assert "encoding" in spec

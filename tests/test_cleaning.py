from sov_engine.cleaning import clean_rows, find_sum_column, is_summary_row

from conftest import make_export, metadata_block


def test_drops_fixed_metadata_block():
    raw = make_export(["Brand", "2024 January"], [["A", "1"]])
    cleaned = clean_rows(raw)
    assert cleaned == [["Brand", "2024 January"], ["A", "1"]]


def test_metadata_only_export_is_empty():
    assert clean_rows(metadata_block()) == []


def test_summary_rows_removed():
    raw = make_export(
        ["Brand", "2024 January"],
        [
            ["A", "1"],
            ["All Brands", "10"],
            ["B", "All Ad Types"],
            ["C", "2"],
        ],
    )
    cleaned = clean_rows(raw)
    assert [r[0] for r in cleaned] == ["Brand", "A", "C"]


def test_generic_all_marker_matches_substring():
    # "small " contains "all ", so the row is treated as a rollup.
    assert is_summary_row(["Small brand", "5"])
    assert not is_summary_row(["Smallbrand", "5"])


def test_sum_column_removed_from_every_row():
    raw = make_export(
        ["Brand", "2024 January", "Grand SUM", "2024 February"],
        [["A", "1", "3", "2"], ["B", "4"]],
    )
    cleaned = clean_rows(raw)
    assert cleaned[0] == ["Brand", "2024 January", "2024 February"]
    assert cleaned[1] == ["A", "1", "2"]
    # short rows are left alone past their end
    assert cleaned[2] == ["B", "4"]


def test_find_sum_column_handles_numbers_and_missing():
    assert find_sum_column([None, 2024, "Summary"]) == 2
    assert find_sum_column(["Brand", float("nan")]) is None

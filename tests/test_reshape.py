from sov_engine.config import ColumnConfig
from sov_engine.records import TransformedRecord
from sov_engine.reshape import iter_reshape, process_file, transform_rows


def test_brand_only_example(brand_only):
    cleaned = [
        ["BrandA", "2024 January", "2024 February"],
        ["BrandA", "100", "-"],
        ["BrandB", "", "50"],
    ]
    records = transform_rows(cleaned, "f.xlsx", brand_only)
    assert records == [
        TransformedRecord(file_name="f.xlsx", brand_name="BrandA", year="2024", month="January", impression="100"),
        TransformedRecord(file_name="f.xlsx", brand_name="BrandB", year="2024", month="February", impression="50"),
    ]


def test_missing_brand_drops_the_whole_row(brand_only):
    cleaned = [["Brand", "2024 January", "2024 February"], ["", "10", "20"], [None, "5", "5"]]
    assert transform_rows(cleaned, "f.xlsx", brand_only) == []


def test_no_dimensions_attributes_all_measures():
    config = ColumnConfig(include_brand=False, include_media_type=False, include_ad_type=False)
    cleaned = [["2024 January", "2024 February"], ["10", "20"]]
    records = transform_rows(cleaned, "f.xlsx", config)
    assert [(r.month, r.impression) for r in records] == [("January", "10"), ("February", "20")]
    assert all(r.brand_name is None and r.media_type is None and r.ad_type is None for r in records)


def test_disabled_brand_is_not_required():
    config = ColumnConfig(include_brand=False, include_media_type=True, include_ad_type=False)
    cleaned = [["Media", "2024 May"], ["", "7"]]
    records = transform_rows(cleaned, "f.xlsx", config)
    assert len(records) == 1
    assert records[0].media_type == ""


def test_underflow_yields_nothing(brand_only):
    assert transform_rows([["Brand", "2024 January"]], "f.xlsx", brand_only) == []
    assert transform_rows([], "f.xlsx", brand_only) == []
    assert transform_rows([["Brand", "Total"], ["A", "1"]], "f.xlsx", brand_only) == []


def test_numeric_cells_keep_their_text(brand_only):
    cleaned = [["Brand", "2024 January", "2024 February"], ["A", 1200.0, 3.5]]
    assert [r.impression for r in transform_rows(cleaned, "f.xlsx", brand_only)] == ["1200", "3.5"]


def test_chunks_report_progress_and_match_single_pass(brand_only):
    cleaned = [["Brand", "2024 January"]] + [[f"B{i}", str(i + 1)] for i in range(7)]
    chunks = list(iter_reshape(cleaned, "f.xlsx", brand_only, chunk_size=3))
    assert [(c.rows_done, c.rows_total) for c in chunks] == [(3, 7), (6, 7), (7, 7)]
    flat = [r for c in chunks for r in c.records]
    assert flat == transform_rows(cleaned, "f.xlsx", brand_only, chunk_size=1000)
    assert chunks[-1].progress == 1.0


def test_process_file_end_to_end(full_export, full_config):
    records = process_file(full_export, "export.xlsx", full_config)
    assert [(r.brand_name, r.media_type, r.ad_type, r.month, r.impression) for r in records] == [
        ("BrandA", "TV", "Spot", "January", "1,000"),
        ("BrandA", "TV", "Spot", "February", "500"),
        ("BrandA", "Online", "Banner", "January", "200"),
        ("BrandB", "TV", "Spot", "February", "300"),
    ]
    assert {r.file_name for r in records} == {"export.xlsx"}

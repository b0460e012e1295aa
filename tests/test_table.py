from sov_engine.records import BRAND_NAME, IMPRESSION, MONTH, YEAR
from sov_engine.table import SortState, TableView, paginate, sort_records

from conftest import rec


def _records():
    return [
        rec("beta", "2024", "March", "1,200"),
        rec("Alpha", "2023", "Smarch", "90"),
        rec("alpha2", "2025", "January", "abc"),
        rec(None, "x", "February", "15.5"),
    ]


def test_toggle_flips_and_new_key_resets():
    s = SortState().toggle(BRAND_NAME)
    assert s == SortState(BRAND_NAME, "asc")
    s = s.toggle(BRAND_NAME)
    assert s.direction == "desc"
    assert s.toggle(BRAND_NAME).direction == "asc"
    assert s.toggle(YEAR) == SortState(YEAR, "asc")


def test_no_key_keeps_order():
    records = _records()
    assert sort_records(records, SortState()) == records


def test_name_sort_is_case_insensitive():
    out = sort_records(_records(), SortState(BRAND_NAME))
    assert [r.brand_name for r in out] == [None, "Alpha", "alpha2", "beta"]


def test_year_sort_is_numeric_with_zero_fallback():
    out = sort_records(_records(), SortState(YEAR))
    assert [r.year for r in out] == ["x", "2023", "2024", "2025"]


def test_month_sort_uses_calendar_with_unknown_last():
    out = sort_records(_records(), SortState(MONTH))
    assert [r.month for r in out] == ["January", "February", "March", "Smarch"]


def test_impression_sort_strips_commas():
    out = sort_records(_records(), SortState(IMPRESSION, "desc"))
    assert [r.impression for r in out] == ["1,200", "90", "15.5", "abc"]


def test_descending_is_exact_reverse_of_ascending():
    records = _records()
    for key in (BRAND_NAME, YEAR, MONTH, IMPRESSION):
        asc = sort_records(records, SortState(key, "asc"))
        desc = sort_records(records, SortState(key, "desc"))
        assert desc == list(reversed(asc))


def test_paginate_slices_one_based():
    page = paginate(list(range(10)), page=2, page_size=4)
    assert page.items == [4, 5, 6, 7]
    assert page.page_count == 3
    assert paginate(list(range(10)), page=3, page_size=4).items == [8, 9]


def test_paginate_clamps_out_of_range_pages():
    assert paginate(list(range(3)), page=9, page_size=2).page == 2
    empty = paginate([], page=4, page_size=10)
    assert empty.items == [] and empty.page == 1 and empty.page_count == 1


def test_sorting_resets_page():
    view = TableView(page_size=2)
    view.set_page(2)
    view.sort_by(YEAR)
    assert view.page == 1
    page = view.render(_records())
    assert [r.year for r in page.items] == ["x", "2023"]


def test_render_indexed_pairs_rows_with_collection_positions():
    records = _records()
    view = TableView()
    view.sort_by(IMPRESSION)
    view.sort_by(IMPRESSION)
    page = view.render_indexed(records)
    assert [i for i, _ in page.items] == [0, 1, 3, 2]
    assert [r for _, r in page.items] == view.render(records).items
    assert all(records[i] is r for i, r in page.items)

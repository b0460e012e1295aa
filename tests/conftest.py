from __future__ import annotations

from typing import List

import pytest

from sov_engine.config import HEADER_ROWS_TO_SKIP, ColumnConfig
from sov_engine.records import TransformedRecord


def metadata_block() -> List[List[object]]:
    return [[f"Report line {i}", "", ""] for i in range(HEADER_ROWS_TO_SKIP)]


def make_export(header: List[object], rows: List[List[object]]) -> List[List[object]]:
    """A decoded export: fixed metadata block, then header, then data rows."""
    return metadata_block() + [list(header)] + [list(r) for r in rows]


def rec(brand, year, month, impression, *, file_name="a.xlsx", media_type=None, ad_type=None) -> TransformedRecord:
    return TransformedRecord(
        file_name=file_name,
        brand_name=brand,
        media_type=media_type,
        ad_type=ad_type,
        year=year,
        month=month,
        impression=impression,
    )


@pytest.fixture
def brand_only() -> ColumnConfig:
    return ColumnConfig(include_brand=True, include_media_type=False, include_ad_type=False)


@pytest.fixture
def full_config() -> ColumnConfig:
    return ColumnConfig()


@pytest.fixture
def full_export() -> List[List[object]]:
    header = ["Brand", "Media Type", "Ad Type", "2024 January", "2024 February", "Sum"]
    rows = [
        ["BrandA", "TV", "Spot", "1,000", "500", "1500"],
        ["BrandA", "Online", "Banner", "200", "-", "200"],
        ["BrandB", "TV", "Spot", "", 300, "300"],
        ["All Brands", "All Media Types", "All Ad Types", "2000", "800", "2800"],
        ["", "TV", "Spot", "999", "999", "1998"],
    ]
    return make_export(header, rows)


@pytest.fixture
def mixed_records() -> List[TransformedRecord]:
    return [
        rec("A", "2024", "January", "300", media_type="TV", ad_type="Spot"),
        rec("A", "2024", "February", "400", media_type="Online", ad_type="Banner"),
        rec("B", "2024", "January", "150", media_type="TV", ad_type="Spot"),
        rec("B", "2024", "February", "50", media_type="TV", ad_type="Banner"),
        rec("C", "2023", "March", "100", media_type="Online", ad_type="Video", file_name="b.xlsx"),
    ]

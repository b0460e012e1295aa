from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sov_engine.config import ColumnConfig
from sov_engine.records import cell_text


PERIOD_HEADER = re.compile(r"(\d{4})\s+(\w+)")


@dataclass(frozen=True)
class ColumnMapping:
    brand: Optional[int] = None
    media_type: Optional[int] = None
    ad_type: Optional[int] = None

    @property
    def dimension_count(self) -> int:
        return sum(idx is not None for idx in (self.brand, self.media_type, self.ad_type))


@dataclass(frozen=True)
class PeriodColumn:
    column_index: int
    year: str
    month: str
    header: str = ""


def map_dimension_columns(config: ColumnConfig) -> ColumnMapping:
    """Leading column indices for the enabled dimensions, in Brand/Media/Ad order."""
    idx = 0
    brand = media_type = ad_type = None
    if config.include_brand:
        brand = idx
        idx += 1
    if config.include_media_type:
        media_type = idx
        idx += 1
    if config.include_ad_type:
        ad_type = idx
        idx += 1
    return ColumnMapping(brand=brand, media_type=media_type, ad_type=ad_type)


def parse_period_header(value: object) -> Optional[tuple]:
    match = PERIOD_HEADER.search(cell_text(value))
    if not match:
        return None
    return match.group(1), match.group(2)


def find_period_columns(header_row: Sequence[object], start_index: int = 0) -> List[PeriodColumn]:
    out: List[PeriodColumn] = []
    for idx in range(max(0, start_index), len(header_row)):
        parsed = parse_period_header(header_row[idx])
        if parsed is None:
            continue
        year, month = parsed
        out.append(PeriodColumn(column_index=idx, year=year, month=month, header=cell_text(header_row[idx])))
    return out

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from sov_engine.config import HEADER_ROWS_TO_SKIP, SUM_COLUMN_MARKER, SUMMARY_ROW_MARKERS
from sov_engine.records import cell_text


logger = logging.getLogger(__name__)


def is_summary_row(row: Sequence[object]) -> bool:
    text = " ".join(cell_text(c) for c in row).lower()
    return any(marker in text for marker in SUMMARY_ROW_MARKERS)


def find_sum_column(header: Sequence[object]) -> Optional[int]:
    for idx, cell in enumerate(header):
        if SUM_COLUMN_MARKER in cell_text(cell).lower():
            return idx
    return None


def clean_rows(raw_rows: Sequence[Sequence[object]], *, skip_rows: int = HEADER_ROWS_TO_SKIP) -> List[List[object]]:
    """Strip the export's metadata block, rollup rows and running-total column.

    Every source export carries a fixed block of ``skip_rows`` metadata rows
    before the header; it is dropped by position, not detected. Returns the
    header row first, followed by data rows.
    """
    rows = [list(r) for r in raw_rows[skip_rows:]]
    kept = [r for r in rows if not is_summary_row(r)]
    if len(kept) != len(rows):
        logger.debug("dropped %d summary rows", len(rows) - len(kept))

    if kept:
        sum_idx = find_sum_column(kept[0])
        if sum_idx is not None:
            for row in kept:
                if sum_idx < len(row):
                    del row[sum_idx]
    return kept

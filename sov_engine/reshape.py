from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Sequence

from sov_engine.cleaning import clean_rows
from sov_engine.columns import ColumnMapping, PeriodColumn, find_period_columns, map_dimension_columns
from sov_engine.config import DEFAULT_CHUNK_SIZE, PLACEHOLDER_VALUE, ColumnConfig
from sov_engine.records import TransformedRecord, cell_text


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReshapeChunk:
    records: List[TransformedRecord] = field(default_factory=list)
    rows_done: int = 0
    rows_total: int = 0

    @property
    def progress(self) -> float:
        if self.rows_total <= 0:
            return 1.0
        return self.rows_done / self.rows_total


def _cell(row: Sequence[object], idx: int) -> str:
    return cell_text(row[idx]) if idx < len(row) else ""


def reshape_row(
    row: Sequence[object],
    file_name: str,
    mapping: ColumnMapping,
    periods: Sequence[PeriodColumn],
) -> List[TransformedRecord]:
    """Expand one wide row into a record per populated period cell."""
    brand = _cell(row, mapping.brand) if mapping.brand is not None else None
    if mapping.brand is not None and brand == "":
        return []
    media_type = _cell(row, mapping.media_type) if mapping.media_type is not None else None
    ad_type = _cell(row, mapping.ad_type) if mapping.ad_type is not None else None

    out: List[TransformedRecord] = []
    for period in periods:
        value = _cell(row, period.column_index)
        if value == "" or value == PLACEHOLDER_VALUE:
            continue
        out.append(
            TransformedRecord(
                file_name=file_name,
                brand_name=brand,
                media_type=media_type,
                ad_type=ad_type,
                year=period.year,
                month=period.month,
                impression=value,
            )
        )
    return out


def iter_reshape(
    cleaned_rows: Sequence[Sequence[object]],
    file_name: str,
    config: ColumnConfig,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[ReshapeChunk]:
    """Reshape cleaned rows to long format, one chunk of data rows per step.

    Yields nothing when there is no data row or no period column. The caller
    decides what to do between steps (report progress, yield to an event loop,
    stop early).
    """
    if len(cleaned_rows) < 2:
        return
    mapping = map_dimension_columns(config)
    periods = find_period_columns(cleaned_rows[0], start_index=mapping.dimension_count)
    if not periods:
        logger.info("%s: no period columns found in header", file_name)
        return

    data_rows = cleaned_rows[1:]
    total = len(data_rows)
    step = max(1, int(chunk_size))
    for start in range(0, total, step):
        batch: List[TransformedRecord] = []
        for row in data_rows[start:start + step]:
            batch.extend(reshape_row(row, file_name, mapping, periods))
        done = min(start + step, total)
        logger.debug("%s: reshaped %d/%d rows", file_name, done, total)
        yield ReshapeChunk(records=batch, rows_done=done, rows_total=total)


def transform_rows(
    cleaned_rows: Sequence[Sequence[object]],
    file_name: str,
    config: ColumnConfig,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> List[TransformedRecord]:
    out: List[TransformedRecord] = []
    for chunk in iter_reshape(cleaned_rows, file_name, config, chunk_size=chunk_size):
        out.extend(chunk.records)
    return out


def process_file(raw_rows: Sequence[Sequence[object]], file_name: str, config: ColumnConfig) -> List[TransformedRecord]:
    return transform_rows(clean_rows(raw_rows), file_name, config)

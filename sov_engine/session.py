from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from sov_engine.aggregations import (
    BrandBreakdown,
    BrandTotals,
    SovTable,
    TrendSeries,
    brand_category_breakdown,
    brand_period_trend,
    brand_totals,
    sov_crosstab,
)
from sov_engine.bucketing import bucket_breakdown, bucket_entries
from sov_engine.cleaning import clean_rows
from sov_engine.config import DEFAULT_CHUNK_SIZE, ChartConfig, ColumnConfig
from sov_engine.decode import decode_workbook
from sov_engine.errors import ConfigurationError, DecodeError, RecordIndexError, TransformCancelled
from sov_engine.filters import ChartFilterSet, FilterOptions, filter_options, select_all
from sov_engine.records import FIELD_KEYS, FILE_NAME, TransformedRecord, record_keys
from sov_engine.reshape import iter_reshape
from sov_engine.table import Page, TableView


logger = logging.getLogger(__name__)

VIEWS = ("sov", "ad_type", "media_type", "trend", "crosstab")

ViewResult = Union[BrandTotals, List[BrandBreakdown], TrendSeries, SovTable]


@dataclass(frozen=True)
class SourceFile:
    """One upstream file: either already-decoded rows or raw bytes to decode."""

    name: str
    rows: Optional[List[List[object]]] = None
    content: Optional[bytes] = None

    @property
    def size(self) -> int:
        return len(self.content) if self.content is not None else 0

    def decode(self) -> List[List[object]]:
        if self.rows is not None:
            return self.rows
        if self.content is None:
            raise DecodeError(self.name, "no content")
        return decode_workbook(self.content, self.name)


@dataclass(frozen=True)
class UploadedFile:
    name: str
    size: int
    rows_added: int
    uploaded_at: datetime


@dataclass(frozen=True)
class IngestProgress:
    file_name: str
    file_index: int
    file_count: int
    rows_done: int
    rows_total: int


@dataclass(frozen=True)
class IngestResult:
    file_name: str
    records_added: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


IngestEvent = Union[IngestProgress, IngestResult]


@dataclass
class EngineSession:
    """In-memory record collection plus the view state that queries read.

    Mutation goes through the command methods; every query is recomputed from
    the current records, filters and configs.
    """

    column_config: ColumnConfig = field(default_factory=ColumnConfig)
    chart_config: ChartConfig = field(default_factory=ChartConfig)
    filters: ChartFilterSet = field(default_factory=ChartFilterSet)
    chunk_size: int = DEFAULT_CHUNK_SIZE
    select_all_on_upload: bool = True
    table: TableView = field(default_factory=TableView)
    display_names: Dict[str, str] = field(default_factory=dict)
    _records: List[TransformedRecord] = field(default_factory=list)
    _uploads: List[UploadedFile] = field(default_factory=list)

    # ---------- queries ----------
    @property
    def records(self) -> List[TransformedRecord]:
        return list(self._records)

    @property
    def uploaded_files(self) -> List[UploadedFile]:
        return list(self._uploads)

    def record_keys(self) -> List[str]:
        return record_keys(self.column_config)

    def display_name(self, key: str) -> str:
        return self.display_names.get(key) or key

    def filter_options(self) -> FilterOptions:
        return filter_options(self._records)

    def available_views(self) -> List[str]:
        views = list(VIEWS)
        if not any(r.ad_type is not None for r in self._records):
            views.remove("ad_type")
        if not any(r.media_type is not None for r in self._records):
            views.remove("media_type")
        return views

    def aggregate(
        self,
        view: str,
        filters: Optional[ChartFilterSet] = None,
        config: Optional[ChartConfig] = None,
    ) -> ViewResult:
        filters = self.filters if filters is None else filters
        config = config or self.chart_config

        if view == "sov":
            totals = brand_totals(self._records, filters, min_percentage=config.min_percentage)
            entries = bucket_entries(totals.entries, config.sov_max_brands, totals.total)
            return BrandTotals(entries=entries, total=totals.total)
        if view == "ad_type":
            rows = brand_category_breakdown(self._records, filters, "ad_type")
            return bucket_breakdown(rows, config.ad_type_max_brands)
        if view == "media_type":
            rows = brand_category_breakdown(self._records, filters, "media_type")
            return bucket_breakdown(rows, config.media_type_max_brands)
        if view == "trend":
            sov = self.aggregate("sov", filters, config)
            top = [e.name for e in sov.entries if not e.is_others]
            return brand_period_trend(self._records, filters, top, config.period_granularity)
        if view == "crosstab":
            return sov_crosstab(self._records, filters, config.period_granularity)
        raise ConfigurationError(f"Unknown view: {view}")

    def table_page(self) -> Page[TransformedRecord]:
        return self.table.render(self._records)

    def indexed_table_page(self) -> Page[Tuple[int, TransformedRecord]]:
        return self.table.render_indexed(self._records)

    # ---------- config / filters ----------
    def set_column_config(self, config: ColumnConfig) -> None:
        if config == self.column_config:
            return
        if self._records:
            raise ConfigurationError("Column configuration cannot change while records are loaded; clear data first")
        self.column_config = config

    def set_chart_config(self, config: ChartConfig) -> None:
        self.chart_config = config

    def set_filters(self, filters: ChartFilterSet) -> None:
        self.filters = filters
        self.table.reset_page()

    def toggle_filter_value(self, dimension: str, value: str, selected: bool) -> None:
        self.set_filters(self.filters.with_value(dimension, value, selected))

    def clear_filters(self) -> None:
        self.set_filters(ChartFilterSet())

    def select_all_filters(self) -> None:
        if self._records:
            self.set_filters(select_all(self._records))

    def sort_table(self, key: str) -> None:
        self.table.sort_by(key)

    def rename_column(self, key: str, display_name: str) -> None:
        if key not in FIELD_KEYS:
            raise ConfigurationError(f"Unknown column: {key}")
        display_name = (display_name or "").strip()
        if display_name and display_name != key:
            self.display_names[key] = display_name
        else:
            self.display_names.pop(key, None)

    # ---------- ingestion ----------
    def append_records(self, records: Iterable[TransformedRecord]) -> int:
        new = list(records)
        self._records.extend(new)
        self.table.reset_page()
        return len(new)

    def _ingest_steps(
        self,
        source: SourceFile,
        file_index: int,
        file_count: int,
        should_cancel: Optional[Callable[[], bool]],
    ) -> Iterator[IngestEvent]:
        try:
            raw = source.decode()
        except DecodeError as exc:
            logger.warning("%s", exc)
            yield IngestResult(file_name=source.name, error=str(exc))
            return

        pending: List[TransformedRecord] = []
        for chunk in iter_reshape(clean_rows(raw), source.name, self.column_config, chunk_size=self.chunk_size):
            pending.extend(chunk.records)
            yield IngestProgress(
                file_name=source.name,
                file_index=file_index,
                file_count=file_count,
                rows_done=chunk.rows_done,
                rows_total=chunk.rows_total,
            )
            if should_cancel is not None and should_cancel():
                raise TransformCancelled(source.name, chunk.rows_done)

        added = self.append_records(pending)
        self._uploads.append(UploadedFile(name=source.name, size=source.size, rows_added=added, uploaded_at=datetime.now()))
        logger.info("ingested %s: %d records", source.name, added)
        yield IngestResult(file_name=source.name, records_added=added)

    def iter_ingest(
        self,
        sources: Sequence[SourceFile],
        *,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> Iterator[IngestEvent]:
        """Process ``sources`` one after another, yielding between chunks.

        Each file's records are appended before the next file starts. A
        cancel check that fires drops only the file in progress.
        """
        first_upload = not self._uploads
        try:
            for idx, source in enumerate(sources):
                yield from self._ingest_steps(source, idx, len(sources), should_cancel)
        finally:
            if self.select_all_on_upload and self._records and (first_upload or self.filters.is_empty):
                self.filters = select_all(self._records)

    def ingest_batch(
        self,
        sources: Sequence[SourceFile],
        *,
        on_progress: Optional[Callable[[IngestProgress], None]] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> List[IngestResult]:
        results: List[IngestResult] = []
        for event in self.iter_ingest(sources, should_cancel=should_cancel):
            if isinstance(event, IngestResult):
                results.append(event)
            elif on_progress is not None:
                on_progress(event)
        return results

    async def ingest_batch_async(
        self,
        sources: Sequence[SourceFile],
        *,
        on_progress: Optional[Callable[[IngestProgress], None]] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> List[IngestResult]:
        results: List[IngestResult] = []
        for event in self.iter_ingest(sources, should_cancel=should_cancel):
            if isinstance(event, IngestResult):
                results.append(event)
            elif on_progress is not None:
                on_progress(event)
            await asyncio.sleep(0)
        return results

    def ingest_file(self, name: str, rows: List[List[object]]) -> IngestResult:
        return self.ingest_batch([SourceFile(name=name, rows=rows)])[0]

    # ---------- edits ----------
    def remove_file(self, file_name: str) -> int:
        before = len(self._records)
        self._records = [r for r in self._records if r.file_name != file_name]
        self._uploads = [u for u in self._uploads if u.name != file_name]
        removed = before - len(self._records)
        self.table.reset_page()
        logger.info("removed %s: %d records", file_name, removed)
        return removed

    def edit_cell(self, index: int, column: str, value: object) -> TransformedRecord:
        attr = FIELD_KEYS.get(column)
        if attr is None or column not in self.record_keys():
            raise ConfigurationError(f"Column {column!r} is not part of the current records")
        if not 0 <= index < len(self._records):
            raise RecordIndexError(f"No record at index {index}")
        updated = replace(self._records[index], **{attr: "" if value is None else str(value)})
        self._records[index] = updated
        self.table.reset_page()
        return updated

    def rename_file(self, old_name: str, new_name: str) -> int:
        new_name = (new_name or "").strip()
        if not new_name:
            raise ConfigurationError("New file name must not be empty")
        count = 0
        for idx, record in enumerate(self._records):
            if record.file_name == old_name:
                self._records[idx] = replace(record, file_name=new_name)
                count += 1
        self._uploads = [replace(u, name=new_name) if u.name == old_name else u for u in self._uploads]
        self.table.reset_page()
        logger.info("renamed %s -> %s on %d records", old_name, new_name, count)
        return count

    def file_names(self) -> List[str]:
        return list(dict.fromkeys(r.get(FILE_NAME) for r in self._records))

    def clear(self) -> None:
        self._records = []
        self._uploads = []
        self.display_names = {}
        self.table = TableView(page_size=self.table.page_size)
        self.filters = ChartFilterSet()
        logger.info("session cleared")

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

from sov_engine.config import DEFAULT_PAGE_SIZE
from sov_engine.records import IMPRESSION, MONTH, YEAR, TransformedRecord, month_index, parse_impression


T = TypeVar("T")

_LEADING_INT = re.compile(r"^\s*[+-]?\d+")


def _year_value(value: Optional[str]) -> int:
    match = _LEADING_INT.match(value or "")
    return int(match.group(0)) if match else 0


def _text_value(value: Optional[str]) -> str:
    return (value or "").lower()


SORT_KEYS: Dict[str, Callable[[Optional[str]], object]] = {
    YEAR: _year_value,
    MONTH: month_index,
    IMPRESSION: parse_impression,
}


@dataclass(frozen=True)
class SortState:
    key: Optional[str] = None
    direction: str = "asc"

    def toggle(self, key: str) -> "SortState":
        """Same key flips direction; a new key starts ascending."""
        if key == self.key:
            return SortState(key=key, direction="desc" if self.direction == "asc" else "asc")
        return SortState(key=key, direction="asc")


def sort_indices(records: Sequence[TransformedRecord], sort: SortState) -> List[int]:
    """Positions of `records` in display order; ties keep collection order."""
    order = list(range(len(records)))
    if not sort.key:
        return order
    to_key = SORT_KEYS.get(sort.key, _text_value)
    return sorted(order, key=lambda i: to_key(records[i].get(sort.key)), reverse=sort.direction == "desc")


def sort_records(records: Sequence[TransformedRecord], sort: SortState) -> List[TransformedRecord]:
    return [records[i] for i in sort_indices(records, sort)]


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    page: int
    page_size: int
    total_items: int

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(self.total_items / self.page_size))


def paginate(items: Sequence[T], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    page_size = max(1, int(page_size))
    page_count = max(1, math.ceil(len(items) / page_size))
    page = max(1, min(int(page), page_count))
    start = (page - 1) * page_size
    return Page(items=list(items[start:start + page_size]), page=page, page_size=page_size, total_items=len(items))


@dataclass
class TableView:
    sort: SortState = field(default_factory=SortState)
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def sort_by(self, key: str) -> None:
        self.sort = self.sort.toggle(key)
        self.reset_page()

    def set_page(self, page: int) -> None:
        self.page = max(1, int(page))

    def set_page_size(self, page_size: int) -> None:
        self.page_size = max(1, int(page_size))
        self.reset_page()

    def reset_page(self) -> None:
        self.page = 1

    def render(self, records: Sequence[TransformedRecord]) -> Page[TransformedRecord]:
        return paginate(sort_records(records, self.sort), self.page, self.page_size)

    def render_indexed(self, records: Sequence[TransformedRecord]) -> Page[Tuple[int, TransformedRecord]]:
        # index is the record's position in the session collection, for edit_cell
        pairs = [(i, records[i]) for i in sort_indices(records, self.sort)]
        return paginate(pairs, self.page, self.page_size)

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence

from sov_engine.records import AD_TYPE, BRAND_NAME, FILE_NAME, MEDIA_TYPE, MONTH, YEAR, TransformedRecord


# Filter dimension -> record display key.
FILTER_DIMENSIONS: Dict[str, str] = {
    "file_names": FILE_NAME,
    "brands": BRAND_NAME,
    "years": YEAR,
    "ad_types": AD_TYPE,
    "media_types": MEDIA_TYPE,
    "months": MONTH,
}


@dataclass(frozen=True)
class ChartFilterSet:
    file_names: FrozenSet[str] = field(default_factory=frozenset)
    brands: FrozenSet[str] = field(default_factory=frozenset)
    years: FrozenSet[str] = field(default_factory=frozenset)
    ad_types: FrozenSet[str] = field(default_factory=frozenset)
    media_types: FrozenSet[str] = field(default_factory=frozenset)
    months: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not any(getattr(self, dim) for dim in FILTER_DIMENSIONS)

    def with_value(self, dimension: str, value: str, selected: bool) -> "ChartFilterSet":
        if dimension not in FILTER_DIMENSIONS:
            raise KeyError(dimension)
        current: FrozenSet[str] = getattr(self, dimension)
        updated = current | {value} if selected else current - {value}
        return replace(self, **{dimension: frozenset(updated)})

    def to_dict(self) -> Dict[str, List[str]]:
        return {dim: sorted(getattr(self, dim)) for dim in FILTER_DIMENSIONS}


@dataclass(frozen=True)
class FilterOptions:
    file_names: List[str] = field(default_factory=list)
    brands: List[str] = field(default_factory=list)
    years: List[str] = field(default_factory=list)
    ad_types: List[str] = field(default_factory=list)
    media_types: List[str] = field(default_factory=list)
    months: List[str] = field(default_factory=list)


def _as_str_set(values: Optional[Iterable[object]]) -> FrozenSet[str]:
    if not values:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    return frozenset(str(v) for v in values if v is not None)


def normalize_filters(raw: dict) -> ChartFilterSet:
    raw = raw or {}
    return ChartFilterSet(**{dim: _as_str_set(raw.get(dim)) for dim in FILTER_DIMENSIONS})


def record_matches(record: TransformedRecord, filters: ChartFilterSet) -> bool:
    for dim, key in FILTER_DIMENSIONS.items():
        allowed: FrozenSet[str] = getattr(filters, dim)
        # An empty selection means "no restriction", never "exclude all".
        if allowed and record.get(key) not in allowed:
            return False
    return True


def apply_filters(records: Sequence[TransformedRecord], filters: Optional[ChartFilterSet]) -> List[TransformedRecord]:
    if filters is None or filters.is_empty:
        return list(records)
    return [r for r in records if record_matches(r, filters)]


def _distinct(records: Sequence[TransformedRecord], key: str) -> List[str]:
    seen: Dict[str, None] = {}
    for r in records:
        value = r.get(key)
        if value:
            seen.setdefault(value, None)
    return list(seen)


def filter_options(records: Sequence[TransformedRecord]) -> FilterOptions:
    """Distinct values per dimension over the unfiltered collection."""
    return FilterOptions(
        file_names=_distinct(records, FILE_NAME),
        brands=_distinct(records, BRAND_NAME),
        years=sorted(_distinct(records, YEAR)),
        ad_types=_distinct(records, AD_TYPE),
        media_types=_distinct(records, MEDIA_TYPE),
        months=_distinct(records, MONTH),
    )


def select_all(records: Sequence[TransformedRecord]) -> ChartFilterSet:
    opts = filter_options(records)
    return ChartFilterSet(**{dim: frozenset(getattr(opts, dim)) for dim in FILTER_DIMENSIONS})

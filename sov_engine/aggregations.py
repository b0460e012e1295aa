from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from sov_engine.config import UNKNOWN_LABEL, YEAR_TOTAL_LABEL
from sov_engine.filters import ChartFilterSet, apply_filters
from sov_engine.records import TransformedRecord, month_index, records_frame


CATEGORY_DIMENSIONS = {"ad_type": "Ad Type", "media_type": "Media Type"}


def _pct(value: float, denominator: float) -> float:
    if not denominator or denominator <= 0:
        return 0.0
    out = value / denominator * 100
    return 0.0 if out != out else out


@dataclass(frozen=True)
class AggregatedEntry:
    name: str
    value: float
    percentage: float
    other_brands: List[str] = field(default_factory=list)

    @property
    def is_others(self) -> bool:
        return bool(self.other_brands)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name, "value": self.value, "percentage": round(self.percentage, 1)}
        if self.other_brands:
            out["other_brands"] = list(self.other_brands)
        return out


@dataclass(frozen=True)
class BrandTotals:
    entries: List[AggregatedEntry]
    total: float


@dataclass(frozen=True)
class BrandBreakdown:
    """One brand's impressions split by category, normalized to the brand's own total."""

    name: str
    values: Dict[str, float]
    other_brands: List[str] = field(default_factory=list)

    @property
    def total(self) -> float:
        return float(sum(self.values.values()))

    @property
    def shares(self) -> Dict[str, float]:
        total = self.total
        return {k: _pct(v, total) for k, v in self.values.items()}

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name}
        for category, share in self.shares.items():
            out[category] = round(share, 1)
            out[f"{category}Value"] = self.values[category]
        if self.other_brands:
            out["other_brands"] = list(self.other_brands)
        return out


@dataclass(frozen=True)
class TrendSeries:
    granularity: str
    periods: List[str]
    brands: List[str]
    values: Dict[str, Dict[str, float]]

    def to_rows(self) -> List[Dict[str, Any]]:
        rows = []
        for period in self.periods:
            row: Dict[str, Any] = {"period": period}
            for brand in self.brands:
                row[brand] = self.values.get(period, {}).get(brand, 0.0)
            rows.append(row)
        return rows


@dataclass(frozen=True)
class SovTable:
    granularity: str
    periods: List[str]
    brands: List[str]
    data: Dict[str, Dict[str, float]]
    totals: Dict[str, float]

    @property
    def grand_total(self) -> float:
        return float(sum(self.totals.values()))

    def value(self, period: str, brand: str) -> float:
        return self.data.get(period, {}).get(brand, 0.0)

    def period_percentage(self, period: str, brand: str) -> float:
        return _pct(self.value(period, brand), self.totals.get(period, 0.0))

    def period_share(self, period: str) -> float:
        return _pct(self.totals.get(period, 0.0), self.grand_total)

    @property
    def has_year_total(self) -> bool:
        return self.granularity == "month"

    def brand_total(self, brand: str) -> float:
        return float(sum(self.value(p, brand) for p in self.periods))

    def to_rows(self, display_mode: str = "percentage") -> List[Dict[str, Any]]:
        as_pct = display_mode == "percentage"
        rows: List[Dict[str, Any]] = []
        for period in self.periods:
            row: Dict[str, Any] = {"period": period}
            for brand in self.brands:
                row[brand] = self.period_percentage(period, brand) if as_pct else self.value(period, brand)
            row["total"] = self.period_share(period) if as_pct else self.totals.get(period, 0.0)
            rows.append(row)
        if self.has_year_total:
            grand = self.grand_total
            row = {"period": YEAR_TOTAL_LABEL}
            for brand in self.brands:
                row[brand] = _pct(self.brand_total(brand), grand) if as_pct else self.brand_total(brand)
            row["total"] = _pct(grand, grand) if as_pct else grand
            rows.append(row)
        return rows


def _frame(records: Sequence[TransformedRecord], filters: Optional[ChartFilterSet]) -> pd.DataFrame:
    df = records_frame(apply_filters(records, filters))
    df["brand"] = df["brand_name"].fillna("").astype(str).replace("", UNKNOWN_LABEL)
    return df


def period_key(df: pd.DataFrame, granularity: str) -> pd.Series:
    """Month periods carry their year ("January 2024") once the scope spans more than one year."""
    years = df["year"].fillna("").astype(str)
    if granularity == "year":
        return years
    months = df["month"].fillna("").astype(str)
    if years.nunique() > 1:
        return months + " " + years
    return months


def _month_period_order(label: str):
    month, _, year = label.rpartition(" ")
    if month and year.isdigit():
        return (int(year), month_index(month))
    return (0, month_index(label))


def order_periods(periods: Sequence[str], granularity: str) -> List[str]:
    if granularity == "year":
        def year_key(p: str):
            try:
                return (0, int(p))
            except ValueError:
                return (1, 0)
        return sorted(periods, key=year_key)
    return sorted(periods, key=_month_period_order)


def brand_totals(
    records: Sequence[TransformedRecord],
    filters: Optional[ChartFilterSet] = None,
    *,
    min_percentage: float = 0.0,
) -> BrandTotals:
    """Share of voice: summed impressions per brand over the filtered records."""
    df = _frame(records, filters)
    if df.empty:
        return BrandTotals(entries=[], total=0.0)

    sums = df.groupby("brand", sort=False)["impression_value"].sum()
    total = float(sums.sum())
    entries = []
    for name, value in sums.items():
        value = float(value)
        pct = _pct(value, total)
        if value <= 0 or pct < min_percentage:
            continue
        entries.append(AggregatedEntry(name=str(name), value=value, percentage=pct))
    entries.sort(key=lambda e: e.value, reverse=True)
    return BrandTotals(entries=entries, total=total)


def brand_category_breakdown(
    records: Sequence[TransformedRecord],
    filters: Optional[ChartFilterSet],
    dimension: str,
) -> List[BrandBreakdown]:
    """Per-brand distribution over ad types or media types."""
    if dimension not in CATEGORY_DIMENSIONS:
        raise ValueError(f"Unknown category dimension: {dimension}")
    df = _frame(records, filters)
    if df.empty or df[dimension].isna().all():
        return []

    df = df[df["impression_value"] > 0].copy()
    if df.empty:
        return []
    df["category"] = df[dimension].fillna("").astype(str).str.strip().replace("", UNKNOWN_LABEL)

    by_brand: Dict[str, Dict[str, float]] = {}
    grouped = df.groupby(["brand", "category"], sort=False)["impression_value"].sum()
    for (brand, category), value in grouped.items():
        by_brand.setdefault(str(brand), {})[str(category)] = float(value)

    rows = [BrandBreakdown(name=brand, values=values) for brand, values in by_brand.items()]
    rows = [r for r in rows if r.total > 0]
    rows.sort(key=lambda r: r.total, reverse=True)
    return rows


def brand_period_trend(
    records: Sequence[TransformedRecord],
    filters: Optional[ChartFilterSet],
    brands: Sequence[str],
    granularity: str = "month",
) -> TrendSeries:
    """Impressions per period for ``brands`` only (the SOV top-N selection)."""
    brands = list(brands)
    df = _frame(records, filters)
    if not df.empty:
        df = df[df["brand"].isin(brands)]
    if df.empty:
        return TrendSeries(granularity=granularity, periods=[], brands=brands, values={})

    df = df.assign(period=period_key(df, granularity))
    grouped = df.groupby(["period", "brand"], sort=False)["impression_value"].sum()
    values: Dict[str, Dict[str, float]] = {}
    for (period, brand), value in grouped.items():
        values.setdefault(str(period), {})[str(brand)] = float(value)
    return TrendSeries(
        granularity=granularity,
        periods=order_periods(list(values), granularity),
        brands=brands,
        values=values,
    )


def sov_crosstab(
    records: Sequence[TransformedRecord],
    filters: Optional[ChartFilterSet] = None,
    granularity: str = "month",
) -> SovTable:
    """Period x brand table with per-period totals."""
    df = _frame(records, filters)
    if df.empty:
        return SovTable(granularity=granularity, periods=[], brands=[], data={}, totals={})

    df = df.assign(period=period_key(df, granularity))
    grouped = df.groupby(["period", "brand"], sort=False)["impression_value"].sum()
    data: Dict[str, Dict[str, float]] = {}
    for (period, brand), value in grouped.items():
        data.setdefault(str(period), {})[str(brand)] = float(value)

    totals = {p: float(sum(v.values())) for p, v in data.items()}
    brand_sums = df.groupby("brand", sort=False)["impression_value"].sum()
    brands = [str(b) for b in sorted(brand_sums.index, key=lambda b: float(brand_sums[b]), reverse=True)]
    return SovTable(
        granularity=granularity,
        periods=order_periods(list(data), granularity),
        brands=brands,
        data=data,
        totals=totals,
    )

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from sov_engine.aggregations import BrandBreakdown, BrandTotals, SovTable, TrendSeries
from sov_engine.config import ColumnConfig
from sov_engine.records import TransformedRecord, record_keys


VIEW_TITLES = {
    "sov": "Share of Voice (SOV) - Impression Distribution",
    "ad_type": "Ad Type Distribution by Brand",
    "media_type": "Media Type Distribution by Brand",
    "trend": "Impression Trend by Brand",
    "crosstab": "SOV by Period and Brand",
}


def format_number(value: float) -> str:
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return str(value)


def format_percent(value: float, decimals: int = 1) -> str:
    return f"{float(value):.{decimals}f}%"


def records_to_frame(
    records: Sequence[TransformedRecord],
    config: ColumnConfig,
    display_names: Optional[Mapping[str, str]] = None,
) -> pd.DataFrame:
    keys = record_keys(config)
    df = pd.DataFrame([r.to_dict(config) for r in records], columns=keys)
    names = display_names or {}
    return df.rename(columns={k: names.get(k) or k for k in keys})


def records_to_tsv(
    records: Sequence[TransformedRecord],
    config: ColumnConfig,
    display_names: Optional[Mapping[str, str]] = None,
) -> str:
    """Tab-separated copy of the record table, header row first."""
    if not records:
        return ""
    keys = record_keys(config)
    names = display_names or {}
    lines = ["\t".join(names.get(k) or k for k in keys)]
    for r in records:
        lines.append("\t".join(r.get(k) or "" for k in keys))
    return "\n".join(lines)


def records_to_csv(
    records: Sequence[TransformedRecord],
    config: ColumnConfig,
    display_names: Optional[Mapping[str, str]] = None,
) -> bytes:
    return records_to_frame(records, config, display_names).to_csv(index=False).encode("utf-8")


def breakdown_categories(rows: Sequence[BrandBreakdown]) -> List[str]:
    seen: Dict[str, None] = {}
    for row in rows:
        for category in row.values:
            seen.setdefault(category, None)
    return list(seen)


def _sov_lines(result: BrandTotals) -> List[str]:
    lines = ["Brand\tImpressions\tPercentage\tIncluded Brands"]
    for e in result.entries:
        lines.append("\t".join([e.name, format_number(e.value), format_percent(e.percentage), ", ".join(e.other_brands)]))
    return lines


def _breakdown_lines(rows: Sequence[BrandBreakdown]) -> List[str]:
    categories = breakdown_categories(rows)
    header = ["Brand"] + [f"{c} %" for c in categories] + [f"{c} Value" for c in categories] + ["Included Brands"]
    lines = ["\t".join(header)]
    for row in rows:
        shares = row.shares
        cells = [row.name]
        cells += [format_percent(shares.get(c, 0.0)) for c in categories]
        cells += [format_number(row.values.get(c, 0.0)) for c in categories]
        cells.append(", ".join(row.other_brands))
        lines.append("\t".join(cells))
    return lines


def _trend_lines(result: TrendSeries) -> List[str]:
    lines = ["\t".join(["Period"] + result.brands)]
    for row in result.to_rows():
        lines.append("\t".join([row["period"]] + [format_number(row[b]) for b in result.brands]))
    return lines


def _crosstab_lines(result: SovTable, display_mode: str) -> List[str]:
    as_pct = display_mode == "percentage"
    fmt = format_percent if as_pct else format_number
    lines = ["\t".join(["Period"] + result.brands + ["Total"])]
    for row in result.to_rows(display_mode):
        lines.append("\t".join([row["period"]] + [fmt(row[b]) for b in result.brands] + [fmt(row["total"])]))
    return lines


def view_to_tsv(view: str, result: Any, display_mode: str = "percentage") -> str:
    """Titled tab-separated export of one view, ready to paste into a sheet."""
    if view == "sov":
        body = _sov_lines(result) if result.entries else []
    elif view in ("ad_type", "media_type"):
        body = _breakdown_lines(result) if result else []
    elif view == "trend":
        body = _trend_lines(result) if result.periods else []
    elif view == "crosstab":
        body = _crosstab_lines(result, display_mode) if result.periods else []
    else:
        raise ValueError(f"Unknown view: {view}")
    if not body:
        return ""
    return "\n".join([VIEW_TITLES[view], ""] + body)


def view_payload(view: str, result: Any, display_mode: str = "percentage") -> Dict[str, Any]:
    """JSON-serializable form of an aggregation result."""
    if view == "sov":
        return {"view": view, "total": result.total, "rows": [e.to_dict() for e in result.entries]}
    if view in ("ad_type", "media_type"):
        return {"view": view, "categories": breakdown_categories(result), "rows": [r.to_dict() for r in result]}
    if view == "trend":
        return {
            "view": view,
            "granularity": result.granularity,
            "brands": result.brands,
            "periods": result.periods,
            "rows": result.to_rows(),
        }
    if view == "crosstab":
        return {
            "view": view,
            "granularity": result.granularity,
            "display_mode": display_mode,
            "brands": result.brands,
            "periods": result.periods,
            "totals": result.totals,
            "grand_total": result.grand_total,
            "rows": result.to_rows(display_mode),
        }
    raise ValueError(f"Unknown view: {view}")

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import altair as alt
import pandas as pd

from sov_engine.aggregations import BrandBreakdown, BrandTotals, SovTable, TrendSeries
from sov_engine.config import COLOR_SCHEMES, DEFAULT_COLOR_SCHEME

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _palette(scheme: str) -> List[str]:
    return COLOR_SCHEMES.get(scheme) or COLOR_SCHEMES[DEFAULT_COLOR_SCHEME]


def sov_chart(result: BrandTotals, scheme: str = DEFAULT_COLOR_SCHEME) -> alt.Chart:
    df = pd.DataFrame(
        [
            {
                "brand": e.name,
                "impressions": e.value,
                "percentage": round(e.percentage, 1),
                "included_brands": ", ".join(e.other_brands),
            }
            for e in result.entries
        ],
        columns=["brand", "impressions", "percentage", "included_brands"],
    )
    return (
        alt.Chart(df)
        .mark_arc(innerRadius=60)
        .encode(
            theta=alt.Theta("impressions:Q", stack=True),
            color=alt.Color("brand:N", sort=None, scale=alt.Scale(range=_palette(scheme))),
            tooltip=[
                "brand",
                alt.Tooltip("impressions:Q", format=","),
                alt.Tooltip("percentage:Q", format=".1f", title="SOV %"),
                "included_brands",
            ],
        )
        .properties(height=320)
    )


def breakdown_chart(rows: Sequence[BrandBreakdown], category_title: str, scheme: str = DEFAULT_COLOR_SCHEME) -> alt.Chart:
    records = []
    for row in rows:
        shares = row.shares
        for category, value in row.values.items():
            records.append(
                {
                    "brand": row.name,
                    "category": category,
                    "share": round(shares[category], 1),
                    "impressions": value,
                    "included_brands": ", ".join(row.other_brands),
                }
            )
    df = pd.DataFrame(records, columns=["brand", "category", "share", "impressions", "included_brands"])
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("share:Q", stack="normalize", title="% of brand impressions", axis=alt.Axis(format="%")),
            y=alt.Y("brand:N", sort=[r.name for r in rows], title="Brand"),
            color=alt.Color("category:N", title=category_title, scale=alt.Scale(range=_palette(scheme))),
            tooltip=[
                "brand",
                "category",
                alt.Tooltip("share:Q", format=".1f", title="%"),
                alt.Tooltip("impressions:Q", format=","),
                "included_brands",
            ],
        )
        .properties(height=max(160, 28 * len(rows)))
    )


def trend_chart(result: TrendSeries, scheme: str = DEFAULT_COLOR_SCHEME) -> alt.Chart:
    df = pd.DataFrame(
        [{"period": p, "brand": b, "impressions": result.values.get(p, {}).get(b, 0.0)} for p in result.periods for b in result.brands],
        columns=["period", "brand", "impressions"],
    )
    title = "Year" if result.granularity == "year" else "Month"
    return (
        alt.Chart(df)
        .mark_line(point=True)
        .encode(
            x=alt.X("period:O", sort=result.periods, title=title),
            y=alt.Y("impressions:Q", axis=alt.Axis(format=",")),
            color=alt.Color("brand:N", sort=result.brands, scale=alt.Scale(range=_palette(scheme))),
            tooltip=["period", "brand", alt.Tooltip("impressions:Q", format=",")],
        )
        .properties(height=300)
    )


def crosstab_chart(result: SovTable, scheme: str = DEFAULT_COLOR_SCHEME) -> alt.Chart:
    df = pd.DataFrame(
        [
            {
                "period": p,
                "brand": b,
                "impressions": result.value(p, b),
                "share": round(result.period_percentage(p, b), 1),
            }
            for p in result.periods
            for b in result.brands
        ],
        columns=["period", "brand", "impressions", "share"],
    )
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("period:O", sort=result.periods),
            y=alt.Y("impressions:Q", stack="normalize", axis=alt.Axis(format="%"), title="Share of period"),
            color=alt.Color("brand:N", sort=result.brands, scale=alt.Scale(range=_palette(scheme))),
            tooltip=["period", "brand", alt.Tooltip("impressions:Q", format=","), alt.Tooltip("share:Q", format=".1f")],
        )
        .properties(height=300)
    )


def chart_for_view(view: str, result: Any, scheme: str = DEFAULT_COLOR_SCHEME) -> Optional[alt.Chart]:
    if view == "sov":
        return sov_chart(result, scheme)
    if view == "ad_type":
        return breakdown_chart(result, "Ad Type", scheme)
    if view == "media_type":
        return breakdown_chart(result, "Media Type", scheme)
    if view == "trend":
        return trend_chart(result, scheme)
    if view == "crosstab":
        return crosstab_chart(result, scheme)
    return None

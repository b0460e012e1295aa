from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple


HEADER_ROWS_TO_SKIP = 18
SUMMARY_ROW_MARKERS: Tuple[str, ...] = ("all ad types", "all media types", "all brands", "all ")
SUM_COLUMN_MARKER = "sum"
PLACEHOLDER_VALUE = "-"
UNKNOWN_LABEL = "Unknown"
YEAR_TOTAL_LABEL = "Year Total"

DEFAULT_CHUNK_SIZE = 500
DEFAULT_PAGE_SIZE = 50
DEFAULT_MAX_BRANDS = 10

MONTH_ORDER: List[str] = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
UNKNOWN_MONTH_INDEX = 999

GRANULARITIES = ("month", "year")
DISPLAY_MODES = ("percentage", "value")

COLOR_SCHEMES: Dict[str, List[str]] = {
    "new-heritage-red": ["#FF3534", "#E62E2A", "#CC2620", "#B31F16", "#99170C", "#801002", "#FF5854", "#FF7874"],
    "sunburst": ["#FFB84E", "#E6A344", "#CC8E3A", "#B37930", "#996426", "#804F1C", "#FFCC6E", "#FFDD8E"],
    "flamingo": ["#F585DA", "#DC76C1", "#C267A8", "#A9588F", "#8F4976", "#763A5D", "#F799E4", "#F9ADEE"],
    "lake": ["#3197EE", "#2C88D5", "#2679BC", "#216AA3", "#1B5B8A", "#164C71", "#51A7F1", "#71B7F4"],
    "mint": ["#06B8A2", "#05A692", "#049482", "#038272", "#027062", "#015E52", "#26C8B2", "#46D8C2"],
    "orchid": ["#806FEA", "#7363D1", "#6657B8", "#594B9F", "#4C3F86", "#3F336D", "#9485ED", "#A89BF0"],
}
DEFAULT_COLOR_SCHEME = "new-heritage-red"


@dataclass(frozen=True)
class ColumnConfig:
    include_brand: bool = True
    include_media_type: bool = True
    include_ad_type: bool = True


@dataclass(frozen=True)
class ChartConfig:
    sov_max_brands: int = DEFAULT_MAX_BRANDS
    ad_type_max_brands: int = DEFAULT_MAX_BRANDS
    media_type_max_brands: int = DEFAULT_MAX_BRANDS
    min_percentage: float = 0.0
    period_granularity: str = "month"
    display_mode: str = "percentage"


def _as_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _as_int(value: object, default: int, lo: int, hi: int) -> int:
    try:
        out = int(value)  # type: ignore[arg-type]
    except Exception:
        out = default
    return max(lo, min(hi, out))


def _as_float(value: object, default: float, lo: float, hi: float) -> float:
    try:
        out = float(value)  # type: ignore[arg-type]
    except Exception:
        out = default
    if out != out:
        out = default
    return max(lo, min(hi, out))


def normalize_column_config(raw: dict) -> ColumnConfig:
    raw = raw or {}
    return ColumnConfig(
        include_brand=_as_bool(raw.get("include_brand"), True),
        include_media_type=_as_bool(raw.get("include_media_type"), True),
        include_ad_type=_as_bool(raw.get("include_ad_type"), True),
    )


def normalize_chart_config(raw: dict) -> ChartConfig:
    raw = raw or {}

    granularity = str(raw.get("period_granularity") or "month").strip().lower()
    if granularity not in GRANULARITIES:
        granularity = "month"

    display_mode = str(raw.get("display_mode") or "percentage").strip().lower()
    if display_mode not in DISPLAY_MODES:
        display_mode = "percentage"

    return ChartConfig(
        sov_max_brands=_as_int(raw.get("sov_max_brands", DEFAULT_MAX_BRANDS), DEFAULT_MAX_BRANDS, 1, 100),
        ad_type_max_brands=_as_int(raw.get("ad_type_max_brands", DEFAULT_MAX_BRANDS), DEFAULT_MAX_BRANDS, 1, 100),
        media_type_max_brands=_as_int(raw.get("media_type_max_brands", DEFAULT_MAX_BRANDS), DEFAULT_MAX_BRANDS, 1, 100),
        min_percentage=_as_float(raw.get("min_percentage", 0.0), 0.0, 0.0, 100.0),
        period_granularity=granularity,
        display_mode=display_mode,
    )

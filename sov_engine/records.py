from __future__ import annotations

import re
from dataclasses import dataclass, fields
from typing import Dict, Iterable, List, Optional

import pandas as pd

from sov_engine.config import MONTH_ORDER, UNKNOWN_MONTH_INDEX, ColumnConfig


FILE_NAME = "File Name"
BRAND_NAME = "Brand Name"
MEDIA_TYPE = "Media Type"
AD_TYPE = "Ad Type"
YEAR = "Year"
MONTH = "Month"
IMPRESSION = "Impression (ad contact)"

# Display key -> dataclass attribute, in canonical column order.
FIELD_KEYS: Dict[str, str] = {
    FILE_NAME: "file_name",
    BRAND_NAME: "brand_name",
    MEDIA_TYPE: "media_type",
    AD_TYPE: "ad_type",
    YEAR: "year",
    MONTH: "month",
    IMPRESSION: "impression",
}

_LEADING_FLOAT = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass(frozen=True)
class TransformedRecord:
    file_name: str
    year: str
    month: str
    impression: str
    brand_name: Optional[str] = None
    media_type: Optional[str] = None
    ad_type: Optional[str] = None

    def get(self, key: str) -> Optional[str]:
        attr = FIELD_KEYS.get(key)
        if attr is None:
            return None
        return getattr(self, attr)

    def to_dict(self, config: Optional[ColumnConfig] = None) -> Dict[str, str]:
        keys = record_keys(config) if config is not None else [k for k in FIELD_KEYS if self.get(k) is not None]
        return {k: (self.get(k) or "") for k in keys}


def record_keys(config: ColumnConfig) -> List[str]:
    """Display keys present on records produced under ``config``, in column order."""
    keys = [FILE_NAME]
    if config.include_brand:
        keys.append(BRAND_NAME)
    if config.include_media_type:
        keys.append(MEDIA_TYPE)
    if config.include_ad_type:
        keys.append(AD_TYPE)
    keys.extend([YEAR, MONTH, IMPRESSION])
    return keys


def is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def cell_text(value: object) -> str:
    """Render a decoded spreadsheet cell as text; whole floats lose their ``.0``."""
    if is_missing(value):
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_empty_cell(value: object) -> bool:
    return cell_text(value) == ""


def parse_impression(value: object) -> float:
    """Comma-stripped leading-number parse. Anything unparseable counts as 0."""
    if is_missing(value):
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        out = float(value)
    else:
        match = _LEADING_FLOAT.match(str(value).replace(",", ""))
        if not match:
            return 0.0
        out = float(match.group(0))
    if out != out or out in (float("inf"), float("-inf")):
        return 0.0
    return out


def month_index(name: object) -> int:
    try:
        return MONTH_ORDER.index(str(name))
    except ValueError:
        return UNKNOWN_MONTH_INDEX


def records_frame(records: Iterable[TransformedRecord]) -> pd.DataFrame:
    """Flat frame of records with a numeric ``impression_value`` column."""
    cols = [f.name for f in fields(TransformedRecord)]
    df = pd.DataFrame([[getattr(r, c) for c in cols] for r in records], columns=cols)
    df["impression_value"] = df["impression"].map(parse_impression).astype(float)
    return df

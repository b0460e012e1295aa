from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import List

import pandas as pd

from sov_engine.errors import DecodeError


logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}
CSV_SUFFIXES = {".csv", ".txt"}


def decode_workbook(content: bytes, file_name: str) -> List[List[object]]:
    """First sheet of an export as a header-less grid, empty cells as ""."""
    suffix = Path(file_name).suffix.lower()
    try:
        if suffix in CSV_SUFFIXES:
            # metadata lines are narrower than the table below them
            rows = list(csv.reader(io.StringIO(content.decode("utf-8-sig"))))
            raw = pd.DataFrame(rows, dtype=object)
        elif suffix in EXCEL_SUFFIXES or not suffix:
            raw = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, dtype=object)
        else:
            raise DecodeError(file_name, f"unsupported file type {suffix!r}")
    except DecodeError:
        raise
    except Exception as exc:
        logger.warning("decode failed for %s: %s", file_name, exc)
        raise DecodeError(file_name, str(exc)) from exc

    raw = raw.astype(object).where(raw.notna(), "")
    return raw.values.tolist()

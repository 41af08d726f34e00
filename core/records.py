"""Fixed sheet layouts and the row-array -> typed-frame mapping.

Sheet ranges return lists of string cells with the header row already
excluded. Each dashboard dataset maps those cells positionally onto a fixed
column layout; numeric cells are read with prefix semantics so that
``"12,800"`` becomes 12 and ``"9.74 SAR"`` becomes 9.74.
"""

from __future__ import annotations

import math
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd


MONTHLY = "monthly"
SERVICES = "services"
CAMPAIGNS = "campaigns"

# (column, kind) in sheet order
LAYOUTS: Dict[str, List[tuple]] = {
    MONTHLY: [
        ("month", "str"),
        ("income", "int"),
        ("target", "int"),
        ("hours", "int"),
        ("hour_target", "int"),
        ("operational", "int"),
    ],
    SERVICES: [
        ("name", "str"),
        ("value", "int"),
    ],
    CAMPAIGNS: [
        ("name", "str"),
        ("spent", "int"),
        ("leads", "int"),
        ("cpl", "float"),
        ("profile_visits", "int"),
    ],
}

WIRE_COLUMNS = {
    "hour_target": "hourTarget",
    "profile_visits": "profileVisits",
}

_INT_PREFIX = re.compile(r"^\s*([+-]?[0-9]+)")
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)")


def layout_columns(kind: str) -> List[str]:
    return [col for col, _ in LAYOUTS[kind]]


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


def parse_int(value: object) -> Optional[int]:
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        if math.isinf(value):
            return None
        return int(math.trunc(value))
    match = _INT_PREFIX.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def parse_float(value: object) -> Optional[float]:
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        return float(value)
    match = _FLOAT_PREFIX.match(str(value))
    if not match:
        return None
    return float(match.group(1))


def parse_text(value: object) -> Optional[str]:
    if _is_missing(value):
        return None
    s = str(value).strip()
    return s or None


_PARSERS = {"str": parse_text, "int": parse_int, "float": parse_float}
_DTYPES = {"str": "string", "int": "Int64", "float": "float64"}


def parse_row(kind: str, row: Sequence[object]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for idx, (col, col_kind) in enumerate(LAYOUTS[kind]):
        cell = row[idx] if idx < len(row) else None
        out[col] = _PARSERS[col_kind](cell)
    return out


def empty_frame(kind: str) -> pd.DataFrame:
    return pd.DataFrame({col: pd.Series(dtype=_DTYPES[k]) for col, k in LAYOUTS[kind]})


def rows_to_frame(kind: str, rows: Optional[Iterable[Sequence[object]]]) -> pd.DataFrame:
    parsed = [parse_row(kind, row) for row in (rows or []) if row is not None]
    if not parsed:
        return empty_frame(kind)
    data = {}
    for col, col_kind in LAYOUTS[kind]:
        values = [r[col] for r in parsed]
        if col_kind == "float":
            data[col] = pd.Series([np.nan if v is None else v for v in values], dtype="float64")
        else:
            data[col] = pd.Series(pd.array(values, dtype=_DTYPES[col_kind]))
    return pd.DataFrame(data)


def records_to_frame(kind: str, records: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """Build a typed frame from snake_case record dicts (sample data, fixtures)."""
    cols = layout_columns(kind)
    return rows_to_frame(kind, [[rec.get(c) for c in cols] for rec in records])


def _plain(value: object) -> object:
    if value is None or value is pd.NA:
        return None
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, (float, np.floating)):
        return None if math.isnan(value) else float(value)
    return value


def to_wire_frame(df: pd.DataFrame) -> pd.DataFrame:
    return df.rename(columns=WIRE_COLUMNS)


def to_wire_records(kind: str, df: Optional[pd.DataFrame]) -> List[Dict[str, Any]]:
    if df is None or df.empty:
        return []
    cols = [c for c in layout_columns(kind) if c in df.columns]
    out: List[Dict[str, Any]] = []
    for rec in df[cols].to_dict(orient="records"):
        out.append({WIRE_COLUMNS.get(k, k): _plain(v) for k, v in rec.items()})
    return out

"""
engine/rows.py
--------------
Typed edge of the engine.

Raw rows arrive as mappings of lower-cased column name → string value
(the shape a CSV reader produces). Every builder calls rows_to_frame()
once at its boundary and works with typed pandas columns from then on;
no algorithm downstream touches a raw string.

Coercion rules
--------------
    numeric : strip everything except digits, '.' and '-', then parse.
              Empty or unparsable → 0.0       ("₹2,800" → 2800.0)
    text    : missing → "", surrounding whitespace stripped
    date    : ISO date or "YYYY-MM-DD HH:MM:SS" → naive Timestamp, else NaT.
              Offsets ("...Z", "+05:30") are converted to UTC, then dropped.

Malformed values never raise.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping

import pandas as pd

RawRow = Mapping[str, str]

_NON_NUMERIC = r"[^0-9.\-]+"
_NON_NUMERIC_RE = re.compile(_NON_NUMERIC)


def to_number(value: object) -> float:
    """Scalar version of the numeric coercion rule."""
    if value is None:
        return 0.0
    cleaned = _NON_NUMERIC_RE.sub("", str(value))
    try:
        number = float(cleaned)
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def numeric_column(series: pd.Series) -> pd.Series:
    """Vectorised to_number over a column of strings."""
    cleaned = series.fillna("").astype(str).str.replace(_NON_NUMERIC, "", regex=True)
    return pd.to_numeric(cleaned, errors="coerce").fillna(0.0).astype(float)


def text_column(series: pd.Series) -> pd.Series:
    return series.fillna("").astype(str).str.strip()


def date_column(series: pd.Series) -> pd.Series:
    text   = text_column(series)
    parsed = pd.to_datetime(text.where(text != ""), errors="coerce", format="mixed", utc=True)
    return parsed.dt.tz_convert(None)


def naive_timestamp(value: pd.Timestamp | str) -> pd.Timestamp:
    """Timestamp without timezone; aware values are converted to UTC first."""
    ts = pd.Timestamp(value)
    return ts.tz_convert(None) if ts.tzinfo is not None else ts


def rows_to_frame(
    rows:    Iterable[RawRow],
    numeric: Iterable[str] = (),
    text:    Iterable[str] = (),
    dates:   Iterable[str] = (),
) -> pd.DataFrame:
    """
    Build a DataFrame from raw rows and coerce the requested columns.

    Requested columns are always present in the result, even when no row
    carries them: missing numeric → 0.0, missing text → "", missing date → NaT.
    """
    df = pd.DataFrame.from_records([dict(r) for r in rows])

    def _raw(col: str) -> pd.Series:
        if col in df.columns:
            return df[col]
        return pd.Series([""] * len(df), index=df.index, dtype=object)

    for col in numeric:
        df[col] = numeric_column(_raw(col))
    for col in text:
        df[col] = text_column(_raw(col))
    for col in dates:
        df[col] = date_column(_raw(col))
    return df


def display_name(df: pd.DataFrame) -> pd.Series:
    """product_name, falling back to product_id, then 'Unknown'."""
    name = df["product_name"].where(df["product_name"] != "", df["product_id"])
    return name.where(name != "", "Unknown")

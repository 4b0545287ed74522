"""
engine/orders.py
----------------
Typed order frame shared by the cash-flow and performance builders.

Derived columns
---------------
    units        quantity, a missing or zero quantity counts as 1
    order_value  amount if > 0, else selling_price × units
    revenue      selling_price × units
    payment      payment_type, falling back to payment_method, else "Unknown"
    is_cod       payment is "cod" (case-insensitive)
    courier      courier, falling back to courier_partner, else "Unknown"
    order_ref    order_id, falling back to orderid, else "N/A"
    is_rto       rto / rto_status is "true", or status mentions "rto"
    remitted_on  remittance_date parsed (the raw text column is kept)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import pandas as pd

from engine.rows import RawRow, date_column, rows_to_frame

_NUMERIC = ("amount", "selling_price", "quantity", "remittance_days")

_TEXT = (
    "order_id", "orderid",
    "payment_type", "payment_method",
    "remitted", "remittance_date",
    "courier", "courier_partner",
    "rto", "rto_status", "rto_reason", "status",
    "destination_pincode", "destination_city", "destination_town", "city",
    "destination_state",
)

_DATES = ("order_date", "shipped_date", "delivered_date")


def first_filled(df: pd.DataFrame, columns: Sequence[str], default: str = "") -> pd.Series:
    """Row-wise first non-empty value across text columns."""
    out = pd.Series([default] * len(df), index=df.index, dtype=object)
    for col in reversed(columns):
        out = df[col].where(df[col] != "", out)
    return out


def orders_frame(order_rows: Iterable[RawRow]) -> pd.DataFrame:
    """Coerce raw order rows and derive the shared cash / performance columns."""
    df = rows_to_frame(order_rows, numeric=_NUMERIC, text=_TEXT, dates=_DATES)
    if df.empty:
        return df

    df["units"]       = df["quantity"].where(df["quantity"] != 0, 1.0)
    df["revenue"]     = df["selling_price"] * df["units"]
    df["order_value"] = df["amount"].where(df["amount"] > 0, df["revenue"])

    df["payment"]   = first_filled(df, ("payment_type", "payment_method"), "Unknown")
    df["is_cod"]    = df["payment"].str.lower() == "cod"
    df["courier"]   = first_filled(df, ("courier", "courier_partner"), "Unknown")
    df["order_ref"] = first_filled(df, ("order_id", "orderid"), "N/A")

    rto_flag     = first_filled(df, ("rto", "rto_status")).str.lower() == "true"
    df["is_rto"] = rto_flag | df["status"].str.contains("rto", case=False, regex=False)

    df["remitted_on"] = date_column(df["remittance_date"])
    return df

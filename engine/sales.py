"""
engine/sales.py
---------------
Per-product sales aggregates and the typed inventory snapshot.

Both the reorder scorer and the inventory overview join the same two
tables on product_id:

    aggregate_sales(order_rows)                  -> DataFrame indexed by product_id
        product     : first product_name seen (fallback id / "Unknown")
        units_sold  : Σ quantity  (a missing or zero quantity counts as 1)
        revenue     : Σ selling_price × quantity
        avg_price   : revenue / units_sold

    inventory_snapshot(inventory_rows, as_of)    -> DataFrame, one row per snapshot row
        available       = max(0, on_hand_qty - reserved_qty)
        days_in_stock   = whole days from first_received_date to as_of (0 if unknown)
        inventory_age   = same, falling back to last_restock_date (NaN if neither)
        plus the numeric snapshot fields as floats
"""

from __future__ import annotations

from collections.abc import Iterable

import pandas as pd

from engine.rows import RawRow, display_name, naive_timestamp, rows_to_frame

_SALES_COLUMNS = ["product", "units_sold", "revenue", "avg_price"]

_SNAPSHOT_NUMERIC = (
    "on_hand_qty", "reserved_qty", "daily_sales_velocity",
    "reorder_point", "reorder_qty", "cost_price",
)


def resolve_as_of(as_of: pd.Timestamp | str | None) -> pd.Timestamp:
    """Reference instant for age calculations; defaults to now."""
    return pd.Timestamp.now() if as_of is None else naive_timestamp(as_of)


def _days_since(dates: pd.Series, as_of: pd.Timestamp) -> pd.Series:
    return ((as_of - dates).dt.total_seconds() / 86_400).round().clip(lower=0)


def aggregate_sales(order_rows: Iterable[RawRow]) -> pd.DataFrame:
    """Units sold and revenue per product_id across all order rows."""
    df = rows_to_frame(
        order_rows,
        numeric=("selling_price", "quantity"),
        text=("product_id", "product_name"),
    )
    if df.empty:
        return pd.DataFrame(columns=_SALES_COLUMNS, index=pd.Index([], name="product_id"))

    df["product"]  = display_name(df)
    df["quantity"] = df["quantity"].where(df["quantity"] != 0, 1.0)
    df["revenue"]  = df["selling_price"] * df["quantity"]

    agg = df.groupby("product_id", sort=False).agg(
        product    = ("product", "first"),
        units_sold = ("quantity", "sum"),
        revenue    = ("revenue", "sum"),
    )
    agg["avg_price"] = (agg["revenue"] / agg["units_sold"]).where(agg["units_sold"] > 0, 0.0)
    return agg


def inventory_snapshot(
    inventory_rows: Iterable[RawRow],
    as_of:          pd.Timestamp | str | None = None,
) -> pd.DataFrame:
    """Typed snapshot with availability and stock age derived."""
    now = resolve_as_of(as_of)
    df  = rows_to_frame(
        inventory_rows,
        numeric=_SNAPSHOT_NUMERIC,
        text=("product_id", "product_name"),
        dates=("first_received_date", "last_restock_date"),
    )
    if df.empty:
        return df

    df["name"]          = display_name(df)
    df["available"]     = (df["on_hand_qty"] - df["reserved_qty"]).clip(lower=0)
    received            = _days_since(df["first_received_date"], now)
    df["days_in_stock"] = received.fillna(0.0)
    df["inventory_age"] = received.fillna(_days_since(df["last_restock_date"], now))
    return df


def margin_pct(avg_price: float, cost: float) -> int:
    """Whole-percent margin of avg_price over cost, floored at 0."""
    if avg_price <= 0:
        return 0
    return max(0, round((avg_price - cost) / avg_price * 100))

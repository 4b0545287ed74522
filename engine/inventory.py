"""
engine/inventory.py
-------------------
Inventory overview for the dashboard: headline counts, best sellers,
slow movers, reorder signals and where sales come from.

Public API
----------
    build_inventory_overview(order_rows, inventory_rows, as_of, seed) -> InventoryOverview

Sections
--------
    summary         total_products, low_stock_items (available <= reorder_point),
                    out_of_stock (available <= 0), avg_inventory_age (days)
    top_selling     top 10 products by revenue, margin against snapshot cost
    slow_moving     top 10 snapshot rows by days in stock
    reorder_signals engine/reorder.py output
    sales_density   top 10 destination pincodes by order count
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import pandas as pd

from engine.reorder import ReorderSignal, build_reorder_signals
from engine.rows import RawRow, rows_to_frame
from engine.sales import aggregate_sales, inventory_snapshot, margin_pct, resolve_as_of

TOP_N: int = 10


@dataclass
class InventoryOverview:
    summary:         dict
    top_selling:     list[dict]          = field(default_factory=list)
    slow_moving:     list[dict]          = field(default_factory=list)
    reorder_signals: list[ReorderSignal] = field(default_factory=list)
    sales_density:   list[dict]          = field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Sections
# ─────────────────────────────────────────────────────────────────────────────

def _summary(snapshot: pd.DataFrame) -> dict:
    if snapshot.empty:
        return {"total_products": 0, "low_stock_items": 0, "out_of_stock": 0, "avg_inventory_age": 0}

    ages = snapshot["inventory_age"].dropna()
    return {
        "total_products":    int(len(snapshot)),
        "low_stock_items":   int((snapshot["available"] <= snapshot["reorder_point"]).sum()),
        "out_of_stock":      int((snapshot["available"] <= 0).sum()),
        "avg_inventory_age": round(float(ages.mean())) if not ages.empty else 0,
    }


def _top_selling(sales: pd.DataFrame, snapshot: pd.DataFrame) -> list[dict]:
    if sales.empty:
        return []

    cost_by_id: dict[str, float] = {}
    if not snapshot.empty:
        for pid, cost in zip(snapshot["product_id"], snapshot["cost_price"]):
            if cost > 0:
                cost_by_id[pid] = float(cost)

    rows = [
        {
            "product":    agg.product,
            "units_sold": float(agg.units_sold),
            "revenue":    round(float(agg.revenue)),
            "margin_pct": margin_pct(float(agg.avg_price), cost_by_id.get(pid, 0.0)),
        }
        for pid, agg in zip(sales.index, sales.itertuples(index=False))
    ]
    rows.sort(key=lambda r: r["revenue"], reverse=True)
    return rows[:TOP_N]


def _slow_moving(sales: pd.DataFrame, snapshot: pd.DataFrame) -> list[dict]:
    if snapshot.empty:
        return []

    rows = [
        {
            "product":       row.name,
            "units_sold":    float(sales.at[row.product_id, "units_sold"]) if row.product_id in sales.index else 0.0,
            "inventory":     float(row.on_hand_qty),
            "days_in_stock": int(row.days_in_stock),
        }
        for row in snapshot.itertuples(index=False)
    ]
    rows.sort(key=lambda r: r["days_in_stock"], reverse=True)
    return rows[:TOP_N]


def _sales_density(order_rows: Sequence[RawRow]) -> list[dict]:
    df = rows_to_frame(
        order_rows,
        numeric=("selling_price", "quantity"),
        text=("destination_pincode",),
    )
    if df.empty:
        return []

    df["quantity"] = df["quantity"].where(df["quantity"] != 0, 1.0)
    df["revenue"]  = df["selling_price"] * df["quantity"]
    by_pin = df.groupby("destination_pincode", sort=False).agg(
        orders  = ("revenue", "size"),
        revenue = ("revenue", "sum"),
    )
    rows = [
        {"pincode": pin, "orders": int(v.orders), "revenue": round(float(v.revenue))}
        for pin, v in zip(by_pin.index, by_pin.itertuples(index=False))
    ]
    rows.sort(key=lambda r: r["orders"], reverse=True)
    return rows[:TOP_N]


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def build_inventory_overview(
    order_rows:     Iterable[RawRow],
    inventory_rows: Iterable[RawRow],
    as_of:          pd.Timestamp | str | None = None,
    seed:           int | None = None,
) -> InventoryOverview:
    """Assemble every inventory dashboard section from orders + snapshot."""
    now       = resolve_as_of(as_of)
    orders    = list(order_rows)
    inventory = list(inventory_rows)

    sales    = aggregate_sales(orders)
    snapshot = inventory_snapshot(inventory, now)

    return InventoryOverview(
        summary         = _summary(snapshot),
        top_selling     = _top_selling(sales, snapshot),
        slow_moving     = _slow_moving(sales, snapshot),
        reorder_signals = build_reorder_signals(orders, inventory, as_of=now, seed=seed),
        sales_density   = _sales_density(orders),
    )

"""
engine/performance.py
---------------------
Order performance analytics: how orders move through fulfilment, where
they come back as RTO and which couriers and payment methods cost money.

Public API
----------
    build_performance(order_rows) -> PerformanceReport

Sections
--------
    summary        overall_rto, cod_pct, avg_remittance_days, delivery_success_rate
    rto_rates      overall, by_payment_method, by_courier
    payment_split  share of orders per payment method
    order_funnel   placed / shipped / delivered / rto / remitted counts
    correlations   COD vs prepaid RTO gap (> 5 points), slowest remitting
                   courier (> 3 days)
    channel_data   courier_comparison, payment_comparison,
                   geographic_insights (top 4 regions by revenue),
                   rto_hotspots (top 4 pincodes by RTO rate)

Percentages are whole numbers rounded half up, computed against
max(1, total) so an empty group never divides by zero. Groups keep the
order in which they first appear in the rows; ties in a ranking keep
that order too.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

import pandas as pd

from engine.orders import first_filled, orders_frame
from engine.rows import RawRow

TOP_REGIONS:  int = 4
TOP_HOTSPOTS: int = 4

COD_RTO_GAP:          int   = 5    # percentage points
SLOW_REMITTANCE_DAYS: int   = 3
COURIER_DELAY_WEIGHT: float = 0.5

_PREPAID_METHODS = re.compile(r"prepaid|card|upi|net", re.IGNORECASE)

STATE_TO_REGION: dict[str, str] = {
    # North
    "delhi": "North", "haryana": "North", "punjab": "North", "uttar pradesh": "North",
    "uttarakhand": "North", "himachal pradesh": "North", "jammu and kashmir": "North",
    "ladakh": "North",
    # South
    "tamil nadu": "South", "kerala": "South", "karnataka": "South", "andhra pradesh": "South",
    "telangana": "South", "pondicherry": "South", "puducherry": "South",
    # East, north-east included
    "west bengal": "East", "odisha": "East", "assam": "East", "bihar": "East",
    "jharkhand": "East", "sikkim": "East", "arunachal pradesh": "East", "manipur": "East",
    "meghalaya": "East", "mizoram": "East", "nagaland": "East", "tripura": "East",
    # West
    "maharashtra": "West", "gujarat": "West", "rajasthan": "West", "goa": "West",
    "dadra and nagar haveli and daman and diu": "West", "daman and diu": "West",
    # Central
    "madhya pradesh": "Central", "chhattisgarh": "Central",
}


@dataclass
class PerformanceReport:
    summary:       dict
    rto_rates:     dict
    payment_split: list[dict] = field(default_factory=list)
    order_funnel:  dict       = field(default_factory=dict)
    correlations:  list[dict] = field(default_factory=list)
    channel_data:  dict       = field(default_factory=dict)


def _pct(part: float, whole: float) -> int:
    return math.floor(part / max(1, whole) * 100 + 0.5)


# ─────────────────────────────────────────────────────────────────────────────
# Sections
# ─────────────────────────────────────────────────────────────────────────────

def _funnel(df: pd.DataFrame) -> dict:
    status = df["status"]
    return {
        "placed":    int(len(df)),
        "shipped":   int((df["shipped_date"].notna()   | status.str.contains("shipped|in_transit", case=False)).sum()),
        "delivered": int((df["delivered_date"].notna() | status.str.contains("delivered", case=False)).sum()),
        "rto":       int(df["is_rto"].sum()),
        "remitted":  int((df["remitted_on"].notna()    | df["remitted"].str.contains("true", case=False)).sum()),
    }


def _by(df: pd.DataFrame, key: str) -> pd.DataFrame:
    """Orders, revenue, RTO count and mean positive remittance delay per key."""
    delays = df["remittance_days"].where(df["remittance_days"] > 0)
    return (
        df.assign(delay=delays)
        .groupby(key, sort=False)
        .agg(
            orders  = ("is_rto", "size"),
            revenue = ("revenue", "sum"),
            rto     = ("is_rto", "sum"),
            delay   = ("delay", "mean"),
        )
    )


def _comparison(groups: pd.DataFrame, label: str, with_delay: bool) -> list[dict]:
    rows = [
        {
            label:              name,
            "orders":           int(g.orders),
            "revenue":          round(float(g.revenue)),
            "rto":              _pct(g.rto, g.orders),
            "remittance_delay": math.floor(g.delay + 0.5) if with_delay and pd.notna(g.delay) else 0,
        }
        for name, g in zip(groups.index, groups.itertuples(index=False))
    ]
    rows.sort(key=lambda r: r["orders"], reverse=True)
    return rows


def _rto_hotspots(df: pd.DataFrame) -> list[dict]:
    spots = (
        df.assign(
            pincode = df["destination_pincode"].where(df["destination_pincode"] != "", "Unknown"),
            town    = first_filled(df, ("destination_city", "destination_town", "city")),
        )
        .groupby("pincode", sort=False)
        .agg(
            orders = ("is_rto", "size"),
            rto    = ("is_rto", "sum"),
            city   = ("town", lambda s: next((c for c in s if c), "")),
        )
    )
    rows = [
        {"pincode": pin, "city": g.city, "rto_rate": _pct(g.rto, g.orders)}
        for pin, g in zip(spots.index, spots.itertuples(index=False))
    ]
    rows.sort(key=lambda r: r["rto_rate"], reverse=True)
    return rows[:TOP_HOTSPOTS]


def _geographic_insights(df: pd.DataFrame) -> list[dict]:
    region  = df["destination_state"].str.lower().map(STATE_TO_REGION).fillna("Other")
    regions = _by(df.assign(region=region), "region")
    rows = [
        {"region": name, "orders": int(g.orders), "revenue": round(float(g.revenue)), "rto": _pct(g.rto, g.orders)}
        for name, g in zip(regions.index, regions.itertuples(index=False))
    ]
    rows.sort(key=lambda r: r["revenue"], reverse=True)
    return rows[:TOP_REGIONS]


def _correlations(by_payment: list[dict], couriers: list[dict]) -> list[dict]:
    found: list[dict] = []

    cod     = next((p["rate"] for p in by_payment if "cod" in p["method"].lower()), None)
    prepaid = next((p["rate"] for p in by_payment if _PREPAID_METHODS.search(p["method"])), None)
    if cod is not None and prepaid is not None and cod - prepaid > COD_RTO_GAP:
        found.append({
            "factor1":  "COD",
            "factor2":  "RTO%",
            "strength": round((cod - prepaid) / 100, 2),
            "insight":  f"COD orders have {cod}% RTO vs {prepaid}% for prepaid",
        })

    slowest = max(couriers, key=lambda c: c["remittance_delay"], default=None)
    if slowest and slowest["remittance_delay"] > SLOW_REMITTANCE_DAYS:
        found.append({
            "factor1":  slowest["courier"],
            "factor2":  "Remittance Delay",
            "strength": COURIER_DELAY_WEIGHT,
            "insight":  f"{slowest['courier']} shows avg remittance delay of {slowest['remittance_delay']} days",
        })

    return found


def _empty_report() -> PerformanceReport:
    return PerformanceReport(
        summary      = {"overall_rto": 0, "cod_pct": 0, "avg_remittance_days": 0, "delivery_success_rate": 0},
        rto_rates    = {"overall": 0, "by_payment_method": [], "by_courier": []},
        order_funnel = {"placed": 0, "shipped": 0, "delivered": 0, "rto": 0, "remitted": 0},
        channel_data = {"courier_comparison": [], "payment_comparison": [], "geographic_insights": [], "rto_hotspots": []},
    )


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def build_performance(order_rows: Iterable[RawRow]) -> PerformanceReport:
    """Assemble every performance section from raw order rows."""
    df = orders_frame(order_rows)
    if df.empty:
        return _empty_report()

    total   = len(df)
    funnel  = _funnel(df)
    overall = _pct(funnel["rto"], total)

    payments = _by(df, "payment")
    couriers = _by(df, "courier")

    by_payment = [
        {"method": name, "rate": _pct(g.rto, g.orders)}
        for name, g in zip(payments.index, payments.itertuples(index=False))
    ]
    by_courier = [
        {"courier": name, "rate": _pct(g.rto, g.orders)}
        for name, g in zip(couriers.index, couriers.itertuples(index=False))
    ]
    courier_comparison = _comparison(couriers, "courier", with_delay=True)

    days = df["remittance_days"][df["remittance_days"] >= 0]

    return PerformanceReport(
        summary = {
            "overall_rto":           overall,
            "cod_pct":               _pct(int(df["payment"].str.contains("cod", case=False).sum()), total),
            "avg_remittance_days":   round(float(days.mean()), 1) if not days.empty else 0,
            "delivery_success_rate": _pct(funnel["delivered"], total),
        },
        rto_rates = {
            "overall":           overall,
            "by_payment_method": by_payment,
            "by_courier":        by_courier,
        },
        payment_split = [
            {"method": name, "percentage": _pct(g.orders, total)}
            for name, g in zip(payments.index, payments.itertuples(index=False))
        ],
        order_funnel = funnel,
        correlations = _correlations(by_payment, courier_comparison),
        channel_data = {
            "courier_comparison":  courier_comparison,
            "payment_comparison":  _comparison(payments, "method", with_delay=False),
            "geographic_insights": _geographic_insights(df),
            "rto_hotspots":        _rto_hotspots(df),
        },
    )

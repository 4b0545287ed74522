"""
engine/cash.py
--------------
Cash position and cash-flow view from order rows: how much money is
actually free to spend on inventory, and when COD money lands.

Summary (always over every row):
    total_sales        = Σ order_value
    pending_cod        = Σ order_value  where COD, remitted != "true"
                                        and remittance_date is empty
    predicted_cash_in  = Σ order_value  where COD and 0 < remittance_days <= 7
    available_cash     = total_sales - pending_cod

Cash flow (build_cash_flow):
    Reference date = latest order_date / remittance_date in the data (now if
    none), so a window over old exports stays stable. With timeframe_days set,
    a date is inside the window when 0 <= ref - date <= timeframe_days.

    remittance_days   order counts in 1-3 / 4-7 / 8-14 / 15+ day buckets
                      (windowed on remittance_date)
    forecast          COD value per Monday-starting week, predicted
                      (order_date + remittance_days, 7 when unknown) against
                      actual (remittance_date). Last 4 weeks by default;
                      1 / 4 / 12 for windows up to 7 / 30 / more days.
                      actual_cash_in is None for weeks with no remittance.
    exceptions        first 10 orders with remittance_days > 14
    high_rto_orders   first 10 RTO orders

The advisor uses available_cash as the budget when the caller does not
supply one.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

import pandas as pd

from engine.orders import first_filled, orders_frame
from engine.rows import RawRow

REMITTANCE_BUCKETS: tuple[tuple[str, float, float], ...] = (
    ("1-3",  1,  3),
    ("4-7",  4,  7),
    ("8-14", 8,  14),
    ("15+",  15, float("inf")),
)

PREDICTION_HORIZON_DAYS: int = 7    # COD assumed remitted within a week
DELAYED_REMITTANCE_DAYS: int = 14
MAX_LISTED_ORDERS:       int = 10

_EMPTY_SUMMARY = {"total_sales": 0.0, "pending_cod": 0.0, "predicted_cash_in": 0.0, "available_cash": 0.0}


@dataclass
class CashFlow:
    summary:         dict
    forecast:        list[dict] = field(default_factory=list)
    remittance_days: list[dict] = field(default_factory=list)
    exceptions:      list[dict] = field(default_factory=list)
    high_rto_orders: list[dict] = field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Internal helpers
# ─────────────────────────────────────────────────────────────────────────────

def _summary(df: pd.DataFrame) -> dict:
    if df.empty:
        return dict(_EMPTY_SUMMARY)

    pending   = df["is_cod"] & (df["remitted"].str.lower() != "true") & (df["remittance_date"] == "")
    predicted = df["is_cod"] & (df["remittance_days"] > 0) & (df["remittance_days"] <= PREDICTION_HORIZON_DAYS)

    total_sales       = float(df["order_value"].sum())
    pending_cod       = float(df.loc[pending, "order_value"].sum())
    predicted_cash_in = float(df.loc[predicted, "order_value"].sum())

    return {
        "total_sales":       round(total_sales, 2),
        "pending_cod":       round(pending_cod, 2),
        "predicted_cash_in": round(predicted_cash_in, 2),
        "available_cash":    round(total_sales - pending_cod, 2),
    }


def _reference_date(df: pd.DataFrame) -> pd.Timestamp:
    latest = pd.concat([df["order_date"], df["remitted_on"]]).max()
    return pd.Timestamp.now() if pd.isna(latest) else latest


def _in_window(dates: pd.Series, ref: pd.Timestamp, timeframe_days: int | None) -> pd.Series:
    if not timeframe_days or timeframe_days <= 0:
        return dates.notna()
    age = (ref - dates).dt.total_seconds() / 86_400
    return dates.notna() & (age >= 0) & (age <= timeframe_days)


def _week_start(dates: pd.Series) -> pd.Series:
    day = dates.dt.normalize()
    return day - pd.to_timedelta(day.dt.weekday, unit="D")


def _forecast_weeks(timeframe_days: int | None) -> int:
    if not timeframe_days:
        return 4
    if timeframe_days <= 7:
        return 1
    if timeframe_days <= 30:
        return 4
    return 12


def _remittance_buckets(df: pd.DataFrame, ref: pd.Timestamp, timeframe_days: int | None) -> list[dict]:
    days = df["remittance_days"]
    if timeframe_days and timeframe_days > 0:
        days = days[_in_window(df["remitted_on"], ref, timeframe_days)]
    return [
        {"days": label, "count": int(((days >= lo) & (days <= hi)).sum())}
        for label, lo, hi in REMITTANCE_BUCKETS
    ]


def _forecast(df: pd.DataFrame, ref: pd.Timestamp, timeframe_days: int | None) -> list[dict]:
    cod = df[df["is_cod"]]
    if cod.empty:
        return []

    lag       = cod["remittance_days"].round().where(cod["remittance_days"] > 0, PREDICTION_HORIZON_DAYS)
    due       = cod["order_date"] + pd.to_timedelta(lag, unit="D")
    due_mask  = _in_window(due, ref, timeframe_days)
    paid_mask = _in_window(cod["remitted_on"], ref, timeframe_days)

    predicted = cod.loc[due_mask, "order_value"].groupby(_week_start(due[due_mask])).sum()
    actual    = cod.loc[paid_mask, "order_value"].groupby(_week_start(cod.loc[paid_mask, "remitted_on"])).sum()

    weeks = sorted(set(predicted.index) | set(actual.index))[-_forecast_weeks(timeframe_days):]
    return [
        {
            "week":              f"Week {n}",
            "week_start":        week.strftime("%Y-%m-%d"),
            "predicted_cash_in": round(float(predicted.get(week, 0.0)), 2),
            "actual_cash_in":    round(float(actual[week]), 2) if week in actual.index else None,
        }
        for n, week in enumerate(weeks, start=1)
    ]


def _exceptions(df: pd.DataFrame) -> list[dict]:
    late = df[df["remittance_days"] > DELAYED_REMITTANCE_DAYS].head(MAX_LISTED_ORDERS)
    return [
        {"order_id": r.order_ref, "amount": float(r.order_value), "delay": float(r.remittance_days), "courier": r.courier}
        for r in late.itertuples(index=False)
    ]


def _high_rto_orders(df: pd.DataFrame) -> list[dict]:
    rto = df[df["is_rto"]].head(MAX_LISTED_ORDERS)
    reasons = first_filled(rto, ("rto_reason",), "Unknown")
    return [
        {"order_id": r.order_ref, "amount": float(r.order_value), "reason": reason, "courier": r.courier}
        for r, reason in zip(rto.itertuples(index=False), reasons)
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def compute_cash_position(order_rows: Iterable[RawRow]) -> dict:
    """
    Summarise order cash flows.

    Returns:
        dict: total_sales, pending_cod, predicted_cash_in, available_cash
    """
    return _summary(orders_frame(order_rows))


def build_cash_flow(order_rows: Iterable[RawRow], timeframe_days: int | None = None) -> CashFlow:
    """Cash summary plus remittance buckets, weekly forecast and exception lists."""
    df = orders_frame(order_rows)
    if df.empty:
        return CashFlow(
            summary         = dict(_EMPTY_SUMMARY),
            remittance_days = [{"days": label, "count": 0} for label, _, _ in REMITTANCE_BUCKETS],
        )

    ref = _reference_date(df)
    return CashFlow(
        summary         = _summary(df),
        forecast        = _forecast(df, ref, timeframe_days),
        remittance_days = _remittance_buckets(df, ref, timeframe_days),
        exceptions      = _exceptions(df),
        high_rto_orders = _high_rto_orders(df),
    )

from engine.cash import build_cash_flow, compute_cash_position

ROWS = [
    {"payment_type": "prepaid", "amount": "1000"},
    {"payment_type": "COD", "amount": "500", "remitted": "", "remittance_date": "", "remittance_days": "3"},
    {
        "payment_type": "cod", "amount": "", "selling_price": "200", "quantity": "2",
        "remitted": "true", "remittance_date": "2026-09-01", "remittance_days": "10",
    },
    {"payment_method": "COD", "amount": "300", "remitted": "false"},
]


def test_cash_position():
    assert compute_cash_position(ROWS) == {
        "total_sales":       2_200.0,
        "pending_cod":       800.0,
        "predicted_cash_in": 500.0,
        "available_cash":    1_400.0,
    }


def test_empty_orders():
    assert compute_cash_position([]) == {
        "total_sales": 0.0, "pending_cod": 0.0, "predicted_cash_in": 0.0, "available_cash": 0.0,
    }


# Reference date is 2026-09-21 (latest order / remittance date); weeks start on Monday.
FLOW_ROWS = [
    {
        "order_id": "O1", "payment_type": "cod", "amount": "1000", "order_date": "2026-09-07",
        "remittance_days": "3", "remitted": "true", "remittance_date": "2026-09-10", "courier": "Delhivery",
    },
    {"order_id": "O2", "payment_type": "cod", "amount": "500", "order_date": "2026-09-14"},
    {
        "order_id": "O3", "payment_type": "cod", "amount": "2000", "order_date": "2026-09-01",
        "remittance_days": "20", "remitted": "true", "remittance_date": "2026-09-21", "courier": "BlueDart",
    },
    {
        "order_id": "O4", "payment_type": "prepaid", "amount": "800", "order_date": "2026-09-20",
        "status": "RTO", "rto_reason": "Customer refused", "courier_partner": "Ekart",
    },
    {"orderid": "O5", "payment_type": "cod", "amount": "300", "order_date": "2026-08-24", "remittance_days": "4"},
]


def test_cash_flow_summary_matches_cash_position():
    flow = build_cash_flow(FLOW_ROWS)
    assert flow.summary == compute_cash_position(FLOW_ROWS) == {
        "total_sales":       4_600.0,
        "pending_cod":       800.0,
        "predicted_cash_in": 1_300.0,
        "available_cash":    3_800.0,
    }


def test_remittance_day_buckets():
    flow = build_cash_flow(FLOW_ROWS)
    assert flow.remittance_days == [
        {"days": "1-3",  "count": 1},
        {"days": "4-7",  "count": 1},
        {"days": "8-14", "count": 0},
        {"days": "15+",  "count": 1},
    ]


def test_weekly_forecast_predicted_against_actual():
    flow = build_cash_flow(FLOW_ROWS)
    assert flow.forecast == [
        {"week": "Week 1", "week_start": "2026-08-24", "predicted_cash_in": 300.0,   "actual_cash_in": None},
        {"week": "Week 2", "week_start": "2026-09-07", "predicted_cash_in": 1_000.0, "actual_cash_in": 1_000.0},
        {"week": "Week 3", "week_start": "2026-09-21", "predicted_cash_in": 2_500.0, "actual_cash_in": 2_000.0},
    ]


def test_timeframe_limits_buckets_and_forecast():
    flow = build_cash_flow(FLOW_ROWS, timeframe_days=7)

    assert [b["count"] for b in flow.remittance_days] == [0, 0, 0, 1]
    assert flow.forecast == [
        {"week": "Week 1", "week_start": "2026-09-21", "predicted_cash_in": 2_500.0, "actual_cash_in": 2_000.0},
    ]
    # the summary always covers every order
    assert flow.summary["total_sales"] == 4_600.0


def test_forecast_keeps_the_latest_weeks():
    rows = [
        {"payment_type": "cod", "amount": "100", "order_date": f"2026-{month:02d}-01", "remittance_days": "1"}
        for month in range(1, 9)
    ]
    forecast = build_cash_flow(rows).forecast

    assert len(forecast) == 4
    assert [w["week"] for w in forecast] == ["Week 1", "Week 2", "Week 3", "Week 4"]
    assert forecast[-1]["week_start"] == "2026-07-27"


def test_exceptions_and_high_rto_orders():
    flow = build_cash_flow(FLOW_ROWS)

    assert flow.exceptions == [{"order_id": "O3", "amount": 2_000.0, "delay": 20.0, "courier": "BlueDart"}]
    assert flow.high_rto_orders == [
        {"order_id": "O4", "amount": 800.0, "reason": "Customer refused", "courier": "Ekart"},
    ]


def test_exception_lists_are_capped():
    rows = [
        {"order_id": f"L{n}", "amount": "100", "remittance_days": "30", "rto": "true"}
        for n in range(15)
    ]
    flow = build_cash_flow(rows)

    assert len(flow.exceptions) == 10
    assert flow.exceptions[0]["courier"] == "Unknown"
    assert len(flow.high_rto_orders) == 10
    assert flow.high_rto_orders[0]["reason"] == "Unknown"


def test_empty_cash_flow():
    flow = build_cash_flow([])
    assert flow.summary["available_cash"] == 0.0
    assert flow.forecast == []
    assert [b["count"] for b in flow.remittance_days] == [0, 0, 0, 0]
    assert flow.exceptions == flow.high_rto_orders == []

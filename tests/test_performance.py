from engine.performance import STATE_TO_REGION, build_performance

ORDERS = [
    {
        "payment_type": "cod", "courier": "Delhivery", "selling_price": "1000", "quantity": "1",
        "status": "delivered", "shipped_date": "2026-09-02", "delivered_date": "2026-09-05",
        "remittance_days": "5", "remitted": "true",
        "destination_pincode": "110001", "destination_city": "New Delhi", "destination_state": "Delhi",
    },
    {
        "payment_type": "cod", "courier": "Delhivery", "selling_price": "500", "quantity": "2",
        "status": "RTO", "shipped_date": "2026-09-03", "rto": "true",
        "destination_pincode": "110001", "destination_state": "Delhi",
    },
    {
        "payment_type": "cod", "courier": "BlueDart", "selling_price": "2000", "quantity": "",
        "status": "in_transit", "remittance_days": "9",
        "destination_pincode": "400001", "destination_city": "Mumbai", "destination_state": "Maharashtra",
    },
    {
        "payment_type": "prepaid", "courier": "BlueDart", "selling_price": "800", "quantity": "1",
        "status": "delivered", "destination_pincode": "400001", "destination_state": "maharashtra",
    },
    {"payment_type": "prepaid", "courier": "Ekart", "selling_price": "300", "quantity": "1", "status": "Shipped"},
]


def test_summary_and_funnel():
    report = build_performance(ORDERS)

    assert report.summary == {
        "overall_rto":           20,
        "cod_pct":               60,
        "avg_remittance_days":   2.8,
        "delivery_success_rate": 40,
    }
    assert report.order_funnel == {"placed": 5, "shipped": 4, "delivered": 2, "rto": 1, "remitted": 1}


def test_rto_rates_and_payment_split():
    report = build_performance(ORDERS)

    assert report.rto_rates == {
        "overall": 20,
        "by_payment_method": [{"method": "cod", "rate": 33}, {"method": "prepaid", "rate": 0}],
        "by_courier": [
            {"courier": "Delhivery", "rate": 50},
            {"courier": "BlueDart",  "rate": 0},
            {"courier": "Ekart",     "rate": 0},
        ],
    }
    assert report.payment_split == [{"method": "cod", "percentage": 60}, {"method": "prepaid", "percentage": 40}]


def test_channel_comparison():
    channels = build_performance(ORDERS).channel_data

    assert channels["courier_comparison"] == [
        {"courier": "Delhivery", "orders": 2, "revenue": 2_000, "rto": 50, "remittance_delay": 5},
        {"courier": "BlueDart",  "orders": 2, "revenue": 2_800, "rto": 0,  "remittance_delay": 9},
        {"courier": "Ekart",     "orders": 1, "revenue": 300,   "rto": 0,  "remittance_delay": 0},
    ]
    assert channels["payment_comparison"] == [
        {"method": "cod",     "orders": 3, "revenue": 4_000, "rto": 33, "remittance_delay": 0},
        {"method": "prepaid", "orders": 2, "revenue": 1_100, "rto": 0,  "remittance_delay": 0},
    ]


def test_geography_and_hotspots():
    channels = build_performance(ORDERS).channel_data

    assert channels["geographic_insights"] == [
        {"region": "West",  "orders": 2, "revenue": 2_800, "rto": 0},
        {"region": "North", "orders": 2, "revenue": 2_000, "rto": 50},
        {"region": "Other", "orders": 1, "revenue": 300,   "rto": 0},
    ]
    assert channels["rto_hotspots"] == [
        {"pincode": "110001",  "city": "New Delhi", "rto_rate": 50},
        {"pincode": "400001",  "city": "Mumbai",    "rto_rate": 0},
        {"pincode": "Unknown", "city": "",          "rto_rate": 0},
    ]


def test_correlations():
    correlations = build_performance(ORDERS).correlations

    assert correlations == [
        {
            "factor1": "COD", "factor2": "RTO%", "strength": 0.33,
            "insight": "COD orders have 33% RTO vs 0% for prepaid",
        },
        {
            "factor1": "BlueDart", "factor2": "Remittance Delay", "strength": 0.5,
            "insight": "BlueDart shows avg remittance delay of 9 days",
        },
    ]


def test_no_correlation_below_thresholds():
    rows = [
        {"payment_type": "cod", "courier": "Ekart", "remittance_days": "2"},
        {"payment_type": "upi", "courier": "Ekart", "remittance_days": "3"},
    ]
    assert build_performance(rows).correlations == []


def test_percentages_round_half_up():
    rows = [{"payment_type": "cod"}] + [{"payment_type": "prepaid"}] * 7
    split = build_performance(rows).payment_split
    assert split == [{"method": "cod", "percentage": 13}, {"method": "prepaid", "percentage": 88}]


def test_top_regions_and_hotspots_are_capped():
    states = ["Delhi", "Kerala", "Assam", "Goa", "Madhya Pradesh", "Atlantis"]
    rows = [
        {"destination_state": state, "destination_pincode": f"{n:06d}", "selling_price": str(100 * (n + 1))}
        for n, state in enumerate(states)
    ]
    channels = build_performance(rows).channel_data

    assert [r["region"] for r in channels["geographic_insights"]] == ["Other", "Central", "West", "East"]
    assert len(channels["rto_hotspots"]) == 4
    assert STATE_TO_REGION["madhya pradesh"] == "Central"


def test_empty_report():
    report = build_performance([])
    assert report.order_funnel["placed"] == 0
    assert report.summary["overall_rto"] == 0
    assert report.channel_data["courier_comparison"] == []

from pathlib import Path

import numpy as np
import pandas as pd

rng = np.random.default_rng(42)

OUT_DIR = Path(__file__).resolve().parent

# ──────────────────────────────────────────────────────────────────────────────
# Catalog config: D2C apparel & home brand, prices in rupees
# ──────────────────────────────────────────────────────────────────────────────
CATALOG_CONFIG = {
    "KRT-COT-01": {"name": "Cotton Kurta",            "price": 1299, "cost": 620,  "base": 140, "velocity": 4.5},
    "KRT-LIN-02": {"name": "Linen Kurta",             "price": 2199, "cost": 1180, "base": 80,  "velocity": 2.4},
    "SAR-SLK-03": {"name": "Silk Saree",              "price": 4700, "cost": 2800, "base": 35,  "velocity": 1.1},
    "SAR-CHF-04": {"name": "Chiffon Saree",           "price": 2499, "cost": 1450, "base": 60,  "velocity": 1.9},
    "DUP-PRT-05": {"name": "Printed Dupatta",         "price": 599,  "cost": 240,  "base": 210, "velocity": 6.8},
    "BED-DBL-06": {"name": "Double Bedsheet Set",     "price": 1799, "cost": 960,  "base": 90,  "velocity": 2.9},
    "CUS-CVR-07": {"name": "Cushion Cover (Set of 5)", "price": 899, "cost": 410,  "base": 120, "velocity": 3.7},
    "TWL-BTH-08": {"name": "Bath Towel",              "price": 549,  "cost": 260,  "base": 170, "velocity": 5.2},
    "MAT-YOG-09": {"name": "Yoga Mat",                "price": 1099, "cost": 700,  "base": 55,  "velocity": 1.6},
    "BAG-JUT-10": {"name": "Jute Tote Bag",           "price": 399,  "cost": 185,  "base": 230, "velocity": 7.4},
    "LMP-BRS-11": {"name": "Brass Table Lamp",        "price": 3299, "cost": 2350, "base": 20,  "velocity": 0.5},
    "CND-SOY-12": {"name": "Soy Wax Candle",          "price": 449,  "cost": 330,  "base": 95,  "velocity": 2.8},
}

DESTINATIONS = {
    "110001": ("New Delhi", "Delhi"),
    "400001": ("Mumbai",    "Maharashtra"),
    "560001": ("Bengaluru", "Karnataka"),
    "600001": ("Chennai",   "Tamil Nadu"),
    "700001": ("Kolkata",   "West Bengal"),
    "500001": ("Hyderabad", "Telangana"),
    "411001": ("Pune",      "Maharashtra"),
    "302001": ("Jaipur",    "Rajasthan"),
}
PINCODES      = list(DESTINATIONS)
PAYMENT_TYPES = ["cod", "prepaid"]
COURIERS      = ["Delhivery", "BlueDart", "Ekart", "Xpressbees"]
RTO_RATE      = {"cod": 0.18, "prepaid": 0.05}
RTO_REASONS   = ["Customer refused", "Address not found", "Customer unreachable"]
ORDER_DAYS    = 90
AS_OF         = pd.Timestamp("2026-10-01")


def generate_orders() -> pd.DataFrame:
    rows = []
    order_no = 1
    for pid, cfg in CATALOG_CONFIG.items():
        n_orders = max(5, int(cfg["base"] + rng.normal(0, cfg["base"] * 0.1)))
        for _ in range(n_orders):
            quantity   = int(rng.choice([1, 1, 1, 2, 2, 3]))
            order_date = AS_OF - pd.Timedelta(days=int(rng.integers(1, ORDER_DAYS)))
            payment    = str(rng.choice(PAYMENT_TYPES, p=[0.6, 0.4]))
            courier    = str(rng.choice(COURIERS))
            pincode    = str(rng.choice(PINCODES))
            city, state = DESTINATIONS[pincode]
            is_rto     = bool(rng.random() < RTO_RATE[payment])

            shipped_on   = order_date + pd.Timedelta(days=int(rng.integers(1, 3)))
            delivered_on = shipped_on + pd.Timedelta(days=int(rng.integers(2, 7)))
            if is_rto:
                status = "rto"
            elif delivered_on <= AS_OF:
                status = "delivered"
            else:
                status = "in_transit"

            remitted, remittance_date, remittance_days = "", "", ""
            if payment == "cod" and not is_rto:
                days = int(rng.integers(2, 15))
                remitted_on = order_date + pd.Timedelta(days=days)
                # COD still in transit when the remittance falls after the cut-off
                if remitted_on <= AS_OF:
                    remitted        = "true"
                    remittance_date = remitted_on.strftime("%Y-%m-%d")
                remittance_days = str(days)

            rows.append({
                "order_id":            f"ORD-{order_no:05d}",
                "order_date":          order_date.strftime("%Y-%m-%d"),
                "product_id":          pid,
                "product_name":        cfg["name"],
                "cost_price":          cfg["cost"],
                "selling_price":       cfg["price"],
                "quantity":            quantity,
                "amount":              cfg["price"] * quantity,
                "payment_type":        payment,
                "remitted":            remitted,
                "remittance_date":     remittance_date,
                "remittance_days":     remittance_days,
                "courier":             courier,
                "status":              status,
                "rto":                 "true" if is_rto else "false",
                "rto_reason":          str(rng.choice(RTO_REASONS)) if is_rto else "",
                "shipped_date":        shipped_on.strftime("%Y-%m-%d") if shipped_on <= AS_OF else "",
                "delivered_date":      delivered_on.strftime("%Y-%m-%d") if status == "delivered" else "",
                "destination_pincode": pincode,
                "destination_city":    city,
                "destination_state":   state,
            })
            order_no += 1
    return pd.DataFrame(rows)


def generate_inventory() -> pd.DataFrame:
    rows = []
    for pid, cfg in CATALOG_CONFIG.items():
        velocity = round(max(0.1, cfg["velocity"] + rng.normal(0, 0.3)), 2)
        on_hand  = int(rng.integers(0, int(cfg["base"] * 0.8) + 1))
        received = AS_OF - pd.Timedelta(days=int(rng.integers(20, 240)))
        restock  = received + pd.Timedelta(days=int(rng.integers(0, 20)))
        rows.append({
            "product_id":           pid,
            "product_name":         cfg["name"],
            "on_hand_qty":          on_hand,
            "reserved_qty":         int(rng.integers(0, max(1, on_hand // 10) + 1)),
            "first_received_date":  received.strftime("%Y-%m-%d"),
            "last_restock_date":    restock.strftime("%Y-%m-%d"),
            "daily_sales_velocity": velocity,
            "reorder_point":        int(velocity * 14),
            "reorder_qty":          int(velocity * 30) if rng.random() < 0.7 else 0,
            "cost_price":           cfg["cost"],
        })
    return pd.DataFrame(rows)


def generate_data():
    orders    = generate_orders()
    inventory = generate_inventory()
    orders.to_csv(OUT_DIR / "master_dataset.csv", index=False)
    inventory.to_csv(OUT_DIR / "inventory_snapshot.csv", index=False)
    print(f"Dataset generated with {len(orders)} orders across {len(CATALOG_CONFIG)} products.")
    print(f"Inventory snapshot written for as-of {AS_OF.date()}.")


if __name__ == "__main__":
    generate_data()

"""
engine/reorder.py
-----------------
Reorder risk scoring for the inventory snapshot.

Features per snapshot product (joined with order aggregates on product_id):

    days_cover      available / daily_sales_velocity   (3650 when velocity is 0)
    days_in_stock   days since first_received_date
    units_sold      Σ quantity from orders
    daily_velocity  daily_sales_velocity from the snapshot
    margin_pct      margin of average selling price over snapshot cost

Every column is min-max scaled across the whole product set.

Signal 1 — Linear score (interpretable)
    Weighted sum of scaled features. Cover, age and margin lower the risk
    (they enter as 1 - value); units sold and velocity raise it.

        days_cover 0.45 · days_in_stock 0.05 · units_sold 0.20
        daily_velocity 0.25 · margin_pct 0.05

Signal 2 — Cluster score
    k-means (k=3, 15 iterations, first-k initialisation) over the scaled
    features. Clusters whose centroid has less cover are riskier; the
    centroid cover values are turned into a 0–1 cluster risk.

Composite:
    risk = clamp(0.7 × linear + 0.3 × cluster, 0, 1), reported as 0–100
    urgency: risk_score >= 66 → High, >= 33 → Medium, else Low

Restock quantity:
    base  = reorder_qty if set, else max(0, reorder_point - available)
    units = round(base × (1 + risk))
Zero-quantity signals are dropped; the rest are sorted by quantity
(largest first) and capped at 10.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np
import pandas as pd

from engine.clustering import cluster_risk, kmeans, min_max_normalize
from engine.rows import RawRow
from engine.sales import aggregate_sales, inventory_snapshot, margin_pct

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# Configuration & Thresholds
# ─────────────────────────────────────────────────────────────────────────────

NO_VELOCITY_DAYS_COVER: float = 3650.0

FEATURE_WEIGHTS: dict[str, float] = {
    "days_cover":     0.45,
    "days_in_stock":  0.05,
    "units_sold":     0.20,
    "daily_velocity": 0.25,
    "margin_pct":     0.05,
}
FEATURE_NAMES = tuple(FEATURE_WEIGHTS)

# Higher value → lower restock urgency
INVERTED_FEATURES = frozenset({"days_cover", "days_in_stock", "margin_pct"})

LINEAR_BLEND:      float = 0.7
KMEANS_CLUSTERS:   int   = 3
KMEANS_ITERATIONS: int   = 15

HIGH_URGENCY:   int = 66
MEDIUM_URGENCY: int = 33

MAX_SIGNALS: int = 10


@dataclass
class ProductFeatures:
    product_id:     str
    name:           str
    available:      float
    days_in_stock:  float
    daily_velocity: float
    units_sold:     float
    margin_pct:     int
    reorder_point:  float
    reorder_qty:    float

    @property
    def days_cover(self) -> float:
        if self.daily_velocity > 0:
            return self.available / self.daily_velocity
        return NO_VELOCITY_DAYS_COVER

    @property
    def base_quantity(self) -> float:
        if self.reorder_qty:
            return self.reorder_qty
        return max(0.0, self.reorder_point - self.available)


@dataclass
class ReorderSignal:
    product:          str
    units_to_restock: int
    urgency:          str
    margin_pct:       int
    risk_score:       int


def urgency_bucket(risk_score: int) -> str:
    """Map a 0–100 risk score onto Low / Medium / High."""
    if risk_score >= HIGH_URGENCY:   return "High"
    if risk_score >= MEDIUM_URGENCY: return "Medium"
    return "Low"


# ─────────────────────────────────────────────────────────────────────────────
# Feature extraction
# ─────────────────────────────────────────────────────────────────────────────

def build_features(
    order_rows:     Iterable[RawRow],
    inventory_rows: Iterable[RawRow],
    as_of:          pd.Timestamp | str | None = None,
) -> list[ProductFeatures]:
    """One feature record per snapshot row, in snapshot order."""
    snapshot = inventory_snapshot(inventory_rows, as_of)
    if snapshot.empty:
        return []
    sales = aggregate_sales(order_rows)

    features: list[ProductFeatures] = []
    for row in snapshot.itertuples(index=False):
        sold  = sales.loc[row.product_id] if row.product_id in sales.index else None
        units = float(sold["units_sold"]) if sold is not None else 0.0
        price = float(sold["avg_price"])  if sold is not None and units > 0 else 0.0
        features.append(ProductFeatures(
            product_id     = row.product_id,
            name           = row.name,
            available      = float(row.available),
            days_in_stock  = float(row.days_in_stock),
            daily_velocity = float(row.daily_sales_velocity),
            units_sold     = units,
            margin_pct     = margin_pct(price, float(row.cost_price)),
            reorder_point  = float(row.reorder_point),
            reorder_qty    = float(row.reorder_qty),
        ))
    return features


def feature_matrix(features: Sequence[ProductFeatures]) -> np.ndarray:
    """Rows = products, columns in FEATURE_NAMES order."""
    return np.array(
        [
            [f.days_cover, f.days_in_stock, f.units_sold, f.daily_velocity, f.margin_pct]
            for f in features
        ],
        dtype=float,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Scoring
# ─────────────────────────────────────────────────────────────────────────────

def linear_scores(normalized: np.ndarray) -> np.ndarray:
    """Signal 1: weighted sum with cover, age and margin inverted."""
    inverted = np.array([name in INVERTED_FEATURES for name in FEATURE_NAMES])
    weights  = np.array([FEATURE_WEIGHTS[name] for name in FEATURE_NAMES])
    oriented = np.where(inverted, 1.0 - normalized, normalized)
    return oriented @ weights


def score_risk(features: Sequence[ProductFeatures], seed: int | None = None) -> np.ndarray:
    """Composite 0–1 risk per product. Empty input → empty array."""
    if not features:
        return np.zeros(0)

    normalized = min_max_normalize(feature_matrix(features))
    labels, centroids = kmeans(
        normalized, k=KMEANS_CLUSTERS, max_iter=KMEANS_ITERATIONS, seed=seed
    )
    by_cluster = cluster_risk(centroids, feature=FEATURE_NAMES.index("days_cover"))
    logger.debug(f"Reorder clusters: sizes={np.bincount(labels, minlength=KMEANS_CLUSTERS).tolist()}")

    blended = LINEAR_BLEND * linear_scores(normalized) + (1 - LINEAR_BLEND) * by_cluster[labels]
    return np.clip(blended, 0.0, 1.0)


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def build_reorder_signals(
    order_rows:     Iterable[RawRow],
    inventory_rows: Iterable[RawRow],
    as_of:          pd.Timestamp | str | None = None,
    seed:           int | None = None,
    limit:          int = MAX_SIGNALS,
) -> list[ReorderSignal]:
    """Restock suggestions for the riskiest, most depleted products."""
    features = build_features(order_rows, inventory_rows, as_of)
    if not features:
        return []

    risks = score_risk(features, seed=seed)

    signals: list[ReorderSignal] = []
    for f, risk in zip(features, risks):
        units = max(0, round(f.base_quantity * (1 + float(risk))))
        if units == 0:
            continue
        score = round(float(risk) * 100)
        signals.append(ReorderSignal(
            product          = f.name,
            units_to_restock = int(units),
            urgency          = urgency_bucket(score),
            margin_pct       = f.margin_pct,
            risk_score       = int(score),
        ))

    signals.sort(key=lambda s: s.units_to_restock, reverse=True)
    return signals[:limit]

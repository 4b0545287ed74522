"""
engine/catalog.py
-----------------
Builds the purchasable product catalog from raw transaction rows.

Each row contributes (product_id, product_name, cost_price, selling_price).
A row is kept only when it describes a profitable unit:

    cost_price    > 0
    selling_price > cost_price
    rate_of_return = (selling_price - cost_price) / cost_price > 0

Rows sharing the composite key (id, name, cost, sell) collapse to the
first occurrence. Later duplicates are dropped, never merged, so the
catalog order is the order in which each distinct product first appears.

Public API
----------
    build_catalog(rows)        -> list[Product]
    rank_by_return(products)   -> list[Product]   (stable, best first)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from engine.rows import RawRow, display_name, rows_to_frame

logger = logging.getLogger(__name__)

_DEDUP_KEY = ["product_id", "name", "cost_price", "selling_price"]


@dataclass(frozen=True)
class Product:
    product_id:      str
    name:            str
    cost_price:      float
    selling_price:   float
    profit_per_unit: float   # selling_price - cost_price
    rate_of_return:  float   # profit_per_unit / cost_price


def build_catalog(rows: Iterable[RawRow]) -> list[Product]:
    """
    Deduplicate raw rows into unique profitable products.
    Unprofitable or unparsable rows are excluded silently.
    """
    df = rows_to_frame(
        rows,
        numeric=("cost_price", "selling_price"),
        text=("product_id", "product_name"),
    )
    if df.empty:
        return []

    df["name"] = display_name(df)
    df = df[(df["cost_price"] > 0) & (df["selling_price"] > df["cost_price"])]
    df = df.drop_duplicates(subset=_DEDUP_KEY, keep="first")

    catalog: list[Product] = []
    for row in df.itertuples(index=False):
        cost   = float(row.cost_price)
        sell   = float(row.selling_price)
        profit = sell - cost
        ror    = profit / cost
        if ror <= 0:
            continue
        catalog.append(Product(
            product_id      = row.product_id,
            name            = row.name,
            cost_price      = cost,
            selling_price   = sell,
            profit_per_unit = profit,
            rate_of_return  = ror,
        ))

    logger.debug(f"Catalog: {len(catalog)} unique profitable products")
    return catalog


def rank_by_return(products: Iterable[Product]) -> list[Product]:
    """Sort by rate of return, best first. Ties keep catalog order."""
    return sorted(products, key=lambda p: p.rate_of_return, reverse=True)

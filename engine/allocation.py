"""
engine/allocation.py
--------------------
Allocation result types and the greedy strategies.

Strategy 1 — Greedy ("Quick Wins")
    Rank products by rate of return (profit_per_unit / cost_price) and buy
    as many units of each as the remaining budget allows, in one pass:

        units_i = floor(remaining / cost_i)      if cost_i <= remaining
        remaining -= units_i × cost_i

    A product costing more than what is left is skipped and never revisited.
    Single pass, deterministic, O(n log n).

Capped greedy pack (used by the scenario generator)
    Same ranking, but each product is additionally limited to a share of
    the budget being filled:

        units_i = min(floor(max_share × budget / cost_i),
                      floor(remaining / cost_i))

    An optional per-name headroom mapping caps the spend a product may
    still take on top of what another plan already committed to it.

Totals
    total_cost / total_profit are rounded to the nearest currency unit.
    remaining_budget = max(0, budget - total_cost).
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from engine.catalog import Product, rank_by_return

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Result types
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class AllocationItem:
    product:        str
    units:          int
    cost:           float   # units × cost_price
    profit:         float   # units × profit_per_unit
    rate_of_return: float


@dataclass
class AllocationResult:
    items:            list[AllocationItem] = field(default_factory=list)
    total_cost:       float = 0
    total_profit:     float = 0
    remaining_budget: float = 0


def line_item(product: Product, units: int) -> AllocationItem:
    return AllocationItem(
        product        = product.name,
        units          = int(units),
        cost           = units * product.cost_price,
        profit         = units * product.profit_per_unit,
        rate_of_return = product.rate_of_return,
    )


def summarize(items: list[AllocationItem], budget: float) -> AllocationResult:
    """Wrap line items with rounded totals and the unspent budget."""
    total_cost   = round(sum(i.cost for i in items))
    total_profit = round(sum(i.profit for i in items))
    return AllocationResult(
        items            = items,
        total_cost       = total_cost,
        total_profit     = total_profit,
        remaining_budget = max(0, budget - total_cost),
    )


def empty_allocation(budget: float) -> AllocationResult:
    """'No recommendation' — a valid, zero-valued result."""
    return AllocationResult(remaining_budget=max(0, budget))


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def greedy_allocate(budget: float, products: Iterable[Product]) -> AllocationResult:
    """Buy the best-returning products first until the budget runs out."""
    if budget <= 0:
        return empty_allocation(budget)

    remaining = math.floor(budget)
    items: list[AllocationItem] = []

    for p in rank_by_return(products):
        if remaining <= 0:
            break
        if p.cost_price > remaining:
            continue
        units = math.floor(remaining / p.cost_price)
        if units <= 0:
            continue
        item = line_item(p, units)
        items.append(item)
        remaining -= item.cost

    return summarize(items, budget)


def greedy_pack(
    budget:    float,
    products:  Iterable[Product],
    max_share: float,
    headroom:  Mapping[str, float] | None = None,
) -> AllocationResult:
    """
    Greedy fill of `budget` where no product may take more than
    `max_share × budget`.

    headroom maps product name → spend it may still absorb. Names absent
    from the mapping are limited by the share cap alone.
    """
    if budget <= 0:
        return empty_allocation(budget)

    share_cap = max_share * budget
    room      = dict(headroom) if headroom is not None else {}
    remaining = budget
    items: list[AllocationItem] = []

    for p in rank_by_return(products):
        if remaining <= 0:
            break
        cap    = max(0, math.floor(share_cap / p.cost_price))
        afford = math.floor(remaining / p.cost_price)
        units  = min(cap, afford)
        if p.name in room:
            units = min(units, max(0, math.floor(room[p.name] / p.cost_price)))
        if units <= 0:
            continue
        item = line_item(p, units)
        items.append(item)
        remaining -= item.cost
        if p.name in room:
            room[p.name] -= item.cost

    return summarize(items, budget)

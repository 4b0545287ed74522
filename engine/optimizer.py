"""
engine/optimizer.py
-------------------
Strategy 2 — budget-constrained profit maximisation ("Optimal Plan").

Unbounded knapsack over a discretised budget:

    step      = max(step_size, ceil(budget / max_states))
    B         = floor(budget / step)                 capacities 0..B
    c_i       = max(1, floor(cost_price_i / step))   cost in whole steps
    dp[0]     = 0
    dp[b]     = max over i with c_i <= b of  dp[b - c_i] + profit_i
    choice[b] = arg-max i (first index wins ties), -1 when nothing fits

The step grows with the budget so the table never holds more than
max_states + 1 entries, bounding memory and runtime at
O(max_states × products) whatever the budget size.

Reconstruction walks back from dp[B] along choice[] and counts units per
product. Because c_i rounds down, every unit of an off-grid product can
cost up to one step more than the table assumed, so the plan may overshoot
the real budget. Post-processing, in order:

    1. fit     take units back from the lowest-returning products until
               the real cost fits the budget
    2. top-up  spend what is left with a ratio-ordered greedy pass
    3. guard   if greedy_allocate() still earns more, return its plan

Items are returned sorted by profit, highest first.

Discretisation makes the table an approximation of the continuous
optimum; step 3 makes "never worse than greedy" hold for every catalog,
on the step grid or off it.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import numpy as np

from engine.allocation import (
    AllocationResult,
    empty_allocation,
    greedy_allocate,
    line_item,
    summarize,
)
from engine.catalog import Product

logger = logging.getLogger(__name__)

DEFAULT_STEP_SIZE:  int = 100      # rupees
DEFAULT_MAX_STATES: int = 10_000


def budget_step(
    budget:     float,
    step_size:  int = DEFAULT_STEP_SIZE,
    max_states: int = DEFAULT_MAX_STATES,
) -> int:
    """Discretisation step that keeps the DP table within max_states."""
    if step_size <= 0 or max_states <= 0:
        raise ValueError("step_size and max_states must be positive")
    return max(1, int(step_size), math.ceil(budget / max_states))


# ─────────────────────────────────────────────────────────────────────────────
# Internal helpers
# ─────────────────────────────────────────────────────────────────────────────

def _solve(capacity: int, cost_steps: np.ndarray, profits: np.ndarray) -> np.ndarray:
    """Fill the DP table and return the arg-max choice per capacity."""
    best   = np.zeros(capacity + 1, dtype=float)
    choice = np.full(capacity + 1, -1, dtype=np.int64)

    for b in range(1, capacity + 1):
        fits = np.flatnonzero(cost_steps <= b)
        if fits.size == 0:
            continue
        values = best[b - cost_steps[fits]] + profits[fits]
        k = int(np.argmax(values))
        if values[k] > 0:
            best[b]   = values[k]
            choice[b] = fits[k]

    return choice


def _reconstruct(capacity: int, cost_steps: np.ndarray, choice: np.ndarray) -> dict[int, int]:
    """Walk back from the full capacity, counting units per product index."""
    counts: dict[int, int] = {}
    b = capacity
    while b > 0 and choice[b] != -1:
        idx = int(choice[b])
        counts[idx] = counts.get(idx, 0) + 1
        b -= int(cost_steps[idx])
    return counts


def _fit_to_budget(
    counts:     dict[int, int],
    candidates: Sequence[Product],
    budget:     float,
) -> dict[int, int]:
    """Drop units, worst return first, until the real cost fits the budget."""
    total = sum(candidates[i].cost_price * n for i, n in counts.items())
    if total <= budget:
        return counts

    logger.debug(f"DP plan costs {total:,.2f} > budget {budget:,.2f}; trimming")
    counts = dict(counts)
    for idx in sorted(counts, key=lambda i: candidates[i].rate_of_return):
        cost = candidates[idx].cost_price
        while total > budget and counts[idx] > 0:
            counts[idx] -= 1
            total -= cost
        if total <= budget:
            break
    return {i: n for i, n in counts.items() if n > 0}


def _top_up(
    counts:     dict[int, int],
    candidates: Sequence[Product],
    budget:     float,
) -> dict[int, int]:
    """Spend the leftover budget greedily, best return first."""
    remaining = budget - sum(candidates[i].cost_price * n for i, n in counts.items())
    counts    = dict(counts)
    order     = sorted(range(len(candidates)), key=lambda i: candidates[i].rate_of_return, reverse=True)
    for idx in order:
        units = math.floor(remaining / candidates[idx].cost_price)
        if units <= 0:
            continue
        counts[idx] = counts.get(idx, 0) + units
        remaining  -= units * candidates[idx].cost_price
    return counts


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def dp_allocate(
    budget:     float,
    products:   Sequence[Product],
    step_size:  int = DEFAULT_STEP_SIZE,
    max_states: int = DEFAULT_MAX_STATES,
) -> AllocationResult:
    """
    Maximise total profit under the budget via discretised unbounded knapsack.

    Raises ValueError for a non-positive step_size or max_states, whatever
    the budget or catalog.
    """
    step = budget_step(max(budget, 0), step_size, max_states)

    if budget <= 0 or not products:
        return empty_allocation(budget)

    candidates = [p for p in products if round(p.profit_per_unit) > 0]
    if not candidates:
        return empty_allocation(budget)

    capacity = math.floor(budget / step)
    counts: dict[int, int] = {}
    if capacity > 0:
        cost_steps = np.array(
            [max(1, math.floor(p.cost_price / step)) for p in candidates], dtype=np.int64
        )
        profits = np.array([p.profit_per_unit for p in candidates], dtype=float)

        logger.debug(f"DP: step={step}, states={capacity + 1}, products={len(candidates)}")

        choice = _solve(capacity, cost_steps, profits)
        counts = _reconstruct(capacity, cost_steps, choice)
        counts = _fit_to_budget(counts, candidates, budget)
    counts = _top_up(counts, candidates, budget)

    items = [line_item(candidates[idx], units) for idx, units in counts.items()]
    plan  = summarize(items, budget)

    greedy = greedy_allocate(budget, candidates)
    if greedy.total_profit > plan.total_profit:
        logger.debug(
            f"DP plan earns {plan.total_profit:,} < greedy {greedy.total_profit:,}; using greedy plan"
        )
        items = list(greedy.items)

    items.sort(key=lambda i: i.profit, reverse=True)
    return summarize(items, budget)

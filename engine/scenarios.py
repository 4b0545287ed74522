"""
engine/scenarios.py
-------------------
Strategy 3 — risk-postured scenario planning.

Three plans over the same budget and catalog:

    Aggressive
        The full optimizer (engine/optimizer.py) result on the whole budget.

    Balanced
        Starts from the Aggressive plan. Any product whose spend exceeds
        50% of the budget is trimmed back under that line, and the freed
        cash is refilled with a capped greedy pack (no product above 50% of
        the sub-budget). Trimmed and topped-up lines are merged by product
        name, in first-seen order. A product never ends above 50% of the
        total budget.

    Conservative
        Capped greedy pack over 70% of the budget (30% held in reserve),
        with no product above 25% of that sub-budget.

Scenario report
    total_investment = plan total_cost
    expected_return  = plan total_profit
    roi              = round(100 × expected_return / total_investment), 0 if nothing invested
    products         = top 10 lines by profit (totals still cover every line)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field, replace

from engine.allocation import (
    AllocationItem,
    AllocationResult,
    empty_allocation,
    greedy_pack,
    summarize,
)
from engine.catalog import Product
from engine.optimizer import DEFAULT_MAX_STATES, DEFAULT_STEP_SIZE, dp_allocate

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────

SCENARIO_LABELS = ("Conservative", "Balanced", "Aggressive")

CONSERVATIVE_BUDGET_SHARE:  float = 0.70   # 30% kept as cash reserve
CONSERVATIVE_PRODUCT_SHARE: float = 0.25
BALANCED_PRODUCT_SHARE:     float = 0.50
TOP_PRODUCTS:               int   = 10


@dataclass
class ScenarioLine:
    product: str
    units:   int


@dataclass
class Scenario:
    label:            str
    total_investment: float
    expected_return:  float
    roi:              int
    products:         list[ScenarioLine] = field(default_factory=list)
    allocation:       AllocationResult = field(default_factory=AllocationResult, repr=False)


# ─────────────────────────────────────────────────────────────────────────────
# Internal helpers
# ─────────────────────────────────────────────────────────────────────────────

def _merge(lines: dict[str, AllocationItem], item: AllocationItem) -> None:
    """Fold an item into the name-keyed plan, summing units, cost and profit."""
    current = lines.get(item.product)
    if current is None:
        lines[item.product] = replace(item)
        return
    current.units  += item.units
    current.cost   += item.cost
    current.profit += item.profit


def _balance(
    budget:     float,
    aggressive: AllocationResult,
    products:   Sequence[Product],
) -> AllocationResult:
    ceiling = BALANCED_PRODUCT_SHARE * budget
    lines: dict[str, AllocationItem] = {}

    # 1. Trim anything above the per-product ceiling
    for item in aggressive.items:
        if item.units <= 0:
            continue
        unit_cost   = item.cost / item.units
        unit_profit = item.profit / item.units
        committed   = lines[item.product].cost if item.product in lines else 0.0
        units       = min(item.units, max(0, math.floor((ceiling - committed) / unit_cost)))
        if units < item.units:
            logger.debug(f"Balanced: trimming {item.product} from {item.units} to {units} units")
        if units <= 0:
            continue
        _merge(lines, replace(item, units=units, cost=units * unit_cost, profit=units * unit_profit))

    # 2. Refill the freed cash without breaching the ceiling
    spent     = sum(i.cost for i in lines.values())
    remaining = max(0.0, budget - spent)
    if remaining > 0:
        headroom = {p.name: ceiling for p in products}
        headroom.update({name: ceiling - i.cost for name, i in lines.items()})
        top_up = greedy_pack(remaining, products, BALANCED_PRODUCT_SHARE, headroom=headroom)
        for item in top_up.items:
            _merge(lines, item)

    return summarize(list(lines.values()), budget)


def _to_scenario(label: str, plan: AllocationResult) -> Scenario:
    invest = plan.total_cost
    profit = plan.total_profit
    roi    = round(profit / invest * 100) if invest > 0 else 0
    top    = sorted(plan.items, key=lambda i: i.profit, reverse=True)[:TOP_PRODUCTS]
    return Scenario(
        label            = label,
        total_investment = invest,
        expected_return  = profit,
        roi              = roi,
        products         = [ScenarioLine(product=i.product, units=i.units) for i in top],
        allocation       = plan,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def generate_scenarios(
    budget:     float,
    products:   Sequence[Product],
    step_size:  int = DEFAULT_STEP_SIZE,
    max_states: int = DEFAULT_MAX_STATES,
) -> list[Scenario]:
    """Return [Conservative, Balanced, Aggressive] for the budget."""
    if budget <= 0 or not products:
        return [_to_scenario(label, empty_allocation(budget)) for label in SCENARIO_LABELS]

    aggressive   = dp_allocate(budget, products, step_size=step_size, max_states=max_states)
    balanced     = _balance(budget, aggressive, products)
    conservative = greedy_pack(
        math.floor(budget * CONSERVATIVE_BUDGET_SHARE),
        products,
        CONSERVATIVE_PRODUCT_SHARE,
    )

    return [
        _to_scenario("Conservative", conservative),
        _to_scenario("Balanced",     balanced),
        _to_scenario("Aggressive",   aggressive),
    ]

"""
engine/recommendation.py
------------------------
Picks which scenario plan to put in front of the merchant.

Decision table (by budget size):
    budget <= 30,000           → Conservative   small float, protect the reserve
    30,000 < budget <= 60,000  → Balanced
    budget > 60,000            → Aggressive     enough cash to absorb concentration

Each recommendation carries:
    scenario_key     : internal identifier
    label            : human-readable plan name
    summary          : one-sentence explanation
    total_investment : plan spend
    expected_return  : plan profit
    roi              : plan ROI %
    reserve_cash     : budget left uninvested by the plan
    suggested_change : follow-up action, None when the plan is usable as-is
"""

from __future__ import annotations

from collections.abc import Sequence

from engine.scenarios import Scenario

# ─────────────────────────────────────────────────────────────────────────────
# Constants & Configuration
# ─────────────────────────────────────────────────────────────────────────────

CONSERVATIVE_MAX_BUDGET: float = 30_000
BALANCED_MAX_BUDGET:     float = 60_000

SCENARIO_CONFIG: dict[str, dict] = {
    "Conservative": {
        "scenario_key": "CONSERVATIVE",
        "label":        "Conservative",
        "summary":      "Spread purchases thin and keep 30% of the cash in reserve.",
    },
    "Balanced": {
        "scenario_key": "BALANCED",
        "label":        "Balanced",
        "summary":      "Chase profit while keeping any single product under half the budget.",
    },
    "Aggressive": {
        "scenario_key": "AGGRESSIVE",
        "label":        "Aggressive",
        "summary":      "Put the whole budget into the highest-profit product mix.",
    },
}

_SUGGESTIONS: dict[str, str] = {
    "nothing_to_buy": (
        "No product in the catalog is both profitable and affordable at this budget. "
        "Check cost and selling prices or raise the budget."
    ),
    "idle_cash": (
        "More than half of the budget stays uninvested. Consider widening the catalog "
        "with lower-cost products."
    ),
}


def _pick_label(budget: float) -> str:
    if budget <= CONSERVATIVE_MAX_BUDGET:
        return "Conservative"
    if budget <= BALANCED_MAX_BUDGET:
        return "Balanced"
    return "Aggressive"


# ─────────────────────────────────────────────────────────────────────────────
# Public API
# ─────────────────────────────────────────────────────────────────────────────

def recommend_scenario(budget: float, scenarios: Sequence[Scenario]) -> dict:
    """Choose the scenario matching the budget size and explain it."""
    label    = _pick_label(budget)
    scenario = next(s for s in scenarios if s.label == label)
    reserve  = max(0, budget - scenario.total_investment)

    suggested_change: str | None = None
    if scenario.total_investment <= 0:
        suggested_change = _SUGGESTIONS["nothing_to_buy"]
    elif budget > 0 and reserve > budget / 2:
        suggested_change = _SUGGESTIONS["idle_cash"]

    return {
        **SCENARIO_CONFIG[label],
        "total_investment": scenario.total_investment,
        "expected_return":  scenario.expected_return,
        "roi":              scenario.roi,
        "reserve_cash":     reserve,
        "suggested_change": suggested_change,
    }

"""
engine/orchestrator.py
----------------------
Inventory allocation advisor pipeline.

Pipeline (run_advisor)
----------------------
    Step 1 → cash.compute_cash_position()
                 Budget defaults to available cash when none is given

    Step 2 → catalog.build_catalog()
                 Deduplicated profitable products from order rows

    Step 3 → allocation.greedy_allocate()          "Quick Wins"

    Step 4 → optimizer.dp_allocate()               "Optimal Plan"

    Step 5 → scenarios.generate_scenarios()        Conservative / Balanced / Aggressive

    Step 6 → recommendation.recommend_scenario()

    Step 7 → narrative.generate_brief()            optional

Pipeline (run_inventory)
------------------------
    inventory.build_inventory_overview()
        sales aggregates + snapshot → summary, best sellers, slow movers,
        reorder signals (reorder.build_reorder_signals), sales density

Pipeline (run_cash_flow / run_performance)
------------------------------------------
    cash.build_cash_flow()                 summary, forecast, remittance buckets,
                                           delayed remittances, RTO orders
    performance.build_performance()        funnel, RTO rates, channel comparison
"""

from __future__ import annotations

import logging

from config.settings import get_dp_max_states, get_dp_step_size
from engine.allocation import greedy_allocate
from engine.cash       import CashFlow, build_cash_flow, compute_cash_position
from engine.catalog    import build_catalog
from engine.inventory  import InventoryOverview, build_inventory_overview
from engine.narrative  import generate_brief
from engine.optimizer  import dp_allocate
from engine.performance import PerformanceReport, build_performance
from engine.recommendation import recommend_scenario
from engine.scenarios  import generate_scenarios

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Main entry points
# ─────────────────────────────────────────────────────────────────────────────

def run_advisor(inputs: dict) -> dict:
    """
    Run the full allocation pipeline.

    Args:
        inputs (dict):
            order_rows  (list[dict])  : Raw order rows (string values)
            budget      (float)       : Cash to allocate (optional; defaults
                                        to available cash from the orders)
            step_size   (int)         : DP budget step (optional)
            max_states  (int)         : DP state cap (optional)
            narrative   (bool)        : Generate the analyst brief (default True)

    Returns:
        dict : Combined outputs from all pipeline steps.
    """
    order_rows = list(inputs["order_rows"])
    step_size  = inputs.get("step_size")
    max_states = inputs.get("max_states")
    if step_size is None:
        step_size = get_dp_step_size()
    if max_states is None:
        max_states = get_dp_max_states()

    # ── Step 1: Budget ────────────────────────────────────────────────────────
    cash = compute_cash_position(order_rows)
    if inputs.get("budget") is not None:
        budget, budget_source = float(inputs["budget"]), "input"
    else:
        budget, budget_source = cash["available_cash"], "available_cash"

    # ── Step 2: Catalog ───────────────────────────────────────────────────────
    products = build_catalog(order_rows)
    logger.info(f"Advising on {len(products)} products with budget {budget:,.0f} ({budget_source})")

    # ── Steps 3–6: Strategies ─────────────────────────────────────────────────
    quick_wins   = greedy_allocate(budget, products)
    optimal_plan = dp_allocate(budget, products, step_size=step_size, max_states=max_states)
    scenarios    = generate_scenarios(budget, products, step_size=step_size, max_states=max_states)

    combined: dict = {
        "budget":         budget,
        "budget_source":  budget_source,
        "catalog_size":   len(products),
        "cash_position":  cash,
        "quick_wins":     quick_wins,
        "optimal_plan":   optimal_plan,
        "scenarios":      scenarios,
        "recommendation": recommend_scenario(budget, scenarios),
    }

    # ── Step 7: Brief ─────────────────────────────────────────────────────────
    combined["narrative"] = generate_brief(combined) if inputs.get("narrative", True) else None

    return combined


def run_inventory(inputs: dict) -> InventoryOverview:
    """
    Build the inventory overview.

    Args:
        inputs (dict):
            order_rows     (list[dict]) : Raw order rows
            inventory_rows (list[dict]) : Raw inventory snapshot rows
            as_of          (str)        : Reference date (optional; default now)
            seed           (int)        : k-means seed (optional)
    """
    return build_inventory_overview(
        order_rows     = inputs.get("order_rows", []),
        inventory_rows = inputs.get("inventory_rows", []),
        as_of          = inputs.get("as_of"),
        seed           = inputs.get("seed"),
    )


def run_cash_flow(inputs: dict) -> CashFlow:
    """
    Build the cash-flow view.

    Args:
        inputs (dict):
            order_rows     (list[dict]) : Raw order rows
            timeframe_days (int)        : Window for buckets and forecast (optional)
    """
    order_rows     = inputs.get("order_rows", [])
    timeframe_days = inputs.get("timeframe_days")
    logger.info(f"Building cash flow for {len(order_rows)} orders (timeframe={timeframe_days or 'all'})")
    return build_cash_flow(order_rows, timeframe_days=timeframe_days)


def run_performance(inputs: dict) -> PerformanceReport:
    """Build the performance report from inputs["order_rows"]."""
    return build_performance(inputs.get("order_rows", []))

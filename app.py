"""
app.py
------
VyaparFlow Advisor — command-line entry point.

    advise       Allocate a cash budget across the order catalog
                 (quick wins, optimal plan, scenarios, recommendation, brief).
    inventory    Inventory overview with reorder signals.
    cash-flow    Cash summary, COD forecast and remittance exceptions.
    performance  Order funnel, RTO rates and courier / payment comparison.

Run with:
    python app.py advise --orders data/master_dataset.csv --budget 50000
    python app.py inventory --orders data/master_dataset.csv --inventory data/inventory_snapshot.csv
    python app.py cash-flow --orders data/master_dataset.csv --timeframe-days 30

Output is JSON on stdout.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from pathlib import Path

import pandas as pd

from config.settings import get_dp_max_states, get_dp_step_size, get_log_level
from engine.orchestrator import run_advisor, run_cash_flow, run_inventory, run_performance

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Input / output
# ─────────────────────────────────────────────────────────────────────────────

def _read_rows(path: Path) -> list[dict[str, str]]:
    """CSV → list of raw string rows with lower-cased headers."""
    if not path.exists():
        raise FileNotFoundError(f"Missing required input table: {path}")
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df.to_dict("records")


def _to_json(value):
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _emit(payload) -> None:
    json.dump(payload, sys.stdout, default=_to_json, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


# ─────────────────────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────────────────────

def cmd_advise(args: argparse.Namespace) -> None:
    outputs = run_advisor({
        "order_rows": _read_rows(args.orders),
        "budget":     args.budget,
        "step_size":  args.step,
        "max_states": args.max_states,
        "narrative":  not args.no_narrative,
    })
    _emit(outputs)


def cmd_inventory(args: argparse.Namespace) -> None:
    overview = run_inventory({
        "order_rows":     _read_rows(args.orders),
        "inventory_rows": _read_rows(args.inventory),
        "as_of":          args.as_of,
        "seed":           args.seed,
    })
    _emit(overview)


def cmd_cash_flow(args: argparse.Namespace) -> None:
    _emit(run_cash_flow({
        "order_rows":     _read_rows(args.orders),
        "timeframe_days": args.timeframe_days,
    }))


def cmd_performance(args: argparse.Namespace) -> None:
    _emit(run_performance({"order_rows": _read_rows(args.orders)}))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument(
        "--log-level",
        default=get_log_level(),
        help="Logging level (default from LOG_LEVEL, else WARNING).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    advise = sub.add_parser("advise", help="Allocate a budget across the product catalog.")
    advise.add_argument("--orders", type=Path, required=True, help="Order rows CSV.")
    advise.add_argument(
        "--budget",
        type=float,
        default=None,
        help="Cash to allocate. Defaults to available cash computed from the orders.",
    )
    advise.add_argument(
        "--step",
        type=int,
        default=get_dp_step_size(),
        help="Optimizer budget step in rupees (default from ADVISOR_DP_STEP).",
    )
    advise.add_argument(
        "--max-states",
        type=int,
        default=get_dp_max_states(),
        help="Upper bound on optimizer budget states (default from ADVISOR_DP_MAX_STATES).",
    )
    advise.add_argument("--no-narrative", action="store_true", help="Skip the analyst brief.")
    advise.set_defaults(func=cmd_advise)

    inventory = sub.add_parser("inventory", help="Inventory overview with reorder signals.")
    inventory.add_argument("--orders", type=Path, required=True, help="Order rows CSV.")
    inventory.add_argument("--inventory", type=Path, required=True, help="Inventory snapshot CSV.")
    inventory.add_argument("--as-of", default=None, help="Reference date for stock age (default now).")
    inventory.add_argument("--seed", type=int, default=None, help="Seed for k-means initialisation.")
    inventory.set_defaults(func=cmd_inventory)

    cash_flow = sub.add_parser("cash-flow", help="Cash summary, COD forecast and exceptions.")
    cash_flow.add_argument("--orders", type=Path, required=True, help="Order rows CSV.")
    cash_flow.add_argument(
        "--timeframe-days",
        type=int,
        default=None,
        help="Only count remittances and forecast weeks from the last N days of data.",
    )
    cash_flow.set_defaults(func=cmd_cash_flow)

    performance = sub.add_parser("performance", help="Order funnel, RTO rates and channel comparison.")
    performance.add_argument("--orders", type=Path, required=True, help="Order rows CSV.")
    performance.set_defaults(func=cmd_performance)

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    args.func(args)


if __name__ == "__main__":
    main()

import math

from engine.allocation import line_item, summarize
from engine.scenarios import SCENARIO_LABELS, _to_scenario, generate_scenarios


def _by_label(scenarios):
    return {s.label: s for s in scenarios}


def test_labels_in_fixed_order(saree):
    scenarios = generate_scenarios(50_000, [saree])
    assert tuple(s.label for s in scenarios) == SCENARIO_LABELS


def test_single_product_walkthrough(saree):
    plans = _by_label(generate_scenarios(50_000, [saree]))

    aggressive = plans["Aggressive"]
    assert aggressive.products[0].units == 17
    assert aggressive.total_investment == 47_600
    assert aggressive.expected_return == 32_300

    balanced = plans["Balanced"]
    assert balanced.products[0].units == 8
    assert balanced.total_investment == 22_400
    assert balanced.expected_return == 15_200
    assert balanced.roi == 68

    conservative = plans["Conservative"]
    assert conservative.products[0].units == 3
    assert conservative.total_investment == 8_400
    assert conservative.expected_return == 5_700
    assert conservative.roi == 68


def test_scenario_limits_hold_across_budgets(make_product):
    products = [
        make_product("Kurta",    620, 1_299),
        make_product("Saree",  2_800, 4_700),
        make_product("Dupatta",  240,   599),
        make_product("Lamp",   2_350, 3_299),
        make_product("Candle",   330,   449),
    ]
    for budget in (1_000, 7_777, 25_000, 50_000, 120_000):
        plans = _by_label(generate_scenarios(budget, products))

        for s in plans.values():
            assert s.total_investment <= budget

        conservative = plans["Conservative"]
        sub_budget   = math.floor(budget * 0.7)
        assert conservative.total_investment <= sub_budget
        for item in conservative.allocation.items:
            assert item.cost <= 0.25 * sub_budget

        for item in plans["Balanced"].allocation.items:
            assert item.cost <= 0.5 * budget


def test_balanced_lines_are_merged_by_name(make_product):
    products = [make_product("Tote", 100, 300), make_product("Mat", 700, 1_100)]
    balanced = _by_label(generate_scenarios(2_000, products))["Balanced"]

    names = [i.product for i in balanced.allocation.items]
    assert len(names) == len(set(names))


def test_zero_budget_or_empty_catalog_gives_zero_scenarios(saree):
    for scenarios in (generate_scenarios(0, [saree]), generate_scenarios(10_000, [])):
        assert [s.label for s in scenarios] == list(SCENARIO_LABELS)
        for s in scenarios:
            assert s.total_investment == 0
            assert s.expected_return == 0
            assert s.roi == 0
            assert s.products == []


def test_report_lists_top_ten_but_totals_cover_all(make_product):
    items = [line_item(make_product(f"P{n}", 100, 100 + n), 1) for n in range(1, 13)]
    plan  = summarize(items, 5_000)

    scenario = _to_scenario("Aggressive", plan)

    assert len(scenario.products) == 10
    assert scenario.products[0].product == "P12"
    assert scenario.total_investment == 1_200
    assert scenario.expected_return == sum(range(1, 13))


def test_generate_scenarios_is_idempotent(make_product):
    products = [
        make_product("Kurta",    620, 1_299),
        make_product("Saree",  2_800, 4_700),
        make_product("Dupatta",  240,   599),
    ]

    assert generate_scenarios(33_333, products) == generate_scenarios(33_333, products)

import pytest

from engine.allocation import greedy_allocate
from engine.optimizer import budget_step, dp_allocate


def test_dp_beats_greedy_when_greedy_strands_cash(make_product):
    a = make_product("A", 600, 1_100)
    b = make_product("B", 500, 900)

    greedy  = greedy_allocate(1_000, [a, b])
    optimal = dp_allocate(1_000, [a, b], step_size=100)

    assert greedy.total_profit == 500
    assert optimal.total_profit == 800
    assert [(i.product, i.units) for i in optimal.items] == [("B", 2)]
    assert optimal.total_cost == 1_000
    assert optimal.remaining_budget == 0


def test_dp_never_worse_than_greedy_on_step_grid(make_product):
    products = [
        make_product("Kurta",   300, 520),
        make_product("Bedsheet", 400, 700),
        make_product("Saree",   700, 1_250),
        make_product("Towel",   200, 330),
    ]
    for budget in range(0, 3_001, 100):
        greedy  = greedy_allocate(budget, products)
        optimal = dp_allocate(budget, products, step_size=100)
        assert optimal.total_profit >= greedy.total_profit
        assert optimal.total_cost <= budget


def test_rounded_step_costs_are_repaired_to_budget(make_product):
    candle = make_product("Candle", 150, 250)

    result = dp_allocate(500, [candle], step_size=100)

    assert result.items[0].units == 3
    assert result.total_cost == 450
    assert result.total_profit == 300
    assert result.remaining_budget == 50


def test_items_sorted_by_profit(make_product):
    products = [make_product("Small", 100, 120), make_product("Big", 500, 900)]

    result = dp_allocate(700, products, step_size=100)

    profits = [i.profit for i in result.items]
    assert profits == sorted(profits, reverse=True)


def test_budget_below_one_step_is_empty(saree):
    result = dp_allocate(50, [saree], step_size=100)
    assert result.items == []
    assert result.remaining_budget == 50


def test_zero_budget_and_empty_catalog(saree):
    assert dp_allocate(0, [saree]).items == []
    assert dp_allocate(1_000, []).remaining_budget == 1_000


def test_large_budget_grows_the_step(saree):
    assert budget_step(100_000_000, 100, 10_000) == 10_000
    assert budget_step(50_000, 100, 10_000) == 100

    result = dp_allocate(100_000_000, [saree])
    assert 0 < result.total_cost <= 100_000_000


def test_non_positive_tuning_raises(saree):
    with pytest.raises(ValueError):
        budget_step(1_000, 0)
    with pytest.raises(ValueError):
        dp_allocate(1_000, [saree], max_states=0)


def test_products_rounding_to_zero_profit_are_excluded(make_product):
    penny = make_product("Penny", 100, 100.3)
    assert dp_allocate(1_000, [penny]).items == []


def test_off_grid_costs_fall_back_to_greedy_plan(make_product):
    # A costs 1.99 steps but is priced as one step, so the table overfills with A
    a = make_product("A", 199, 349)
    b = make_product("B", 100, 200)

    greedy  = greedy_allocate(10_000, [a, b])
    optimal = dp_allocate(10_000, [a, b], step_size=100)

    assert greedy.total_profit == 10_000
    assert optimal.total_profit == 10_000
    assert [(i.product, i.units) for i in optimal.items] == [("B", 100)]
    assert optimal.total_cost <= 10_000


def test_dp_never_worse_than_greedy_off_step_grid(make_product):
    products = [
        make_product("Kurta",    199, 349),
        make_product("Dupatta",  149, 260),
        make_product("Saree",  2_850, 4_700),
        make_product("Tote",     185, 399),
        make_product("Candle",   330, 449),
    ]
    for budget in (0, 99, 150, 777, 1_234, 5_000, 9_999, 10_000, 31_337):
        greedy  = greedy_allocate(budget, products)
        optimal = dp_allocate(budget, products, step_size=100)
        assert optimal.total_profit >= greedy.total_profit
        assert optimal.total_cost <= budget


def test_leftover_cash_is_topped_up(make_product):
    lamp  = make_product("Lamp", 150, 260)
    diya  = make_product("Diya", 50, 80)

    result = dp_allocate(500, [lamp, diya], step_size=100)

    assert [(i.product, i.units) for i in result.items] == [("Lamp", 3), ("Diya", 1)]
    assert result.total_profit == 360
    assert result.remaining_budget == 0


def test_dp_allocate_is_idempotent(make_product):
    products = [
        make_product("Kurta",   199, 349),
        make_product("Saree", 2_800, 4_700),
        make_product("Tote",    185, 399),
    ]

    first  = dp_allocate(12_345, products, step_size=100)
    second = dp_allocate(12_345, products, step_size=100)

    assert first == second


def test_zero_step_raises_even_without_products():
    with pytest.raises(ValueError):
        dp_allocate(1_000, [], step_size=0)

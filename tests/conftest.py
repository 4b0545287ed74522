import pytest

from engine.catalog import Product

SETTINGS_KEYS = (
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "ADVISOR_DP_STEP",
    "ADVISOR_DP_MAX_STATES",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run every test in an empty directory with no advisor settings in the environment."""
    monkeypatch.chdir(tmp_path)
    for key in SETTINGS_KEYS:
        # setenv first so teardown removes anything a .env load adds later
        monkeypatch.setenv(key, "placeholder")
        monkeypatch.delenv(key)
    return tmp_path


def order_row(pid, name, cost, sell, **extra):
    row = {
        "product_id":    pid,
        "product_name":  name,
        "cost_price":    str(cost),
        "selling_price": str(sell),
    }
    row.update({k: str(v) for k, v in extra.items()})
    return row


def product(name, cost, sell, pid=None):
    return Product(
        product_id      = pid or name,
        name            = name,
        cost_price      = float(cost),
        selling_price   = float(sell),
        profit_per_unit = float(sell - cost),
        rate_of_return  = (sell - cost) / cost,
    )


@pytest.fixture
def make_row():
    return order_row


@pytest.fixture
def make_product():
    return product


@pytest.fixture
def saree():
    """Single product from the allocation walkthrough: ₹2,800 cost, ₹4,700 price."""
    return product("Silk Saree", 2800, 4700, pid="SAR-01")

"""
Shared fixtures. Settings are cached at import time, so the environment is
pinned here before anything from cafe_engine is imported.
"""
import os

os.environ.setdefault("STATE_BACKEND", "memory")
os.environ.setdefault("METRICS_ENABLED", "false")
os.environ.setdefault("BACKEND_API_URL", "http://backend.test")
os.environ.setdefault("CASH_FLOAT_START", "1000")

import pytest

from cafe_engine.schemas.menu import MenuItem
from cafe_engine.schemas.order import Order


class FixedRandom:
    """Stand-in RNG whose randint always answers ``value``."""

    def __init__(self, value: int):
        self.value = value

    def randint(self, a: int, b: int) -> int:
        assert a <= self.value <= b
        return self.value


@pytest.fixture
def latte():
    return MenuItem(_id="latte", name="Cafe Latte", category="Beverages",
                    pricing={"Medium": 100, "Large": 150})


@pytest.fixture
def wings():
    return MenuItem(_id="wings", name="Buffalo Wings", category="Meals",
                    pricing={"base": 180, "Family": 420})


@pytest.fixture
def cookie():
    return MenuItem(_id="cookie", name="Choco Cookie", category="Desserts",
                    pricing={"Single": 35.5})


@pytest.fixture
def empty_order():
    return Order()


@pytest.fixture
def menu_payload(latte, wings, cookie):
    return {"items": [item.model_dump(by_alias=True) for item in (latte, wings, cookie)]}


@pytest.fixture
def fixed_random():
    return FixedRandom

"""Shared pytest fixtures for all test suites."""

from collections.abc import Callable
from typing import Any

import pytest


def _item(name: str, price: Any, item_type: str = "activity") -> dict[str, Any]:
    return {"time": "10:00", "activity_name": name, "type": item_type, "price": price}


def _day(day: int, *prices: Any) -> dict[str, Any]:
    return {
        "day": day,
        "date": f"2025-04-0{day}",
        "area": "Kyoto",
        "theme": "temples",
        "schedule": [_item(f"Stop {i}", p) for i, p in enumerate(prices, start=1)],
    }


@pytest.fixture
def make_item() -> Callable[..., dict[str, Any]]:
    """Builder for raw schedule items as the generator emits them."""
    return _item


@pytest.fixture
def make_day() -> Callable[..., dict[str, Any]]:
    """Builder for raw day plans with one item per price."""
    return _day


@pytest.fixture
def two_day_itinerary() -> list[dict[str, Any]]:
    """Two days totalling 9,000 and 14,000 yen."""
    return [_day(1, "4,000円", "5,000円"), _day(2, "6,000円", "8,000円")]

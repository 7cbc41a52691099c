"""Itinerary models - day plans and their schedule items.

Drafts arrive as loosely-shaped JSON from the generator. The before-validators
below coerce foreign scalars into the declared shape instead of rejecting the
whole draft; prices are NOT interpreted here (see budget.normalizer).
"""

import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from backend.app.models.common import ItemType

# Wire aliases the generator has been seen to use for the canonical amount
PRICE_AMOUNT_ALIASES = ("price_jpy", "priceAmount")
ACTIVITY_NAME_ALIASES = ("activityName", "name")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def coerce_text(value: Any) -> str:
    """Coerce a loosely-typed scalar to a display string ("" when unusable)."""
    if isinstance(value, str):
        return value
    if _is_number(value):
        return str(value)
    return ""


def coerce_amount(value: Any) -> int | None:
    """Return a floored non-negative int, or None if value is not a valid amount."""
    if not _is_number(value) or not math.isfinite(value) or value < 0:
        return None
    return math.floor(value)


class ScheduleItem(BaseModel):
    """One bookable unit within a day (meal, activity, lodging stay, transit leg)."""

    model_config = ConfigDict(extra="allow")

    time: str = ""
    activity_name: str = ""
    type: str = ItemType.activity.value
    description: str = ""
    price: str | int | float | None = None
    # Canonical yen amount; always set once the item has been normalized
    price_amount: int | None = Field(default=None, ge=0)
    url: str = ""
    latitude: float | None = None
    longitude: float | None = None

    @model_validator(mode="before")
    @classmethod
    def coerce_draft_fields(cls, data: Any) -> Any:
        """Coerce generator output into the declared field types."""
        if not isinstance(data, Mapping):
            return data
        out = dict(data)

        if "price_amount" not in out:
            for alias in PRICE_AMOUNT_ALIASES:
                if alias in out:
                    out["price_amount"] = out.pop(alias)
                    break
        if "price_amount" in out:
            out["price_amount"] = coerce_amount(out["price_amount"])

        if "activity_name" not in out:
            for alias in ACTIVITY_NAME_ALIASES:
                if isinstance(out.get(alias), str):
                    out["activity_name"] = out[alias]
                    break

        for key in ("time", "activity_name", "description", "url"):
            if key in out:
                out[key] = coerce_text(out[key])
        if "type" in out:
            out["type"] = coerce_text(out["type"]) or ItemType.activity.value

        price = out.get("price")
        if price is not None and not (isinstance(price, str) or _is_number(price)):
            out["price"] = None

        for key in ("latitude", "longitude"):
            if key in out and not (_is_number(out[key]) and math.isfinite(out[key])):
                out[key] = None
        return out


class DayPlan(BaseModel):
    """Schedule and metadata for a single calendar day of a trip."""

    model_config = ConfigDict(extra="allow")

    day: int | None = None
    date: str = ""
    area: str = ""
    theme: str = ""
    schedule: list[ScheduleItem] = Field(default_factory=list)
    total_cost: int = Field(default=0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def coerce_draft_fields(cls, data: Any) -> Any:
        """Coerce generator output into the declared field types."""
        if not isinstance(data, Mapping):
            return data
        out = dict(data)

        if "day" in out:
            out["day"] = _coerce_ordinal(out["day"])
        for key in ("date", "area", "theme"):
            if key in out:
                out[key] = coerce_text(out[key])

        schedule = out.get("schedule")
        if isinstance(schedule, list):
            out["schedule"] = [s for s in schedule if isinstance(s, (Mapping, ScheduleItem))]
        else:
            out["schedule"] = []

        if "total_cost" in out:
            out["total_cost"] = coerce_amount(out["total_cost"]) or 0
        return out

    def identity(self) -> dict[str, Any]:
        """Fields a reviser must keep unchanged."""
        return {"day": self.day, "date": self.date, "area": self.area, "theme": self.theme}


# Ordered by calendar day; length fixed once planning starts
Itinerary = list[DayPlan]


def _coerce_ordinal(value: Any) -> int | None:
    if _is_number(value) and math.isfinite(value):
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None

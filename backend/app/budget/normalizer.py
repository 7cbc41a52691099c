"""Day-plan normalization - the single place that fixes item amounts and day totals.

After `normalize_day_plan` every schedule item carries an integer
`price_amount >= 0` and the day's `total_cost` equals the sum of those amounts.
Inputs are never mutated; a new DayPlan is returned every time.
"""

import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from backend.app.budget.price import to_jpy
from backend.app.models.itinerary import DayPlan, ScheduleItem

logger = logging.getLogger(__name__)


def normalize_item(raw: Any) -> ScheduleItem | None:
    """Return a copy of raw with `price_amount` set, or None if raw is not an item.

    A valid non-negative numeric `price_amount` (or wire alias `price_jpy`)
    wins over re-parsing the display price, so normalizing twice is a no-op.
    """
    if isinstance(raw, ScheduleItem):
        item = raw.model_copy(deep=True)
    elif isinstance(raw, Mapping):
        try:
            item = ScheduleItem.model_validate(raw)
        except ValidationError as e:
            logger.debug(f"Dropping unparseable schedule item: {e.error_count()} error(s)")
            return None
    else:
        return None

    if item.price_amount is None:
        item.price_amount = to_jpy(item.price)
    return item


def normalize_day_plan(draft: Any) -> DayPlan:
    """Produce a canonical DayPlan from a possibly malformed draft.

    Args:
        draft: DayPlan, mapping from the generator, or anything else

    Returns:
        New DayPlan with per-item amounts and a recomputed total_cost.
        Non-mapping input yields an empty plan.
    """
    if isinstance(draft, DayPlan):
        raw_items: Sequence[Any] = draft.schedule
        plan = draft.model_copy(update={"schedule": []}, deep=True)
    elif isinstance(draft, Mapping):
        raw_items = draft.get("schedule") if isinstance(draft.get("schedule"), list) else []
        fields = {k: v for k, v in draft.items() if k != "schedule"}
        try:
            plan = DayPlan.model_validate(fields)
        except ValidationError as e:
            logger.warning(f"Day plan draft failed validation, using empty plan: {e}")
            plan = DayPlan()
    else:
        return DayPlan()

    schedule: list[ScheduleItem] = []
    for raw in raw_items:
        item = normalize_item(raw)
        if item is not None:
            schedule.append(item)

    plan.schedule = schedule
    plan.total_cost = max(0, math.floor(sum(item.price_amount or 0 for item in schedule)))
    return plan


def day_total(draft: Any) -> int:
    """Total cost of one day after normalization."""
    return normalize_day_plan(draft).total_cost


def normalize_itinerary(days: Any) -> list[DayPlan]:
    """Normalize every day of an itinerary; non-sequence input yields []."""
    if not isinstance(days, Sequence) or isinstance(days, (str, bytes)):
        return []
    return [normalize_day_plan(d) for d in days]


def trip_total(itinerary: Sequence[Any]) -> int:
    """Aggregate cost of an itinerary (each day normalized first)."""
    return sum(day_total(d) for d in itinerary)

"""Plan request/response models for the planning endpoints."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, model_validator

from backend.app.models.budget import DayReconciliation, TripReconciliation
from backend.app.models.common import PriceMode
from backend.app.models.itinerary import DayPlan


class CreateDayPlansRequest(BaseModel):
    """Batch of per-day drafting inputs (day, date, area, theme, resources...)."""

    days: list[dict[str, Any]]
    constraints: dict[str, Any] = Field(default_factory=dict)
    per_day_budget: float | None = None
    destination: str = ""
    finalize: bool = True

    @model_validator(mode="before")
    @classmethod
    def accept_batch_input(cls, data: Any) -> Any:
        """A list under `batchInput` takes the place of `days`."""
        if isinstance(data, Mapping) and isinstance(data.get("batchInput"), list):
            out = {k: v for k, v in data.items() if k != "batchInput"}
            out["days"] = data["batchInput"]
            return out
        return data


class FinalizeBudgetRequest(BaseModel):
    """Trip-level reconciliation input."""

    itinerary: list[Any]
    per_day_budget: float | None = None
    target_min_ratio: float | None = None
    target_max_ratio: float | None = None
    destination: str = ""


class RebudgetDayRequest(BaseModel):
    """Single-day reconciliation input."""

    day_plan: dict[str, Any]
    per_day_budget: float | None = None
    max_attempts: int | None = Field(default=None, ge=1, le=5)


class ParsePriceRequest(BaseModel):
    """Price string (or number) to interpret."""

    price: str | int | float | None = None
    mode: PriceMode = PriceMode.MID


class ParsePriceResponse(BaseModel):
    """Representative yen amount."""

    price: str | int | float | None = None
    mode: PriceMode
    amount: int


class DayDraftResult(BaseModel):
    """Outcome of drafting (and repairing) one day."""

    day: int | None = None
    ok: bool
    plan: DayPlan | None = None
    reconciliation: DayReconciliation | None = None
    error: str | None = None


class DayPlansOutcome(BaseModel):
    """Drafted itinerary plus per-day and trip-level bookkeeping."""

    destination: str = ""
    results: list[DayDraftResult]
    itinerary: list[DayPlan]
    trip_total: int
    trip: TripReconciliation | None = None

"""Models package - re-exports for convenience."""

from backend.app.models.budget import (
    BudgetWindow,
    DayReconciliation,
    PerDayTarget,
    TripReconciliation,
)
from backend.app.models.common import ItemType, PriceMode, ReconcileStatus
from backend.app.models.itinerary import DayPlan, Itinerary, ScheduleItem
from backend.app.models.plan import (
    CreateDayPlansRequest,
    DayDraftResult,
    DayPlansOutcome,
    FinalizeBudgetRequest,
    ParsePriceRequest,
    ParsePriceResponse,
    RebudgetDayRequest,
)

__all__ = [
    # Common
    "ItemType",
    "PriceMode",
    "ReconcileStatus",
    # Itinerary
    "ScheduleItem",
    "DayPlan",
    "Itinerary",
    # Budget
    "BudgetWindow",
    "PerDayTarget",
    "TripReconciliation",
    "DayReconciliation",
    # Plan requests/responses
    "CreateDayPlansRequest",
    "FinalizeBudgetRequest",
    "RebudgetDayRequest",
    "ParsePriceRequest",
    "ParsePriceResponse",
    "DayDraftResult",
    "DayPlansOutcome",
]

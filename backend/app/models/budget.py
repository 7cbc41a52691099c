"""Budget window and reconciliation result models."""

from pydantic import BaseModel, Field

from backend.app.models.common import ReconcileStatus
from backend.app.models.itinerary import DayPlan


class BudgetWindow(BaseModel):
    """Target band for a trip total, derived from a per-day budget."""

    per_day_budget: float = Field(..., gt=0)
    day_count: int = Field(..., gt=0)
    total_budget: float
    min_ratio: float
    max_ratio: float
    min_target: int
    max_target: int

    def contains(self, total: int) -> bool:
        """True when total lies in [min_target, max_target]."""
        return self.min_target <= total <= self.max_target


class PerDayTarget(BaseModel):
    """Per-day spend band suggested from a total budget."""

    min_per_day: int | None = None
    max_per_day: int | None = None


class TripReconciliation(BaseModel):
    """Result of pulling a whole itinerary into its budget window.

    Non-convergence is a reported outcome, not an error: callers compare
    `trip_total` against `window` or read `converged`.
    """

    itinerary: list[DayPlan]
    trip_total: int
    window: BudgetWindow | None = None
    attempts: int = 0
    status: ReconcileStatus

    @property
    def converged(self) -> bool:
        """True when the returned itinerary satisfies its window (or has none)."""
        return self.status in (
            ReconcileStatus.SKIPPED,
            ReconcileStatus.SATISFIED,
            ReconcileStatus.CONVERGED,
        )


class DayReconciliation(BaseModel):
    """Result of forcing one day under its per-day cap."""

    day_plan: DayPlan
    total: int
    budget_per_day: float | None = None
    attempts: int = 0
    status: ReconcileStatus

    @property
    def converged(self) -> bool:
        """True when the returned day plan is under its cap (or has none)."""
        return self.status in (
            ReconcileStatus.SKIPPED,
            ReconcileStatus.SATISFIED,
            ReconcileStatus.CONVERGED,
        )

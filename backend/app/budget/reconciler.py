"""Budget reconciliation - bounded revise/normalize/evaluate loops.

Both entry points follow the same state machine:

    Evaluate -> Satisfied: done
             -> Unsatisfied: Revise -> Normalize -> Evaluate

terminating on satisfaction or when the attempt cap is reached. The reviser
is the only suspension point and is awaited sequentially; each attempt's
payload depends on the previous outcome.

Failure policy:
- A reviser exception or malformed response stops the loop and the last
  good normalized plan is returned (never a regression to garbage).
- Not reaching the target is reported via the result status, never raised.
- The reviser is never called for a plan that already satisfies its
  constraint.
"""

import logging
import math
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from backend.app.budget.normalizer import normalize_day_plan, normalize_itinerary
from backend.app.budget.price import format_price
from backend.app.llm.prompts import DAY_BUDGET_SYSTEM_PROMPT, TRIP_BUDGET_SYSTEM_PROMPT
from backend.app.models.budget import (
    BudgetWindow,
    DayReconciliation,
    PerDayTarget,
    TripReconciliation,
)
from backend.app.models.common import ReconcileStatus
from backend.app.models.itinerary import DayPlan
from backend.app.utils.logging import StructuredReconcileLogger
from backend.app.utils.metrics import PrometheusReconcileMetrics

logger = logging.getLogger(__name__)

# (system_instruction, payload) -> revised trip or day object
ReviseFn = Callable[[str, dict[str, Any]], Awaitable[Any]]

TRIP_MAX_ATTEMPTS = 2
DAY_MAX_ATTEMPTS = 2
DEFAULT_MIN_RATIO = 0.8
DEFAULT_MAX_RATIO = 1.0

_structured_logger = StructuredReconcileLogger()
_metrics = PrometheusReconcileMetrics()


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _positive_budget(value: Any) -> float | None:
    """Return value as a float if it is a positive finite number, else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return float(value)


def budget_window(
    per_day_budget: Any,
    day_count: int,
    target_min_ratio: float = DEFAULT_MIN_RATIO,
    target_max_ratio: float = DEFAULT_MAX_RATIO,
) -> BudgetWindow | None:
    """Derive the trip-level target band.

    Returns:
        BudgetWindow, or None when no constraint applies (budget not a
        positive finite number, or no days)
    """
    budget = _positive_budget(per_day_budget)
    if budget is None or day_count <= 0:
        return None

    min_ratio = _clamp(target_min_ratio, 0.0, 1.0)
    max_ratio = _clamp(target_max_ratio, 0.0, 1.0)
    total_budget = budget * day_count
    return BudgetWindow(
        per_day_budget=budget,
        day_count=day_count,
        total_budget=total_budget,
        min_ratio=min_ratio,
        max_ratio=max_ratio,
        min_target=math.floor(total_budget * min_ratio),
        max_target=math.floor(total_budget * max_ratio),
    )


def suggest_per_day_target(
    total_budget: Any,
    days: Any,
    min_ratio: float = DEFAULT_MIN_RATIO,
    max_ratio: float = DEFAULT_MAX_RATIO,
) -> PerDayTarget:
    """Split a total budget into a per-day spend band."""
    budget = _positive_budget(total_budget)
    day_count = _positive_budget(days)
    if budget is None or day_count is None:
        return PerDayTarget()
    return PerDayTarget(
        min_per_day=math.floor(budget * _clamp(min_ratio, 0.0, 1.0) / day_count),
        max_per_day=math.floor(budget * _clamp(max_ratio, 0.0, 1.0) / day_count),
    )


def _trip_total(itinerary: Sequence[DayPlan]) -> int:
    return sum(d.total_cost for d in itinerary)


def schedule_view(plan: DayPlan) -> list[dict[str, str]]:
    """Schedule as sent to the reviser: display fields only, prices as strings."""
    view: list[dict[str, str]] = []
    for item in plan.schedule:
        if item.price_amount is not None:
            price = format_price(item.price_amount)
        else:
            price = item.price if isinstance(item.price, str) else ""
        view.append(
            {
                "time": item.time,
                "activity_name": item.activity_name,
                "type": item.type,
                "description": item.description,
                "price": price,
                "url": item.url or "",
            }
        )
    return view


def build_trip_payload(
    itinerary: Sequence[DayPlan], window: BudgetWindow, destination: str = ""
) -> dict[str, Any]:
    """Build the trip-level revision request from the current itinerary."""
    return {
        "plan_conditions": {
            "destination": destination,
            "budget_per_day": window.per_day_budget,
            "total_budget": window.total_budget,
            "target_min_ratio": window.min_ratio,
            "target_max_ratio": window.max_ratio,
            "min_target": window.min_target,
            "max_target": window.max_target,
        },
        "itinerary": [{**d.identity(), "schedule": schedule_view(d)} for d in itinerary],
    }


def build_day_payload(plan: DayPlan, budget_per_day: float) -> dict[str, Any]:
    """Build the single-day revision request."""
    return {
        "budget_per_day": budget_per_day,
        "fixed": plan.identity(),
        "schedule": schedule_view(plan),
    }


def extract_revised_itinerary(response: Any) -> list[Any] | None:
    """Pull the day sequence out of a trip revision; None if absent or empty."""
    days: Any = None
    if isinstance(response, list):
        days = response
    elif isinstance(response, Mapping):
        days = response.get("itinerary")
        if not isinstance(days, list):
            days = response.get("revised_itinerary")
    if not isinstance(days, list) or not days:
        return None
    return days


def extract_revised_day(response: Any) -> Mapping[str, Any] | None:
    """Pull the day plan out of a day revision; None unless it has a list schedule."""
    if not isinstance(response, Mapping):
        return None
    candidate = response.get("day_plan") or response.get("plan") or response
    if not isinstance(candidate, Mapping) or not isinstance(candidate.get("schedule"), list):
        return None
    return candidate


async def _call_reviser(
    revise_fn: ReviseFn, scope: str, system: str, payload: dict[str, Any]
) -> tuple[Any, float, str | None]:
    """Await the reviser once; returns (response, latency_ms, error_reason)."""
    _metrics.inc_attempt(scope)
    started = time.monotonic()
    try:
        response = await revise_fn(system, payload)
    except Exception as e:
        latency_ms = (time.monotonic() - started) * 1000
        logger.warning(f"Reviser call failed ({scope}): {e}")
        _metrics.record_latency(scope, "error", latency_ms)
        return None, latency_ms, type(e).__name__
    latency_ms = (time.monotonic() - started) * 1000
    _metrics.record_latency(scope, "ok", latency_ms)
    return response, latency_ms, None


async def reconcile_trip(
    *,
    revise_fn: ReviseFn,
    itinerary: Any,
    per_day_budget: Any,
    target_min_ratio: float = DEFAULT_MIN_RATIO,
    target_max_ratio: float = DEFAULT_MAX_RATIO,
    destination: str = "",
    max_attempts: int = TRIP_MAX_ATTEMPTS,
) -> TripReconciliation:
    """Pull an itinerary's aggregate cost into its target ratio band.

    Args:
        revise_fn: External plan reviser, awaited at most max_attempts times
        itinerary: Day plans (normalized here; already-normalized input is fine)
        per_day_budget: Positive yen amount, or anything else for "no constraint"
        target_min_ratio: Lower band edge as a fraction of total budget
        target_max_ratio: Upper band edge as a fraction of total budget
        destination: Passed through to the reviser as context
        max_attempts: Cap on reviser calls

    Returns:
        TripReconciliation with the best normalized itinerary and its total
    """
    scope = "trip"
    current = normalize_itinerary(itinerary)
    total = _trip_total(current)

    window = budget_window(per_day_budget, len(current), target_min_ratio, target_max_ratio)
    if window is None:
        _metrics.inc_outcome(scope, ReconcileStatus.SKIPPED.value)
        return TripReconciliation(
            itinerary=current, trip_total=total, status=ReconcileStatus.SKIPPED
        )

    if window.contains(total):
        _metrics.inc_outcome(scope, ReconcileStatus.SATISFIED.value)
        return TripReconciliation(
            itinerary=current,
            trip_total=total,
            window=window,
            status=ReconcileStatus.SATISFIED,
        )

    status = ReconcileStatus.NOT_CONVERGED
    attempts = 0
    while attempts < max_attempts:
        attempts += 1
        payload = build_trip_payload(current, window, destination)
        response, latency_ms, error = await _call_reviser(
            revise_fn, scope, TRIP_BUDGET_SYSTEM_PROMPT, payload
        )

        revised = extract_revised_itinerary(response)
        if revised is None:
            _structured_logger.log_attempt(
                scope,
                attempts,
                "rejected",
                None,
                latency_ms,
                window.min_target,
                window.max_target,
                error_reason=error or "missing_itinerary",
            )
            status = ReconcileStatus.REVISER_FAILED
            break

        if len(revised) != len(current):
            logger.warning(
                f"Reviser changed day count from {len(current)} to {len(revised)}; adopting anyway"
            )

        current = normalize_itinerary(revised)
        total = _trip_total(current)
        _structured_logger.log_attempt(
            scope, attempts, "adopted", total, latency_ms, window.min_target, window.max_target
        )

        if window.contains(total):
            status = ReconcileStatus.CONVERGED
            break

    _metrics.inc_outcome(scope, status.value)
    _structured_logger.log_outcome(scope, status.value, attempts, total)
    return TripReconciliation(
        itinerary=current,
        trip_total=total,
        window=window,
        attempts=attempts,
        status=status,
    )


async def reconcile_day(
    *,
    revise_fn: ReviseFn,
    draft_day_plan: Any,
    per_day_budget: Any,
    max_attempts: int = DAY_MAX_ATTEMPTS,
) -> DayReconciliation:
    """Force a single day at or below its per-day cap.

    Ceiling only: a day already at or under the cap is returned unchanged
    without calling the reviser.

    Args:
        revise_fn: External plan reviser
        draft_day_plan: Day plan (normalized here)
        per_day_budget: Positive yen cap, or anything else for "no constraint"
        max_attempts: Cap on reviser calls (at least one attempt is made)

    Returns:
        DayReconciliation with the last good normalized day plan
    """
    scope = "day"
    plan = normalize_day_plan(draft_day_plan)
    budget = _positive_budget(per_day_budget)

    if budget is None:
        _metrics.inc_outcome(scope, ReconcileStatus.SKIPPED.value)
        return DayReconciliation(
            day_plan=plan, total=plan.total_cost, status=ReconcileStatus.SKIPPED
        )

    if plan.total_cost <= budget:
        _metrics.inc_outcome(scope, ReconcileStatus.SATISFIED.value)
        return DayReconciliation(
            day_plan=plan,
            total=plan.total_cost,
            budget_per_day=budget,
            status=ReconcileStatus.SATISFIED,
        )

    status = ReconcileStatus.NOT_CONVERGED
    attempts = 0
    while attempts < max(1, max_attempts):
        attempts += 1
        payload = build_day_payload(plan, budget)
        response, latency_ms, error = await _call_reviser(
            revise_fn, scope, DAY_BUDGET_SYSTEM_PROMPT, payload
        )

        revised = extract_revised_day(response)
        if revised is None:
            _structured_logger.log_attempt(
                scope,
                attempts,
                "rejected",
                None,
                latency_ms,
                max_target=math.floor(budget),
                error_reason=error or "missing_schedule",
            )
            status = ReconcileStatus.REVISER_FAILED
            break

        plan = normalize_day_plan(revised)
        _structured_logger.log_attempt(
            scope, attempts, "adopted", plan.total_cost, latency_ms, max_target=math.floor(budget)
        )

        if plan.total_cost <= budget:
            status = ReconcileStatus.CONVERGED
            break

    _metrics.inc_outcome(scope, status.value)
    _structured_logger.log_outcome(scope, status.value, attempts, plan.total_cost)
    return DayReconciliation(
        day_plan=plan,
        total=plan.total_cost,
        budget_per_day=budget,
        attempts=attempts,
        status=status,
    )

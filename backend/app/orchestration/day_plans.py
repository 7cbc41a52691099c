"""Day-plan orchestration: draft every day, repair overages, close the trip budget.

Flow:
1. Fan out one drafting call per day (concurrently; a failed day never
   aborts the batch).
2. Normalize each usable draft and repair it with reconcile_day when it is
   over the per-day cap.
3. Pull the assembled itinerary into its budget window with reconcile_trip.
4. Replace missing item URLs with maps searches.
"""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from backend.app.budget.reconciler import (
    DAY_MAX_ATTEMPTS,
    DEFAULT_MAX_RATIO,
    DEFAULT_MIN_RATIO,
    TRIP_MAX_ATTEMPTS,
    reconcile_day,
    reconcile_trip,
)
from backend.app.enrichment.urls import fill_missing_urls
from backend.app.llm.client import (
    DAY_BUDGET_AGENT,
    DAY_PLANNER_AGENT,
    TRIP_BUDGET_AGENT,
    JsonLLMClient,
    make_reviser,
)
from backend.app.llm.prompts import DAY_PLAN_SYSTEM_PROMPT
from backend.app.models.itinerary import DayPlan
from backend.app.models.plan import DayDraftResult, DayPlansOutcome
from backend.app.utils.metrics import PrometheusReconcileMetrics

logger = logging.getLogger(__name__)

IDENTITY_FIELDS = ("day", "date", "area", "theme")

_metrics = PrometheusReconcileMetrics()


def pick_destination(days: Sequence[Mapping[str, Any]]) -> str:
    """First destination named by any day input (top level or plan conditions)."""
    for day in days:
        conditions = day.get("plan_conditions") or day.get("planConditions")
        dest = conditions.get("destination") if isinstance(conditions, Mapping) else None
        dest = dest or day.get("destination")
        if dest:
            return str(dest)
    return ""


async def draft_day(
    client: JsonLLMClient,
    day_input: Mapping[str, Any],
    constraints: Mapping[str, Any],
    per_day_budget: float | None,
    model: str | None = None,
) -> dict[str, Any]:
    """Ask the generator for one day's draft plan."""
    body: dict[str, Any] = {**day_input, "constraints": day_input.get("constraints") or constraints}
    if per_day_budget is not None:
        body.setdefault("budget_per_day", per_day_budget)
    return await client.complete_json(
        agent=DAY_PLANNER_AGENT,
        system_prompt=DAY_PLAN_SYSTEM_PROMPT,
        payload=body,
        model=model,
    )


def _with_identity(draft: Mapping[str, Any], day_input: Mapping[str, Any]) -> dict[str, Any]:
    """Fill identity fields the draft left empty from the day's input."""
    out = dict(draft)
    for key in IDENTITY_FIELDS:
        if not out.get(key) and day_input.get(key):
            out[key] = day_input[key]
    return out


async def create_day_plans(
    *,
    client: JsonLLMClient,
    days: Sequence[Mapping[str, Any]],
    constraints: Mapping[str, Any] | None = None,
    per_day_budget: float | None = None,
    destination: str = "",
    finalize: bool = True,
    target_min_ratio: float = DEFAULT_MIN_RATIO,
    target_max_ratio: float = DEFAULT_MAX_RATIO,
    day_max_attempts: int = DAY_MAX_ATTEMPTS,
    trip_max_attempts: int = TRIP_MAX_ATTEMPTS,
    planner_model: str | None = None,
    budget_model: str | None = None,
) -> DayPlansOutcome:
    """Draft, repair and finalize a multi-day itinerary.

    Args:
        client: JSON LLM client used for drafting and as reviser
        days: Per-day inputs, in calendar order
        constraints: Shared constraints for days that carry none
        per_day_budget: Yen cap per day (None disables budget repair)
        destination: Trip destination; derived from the day inputs when empty
        finalize: Run trip-level reconciliation after drafting
        target_min_ratio: Lower band edge for the trip total
        target_max_ratio: Upper band edge for the trip total
        day_max_attempts: Reviser cap per over-budget day
        trip_max_attempts: Reviser cap for the trip
        planner_model: Model override for drafting
        budget_model: Model override for revisions

    Returns:
        DayPlansOutcome with per-day results and the final itinerary
    """
    destination = destination or pick_destination(days)
    shared_constraints = dict(constraints or {})

    settled = await asyncio.gather(
        *(draft_day(client, d, shared_constraints, per_day_budget, planner_model) for d in days),
        return_exceptions=True,
    )

    results: list[DayDraftResult] = []
    usable: list[tuple[int, dict[str, Any]]] = []
    for day_input, outcome in zip(days, settled):
        day_no = day_input.get("day")
        day_no = day_no if isinstance(day_no, int) and not isinstance(day_no, bool) else None

        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            logger.warning(f"Day {day_no} draft failed: {outcome}")
            _metrics.inc_draft_failure()
            error = str(outcome) or type(outcome).__name__
            results.append(DayDraftResult(day=day_no, ok=False, error=error))
            continue

        if not isinstance(outcome, Mapping) or not isinstance(outcome.get("schedule"), list):
            logger.warning(f"Day {day_no} draft has no schedule list, skipping")
            _metrics.inc_draft_failure()
            results.append(DayDraftResult(day=day_no, ok=False, error="draft has no schedule"))
            continue

        usable.append((len(results), _with_identity(outcome, day_input)))
        results.append(DayDraftResult(day=day_no, ok=True))

    day_reviser = make_reviser(client, DAY_BUDGET_AGENT, budget_model)
    repairs = await asyncio.gather(
        *(
            reconcile_day(
                revise_fn=day_reviser,
                draft_day_plan=draft,
                per_day_budget=per_day_budget,
                max_attempts=day_max_attempts,
            )
            for _, draft in usable
        )
    )

    itinerary: list[DayPlan] = []
    for (index, _), repair in zip(usable, repairs):
        result = results[index]
        result.plan = repair.day_plan
        result.reconciliation = repair
        if result.day is None:
            result.day = repair.day_plan.day
        itinerary.append(repair.day_plan)

    trip = None
    if finalize and itinerary:
        trip = await reconcile_trip(
            revise_fn=make_reviser(client, TRIP_BUDGET_AGENT, budget_model),
            itinerary=itinerary,
            per_day_budget=per_day_budget,
            target_min_ratio=target_min_ratio,
            target_max_ratio=target_max_ratio,
            destination=destination,
            max_attempts=trip_max_attempts,
        )
        itinerary = trip.itinerary

    itinerary = fill_missing_urls(itinerary, destination)
    return DayPlansOutcome(
        destination=destination,
        results=results,
        itinerary=itinerary,
        trip_total=sum(d.total_cost for d in itinerary),
        trip=trip,
    )

"""Planning endpoints - day-plan drafting, budget reconciliation and price parsing."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from backend.app.budget.normalizer import normalize_day_plan
from backend.app.budget.price import parse_price
from backend.app.budget.reconciler import reconcile_day, reconcile_trip
from backend.app.config import Settings, get_settings
from backend.app.llm.client import (
    DAY_BUDGET_AGENT,
    TRIP_BUDGET_AGENT,
    JsonLLMClient,
    get_llm_client,
    make_reviser,
)
from backend.app.models.budget import DayReconciliation, TripReconciliation
from backend.app.models.itinerary import DayPlan
from backend.app.models.plan import (
    CreateDayPlansRequest,
    DayPlansOutcome,
    FinalizeBudgetRequest,
    ParsePriceRequest,
    ParsePriceResponse,
    RebudgetDayRequest,
)
from backend.app.orchestration.day_plans import create_day_plans

router = APIRouter(prefix="/api", tags=["plans"])
logger = logging.getLogger(__name__)


def get_client(settings: Annotated[Settings, Depends(get_settings)]) -> JsonLLMClient:
    """LLM client dependency (overridden in tests)."""
    return get_llm_client(settings)


@router.post("/create-day-plans", response_model=DayPlansOutcome)
async def create_day_plans_route(
    request: CreateDayPlansRequest,
    client: Annotated[JsonLLMClient, Depends(get_client)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> DayPlansOutcome:
    """Draft every requested day, repair over-budget days and close the trip budget."""
    if not request.days:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="days must be a non-empty list"
        )

    outcome = await create_day_plans(
        client=client,
        days=request.days,
        constraints=request.constraints,
        per_day_budget=request.per_day_budget,
        destination=request.destination,
        finalize=request.finalize,
        target_min_ratio=settings.target_min_ratio,
        target_max_ratio=settings.target_max_ratio,
        day_max_attempts=settings.day_max_attempts,
        trip_max_attempts=settings.trip_max_attempts,
        budget_model=settings.budget_model,
    )
    failed = sum(1 for r in outcome.results if not r.ok)
    logger.info(
        f"create-day-plans: {len(outcome.itinerary)} day(s) planned, {failed} failed, "
        f"total {outcome.trip_total}"
    )
    return outcome


@router.post("/finalize-budget", response_model=TripReconciliation)
async def finalize_budget(
    request: FinalizeBudgetRequest,
    client: Annotated[JsonLLMClient, Depends(get_client)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TripReconciliation:
    """Pull a whole itinerary into its target budget window."""
    min_ratio = request.target_min_ratio
    max_ratio = request.target_max_ratio
    return await reconcile_trip(
        revise_fn=make_reviser(client, TRIP_BUDGET_AGENT, settings.budget_model),
        itinerary=request.itinerary,
        per_day_budget=request.per_day_budget,
        target_min_ratio=settings.target_min_ratio if min_ratio is None else min_ratio,
        target_max_ratio=settings.target_max_ratio if max_ratio is None else max_ratio,
        destination=request.destination,
        max_attempts=settings.trip_max_attempts,
    )


@router.post("/rebudget-day", response_model=DayReconciliation)
async def rebudget_day(
    request: RebudgetDayRequest,
    client: Annotated[JsonLLMClient, Depends(get_client)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> DayReconciliation:
    """Force one day under its per-day cap."""
    return await reconcile_day(
        revise_fn=make_reviser(client, DAY_BUDGET_AGENT, settings.budget_model),
        draft_day_plan=request.day_plan,
        per_day_budget=request.per_day_budget,
        max_attempts=request.max_attempts or settings.day_max_attempts,
    )


@router.post("/normalize-day-plan", response_model=DayPlan)
async def normalize_day_plan_route(day_plan: dict) -> DayPlan:
    """Attach canonical amounts and the day total to a draft day plan."""
    return normalize_day_plan(day_plan)


@router.post("/parse-price", response_model=ParsePriceResponse)
async def parse_price_route(request: ParsePriceRequest) -> ParsePriceResponse:
    """Interpret a display price with the requested representative mode."""
    return ParsePriceResponse(
        price=request.price, mode=request.mode, amount=parse_price(request.price, request.mode)
    )

"""Common types and enums shared across all models."""

from enum import Enum


class ItemType(str, Enum):
    """Kind of bookable unit within a day."""

    activity = "activity"
    meal = "meal"
    hotel = "hotel"
    travel = "travel"


class PriceMode(str, Enum):
    """Representative value picked from a price range."""

    MID = "mid"
    UPPER = "upper"
    LOWER = "lower"


class ReconcileStatus(str, Enum):
    """Outcome of a reconciliation call."""

    SKIPPED = "skipped"  # no budget constraint to enforce
    SATISFIED = "satisfied"  # already compliant, reviser never called
    CONVERGED = "converged"
    NOT_CONVERGED = "not_converged"
    REVISER_FAILED = "reviser_failed"

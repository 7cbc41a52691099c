"""Structured logging for budget reconciliation."""

import logging
from typing import Any

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once at application start-up."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


class StructuredReconcileLogger:
    """Structured logger for reconciliation attempts and outcomes."""

    def log_attempt(
        self,
        scope: str,
        attempt: int,
        outcome: str,
        total: int | None,
        latency_ms: float,
        min_target: int | None = None,
        max_target: int | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log one reviser call with structured data."""
        log_data: dict[str, Any] = {
            "scope": scope,
            "attempt": attempt,
            "outcome": outcome,
            "total": total,
            "min_target": min_target,
            "max_target": max_target,
            "latency_ms": round(latency_ms, 2),
        }

        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Reconcile attempt: {scope} #{attempt} - {outcome}"

        if outcome == "adopted":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})

    def log_outcome(self, scope: str, status: str, attempts: int, total: int) -> None:
        """Log the final status of a reconciliation call."""
        log_data: dict[str, Any] = {
            "scope": scope,
            "status": status,
            "attempts": attempts,
            "total": total,
        }
        logger.info(f"Reconcile finished: {scope} - {status}", extra={"structured": log_data})

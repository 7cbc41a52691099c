"""Prometheus metrics for budget reconciliation and day drafting."""

from prometheus_client import Counter, Histogram

reconcile_attempts_total = Counter(
    "reconcile_attempts_total",
    "Total reviser calls made while reconciling budgets",
    ["scope"],
)

reconcile_outcomes_total = Counter(
    "reconcile_outcomes_total",
    "Total reconciliation calls by final status",
    ["scope", "status"],
)

reviser_latency_ms = Histogram(
    "reviser_latency_ms",
    "Reviser call latency in milliseconds",
    ["scope", "outcome"],
    buckets=[100, 500, 1000, 2000, 5000, 10000, 20000, 40000, 80000],
)

day_draft_failures_total = Counter(
    "day_draft_failures_total",
    "Total day-plan drafts that failed or came back malformed",
)


class PrometheusReconcileMetrics:
    """Prometheus-based reconciliation metrics implementation."""

    def inc_attempt(self, scope: str) -> None:
        """Increment reviser call counter."""
        reconcile_attempts_total.labels(scope=scope).inc()

    def record_latency(self, scope: str, outcome: str, latency_ms: float) -> None:
        """Record reviser call latency."""
        reviser_latency_ms.labels(scope=scope, outcome=outcome).observe(latency_ms)

    def inc_outcome(self, scope: str, status: str) -> None:
        """Increment final status counter."""
        reconcile_outcomes_total.labels(scope=scope, status=status).inc()

    def inc_draft_failure(self) -> None:
        """Increment failed day draft counter."""
        day_draft_failures_total.inc()

"""FastAPI application."""

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.plans import router as plans_router
from backend.app.config import get_settings
from backend.app.utils.logging import configure_logging

configure_logging(get_settings().log_level)

app = FastAPI(title="Travel Budget Planner API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(plans_router, tags=["plans"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Travel Budget Planner API", "version": "0.1.0"}


@app.get("/metrics", tags=["metrics"])
async def metrics() -> Response:
    """Prometheus exposition of the reconcile and draft-failure metrics (utils.metrics)."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

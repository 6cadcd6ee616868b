"""Health and observability routes."""

from __future__ import annotations

from fastapi import APIRouter

from postplan.observability.metrics import get_metrics_registry

from ..models import HealthMetrics

router = APIRouter(tags=["health"])


@router.get("/health/metrics", response_model=HealthMetrics)
async def health_metrics() -> HealthMetrics:
    """Return aggregated session metrics for observability dashboards."""
    snapshot = get_metrics_registry().snapshot()
    return HealthMetrics(metrics=snapshot.as_dict())

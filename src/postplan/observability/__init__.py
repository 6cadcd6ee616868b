"""Session ledgers, metrics aggregation and token pricing."""

from __future__ import annotations

from postplan.observability.logger import ObservabilityLogger
from postplan.observability.metrics import (
    AggregatedMetrics,
    MetricsRegistry,
    get_metrics_registry,
    reset_metrics,
)
from postplan.observability.pricing import calc_cost_usd, cost_from_usage

__all__ = [
    "AggregatedMetrics",
    "MetricsRegistry",
    "ObservabilityLogger",
    "calc_cost_usd",
    "cost_from_usage",
    "get_metrics_registry",
    "reset_metrics",
]

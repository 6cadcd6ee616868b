"""Lightweight in-process metrics aggregation for health reporting."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict

from postplan.streaming.outcome import SessionOutcome


@dataclass
class AggregatedMetrics:
    """Aggregated counters used for health reporting."""

    sessions_total: int = 0
    sessions_failed: int = 0
    sessions_cancelled: int = 0
    duration_ms_total: float = 0.0
    records_total: int = 0
    records_skipped_total: int = 0
    input_tokens_total: int = 0
    output_tokens_total: int = 0
    cost_usd_total: float = 0.0
    provider_usage: Dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> dict[str, float | int | dict[str, int]]:
        failure_rate = (self.sessions_failed / self.sessions_total) if self.sessions_total else 0.0
        avg_duration = (
            (self.duration_ms_total / self.sessions_total) if self.sessions_total else 0.0
        )
        return {
            "sessions_total": self.sessions_total,
            "sessions_failed": self.sessions_failed,
            "sessions_cancelled": self.sessions_cancelled,
            "failure_rate": failure_rate,
            "duration_ms_total": self.duration_ms_total,
            "avg_duration_ms": avg_duration,
            "records_total": self.records_total,
            "records_skipped_total": self.records_skipped_total,
            "input_tokens_total": self.input_tokens_total,
            "output_tokens_total": self.output_tokens_total,
            "cost_usd_total": self.cost_usd_total,
            "provider_usage": dict(self.provider_usage),
        }


class MetricsRegistry:
    """Thread-safe accumulator for session metrics."""

    def __init__(self) -> None:
        self._metrics = AggregatedMetrics()
        self._lock = threading.RLock()

    def record(self, outcome: SessionOutcome) -> None:
        with self._lock:
            self._metrics.sessions_total += 1
            if outcome.state == "failed":
                self._metrics.sessions_failed += 1
            elif outcome.state == "cancelled":
                self._metrics.sessions_cancelled += 1
            self._metrics.duration_ms_total += outcome.duration_ms
            self._metrics.records_total += outcome.records_emitted
            self._metrics.records_skipped_total += outcome.records_skipped
            self._metrics.input_tokens_total += int(outcome.usage.get("input_tokens", 0))
            self._metrics.output_tokens_total += int(outcome.usage.get("output_tokens", 0))
            self._metrics.cost_usd_total += outcome.cost_usd
            self._metrics.provider_usage[outcome.provider] = (
                self._metrics.provider_usage.get(outcome.provider, 0) + 1
            )

    def snapshot(self) -> AggregatedMetrics:
        with self._lock:
            snapshot = AggregatedMetrics()
            snapshot.sessions_total = self._metrics.sessions_total
            snapshot.sessions_failed = self._metrics.sessions_failed
            snapshot.sessions_cancelled = self._metrics.sessions_cancelled
            snapshot.duration_ms_total = self._metrics.duration_ms_total
            snapshot.records_total = self._metrics.records_total
            snapshot.records_skipped_total = self._metrics.records_skipped_total
            snapshot.input_tokens_total = self._metrics.input_tokens_total
            snapshot.output_tokens_total = self._metrics.output_tokens_total
            snapshot.cost_usd_total = self._metrics.cost_usd_total
            snapshot.provider_usage = dict(self._metrics.provider_usage)
            return snapshot


_GLOBAL_METRICS = MetricsRegistry()


def get_metrics_registry() -> MetricsRegistry:
    return _GLOBAL_METRICS


def reset_metrics() -> None:
    global _GLOBAL_METRICS
    _GLOBAL_METRICS = MetricsRegistry()


__all__ = ["AggregatedMetrics", "MetricsRegistry", "get_metrics_registry", "reset_metrics"]

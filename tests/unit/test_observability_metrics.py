from __future__ import annotations

import pytest

from postplan.observability.metrics import MetricsRegistry, get_metrics_registry, reset_metrics
from postplan.observability.pricing import calc_cost_usd, cost_from_usage
from postplan.streaming.outcome import SessionOutcome


def _outcome(state: str, **overrides: object) -> SessionOutcome:
    values: dict[str, object] = {
        "session_id": f"sched-{state}",
        "provider": "anthropic",
        "model": "claude-3-5-sonnet-20241022",
        "state": state,
        "started_at": 1.0,
        "ended_at": 1.25,
        "records_emitted": 3,
        "records_skipped": 0,
        "usage": {"input_tokens": 1000, "output_tokens": 500},
        "cost_usd": 0.01,
    }
    values.update(overrides)
    return SessionOutcome(**values)  # type: ignore[arg-type]


def test_metrics_registry_records_session_outcomes() -> None:
    registry = MetricsRegistry()
    registry.record(_outcome("completed"))
    registry.record(_outcome("failed", records_emitted=1, records_skipped=2, error="boom"))
    registry.record(_outcome("cancelled", provider="static", usage={}, cost_usd=0.0))

    snapshot = registry.snapshot()

    assert snapshot.sessions_total == 3
    assert snapshot.sessions_failed == 1
    assert snapshot.sessions_cancelled == 1
    assert snapshot.duration_ms_total == pytest.approx(750.0)
    assert snapshot.records_total == 7
    assert snapshot.records_skipped_total == 2
    assert snapshot.input_tokens_total == 2000
    assert snapshot.output_tokens_total == 1000
    assert snapshot.cost_usd_total == pytest.approx(0.02)
    assert snapshot.provider_usage == {"anthropic": 2, "static": 1}

    payload = snapshot.as_dict()
    assert payload["failure_rate"] == pytest.approx(1 / 3)
    assert payload["avg_duration_ms"] == pytest.approx(250.0)


def test_snapshot_is_a_copy() -> None:
    registry = MetricsRegistry()
    registry.record(_outcome("completed"))
    snapshot = registry.snapshot()
    snapshot.provider_usage["anthropic"] = 99

    assert registry.snapshot().provider_usage == {"anthropic": 1}


def test_reset_metrics_replaces_global_registry() -> None:
    get_metrics_registry().record(_outcome("completed"))
    reset_metrics()
    assert get_metrics_registry().snapshot().sessions_total == 0


def test_outcome_duration_never_negative() -> None:
    outcome = _outcome("completed", started_at=5.0, ended_at=4.0)
    assert outcome.duration_ms == 0.0
    assert outcome.ok


def test_calc_cost_usd_uses_price_table() -> None:
    assert calc_cost_usd("gpt-4.1-mini", 1_000_000, 1_000_000) == pytest.approx(2.0)
    assert calc_cost_usd("unknown-model", 1_000_000, 1_000_000) == 0.0
    assert cost_from_usage("claude-3-5-sonnet-20241022", {"input_tokens": 1_000_000}) == (
        pytest.approx(3.0)
    )
    assert cost_from_usage("claude-3-5-sonnet-20241022", None) == 0.0

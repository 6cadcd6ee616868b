"""Pytest configuration helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator

import pytest
import yaml

ACCOUNT_ID = "3f2b8c1e-6d4a-4e8b-9a57-0c1d2e3f4a5b"

SAMPLE_DAYS: list[dict[str, Any]] = [
    {
        "date": "2026-03-02",
        "day_label": "Monday, March 2",
        "posts": [
            {
                "type": "post",
                "time": "09:00",
                "theme": "Monday {reset} ritual",
                "caption": "Start the week with a \"slow\" brew ☕ #coffee",
            }
        ],
    },
    {
        "date": "2026-03-03",
        "day_label": "Tuesday, March 3",
        "posts": [
            {
                "type": "carousel",
                "time": "12:30",
                "theme": "Brew guide [part 1]",
                "caption": "Swipe for ratios } and grind sizes",
                "visual": {"slides": [{"slide_number": 1}, {"slide_number": 2}]},
            }
        ],
    },
    {
        "date": "2026-03-04",
        "day_label": "Wednesday, March 4",
        "posts": [
            {
                "type": "reel",
                "time": "18:00",
                "theme": "Latte art fails",
                "caption": "Escaped \\\\ backslashes and braces {{",
                "script": {"duration": "30s", "scenes": []},
            }
        ],
    },
]


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Iterator[None]:
    """Clear cached settings between tests."""
    from postplan import settings

    settings.get_settings.cache_clear()
    try:
        yield
    finally:
        settings.get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_observability_metrics() -> Iterator[None]:
    from postplan.observability.metrics import reset_metrics

    reset_metrics()
    try:
        yield
    finally:
        reset_metrics()


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep provider credentials and session ledgers out of the developer's workspace."""
    for name in ("ANTHROPIC_API_KEY", "OPENAI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    for name in ("POSTPLAN_PROVIDER", "POSTPLAN_STATIC_DOCUMENT", "POSTPLAN_ACCOUNTS_FILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("POSTPLAN_RUNS_DIR", str(tmp_path / "runs"))


@pytest.fixture
def sample_days() -> list[dict[str, Any]]:
    return json.loads(json.dumps(SAMPLE_DAYS))


@pytest.fixture
def account_id() -> str:
    return ACCOUNT_ID


@pytest.fixture
def sample_document() -> str:
    return json.dumps({"schedule": SAMPLE_DAYS}, indent=2, ensure_ascii=False)


@pytest.fixture
def account_payload() -> dict[str, Any]:
    return {
        "id": ACCOUNT_ID,
        "username": "slowbrew",
        "niche": "specialty coffee",
        "target_audience": "home baristas",
        "brand_voice": "warm",
        "main_goal": "engagement",
        "content_pillars": ["education", "behind the scenes"],
        "color_palette": ["#3E2723", "#D7CCC8"],
        "negative_words": ["cheap"],
    }


@pytest.fixture
def accounts_file(tmp_path: Path, account_payload: dict[str, Any]) -> Path:
    path = tmp_path / "accounts.yaml"
    path.write_text(yaml.safe_dump({"accounts": [account_payload]}), encoding="utf-8")
    return path


@pytest.fixture
def schedule_request_payload() -> dict[str, Any]:
    """Request with one slot on every weekday, so a 7-day period plans 7 days."""
    weekdays = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
    return {
        "account_id": ACCOUNT_ID,
        "period": 7,
        "day_config": {day: [{"type": "post"}] for day in weekdays},
    }


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register custom CLI options."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run tests marked as slow (defaults to skipping them).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip slow tests unless explicitly enabled."""
    if config.getoption("--run-slow"):
        return

    mark_expr = getattr(config.option, "markexpr", "") or ""
    if "slow" in mark_expr:
        return

    skip_slow = pytest.mark.skip(reason="slow tests require --run-slow or -m slow")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)

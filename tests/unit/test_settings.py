from __future__ import annotations

import pytest
from pydantic import ValidationError

from postplan.settings import PostplanSettings, get_settings, resolve_provider_name


def test_resolve_provider_defaults_to_static_without_keys() -> None:
    assert resolve_provider_name(PostplanSettings()) == "static"


def test_resolve_provider_prefers_anthropic_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "test")
    assert resolve_provider_name(PostplanSettings()) == "openai"

    monkeypatch.setenv("ANTHROPIC_API_KEY", "test")
    assert resolve_provider_name(PostplanSettings()) == "anthropic"


def test_resolve_provider_override_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test")
    settings = PostplanSettings(PROVIDER="openai")

    assert resolve_provider_name(settings) == "openai"
    assert resolve_provider_name(settings, "Static") == "static"
    with pytest.raises(ValueError, match="Unknown provider"):
        resolve_provider_name(settings, "gemini")


def test_provider_setting_is_normalized(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POSTPLAN_PROVIDER", " Anthropic ")
    assert get_settings().PROVIDER == "anthropic"


def test_provider_setting_rejects_unknown_value(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POSTPLAN_PROVIDER", "gemini")
    with pytest.raises(ValidationError):
        PostplanSettings()


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POSTPLAN_ARRAY_KEY", "days")
    monkeypatch.setenv("POSTPLAN_STATIC_CHUNK_SIZE", "12")
    monkeypatch.setenv("POSTPLAN_LEDGER_ENABLED", "false")

    settings = get_settings()

    assert settings.ARRAY_KEY == "days"
    assert settings.STATIC_CHUNK_SIZE == 12
    assert settings.LEDGER_ENABLED is False
    assert get_settings() is settings

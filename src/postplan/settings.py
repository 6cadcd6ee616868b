"""Global settings for provider selection, the API and runtime defaults."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ProviderName = Literal["anthropic", "openai", "static"]

KNOWN_PROVIDERS: tuple[ProviderName, ...] = ("anthropic", "openai", "static")


class PostplanSettings(BaseSettings):
    """Environment-driven configuration for schedule generation."""

    model_config = SettingsConfigDict(
        env_prefix="POSTPLAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    PROVIDER: str = Field(
        default="auto",
        description="Generation provider (auto|anthropic|openai|static).",
    )
    ARRAY_KEY: str = Field(
        default="schedule",
        description="Field of the generated document holding the record array.",
    )
    ANTHROPIC_MODEL: str = Field(
        default="claude-3-5-sonnet-20241022",
        description="Anthropic messages model identifier.",
    )
    OPENAI_MODEL: str = Field(
        default="gpt-4.1-mini",
        description="OpenAI Responses model identifier.",
    )
    TEMPERATURE: float = Field(
        default=0.7,
        description="Sampling temperature for generation requests.",
    )
    MAX_OUTPUT_TOKENS: int = Field(
        default=16000,
        description="Maximum output tokens for one schedule document.",
    )
    STATIC_DOCUMENT: str | None = Field(
        default=None,
        description="Path of a pre-generated document replayed by the static provider.",
    )
    STATIC_CHUNK_SIZE: int = Field(
        default=64,
        ge=1,
        description="Fragment size used when replaying the static document.",
    )
    ACCOUNTS_FILE: str = Field(
        default="accounts.yaml",
        description="YAML file listing account profiles.",
    )
    RUNS_DIR: str = Field(
        default=".runs/sessions",
        description="Directory for per-session ledgers.",
    )
    LEDGER_ENABLED: bool = Field(
        default=True,
        description="Write per-session logs, metrics and summaries under RUNS_DIR.",
    )
    API_PREFIX: str = Field(default="/api/v1", description="Prefix for API routes.")
    API_HOST: str = Field(default="127.0.0.1", description="Bind host for `postplan serve`.")
    API_PORT: int = Field(default=8000, description="Bind port for `postplan serve`.")
    API_DEBUG: bool = Field(default=False, description="Enable FastAPI debug mode.")
    CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Allowed CORS origins.",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True, description="Allow CORS credentials.")
    API_MAX_REQUEST_BYTES: int = Field(
        default=64 * 1024,
        description="Reject request bodies larger than this many bytes.",
    )

    @model_validator(mode="after")
    def validate_provider(self) -> "PostplanSettings":
        """Normalize PROVIDER to expected literals."""
        normalized = self.PROVIDER.strip().lower()
        if normalized != "auto" and normalized not in KNOWN_PROVIDERS:
            raise ValueError(
                "POSTPLAN_PROVIDER must be one of auto, anthropic, openai, static"
            )
        object.__setattr__(self, "PROVIDER", normalized)
        return self


def resolve_provider_name(
    settings: PostplanSettings, override: str | None = None
) -> ProviderName:
    """Resolve the effective provider, inferring it from credentials in auto mode."""
    raw = (override or settings.PROVIDER).strip().lower()
    if raw in KNOWN_PROVIDERS:
        return raw  # type: ignore[return-value]
    if raw != "auto":
        raise ValueError(
            f"Unknown provider '{raw}'. Expected one of: auto, {', '.join(KNOWN_PROVIDERS)}"
        )

    if os.getenv("ANTHROPIC_API_KEY"):
        return "anthropic"
    if os.getenv("OPENAI_API_KEY"):
        return "openai"
    return "static"


@lru_cache
def get_settings() -> PostplanSettings:
    """Return cached settings."""
    return PostplanSettings()


__all__ = [
    "KNOWN_PROVIDERS",
    "PostplanSettings",
    "ProviderName",
    "get_settings",
    "resolve_provider_name",
]

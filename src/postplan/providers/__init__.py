"""Upstream text-generation providers."""

from __future__ import annotations

from pathlib import Path

from postplan.providers.anthropic_api import AnthropicStreamConfig, AnthropicStreamProvider
from postplan.providers.base import (
    GenerationDelta,
    GenerationProvider,
    ProviderUnavailableError,
)
from postplan.providers.openai_api import OpenAIStreamConfig, OpenAIStreamProvider
from postplan.providers.static import StaticDocumentProvider
from postplan.settings import PostplanSettings, resolve_provider_name


def create_provider(
    settings: PostplanSettings, *, override: str | None = None
) -> GenerationProvider:
    """Construct the provider selected by settings (or ``override``)."""
    name = resolve_provider_name(settings, override)

    if name == "anthropic":
        anthropic_provider = AnthropicStreamProvider(
            AnthropicStreamConfig(
                model=settings.ANTHROPIC_MODEL,
                temperature=settings.TEMPERATURE,
                max_output_tokens=settings.MAX_OUTPUT_TOKENS,
            )
        )
        if not anthropic_provider.is_available():
            raise ProviderUnavailableError(
                "anthropic package not installed. Install postplan[anthropic]."
            )
        return anthropic_provider

    if name == "openai":
        openai_provider = OpenAIStreamProvider(
            OpenAIStreamConfig(
                model=settings.OPENAI_MODEL,
                temperature=settings.TEMPERATURE,
                max_output_tokens=settings.MAX_OUTPUT_TOKENS,
            )
        )
        if not openai_provider.is_available():
            raise ProviderUnavailableError(
                "openai package not installed. Install postplan[openai]."
            )
        return openai_provider

    if not settings.STATIC_DOCUMENT:
        raise ProviderUnavailableError(
            "No generation provider configured: set ANTHROPIC_API_KEY, OPENAI_API_KEY "
            "or POSTPLAN_STATIC_DOCUMENT."
        )
    document_path = Path(settings.STATIC_DOCUMENT)
    if not document_path.is_file():
        raise ProviderUnavailableError(f"Static document not found: {document_path}")
    return StaticDocumentProvider.from_file(
        document_path, chunk_size=settings.STATIC_CHUNK_SIZE
    )


__all__ = [
    "AnthropicStreamConfig",
    "AnthropicStreamProvider",
    "GenerationDelta",
    "GenerationProvider",
    "OpenAIStreamConfig",
    "OpenAIStreamProvider",
    "ProviderUnavailableError",
    "StaticDocumentProvider",
    "create_provider",
]

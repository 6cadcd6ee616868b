"""Anthropic messages API provider streaming schedule documents."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, AsyncIterator

from postplan.providers.base import GenerationDelta, normalize_usage

try:
    from anthropic import AsyncAnthropic
except ImportError:  # pragma: no cover - optional dependency
    AsyncAnthropic = None


@dataclass(slots=True)
class AnthropicStreamConfig:
    """Configuration for the Anthropic streaming provider."""

    model: str = "claude-3-5-sonnet-20241022"
    temperature: float = 0.7
    max_output_tokens: int = 16000


class AnthropicStreamProvider:
    """Stream text deltas from the Anthropic messages API."""

    name = "anthropic"

    def __init__(self, config: AnthropicStreamConfig | None = None) -> None:
        self.config = config or AnthropicStreamConfig()

    @property
    def model(self) -> str:
        return self.config.model

    def is_available(self) -> bool:
        return AsyncAnthropic is not None

    async def stream(self, prompt: str) -> AsyncIterator[GenerationDelta]:
        if not self.is_available():
            raise RuntimeError(
                "anthropic package not installed. Install postplan[anthropic]."
            )

        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise RuntimeError("ANTHROPIC_API_KEY is not set.")

        client = AsyncAnthropic(api_key=api_key)
        response = await client.messages.create(
            model=self.config.model,
            max_tokens=self.config.max_output_tokens,
            temperature=self.config.temperature,
            messages=[{"role": "user", "content": prompt}],
            stream=True,
        )

        # message_start carries input tokens, message_delta the running output count
        usage: dict[str, int] = {}
        try:
            async for event in response:
                event_type = getattr(event, "type", None)
                if event_type == "content_block_delta":
                    delta = getattr(event, "delta", None)
                    if getattr(delta, "type", None) == "text_delta":
                        yield GenerationDelta(text=getattr(delta, "text", "") or "")
                elif event_type == "message_start":
                    message = getattr(event, "message", None)
                    usage = _merge_usage(usage, getattr(message, "usage", None))
                    yield GenerationDelta(text="", usage=dict(usage))
                elif event_type == "message_delta":
                    usage = _merge_usage(usage, getattr(event, "usage", None))
                    yield GenerationDelta(text="", usage=dict(usage))
        finally:
            await _close_response(response)


def _merge_usage(current: dict[str, int], update: Any) -> dict[str, int]:
    merged = dict(current)
    merged.update(normalize_usage(update))
    merged["total_tokens"] = merged.get("input_tokens", 0) + merged.get("output_tokens", 0)
    return merged


async def _close_response(response: Any) -> None:
    closer = getattr(response, "close", None)
    if closer is None:
        return
    result = closer()
    if hasattr(result, "__await__"):
        await result


__all__ = ["AnthropicStreamConfig", "AnthropicStreamProvider"]

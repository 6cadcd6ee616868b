"""OpenAI Responses API provider streaming schedule documents."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Optional

from postplan.providers.base import GenerationDelta, normalize_obj, normalize_usage

try:
    from openai import AsyncOpenAI as _AsyncOpenAIClient
except ImportError:  # pragma: no cover - optional dependency
    OpenAIClientFactory: Optional[Callable[..., Any]] = None
else:
    OpenAIClientFactory = _AsyncOpenAIClient


@dataclass(slots=True)
class OpenAIStreamConfig:
    """Configuration for the OpenAI streaming provider."""

    model: str = "gpt-4.1-mini"
    temperature: float = 0.7
    max_output_tokens: int = 16000


class OpenAIStreamProvider:
    """Stream text deltas from the OpenAI Responses API."""

    name = "openai"

    def __init__(self, config: OpenAIStreamConfig | None = None) -> None:
        self.config = config or OpenAIStreamConfig()

    @property
    def model(self) -> str:
        return self.config.model

    def is_available(self) -> bool:
        return OpenAIClientFactory is not None

    async def stream(self, prompt: str) -> AsyncIterator[GenerationDelta]:
        if not self.is_available() or OpenAIClientFactory is None:
            raise RuntimeError("openai package not installed. Install postplan[openai].")

        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY is not set.")

        client = OpenAIClientFactory(api_key=api_key)
        response = await client.responses.create(
            model=self.config.model,
            input=prompt,
            temperature=self.config.temperature,
            max_output_tokens=self.config.max_output_tokens,
            stream=True,
        )

        try:
            async for event in response:
                event_type = getattr(event, "type", None)
                if event_type == "response.output_text.delta":
                    text = getattr(event, "delta", "")
                    if isinstance(text, str) and text:
                        yield GenerationDelta(text=text)
                elif event_type == "response.completed":
                    completed = getattr(event, "response", None)
                    usage = normalize_usage(getattr(completed, "usage", None))
                    if usage:
                        yield GenerationDelta(text="", usage=usage)
                elif event_type in {"response.failed", "error"}:
                    raise RuntimeError(_failure_message(event))
        finally:
            closer = getattr(response, "close", None)
            if closer is not None:
                await closer()


def _failure_message(event: Any) -> str:
    """Return a readable message from a failed-response stream event."""
    payload = normalize_obj(event)
    message = payload.get("message")
    if isinstance(message, str) and message:
        return message
    response = normalize_obj(payload.get("response"))
    error = normalize_obj(response.get("error"))
    detail = error.get("message")
    if isinstance(detail, str) and detail:
        return detail
    return "OpenAI response stream failed"


__all__ = ["OpenAIStreamConfig", "OpenAIStreamProvider"]

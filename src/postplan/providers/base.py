"""Common primitives for upstream text-generation providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, AsyncIterator, Mapping, Optional, Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class GenerationDelta:
    """One fragment of generated text, optionally carrying a usage snapshot."""

    text: str
    usage: Optional[Mapping[str, int]] = None


@runtime_checkable
class GenerationProvider(Protocol):
    """Given a prompt, produce an async sequence of text deltas."""

    name: str

    def stream(self, prompt: str) -> AsyncIterator[GenerationDelta]:
        ...


class ProviderUnavailableError(RuntimeError):
    """Raised when no generation provider can be constructed."""


def normalize_obj(value: Any) -> dict[str, Any]:
    """Convert SDK response objects into dictionaries."""
    if value is None:
        return {}
    if isinstance(value, dict):
        return dict(value)
    if hasattr(value, "model_dump"):
        try:
            dumped = value.model_dump()
        except Exception:  # noqa: BLE001
            return {}
        if isinstance(dumped, dict):
            return dict(dumped)
        return {}
    if hasattr(value, "__dict__"):
        return {
            key: getattr(value, key)
            for key in dir(value)
            if not key.startswith("_") and not callable(getattr(value, key))
        }
    return {}


def normalize_usage(value: Any) -> dict[str, int]:
    """Keep the integer token counters of an SDK usage object."""
    payload = normalize_obj(value)
    usage: dict[str, int] = {}
    for key, raw in payload.items():
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            continue
        usage[key] = int(raw)
    if "total_tokens" not in usage and (
        "input_tokens" in usage or "output_tokens" in usage
    ):
        usage["total_tokens"] = usage.get("input_tokens", 0) + usage.get("output_tokens", 0)
    return usage


async def aclose_iterator(iterator: Any) -> None:
    """Release an async iterator's resources if it supports ``aclose``."""
    closer = getattr(iterator, "aclose", None)
    if closer is not None:
        await closer()


__all__ = [
    "GenerationDelta",
    "GenerationProvider",
    "ProviderUnavailableError",
    "aclose_iterator",
    "normalize_obj",
    "normalize_usage",
]

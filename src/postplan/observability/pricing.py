"""Approximate token pricing for generation providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True, slots=True)
class TokenPrice:
    """USD price per one million tokens."""

    input_per_1m: float
    output_per_1m: float


# Approximate list prices; update as providers change them.
MODEL_PRICING: dict[str, TokenPrice] = {
    "claude-3-5-sonnet-20241022": TokenPrice(input_per_1m=3.00, output_per_1m=15.00),
    "claude-3-5-haiku-20241022": TokenPrice(input_per_1m=0.80, output_per_1m=4.00),
    "gpt-4.1-mini": TokenPrice(input_per_1m=0.40, output_per_1m=1.60),
    "gpt-4.1": TokenPrice(input_per_1m=2.00, output_per_1m=8.00),
    "o4-mini": TokenPrice(input_per_1m=1.10, output_per_1m=4.40),
}


def calc_cost_usd(model: str, input_tokens: int, output_tokens: int) -> float:
    """Return the USD cost of a request; unknown models cost nothing."""
    price = MODEL_PRICING.get(model)
    if price is None:
        return 0.0
    input_cost = (input_tokens / 1_000_000) * price.input_per_1m
    output_cost = (output_tokens / 1_000_000) * price.output_per_1m
    return input_cost + output_cost


def cost_from_usage(model: str, usage: Mapping[str, int] | None) -> float:
    if not usage:
        return 0.0
    return calc_cost_usd(
        model,
        int(usage.get("input_tokens", 0)),
        int(usage.get("output_tokens", 0)),
    )


__all__ = ["MODEL_PRICING", "TokenPrice", "calc_cost_usd", "cost_from_usage"]

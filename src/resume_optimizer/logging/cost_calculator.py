"""Token cost estimates for the supported providers."""

from __future__ import annotations

from typing import NamedTuple


class Price(NamedTuple):
    """USD per one million tokens."""

    input: float
    output: float


MODEL_PRICING: dict[str, Price] = {
    "claude-haiku-4-5-20251001": Price(1.00, 5.00),
    "claude-sonnet-4-20250514": Price(3.00, 15.00),
    "claude-sonnet-4-5-20250929": Price(3.00, 15.00),
    "gpt-4o": Price(2.50, 10.00),
    "gpt-4o-mini": Price(0.15, 0.60),
}


def price_for(model_id: str) -> Price | None:
    """Exact match first, then the longest known prefix (``gpt-4o-2024-08-06``)."""
    if model_id in MODEL_PRICING:
        return MODEL_PRICING[model_id]
    prefixes = [known for known in MODEL_PRICING if model_id.startswith(known)]
    return MODEL_PRICING[max(prefixes, key=len)] if prefixes else None


def calculate_cost(calls: list[tuple[str, int, int]]) -> float:
    """Sum the cost of ``(model_id, input_tokens, output_tokens)`` calls.

    Models without a known price are counted as free.
    """
    total = 0.0
    for model_id, input_tokens, output_tokens in calls:
        price = price_for(model_id)
        if price:
            total += (input_tokens * price.input + output_tokens * price.output) / 1_000_000
    return total

"""Tests for the token cost calculator."""

import pytest

from resume_optimizer.config import DEFAULT_FAST_MODELS, DEFAULT_MODELS
from resume_optimizer.logging.cost_calculator import MODEL_PRICING, calculate_cost, price_for


class TestCalculateCost:
    def test_empty(self):
        assert calculate_cost([]) == 0.0

    def test_sonnet(self):
        cost = calculate_cost([("claude-sonnet-4-20250514", 1_000_000, 1_000_000)])
        assert cost == pytest.approx(18.0)

    def test_haiku(self):
        cost = calculate_cost([("claude-haiku-4-5-20251001", 500_000, 100_000)])
        assert cost == pytest.approx(0.5 + 0.5)

    def test_openai_models(self):
        cost = calculate_cost([
            ("gpt-4o", 1_000_000, 0),
            ("gpt-4o-mini", 0, 1_000_000),
        ])
        assert cost == pytest.approx(2.5 + 0.6)

    def test_dated_variant_uses_longest_prefix(self):
        assert price_for("gpt-4o-mini-2024-07-18") == MODEL_PRICING["gpt-4o-mini"]
        assert price_for("gpt-4o-2024-08-06") == MODEL_PRICING["gpt-4o"]
        assert price_for("llama3") is None

    def test_unknown_model_is_free(self):
        assert calculate_cost([("some-local-model", 10_000, 10_000)]) == 0.0

    def test_default_models_are_priced(self):
        for model in list(DEFAULT_MODELS.values()) + list(DEFAULT_FAST_MODELS.values()):
            assert model in MODEL_PRICING

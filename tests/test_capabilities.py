"""Tests for per-model request parameter rules."""

import pytest

from memory_assistant.domain.models import GenerationParams
from memory_assistant.infrastructure.generation.capabilities import build_request_params, get_model_config


class TestGetModelConfig:
    def test_exact_match(self):
        assert get_model_config("gpt-4").max_allowed_tokens == 8192

    @pytest.mark.parametrize(
        ("model", "expected"),
        [("gpt-4o-mini-2024-07-18", "gpt-4o-mini"), ("gpt-4-turbo-preview", "gpt-4-turbo")],
    )
    def test_longest_prefix_wins(self, model, expected):
        assert get_model_config(model) is get_model_config(expected)

    def test_unknown(self):
        assert get_model_config("mistral-large") is None


class TestBuildRequestParams:
    def test_fixed_temperature_overrides_request(self):
        request = build_request_params(GenerationParams(model="gpt-4o", temperature=0.2, max_tokens=500))

        assert request == {"model": "gpt-4o", "top_p": 1.0, "temperature": 1, "max_tokens": 500}

    def test_completion_tokens_key_for_gpt5(self):
        request = build_request_params(GenerationParams(model="gpt-5", max_tokens=1000))

        assert request["max_completion_tokens"] == 1000
        assert "max_tokens" not in request

    def test_clamped_to_model_maximum(self):
        request = build_request_params(GenerationParams(model="gpt-4", temperature=0.3, max_tokens=10000))

        assert request["max_tokens"] == 8192
        assert request["temperature"] == 0.3

    def test_default_max_tokens(self):
        request = build_request_params(GenerationParams(model="gpt-3.5-turbo"))

        assert request["max_tokens"] == 2000

    def test_unknown_model_passes_through(self):
        request = build_request_params(GenerationParams(model="local-llm", temperature=0.4, top_p=0.9))

        assert request == {"model": "local-llm", "top_p": 0.9, "temperature": 0.4}

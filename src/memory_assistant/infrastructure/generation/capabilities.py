"""Per-model request rules for chat completions."""

from typing import Any, Literal

from pydantic import BaseModel

from memory_assistant.domain.models import GenerationParams


class ModelCapabilities(BaseModel, frozen=True):
    supports_temperature: bool
    fixed_temperature: float | None = None
    max_tokens_key: Literal["max_tokens", "max_completion_tokens"] = "max_tokens"
    default_max_tokens: int = 2000
    max_allowed_tokens: int


_GPT5 = ModelCapabilities(
    supports_temperature=False,
    fixed_temperature=1,
    max_tokens_key="max_completion_tokens",
    max_allowed_tokens=400000,
)
_GPT4O = ModelCapabilities(supports_temperature=False, fixed_temperature=1, max_allowed_tokens=128000)

MODEL_CAPABILITIES: dict[str, ModelCapabilities] = {
    "gpt-5": _GPT5,
    "gpt-5-turbo": _GPT5,
    "gpt-5-2025-08-07": _GPT5,
    "gpt-4o": _GPT4O,
    "gpt-4o-mini": _GPT4O,
    "gpt-4-turbo": ModelCapabilities(supports_temperature=True, max_allowed_tokens=128000),
    "gpt-4": ModelCapabilities(supports_temperature=True, max_allowed_tokens=8192),
    "gpt-3.5-turbo": ModelCapabilities(supports_temperature=True, max_allowed_tokens=16385),
}


def get_model_config(model: str) -> ModelCapabilities | None:
    """Exact match first, then the longest known prefix (dated variants)."""
    if model in MODEL_CAPABILITIES:
        return MODEL_CAPABILITIES[model]
    prefixes = [key for key in MODEL_CAPABILITIES if model.startswith(key)]
    if prefixes:
        return MODEL_CAPABILITIES[max(prefixes, key=len)]
    return None


def build_request_params(params: GenerationParams) -> dict[str, Any]:
    """Translate generation params into chat completion keyword arguments.

    Models with a fixed temperature always get it, whatever was asked.
    Token limits go under the key the model expects, clamped to its maximum.
    """
    config = get_model_config(params.model)
    request: dict[str, Any] = {"model": params.model, "top_p": params.top_p}

    if config is None:
        request["temperature"] = params.temperature
        if params.max_tokens is not None:
            request["max_tokens"] = params.max_tokens
        return request

    if config.supports_temperature:
        request["temperature"] = params.temperature
    elif config.fixed_temperature is not None:
        request["temperature"] = config.fixed_temperature

    max_tokens = params.max_tokens or config.default_max_tokens
    request[config.max_tokens_key] = min(max_tokens, config.max_allowed_tokens)
    return request

"""OpenAI streaming chat completions gateway."""

from collections.abc import AsyncIterator

import openai
from openai import AsyncOpenAI

from memory_assistant.core.base import AIServiceErrorDetails
from memory_assistant.core.config import settings
from memory_assistant.core.errors import (
    ContextLengthExceededError,
    GenerationAuthError,
    GenerationError,
    GenerationModelError,
    GenerationRateLimitError,
    GenerationTimeoutError,
)
from memory_assistant.core.logging import get_logger
from memory_assistant.domain.models import ChatMessage, GenerationChunk, GenerationParams, TokenUsage
from memory_assistant.infrastructure.generation.capabilities import build_request_params

logger = get_logger(__name__)


def map_openai_error(error: openai.OpenAIError, params: GenerationParams) -> GenerationError:
    """Translate an SDK exception into the generation error taxonomy."""
    status_code = getattr(error, "status_code", None)
    details = AIServiceErrorDetails(
        source="openai_generation",
        operation="chat.completions.create",
        service_name="openai",
        model_name=params.model,
        status_code=status_code,
        max_tokens=params.max_tokens,
        temperature=params.temperature,
    )
    message = str(error)

    if isinstance(error, openai.RateLimitError):
        return GenerationRateLimitError(message, details)
    if isinstance(error, openai.AuthenticationError | openai.PermissionDeniedError):
        return GenerationAuthError(message, details)
    if isinstance(error, openai.NotFoundError):
        return GenerationModelError(message, details)
    if isinstance(error, openai.BadRequestError):
        if getattr(error, "code", None) == "context_length_exceeded" or "maximum context length" in message:
            return ContextLengthExceededError(message, details)
        return GenerationError(message, details)
    if isinstance(error, openai.APITimeoutError):
        return GenerationTimeoutError(message, details)
    return GenerationError(message, details)


class OpenAIGenerationGateway:
    """Streams chat completions, ending with a usage-only chunk when the API reports one."""

    def __init__(
        self,
        api_key: str | None = None,
        client: AsyncOpenAI | None = None,
        timeout: float | None = None,
    ):
        self.client = client or AsyncOpenAI(
            api_key=api_key or settings.openai_api_key or None,
            timeout=timeout or settings.generation_timeout,
        )

    async def generate_stream(
        self,
        messages: list[ChatMessage],
        params: GenerationParams,
    ) -> AsyncIterator[GenerationChunk]:
        request = build_request_params(params)
        logger.debug("Starting generation", messages=len(messages), **request)

        try:
            stream = await self.client.chat.completions.create(
                messages=[message.to_provider() for message in messages],  # type: ignore[misc]
                stream=True,
                stream_options={"include_usage": True},
                **request,
            )
            async for event in stream:
                text = event.choices[0].delta.content if event.choices else None
                usage = None
                if event.usage is not None:
                    usage = TokenUsage(
                        input_tokens=event.usage.prompt_tokens,
                        output_tokens=event.usage.completion_tokens,
                    )
                if text or usage:
                    yield GenerationChunk(text=text, usage=usage)
        except openai.OpenAIError as e:
            raise map_openai_error(e, params) from e

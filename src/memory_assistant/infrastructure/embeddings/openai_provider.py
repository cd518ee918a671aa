"""OpenAI embedding gateway."""

import openai
from openai import AsyncOpenAI

from memory_assistant.core.base import AIServiceErrorDetails, ApplicationError
from memory_assistant.core.circuit_breaker import CircuitBreaker, RetryWithCircuitBreaker
from memory_assistant.core.config import settings
from memory_assistant.core.errors import EmbeddingError, RateLimitError, TimeoutError
from memory_assistant.core.logging import get_logger
from memory_assistant.domain.models import Embedding, EmbeddingSpace

logger = get_logger(__name__)


class OpenAIEmbeddingGateway:
    """Embeds text with ``text-embedding-3-small`` or ``-large``.

    Rate limits and timeouts are retried with backoff behind a circuit
    breaker. Whatever still fails surfaces as :class:`EmbeddingError`.
    """

    def __init__(
        self,
        api_key: str | None = None,
        client: AsyncOpenAI | None = None,
        timeout: float | None = None,
        max_retries: int = 3,
    ):
        self.client = client or AsyncOpenAI(
            api_key=api_key or settings.openai_api_key or None,
            timeout=timeout or settings.embedding_timeout,
            max_retries=0,
        )
        self.circuit_breaker: CircuitBreaker[list[float]] = CircuitBreaker(
            name="openai_embeddings",
            failure_threshold=5,
            recovery_timeout=30.0,
            expected_exception_types=(ApplicationError,),
        )
        self.retry = RetryWithCircuitBreaker(self.circuit_breaker, max_retries=max_retries, initial_delay=0.5)

    async def embed(self, text: str, space: EmbeddingSpace = EmbeddingSpace.SMALL) -> Embedding:
        if not text.strip():
            raise EmbeddingError(
                "Cannot embed empty text",
                details=self._details(space, "embed"),
                retryable=False,
            )

        try:
            vector = await self.retry.call_async(self._create, text, space)
        except EmbeddingError:
            raise
        except ApplicationError as e:
            raise EmbeddingError(
                f"Embedding failed: {e.message}",
                details=self._details(space, "embed"),
                retryable=e.retryable,
            ) from e

        if len(vector) != space.dimensions:
            raise EmbeddingError(
                f"Expected {space.dimensions} dimensions from {space.model_name}, got {len(vector)}",
                details=self._details(space, "embed"),
                retryable=False,
            )
        return Embedding(vector=vector, space=space)

    async def _create(self, text: str, space: EmbeddingSpace) -> list[float]:
        try:
            response = await self.client.embeddings.create(input=text, model=space.model_name)
        except openai.RateLimitError as e:
            raise RateLimitError(f"OpenAI rate limit: {e}", details=self._details(space, "create", 429)) from e
        except openai.APITimeoutError as e:
            raise TimeoutError(f"OpenAI embedding timed out: {e}", details=self._details(space, "create")) from e
        except openai.APIConnectionError as e:
            raise TimeoutError(f"OpenAI unreachable: {e}", details=self._details(space, "create")) from e
        except openai.APIStatusError as e:
            raise EmbeddingError(
                f"OpenAI embedding request rejected: {e.message}",
                details=self._details(space, "create", e.status_code),
                retryable=e.status_code >= 500,
            ) from e

        logger.debug(
            "Embedding created",
            model=space.model_name,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return list(response.data[0].embedding)

    @staticmethod
    def _details(space: EmbeddingSpace, operation: str, status_code: int | None = None) -> AIServiceErrorDetails:
        return AIServiceErrorDetails(
            source="openai_embeddings",
            operation=operation,
            service_name="openai",
            model_name=space.model_name,
            status_code=status_code,
        )

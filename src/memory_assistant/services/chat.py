"""Per-query chat orchestration: retrieval, prompt building, streamed generation, bookkeeping."""

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from memory_assistant.core.config import ChatDefaults
from memory_assistant.core.errors import EmptyGenerationOutput, GenerationError, GenerationTimeoutError
from memory_assistant.core.logging import get_logger
from memory_assistant.domain.models import (
    ChatMessage,
    EmbeddingSpace,
    EmbeddingSpaceName,
    GenerationChunk,
    GenerationParams,
    QueryClassification,
    RetrievalResult,
    TokenUsage,
)
from memory_assistant.services import GenerationGateway
from memory_assistant.services.cache_estimator import estimate_cache_hit
from memory_assistant.services.classifier import QueryClassifier
from memory_assistant.services.context import ContextAssembler
from memory_assistant.services.history import ConversationHistoryManager
from memory_assistant.services.retrieval import RetrievalPlanner
from memory_assistant.services.usage import UsageRecorder, calculate_costs, estimate_tokens


class ChatOptions(BaseModel):
    """Per-request overrides. Unset fields fall back to the configured defaults."""

    model: str | None = None
    embedding_space: EmbeddingSpaceName | None = None
    system_prompt: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    max_tokens: int | None = Field(default=None, gt=0)


class PreparedChat(BaseModel):
    """Everything decided before the first token is generated."""

    owner_id: str
    query: str
    conversation_id: UUID | None
    space: EmbeddingSpace
    classification: QueryClassification
    retrieval: RetrievalResult
    contextual_message: str
    messages: list[ChatMessage]
    params: GenerationParams


def sse_event(event: str, data: dict[str, Any]) -> dict[str, str]:
    return {"event": event, "data": json.dumps(data, ensure_ascii=False)}


class ChatService:
    """Answers one query against the owner's memories.

    :meth:`prepare` does everything that can fail the request outright, so
    errors there surface as HTTP errors. :meth:`stream` only ever reports
    problems as ``error`` events and always ends with ``done``.
    """

    def __init__(
        self,
        classifier: QueryClassifier,
        planner: RetrievalPlanner,
        assembler: ContextAssembler,
        history: ConversationHistoryManager,
        generation: GenerationGateway,
        usage: UsageRecorder | None = None,
        defaults: ChatDefaults | None = None,
        generation_timeout: float = 60.0,
        logger: Any = None,
    ):
        self.classifier = classifier
        self.planner = planner
        self.assembler = assembler
        self.history = history
        self.generation = generation
        self.usage = usage
        self.defaults = defaults or ChatDefaults()
        self.generation_timeout = generation_timeout
        self.logger = logger or get_logger(__name__)

    async def prepare(
        self,
        owner_id: str,
        query: str,
        conversation_id: UUID | None = None,
        options: ChatOptions | None = None,
    ) -> PreparedChat:
        options = options or ChatOptions()
        space = options.embedding_space or self.defaults.embedding_space

        classification = self.classifier.classify(query)
        self.logger.debug(
            "Query classified",
            owner_id=owner_id,
            **classification.model_dump(),
        )

        # Checked before retrieval: an unknown or foreign thread is a 404
        if conversation_id is not None:
            await self.history.require_conversation(owner_id, conversation_id)

        retrieval = await self.planner.plan(query, classification, owner_id, space)

        if conversation_id is None:
            try:
                conversation_id = await self.history.ensure_conversation(owner_id, None, query)
            except Exception as e:
                self.logger.error(
                    "Could not start conversation, answering without one", error=str(e), owner_id=owner_id
                )

        contextual_message = self.assembler.assemble(query, classification, retrieval.sources)
        messages = await self.history.build_messages(
            options.system_prompt or self.defaults.system_prompt,
            conversation_id,
            contextual_message,
            owner_id,
        )
        params = GenerationParams(
            model=options.model or self.defaults.model,
            temperature=self.defaults.temperature if options.temperature is None else options.temperature,
            top_p=self.defaults.top_p if options.top_p is None else options.top_p,
            max_tokens=options.max_tokens or self.defaults.max_tokens,
        )

        return PreparedChat(
            owner_id=owner_id,
            query=query,
            conversation_id=conversation_id,
            space=space,
            classification=classification,
            retrieval=retrieval,
            contextual_message=contextual_message,
            messages=messages,
            params=params,
        )

    async def stream(self, prepared: PreparedChat) -> AsyncIterator[dict[str, str]]:
        """Yield SSE events: ``metadata``, cumulative ``content``, optional ``error``, then ``done``."""
        conversation_id = str(prepared.conversation_id) if prepared.conversation_id else None
        yield sse_event(
            "metadata",
            {
                "sources": [source.model_dump(mode="json") for source in prepared.retrieval.sources],
                "conversationId": conversation_id,
            },
        )

        answer = ""
        usage: TokenUsage | None = None
        try:
            async for chunk in self._bounded(self.generation.generate_stream(prepared.messages, prepared.params)):
                if chunk.usage is not None:
                    usage = chunk.usage
                if chunk.text:
                    answer += chunk.text
                    yield sse_event("content", {"content": answer})
            if not answer.strip():
                raise EmptyGenerationOutput()
        except (asyncio.CancelledError, GeneratorExit):
            self.logger.info(
                "Client disconnected, discarding partial answer",
                conversation_id=conversation_id,
                generated_chars=len(answer),
            )
            raise
        except GenerationError as e:
            self._log_generation_error(e, prepared)
            yield sse_event("error", {"error": e.user_message, "code": e.code.value, "retryable": e.retryable})
            yield sse_event("done", {})
            return
        except Exception as e:
            error = GenerationError(f"Unexpected generation failure: {e}")
            self._log_generation_error(error, prepared)
            yield sse_event("error", {"error": error.user_message, "code": error.code.value, "retryable": False})
            yield sse_event("done", {})
            return

        pricing = await self._finish(prepared, answer, usage)
        yield sse_event("done", {"pricing": pricing})

    async def _bounded(self, chunks: AsyncIterator[GenerationChunk]) -> AsyncIterator[GenerationChunk]:
        """Re-yield ``chunks``, failing if any single chunk takes longer than the timeout."""
        iterator = aiter(chunks)
        try:
            while True:
                try:
                    async with asyncio.timeout(self.generation_timeout):
                        chunk = await anext(iterator)
                except StopAsyncIteration:
                    return
                except TimeoutError as e:
                    raise GenerationTimeoutError(
                        f"No output from the model within {self.generation_timeout}s",
                        details={"source": "chat_service", "operation": "generate_stream"},
                    ) from e
                yield chunk
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

    async def _finish(self, prepared: PreparedChat, answer: str, usage: TokenUsage | None) -> dict[str, Any]:
        if usage is None:
            usage = TokenUsage(
                input_tokens=sum(estimate_tokens(m.content) for m in prepared.messages),
                output_tokens=estimate_tokens(answer),
                estimated=True,
            )

        cache = estimate_cache_hit(prepared.retrieval.sources, prepared.contextual_message)
        costs = calculate_costs(prepared.params.model, usage, cache_hit=cache.cache_hit)

        if self.usage is not None:
            await self.usage.record(prepared.owner_id, prepared.conversation_id, prepared.params.model, usage, costs)

        if prepared.conversation_id is not None:
            await self.history.persist_turn(
                prepared.owner_id,
                prepared.conversation_id,
                prepared.query,
                answer,
                prepared.space,
            )

        self.logger.info(
            "Answer streamed",
            owner_id=prepared.owner_id,
            conversation_id=str(prepared.conversation_id) if prepared.conversation_id else None,
            sources=len(prepared.retrieval.sources),
            answer_chars=len(answer),
            cache_hit=cache.cache_hit,
        )
        return {
            "model": prepared.params.model,
            "inputTokens": usage.input_tokens,
            "outputTokens": usage.output_tokens,
            "estimated": usage.estimated,
            "inputCost": costs.input_cost,
            "outputCost": costs.output_cost,
            "totalCost": costs.total_cost,
            "cacheHit": costs.cache_hit,
            "cacheSavings": costs.cache_savings,
            "finalCost": costs.final_cost,
        }

    def _log_generation_error(self, error: GenerationError, prepared: PreparedChat) -> None:
        self.logger.log(
            error.level.to_logging_level(),
            f"Generation failed: {error.message}",
            error_code=error.code.value,
            error_type=type(error).__name__,
            model=prepared.params.model,
            owner_id=prepared.owner_id,
        )

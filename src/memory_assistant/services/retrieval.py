"""Tiered similarity retrieval over memories, document chunks and past conversations."""

import asyncio
from typing import Any

from memory_assistant.core.base import DatabaseErrorDetails
from memory_assistant.core.config import RetrievalSettings
from memory_assistant.core.errors import EmbeddingError, RetrievalPartialFailure
from memory_assistant.core.logging import get_logger
from memory_assistant.domain.models import (
    Collection,
    Embedding,
    EmbeddingSpace,
    QueryClassification,
    RetrievalResult,
    RetrievedSource,
)
from memory_assistant.services import EmbeddingGateway, VectorStore

PRIMARY_COLLECTIONS = (Collection.MEMORIES, Collection.CHUNKS)


class RetrievalPlanner:
    """Decides what to search, with which thresholds, and what to do when nothing matches.

    One query is embedded once. Memories and chunks are searched concurrently
    together with the owner's past conversation turns. Only when memories and
    chunks both come back empty does the fallback ladder run:

    - personal-info queries list the most recent memories, similarity 1.0
    - other queries retry once with a lower threshold and a smaller cap

    A fallback tier only touches collections the owner actually has items in.
    """

    def __init__(
        self,
        embeddings: EmbeddingGateway,
        store: VectorStore,
        config: RetrievalSettings | None = None,
        embedding_timeout: float = 30.0,
        logger: Any = None,
    ):
        self.embeddings = embeddings
        self.store = store
        self.config = config or RetrievalSettings()
        self.embedding_timeout = embedding_timeout
        self.logger = logger or get_logger(__name__)

    async def plan(
        self,
        query: str,
        classification: QueryClassification,
        owner_id: str,
        space: EmbeddingSpace = EmbeddingSpace.SMALL,
    ) -> RetrievalResult:
        if classification.skip_retrieval:
            self.logger.debug("Skipping retrieval for trivial query", owner_id=owner_id)
            return RetrievalResult()

        query_embedding = await self._embed_query(query, space)
        failed: list[Collection] = []

        if classification.is_personal_info:
            threshold, limit = self.config.personal_threshold, self.config.personal_limit
            max_sources = self.config.max_sources_personal
        else:
            threshold, limit = self.config.normal_threshold, self.config.normal_limit
            max_sources = self.config.max_sources_normal

        memories, chunks, conversation = await asyncio.gather(
            self._search(Collection.MEMORIES, owner_id, query_embedding, threshold, limit, failed),
            self._search(Collection.CHUNKS, owner_id, query_embedding, threshold, limit, failed),
            self._search(
                Collection.CONVERSATIONS,
                owner_id,
                query_embedding,
                self.config.conversation_threshold,
                self.config.conversation_limit,
                failed,
            ),
        )

        fallback: str | None = None
        if not memories and not chunks:
            if classification.is_personal_info:
                memories = await self._recent_memories(owner_id, failed)
                fallback = "recent_memories" if memories else None
            else:
                memories, chunks, ran = await self._relaxed_search(owner_id, query_embedding, failed)
                fallback = "relaxed_threshold" if ran else None

        sources = self.merge(memories, chunks, conversation, max_sources)

        self.logger.info(
            "Retrieval complete",
            owner_id=owner_id,
            personal_info=classification.is_personal_info,
            memories=len(memories),
            chunks=len(chunks),
            conversation=len(conversation),
            returned=len(sources),
            fallback=fallback,
            failed_collections=[c.value for c in failed],
        )
        return RetrievalResult(
            sources=sources,
            query_embedding=query_embedding,
            failed_collections=failed,
            fallback=fallback,
        )

    @staticmethod
    def merge(
        memories: list[RetrievedSource],
        chunks: list[RetrievedSource],
        conversation: list[RetrievedSource],
        max_sources: int,
    ) -> list[RetrievedSource]:
        """Concatenate in discovery order, then stable-sort by similarity, highest first."""
        merged = [*memories, *chunks, *conversation]
        merged.sort(key=lambda source: source.similarity, reverse=True)
        return merged[:max_sources]

    async def _embed_query(self, query: str, space: EmbeddingSpace) -> Embedding:
        try:
            async with asyncio.timeout(self.embedding_timeout):
                return await self.embeddings.embed(query, space)
        except EmbeddingError:
            raise
        except TimeoutError as e:
            raise EmbeddingError(
                f"Embedding timed out after {self.embedding_timeout}s",
                details={"source": "retrieval_planner", "operation": "embed_query", "space": space.value},
            ) from e
        except Exception as e:
            raise EmbeddingError(
                f"Embedding failed: {e}",
                details={"source": "retrieval_planner", "operation": "embed_query", "space": space.value},
            ) from e

    async def _search(
        self,
        collection: Collection,
        owner_id: str,
        query_embedding: Embedding,
        threshold: float,
        limit: int,
        failed: list[Collection],
    ) -> list[RetrievedSource]:
        try:
            return await self.store.search_similar(collection, owner_id, query_embedding, threshold, limit)
        except Exception as e:
            self._partial_failure(collection, "search_similar", e, failed)
            return []

    async def _has_items(self, collection: Collection, owner_id: str, failed: list[Collection]) -> bool:
        try:
            return await self.store.count(collection, owner_id) > 0
        except Exception as e:
            self._partial_failure(collection, "count", e, failed)
            return False

    async def _recent_memories(self, owner_id: str, failed: list[Collection]) -> list[RetrievedSource]:
        if not await self._has_items(Collection.MEMORIES, owner_id, failed):
            return []
        try:
            recent = await self.store.list_recent(
                Collection.MEMORIES, owner_id, self.config.personal_fallback_limit
            )
        except Exception as e:
            self._partial_failure(Collection.MEMORIES, "list_recent", e, failed)
            return []
        return [source.model_copy(update={"similarity": 1.0}) for source in recent]

    async def _relaxed_search(
        self,
        owner_id: str,
        query_embedding: Embedding,
        failed: list[Collection],
    ) -> tuple[list[RetrievedSource], list[RetrievedSource], bool]:
        """Retry with the relaxed threshold. The flag tells whether any search actually ran."""

        async def relaxed(collection: Collection) -> list[RetrievedSource] | None:
            if not await self._has_items(collection, owner_id, failed):
                return None
            return await self._search(
                collection,
                owner_id,
                query_embedding,
                self.config.fallback_threshold,
                self.config.fallback_limit,
                failed,
            )

        memories, chunks = await asyncio.gather(*(relaxed(c) for c in PRIMARY_COLLECTIONS))
        ran = memories is not None or chunks is not None
        return memories or [], chunks or [], ran

    def _partial_failure(
        self,
        collection: Collection,
        operation: str,
        error: Exception,
        failed: list[Collection],
    ) -> None:
        failure = RetrievalPartialFailure(
            f"{operation} on {collection.value} failed: {error}",
            collection=collection.value,
            details=DatabaseErrorDetails(
                source="retrieval_planner",
                operation=operation,
                service_name="vector_store",
                collection=collection.value,
            ),
        )
        if collection not in failed:
            failed.append(collection)
        self.logger.warning(
            failure.message,
            error_code=failure.code.value,
            collection=collection.value,
            error_type=type(error).__name__,
        )

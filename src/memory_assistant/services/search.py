"""Standalone semantic search over an owner's memories and document chunks."""

import asyncio
from enum import Enum
from typing import Any

from memory_assistant.core.errors import EmbeddingError
from memory_assistant.core.logging import get_logger
from memory_assistant.domain.models import Collection, Embedding, EmbeddingSpace, RetrievedSource
from memory_assistant.services import EmbeddingGateway, VectorStore
from memory_assistant.services.retrieval import RetrievalPlanner

SEARCH_THRESHOLD = 0.7


class SearchScope(str, Enum):
    ALL = "all"
    MEMORIES = "memories"
    CHUNKS = "chunks"

    @property
    def collections(self) -> tuple[Collection, ...]:
        return {
            SearchScope.ALL: (Collection.MEMORIES, Collection.CHUNKS),
            SearchScope.MEMORIES: (Collection.MEMORIES,),
            SearchScope.CHUNKS: (Collection.CHUNKS,),
        }[self]


class SearchService:
    """Direct similarity search, without classification, fallback or generation.

    Each selected collection is searched at a fixed 0.7 threshold with
    ``limit`` as its cap. Hits are merged highest similarity first and cut
    to ``limit``. A collection whose search fails contributes nothing.
    """

    def __init__(
        self,
        embeddings: EmbeddingGateway,
        store: VectorStore,
        embedding_timeout: float = 30.0,
        logger: Any = None,
    ):
        self.embeddings = embeddings
        self.store = store
        self.embedding_timeout = embedding_timeout
        self.logger = logger or get_logger(__name__)

    async def search(
        self,
        owner_id: str,
        query: str,
        scope: SearchScope = SearchScope.ALL,
        limit: int = 10,
        space: EmbeddingSpace = EmbeddingSpace.SMALL,
    ) -> list[RetrievedSource]:
        query_embedding = await self._embed(query, space)

        hits = await asyncio.gather(
            *(self._search(collection, owner_id, query_embedding, limit) for collection in scope.collections)
        )
        found = dict(zip(scope.collections, hits, strict=True))
        results = RetrievalPlanner.merge(
            found.get(Collection.MEMORIES, []),
            found.get(Collection.CHUNKS, []),
            [],
            limit,
        )

        self.logger.info("Search complete", owner_id=owner_id, scope=scope.value, returned=len(results))
        return results

    async def _embed(self, query: str, space: EmbeddingSpace) -> Embedding:
        try:
            async with asyncio.timeout(self.embedding_timeout):
                return await self.embeddings.embed(query, space)
        except EmbeddingError:
            raise
        except TimeoutError as e:
            raise EmbeddingError(
                f"Embedding timed out after {self.embedding_timeout}s",
                details={"source": "search_service", "operation": "embed_query", "space": space.value},
            ) from e
        except Exception as e:
            raise EmbeddingError(
                f"Embedding failed: {e}",
                details={"source": "search_service", "operation": "embed_query", "space": space.value},
            ) from e

    async def _search(
        self, collection: Collection, owner_id: str, query_embedding: Embedding, limit: int
    ) -> list[RetrievedSource]:
        try:
            return await self.store.search_similar(collection, owner_id, query_embedding, SEARCH_THRESHOLD, limit)
        except Exception as e:
            self.logger.warning(
                f"search_similar on {collection.value} failed: {e}",
                collection=collection.value,
                error_type=type(e).__name__,
            )
            return []

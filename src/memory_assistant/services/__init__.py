"""Service layer interfaces and implementations."""

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable
from uuid import UUID

from memory_assistant.domain.models import (
    ChatMessage,
    Collection,
    Conversation,
    ConversationMessage,
    Document,
    DocumentChunk,
    Embedding,
    EmbeddingSpace,
    GenerationChunk,
    GenerationParams,
    Memory,
    RetrievedSource,
    UsageRecord,
)


@runtime_checkable
class EmbeddingGateway(Protocol):
    """Protocol for embedding providers."""

    async def embed(self, text: str, space: EmbeddingSpace) -> Embedding:
        """Embed one text. Raises EmbeddingError on any failure."""
        ...


@runtime_checkable
class GenerationGateway(Protocol):
    """Protocol for streaming chat completion providers."""

    def generate_stream(
        self,
        messages: list[ChatMessage],
        params: GenerationParams,
    ) -> AsyncIterator[GenerationChunk]:
        """Stream text chunks; the last chunk may carry usage only."""
        ...


@runtime_checkable
class VectorStore(Protocol):
    """Owner-scoped similarity search over the searchable collections."""

    async def search_similar(
        self,
        collection: Collection,
        owner_id: str,
        query_embedding: Embedding,
        threshold: float,
        limit: int,
    ) -> list[RetrievedSource]:
        """Hits with similarity >= threshold, most similar first."""
        ...

    async def list_recent(self, collection: Collection, owner_id: str, limit: int) -> list[RetrievedSource]:
        """Newest items first, without any similarity filter."""
        ...

    async def count(self, collection: Collection, owner_id: str) -> int:
        ...


@runtime_checkable
class ConversationStore(Protocol):
    """Append-only conversation persistence."""

    async def create_conversation(self, conversation: Conversation) -> Conversation:
        ...

    async def get_conversation(self, owner_id: str, conversation_id: UUID) -> Conversation | None:
        """None when the conversation does not exist or belongs to someone else."""
        ...

    async def recent_messages(
        self,
        owner_id: str,
        conversation_id: UUID,
        limit: int,
    ) -> list[ConversationMessage]:
        """Most recent messages, newest first."""
        ...

    async def save_message(self, owner_id: str, message: ConversationMessage) -> ConversationMessage:
        ...


@runtime_checkable
class MemoryRepository(Protocol):
    """CRUD over an owner's memories."""

    async def create_memory(self, memory: Memory) -> Memory:
        ...

    async def list_memories(self, owner_id: str, limit: int = 100, offset: int = 0) -> list[Memory]:
        ...

    async def get_memory(self, owner_id: str, memory_id: UUID) -> Memory | None:
        ...

    async def update_memory(self, memory: Memory) -> Memory | None:
        ...

    async def delete_memory(self, owner_id: str, memory_id: UUID) -> bool:
        ...


@runtime_checkable
class DocumentRepository(Protocol):
    """Document and chunk persistence."""

    async def create_document(self, document: Document) -> Document:
        ...

    async def add_chunk(self, chunk: DocumentChunk) -> DocumentChunk:
        ...

    async def list_documents(self, owner_id: str) -> list[Document]:
        ...

    async def delete_document(self, owner_id: str, document_id: UUID) -> bool:
        ...


@runtime_checkable
class UsageSink(Protocol):
    """Where billed generations are recorded."""

    async def record_usage(self, record: UsageRecord) -> None:
        ...


__all__ = [
    "ConversationStore",
    "DocumentRepository",
    "EmbeddingGateway",
    "GenerationGateway",
    "MemoryRepository",
    "UsageSink",
    "VectorStore",
]

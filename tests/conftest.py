"""Shared fixtures: in-memory fakes for every gateway and store protocol."""

from collections import defaultdict
from collections.abc import AsyncIterator
from typing import Any
from uuid import UUID

import pytest

from memory_assistant.core.errors import EmbeddingError
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
    SourceType,
    TokenUsage,
    UsageRecord,
)

OWNER = "owner-1"


def source(kind: SourceType, similarity: float, content: str | None = None, id: str | None = None) -> RetrievedSource:
    return RetrievedSource(
        type=kind,
        id=id or f"{kind.value}-{similarity}",
        content=content or f"{kind.value} content at {similarity}",
        similarity=similarity,
    )


class FakeEmbeddingGateway:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[tuple[str, EmbeddingSpace]] = []

    async def embed(self, text: str, space: EmbeddingSpace = EmbeddingSpace.SMALL) -> Embedding:
        self.calls.append((text, space))
        if self.fail:
            raise EmbeddingError("provider down", details={"source": "fake", "operation": "embed"})
        return Embedding(vector=[0.1, 0.2, 0.3], space=space)


class FakeStore:
    """Implements every storage protocol over dictionaries and records each call."""

    def __init__(self):
        self.results: dict[Collection, list[RetrievedSource]] = defaultdict(list)
        self.failing: set[Collection] = set()
        self.counts: dict[Collection, int] = {}
        self.calls: list[dict[str, Any]] = []

        self.memories: dict[UUID, Memory] = {}
        self.documents: dict[UUID, Document] = {}
        self.chunks: list[DocumentChunk] = []
        self.conversations: dict[UUID, Conversation] = {}
        self.messages: dict[UUID, list[ConversationMessage]] = defaultdict(list)
        self.usage: list[UsageRecord] = []
        self.fail_saves = False
        self.fail_usage = False

    def _record(self, method: str, **kwargs: Any) -> None:
        self.calls.append({"method": method, **kwargs})

    def calls_to(self, method: str) -> list[dict[str, Any]]:
        return [call for call in self.calls if call["method"] == method]

    # VectorStore

    async def search_similar(self, collection, owner_id, query_embedding, threshold, limit):
        self._record("search_similar", collection=collection, owner_id=owner_id, threshold=threshold, limit=limit)
        if collection in self.failing:
            raise RuntimeError(f"{collection.value} search failed")
        hits = [s for s in self.results[collection] if s.similarity >= threshold]
        return sorted(hits, key=lambda s: s.similarity, reverse=True)[:limit]

    async def list_recent(self, collection, owner_id, limit):
        self._record("list_recent", collection=collection, owner_id=owner_id, limit=limit)
        return self.results[collection][:limit]

    async def count(self, collection, owner_id):
        self._record("count", collection=collection, owner_id=owner_id)
        return self.counts.get(collection, len(self.results[collection]))

    # ConversationStore

    async def create_conversation(self, conversation: Conversation) -> Conversation:
        self._record("create_conversation", owner_id=conversation.owner_id)
        self.conversations[conversation.id] = conversation
        return conversation

    async def get_conversation(self, owner_id, conversation_id):
        self._record("get_conversation", owner_id=owner_id, conversation_id=conversation_id)
        conversation = self.conversations.get(conversation_id)
        return conversation if conversation is not None and conversation.owner_id == owner_id else None

    async def recent_messages(self, owner_id, conversation_id, limit):
        self._record("recent_messages", owner_id=owner_id, conversation_id=conversation_id, limit=limit)
        conversation = self.conversations.get(conversation_id)
        if conversation is None or conversation.owner_id != owner_id:
            return []
        newest_first = sorted(self.messages[conversation_id], key=lambda m: m.created_at, reverse=True)
        return newest_first[:limit]

    async def save_message(self, owner_id, message):
        self._record("save_message", owner_id=owner_id, role=message.role)
        if self.fail_saves:
            raise RuntimeError("database unavailable")
        self.messages[message.conversation_id].append(message)
        return message

    # MemoryRepository

    async def create_memory(self, memory: Memory) -> Memory:
        self._record("create_memory", owner_id=memory.owner_id)
        self.memories[memory.id] = memory
        return memory

    async def list_memories(self, owner_id, limit=100, offset=0):
        self._record("list_memories", owner_id=owner_id)
        owned = [m for m in self.memories.values() if m.owner_id == owner_id]
        return sorted(owned, key=lambda m: m.created_at, reverse=True)[offset:offset + limit]

    async def get_memory(self, owner_id, memory_id):
        self._record("get_memory", owner_id=owner_id)
        memory = self.memories.get(memory_id)
        return memory if memory is not None and memory.owner_id == owner_id else None

    async def update_memory(self, memory: Memory):
        self._record("update_memory", owner_id=memory.owner_id)
        if memory.id not in self.memories:
            return None
        self.memories[memory.id] = memory
        return memory

    async def delete_memory(self, owner_id, memory_id):
        self._record("delete_memory", owner_id=owner_id)
        memory = self.memories.get(memory_id)
        if memory is None or memory.owner_id != owner_id:
            return False
        del self.memories[memory_id]
        return True

    # DocumentRepository

    async def create_document(self, document: Document) -> Document:
        self._record("create_document", owner_id=document.owner_id)
        self.documents[document.id] = document
        return document

    async def add_chunk(self, chunk: DocumentChunk) -> DocumentChunk:
        self._record("add_chunk", owner_id=chunk.owner_id)
        self.chunks.append(chunk)
        return chunk

    async def list_documents(self, owner_id):
        self._record("list_documents", owner_id=owner_id)
        return [d for d in self.documents.values() if d.owner_id == owner_id]

    async def delete_document(self, owner_id, document_id):
        self._record("delete_document", owner_id=owner_id)
        document = self.documents.get(document_id)
        if document is None or document.owner_id != owner_id:
            return False
        del self.documents[document_id]
        self.chunks = [c for c in self.chunks if c.document_id != document_id]
        return True

    # UsageSink

    async def record_usage(self, record: UsageRecord) -> None:
        self._record("record_usage", owner_id=record.owner_id)
        if self.fail_usage:
            raise RuntimeError("usage table missing")
        self.usage.append(record)


class FakeGenerationGateway:
    """Streams canned text pieces, optionally failing partway through."""

    def __init__(
        self,
        pieces: list[str] | None = None,
        usage: TokenUsage | None = None,
        error: Exception | None = None,
        fail_after: int = 0,
    ):
        self.pieces = pieces if pieces is not None else ["Bonjour", " !"]
        self.usage = usage
        self.error = error
        self.fail_after = fail_after
        self.calls: list[tuple[list[ChatMessage], GenerationParams]] = []

    async def generate_stream(self, messages, params) -> AsyncIterator[GenerationChunk]:
        self.calls.append((messages, params))
        for index, piece in enumerate(self.pieces):
            if self.error is not None and index == self.fail_after:
                raise self.error
            yield GenerationChunk(text=piece)
        if self.error is not None and self.fail_after >= len(self.pieces):
            raise self.error
        if self.usage is not None:
            yield GenerationChunk(usage=self.usage)


@pytest.fixture
def owner_id() -> str:
    return OWNER


@pytest.fixture
def embeddings() -> FakeEmbeddingGateway:
    return FakeEmbeddingGateway()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def generation() -> FakeGenerationGateway:
    return FakeGenerationGateway()

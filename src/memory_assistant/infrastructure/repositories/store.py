"""Neo4j-backed storage for memories, documents, conversations and usage."""

from typing import Any, LiteralString
from uuid import UUID

from neo4j import AsyncDriver, AsyncSession
from neo4j.exceptions import DriverError, Neo4jError

from memory_assistant.core.base import DatabaseErrorDetails, ErrorCode, ErrorLevel
from memory_assistant.core.decorators import with_error_handling, with_session
from memory_assistant.core.errors import NotFoundError, ServiceError
from memory_assistant.domain.models import (
    Collection,
    Conversation,
    ConversationMessage,
    Document,
    DocumentChunk,
    Embedding,
    Memory,
    MessageRole,
    RetrievedSource,
    UsageRecord,
)
from memory_assistant.domain.models.utils import utc_now
from memory_assistant.infrastructure.neo4j.queries import (
    EMBEDDING_PROPERTIES,
    ConversationQueries,
    DocumentQueries,
    MemoryQueries,
    SearchQueries,
    UsageQueries,
)


def embedding_params(embedding: Embedding | None) -> dict[str, Any]:
    """Fill the slot of the embedding's space and null the other one."""
    params: dict[str, Any] = {prop: None for prop in EMBEDDING_PROPERTIES.values()}
    params["embedding_model"] = None
    if embedding is not None:
        params[EMBEDDING_PROPERTIES[embedding.space]] = embedding.vector
        params["embedding_model"] = embedding.model_name
    return params


def embedding_from_record(record: dict[str, Any]) -> Embedding | None:
    for space, prop in EMBEDDING_PROPERTIES.items():
        if record.get(prop):
            return Embedding(vector=record[prop], space=space)
    return None


def _memory_from_record(record: dict[str, Any]) -> Memory:
    return Memory(
        id=UUID(record["id"]),
        owner_id=record["owner_id"],
        content=record["content"],
        embedding=embedding_from_record(record),
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


def _source_from_record(collection: Collection, record: dict[str, Any]) -> RetrievedSource:
    return RetrievedSource(
        type=collection.source_type,
        id=str(record["id"]),
        content=record["content"] or "",
        similarity=min(max(float(record["similarity"]), 0.0), 1.0),
    )


class Neo4jStore:
    """One adapter for every storage protocol the services depend on.

    All reads and writes are scoped by ``owner_id`` in the Cypher itself.
    Datetimes are stored as ISO-8601 strings, always UTC.
    """

    def __init__(self, driver: AsyncDriver):
        self.driver = driver

    async def _fetch(
        self,
        session: AsyncSession,
        query: LiteralString,
        operation: str,
        collection: str | None = None,
        **params: Any,
    ) -> list[dict[str, Any]]:
        try:
            result = await session.run(query, params)
            return [record.data() async for record in result]
        except (Neo4jError, DriverError) as e:
            raise ServiceError(
                f"Neo4j {operation} failed: {e}",
                code=ErrorCode.DB_QUERY,
                details=DatabaseErrorDetails(
                    source="neo4j_store",
                    operation=operation,
                    service_name="neo4j",
                    collection=collection,
                ),
            ) from e

    # Vector store

    @with_error_handling(error_level=ErrorLevel.WARNING)
    @with_session()
    async def search_similar(
        self,
        session: AsyncSession,
        collection: Collection,
        owner_id: str,
        query_embedding: Embedding,
        threshold: float,
        limit: int,
    ) -> list[RetrievedSource]:
        records = await self._fetch(
            session,
            SearchQueries.similarity_search(collection, query_embedding.space),
            "search_similar",
            collection.value,
            owner_id=owner_id,
            embedding=query_embedding.vector,
            threshold=threshold,
            limit=limit,
        )
        return [_source_from_record(collection, record) for record in records]

    @with_error_handling(error_level=ErrorLevel.WARNING)
    @with_session()
    async def list_recent(
        self, session: AsyncSession, collection: Collection, owner_id: str, limit: int
    ) -> list[RetrievedSource]:
        records = await self._fetch(
            session, SearchQueries.list_recent(collection), "list_recent", collection.value,
            owner_id=owner_id, limit=limit,
        )
        return [_source_from_record(collection, record) for record in records]

    @with_error_handling(error_level=ErrorLevel.WARNING)
    @with_session()
    async def count(self, session: AsyncSession, collection: Collection, owner_id: str) -> int:
        records = await self._fetch(
            session, SearchQueries.count(collection), "count", collection.value, owner_id=owner_id
        )
        return int(records[0]["total"]) if records else 0

    # Memories

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def create_memory(self, session: AsyncSession, memory: Memory) -> Memory:
        records = await self._fetch(
            session,
            MemoryQueries.create(),
            "create_memory",
            Collection.MEMORIES.value,
            id=str(memory.id),
            owner_id=memory.owner_id,
            content=memory.content,
            created_at=memory.created_at.isoformat(),
            updated_at=memory.updated_at.isoformat(),
            **embedding_params(memory.embedding),
        )
        return _memory_from_record(records[0]["m"]) if records else memory

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def list_memories(
        self, session: AsyncSession, owner_id: str, limit: int = 100, offset: int = 0
    ) -> list[Memory]:
        records = await self._fetch(
            session, MemoryQueries.list_for_owner(), "list_memories", Collection.MEMORIES.value,
            owner_id=owner_id, limit=limit, offset=offset,
        )
        return [_memory_from_record(record["m"]) for record in records]

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def get_memory(self, session: AsyncSession, owner_id: str, memory_id: UUID) -> Memory | None:
        records = await self._fetch(
            session, MemoryQueries.get_by_id(), "get_memory", Collection.MEMORIES.value,
            id=str(memory_id), owner_id=owner_id,
        )
        return _memory_from_record(records[0]["m"]) if records else None

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def update_memory(self, session: AsyncSession, memory: Memory) -> Memory | None:
        records = await self._fetch(
            session,
            MemoryQueries.update(),
            "update_memory",
            Collection.MEMORIES.value,
            id=str(memory.id),
            owner_id=memory.owner_id,
            content=memory.content,
            updated_at=memory.updated_at.isoformat(),
            **embedding_params(memory.embedding),
        )
        return _memory_from_record(records[0]["m"]) if records else None

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def delete_memory(self, session: AsyncSession, owner_id: str, memory_id: UUID) -> bool:
        records = await self._fetch(
            session, MemoryQueries.delete(), "delete_memory", Collection.MEMORIES.value,
            id=str(memory_id), owner_id=owner_id,
        )
        return bool(records and records[0]["deleted"])

    # Documents

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def create_document(self, session: AsyncSession, document: Document) -> Document:
        await self._fetch(
            session,
            DocumentQueries.create(),
            "create_document",
            Collection.CHUNKS.value,
            id=str(document.id),
            owner_id=document.owner_id,
            title=document.title,
            file_type=document.file_type,
            preview=document.preview,
            created_at=document.created_at.isoformat(),
        )
        return document

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def add_chunk(self, session: AsyncSession, chunk: DocumentChunk) -> DocumentChunk:
        records = await self._fetch(
            session,
            DocumentQueries.add_chunk(),
            "add_chunk",
            Collection.CHUNKS.value,
            id=str(chunk.id),
            document_id=str(chunk.document_id),
            owner_id=chunk.owner_id,
            content=chunk.content,
            token_count=chunk.token_count,
            chunk_index=chunk.chunk_index,
            created_at=utc_now().isoformat(),
            **embedding_params(chunk.embedding),
        )
        if not records:
            raise NotFoundError(
                f"Document {chunk.document_id} not found",
                details={"source": "neo4j_store", "operation": "add_chunk"},
            )
        return chunk

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def list_documents(self, session: AsyncSession, owner_id: str) -> list[Document]:
        records = await self._fetch(
            session, DocumentQueries.list_for_owner(), "list_documents", Collection.CHUNKS.value,
            owner_id=owner_id,
        )
        return [Document.model_validate(record["d"]) for record in records]

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def delete_document(self, session: AsyncSession, owner_id: str, document_id: UUID) -> bool:
        records = await self._fetch(
            session, DocumentQueries.delete(), "delete_document", Collection.CHUNKS.value,
            id=str(document_id), owner_id=owner_id,
        )
        return bool(records and records[0]["deleted"])

    # Conversations

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def create_conversation(self, session: AsyncSession, conversation: Conversation) -> Conversation:
        await self._fetch(
            session,
            ConversationQueries.create(),
            "create_conversation",
            Collection.CONVERSATIONS.value,
            id=str(conversation.id),
            owner_id=conversation.owner_id,
            title=conversation.title,
            created_at=conversation.created_at.isoformat(),
            updated_at=conversation.updated_at.isoformat(),
        )
        return conversation

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def get_conversation(
        self, session: AsyncSession, owner_id: str, conversation_id: UUID
    ) -> Conversation | None:
        records = await self._fetch(
            session, ConversationQueries.get_by_id(), "get_conversation", Collection.CONVERSATIONS.value,
            id=str(conversation_id), owner_id=owner_id,
        )
        return Conversation.model_validate(records[0]["c"]) if records else None

    @with_error_handling(error_level=ErrorLevel.WARNING)
    @with_session()
    async def recent_messages(
        self, session: AsyncSession, owner_id: str, conversation_id: UUID, limit: int
    ) -> list[ConversationMessage]:
        records = await self._fetch(
            session, ConversationQueries.recent_messages(), "recent_messages", Collection.CONVERSATIONS.value,
            owner_id=owner_id, conversation_id=str(conversation_id), limit=limit,
        )
        return [
            ConversationMessage(
                id=UUID(record["m"]["id"]),
                conversation_id=UUID(record["m"]["conversation_id"]),
                role=MessageRole(record["m"]["role"]),
                content=record["m"]["content"],
                created_at=record["m"]["created_at"],
            )
            for record in records
        ]

    @with_error_handling(error_level=ErrorLevel.ERROR)
    @with_session()
    async def save_message(
        self, session: AsyncSession, owner_id: str, message: ConversationMessage
    ) -> ConversationMessage:
        records = await self._fetch(
            session,
            ConversationQueries.save_message(),
            "save_message",
            Collection.CONVERSATIONS.value,
            id=str(message.id),
            conversation_id=str(message.conversation_id),
            owner_id=owner_id,
            role=message.role.value,
            content=message.content,
            created_at=message.created_at.isoformat(),
            **embedding_params(message.embedding),
        )
        if not records:
            raise NotFoundError(
                f"Conversation {message.conversation_id} not found",
                details={"source": "neo4j_store", "operation": "save_message"},
            )
        return message

    # Usage

    @with_error_handling(error_level=ErrorLevel.WARNING)
    @with_session()
    async def record_usage(self, session: AsyncSession, record: UsageRecord) -> None:
        properties = record.model_dump(mode="json", exclude={"owner_id"})
        await self._fetch(
            session, UsageQueries.record(), "record_usage", owner_id=record.owner_id, properties=properties
        )


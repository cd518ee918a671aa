"""API dependencies."""

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from neo4j import AsyncDriver

from memory_assistant.auth.tokens import verify_token
from memory_assistant.core.config import settings
from memory_assistant.core.errors import AuthenticationError
from memory_assistant.core.logging import bind_request_context
from memory_assistant.infrastructure.repositories.store import Neo4jStore
from memory_assistant.services import EmbeddingGateway, GenerationGateway
from memory_assistant.services.chat import ChatService
from memory_assistant.services.classifier import QueryClassifier
from memory_assistant.services.context import ContextAssembler
from memory_assistant.services.documents import DocumentService
from memory_assistant.services.history import ConversationHistoryManager
from memory_assistant.services.memories import MemoryService
from memory_assistant.services.retrieval import RetrievalPlanner
from memory_assistant.services.search import SearchService
from memory_assistant.services.usage import UsageRecorder

# These will be set by the main.py lifespan
neo4j_driver: AsyncDriver | None = None
store: Neo4jStore | None = None
embedding_gateway: EmbeddingGateway | None = None
generation_gateway: GenerationGateway | None = None

classifier = QueryClassifier()
assembler = ContextAssembler()
bearer = HTTPBearer(auto_error=False)


def get_store() -> Neo4jStore:
    if store is None:
        raise HTTPException(status_code=503, detail="Store not initialized")
    return store


def get_embedding_gateway() -> EmbeddingGateway:
    if embedding_gateway is None:
        raise HTTPException(status_code=503, detail="Embedding service not initialized")
    return embedding_gateway


def get_generation_gateway() -> GenerationGateway:
    if generation_gateway is None:
        raise HTTPException(status_code=503, detail="Generation service not initialized")
    return generation_gateway


def get_current_owner(credentials: HTTPAuthorizationCredentials | None = Depends(bearer)) -> str:
    """Resolve the caller's owner id from the bearer token."""
    if credentials is None:
        raise AuthenticationError(
            "Missing bearer token",
            details={"source": "api", "operation": "authenticate"},
        )
    token = verify_token(credentials.credentials)
    if token is None:
        raise AuthenticationError(
            "Invalid or expired token",
            details={"source": "api", "operation": "authenticate"},
        )
    bind_request_context(owner_id=token.owner_id)
    return token.owner_id


def get_chat_service(
    store: Neo4jStore = Depends(get_store),
    embeddings: EmbeddingGateway = Depends(get_embedding_gateway),
    generation: GenerationGateway = Depends(get_generation_gateway),
) -> ChatService:
    """Assemble the chat pipeline around the shared store and gateways."""
    return ChatService(
        classifier=classifier,
        planner=RetrievalPlanner(
            embeddings,
            store,
            config=settings.retrieval,
            embedding_timeout=settings.embedding_timeout,
        ),
        assembler=assembler,
        history=ConversationHistoryManager(store, embeddings, recency_window=settings.history_window),
        generation=generation,
        usage=UsageRecorder(store),
        defaults=settings.chat,
        generation_timeout=settings.generation_timeout,
    )


def get_memory_service(
    store: Neo4jStore = Depends(get_store),
    embeddings: EmbeddingGateway = Depends(get_embedding_gateway),
) -> MemoryService:
    return MemoryService(store, embeddings)


def get_document_service(
    store: Neo4jStore = Depends(get_store),
    embeddings: EmbeddingGateway = Depends(get_embedding_gateway),
) -> DocumentService:
    return DocumentService(store, embeddings)


def get_search_service(
    store: Neo4jStore = Depends(get_store),
    embeddings: EmbeddingGateway = Depends(get_embedding_gateway),
) -> SearchService:
    return SearchService(embeddings, store, embedding_timeout=settings.embedding_timeout)

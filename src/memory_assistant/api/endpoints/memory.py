"""Memory management endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from memory_assistant.api.dependencies import get_current_owner, get_memory_service
from memory_assistant.core.config import settings
from memory_assistant.core.decorators import with_error_handling
from memory_assistant.core.logging import get_logger
from memory_assistant.domain.models import EmbeddingSpace, EmbeddingSpaceName, Memory
from memory_assistant.services.memories import MemoryService

logger = get_logger(__name__)

router = APIRouter()


class MemoryRequest(BaseModel):
    """Request model for creating or editing a memory."""

    content: str = Field(min_length=1, max_length=20000)
    embedding_space: EmbeddingSpaceName | None = Field(
        default=None, description="'small' or 'large'; defaults to the configured space"
    )

    def space(self) -> EmbeddingSpace:
        return self.embedding_space or settings.chat.embedding_space


class MemoryResponse(BaseModel):
    id: UUID
    content: str
    embedding_model: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_memory(cls, memory: Memory) -> "MemoryResponse":
        return cls(
            id=memory.id,
            content=memory.content,
            embedding_model=memory.embedding.model_name if memory.embedding else None,
            created_at=memory.created_at,
            updated_at=memory.updated_at,
        )


class MemoryListResponse(BaseModel):
    memories: list[MemoryResponse]
    count: int


@router.post("", response_model=MemoryResponse, status_code=status.HTTP_201_CREATED, operation_id="create_memory")
@with_error_handling(reraise=True)
async def create_memory(
    request: MemoryRequest,
    owner_id: str = Depends(get_current_owner),
    memory_service: MemoryService = Depends(get_memory_service),
) -> MemoryResponse:
    """Store a new memory."""
    memory = await memory_service.create(owner_id, request.content, request.space())
    return MemoryResponse.from_memory(memory)


@router.get("", response_model=MemoryListResponse, operation_id="list_memories")
@with_error_handling(reraise=True)
async def list_memories(
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    owner_id: str = Depends(get_current_owner),
    memory_service: MemoryService = Depends(get_memory_service),
) -> MemoryListResponse:
    """List memories, newest first."""
    memories = await memory_service.list_memories(owner_id, limit=limit, offset=offset)
    return MemoryListResponse(memories=[MemoryResponse.from_memory(m) for m in memories], count=len(memories))


@router.put("/{memory_id}", response_model=MemoryResponse, operation_id="update_memory")
@with_error_handling(reraise=True)
async def update_memory(
    memory_id: UUID,
    request: MemoryRequest,
    owner_id: str = Depends(get_current_owner),
    memory_service: MemoryService = Depends(get_memory_service),
) -> MemoryResponse:
    """Edit a memory's content and re-embed it."""
    memory = await memory_service.update(owner_id, memory_id, request.content, request.space())
    return MemoryResponse.from_memory(memory)


@router.delete("/{memory_id}", status_code=status.HTTP_204_NO_CONTENT, operation_id="delete_memory")
@with_error_handling(reraise=True)
async def delete_memory(
    memory_id: UUID,
    owner_id: str = Depends(get_current_owner),
    memory_service: MemoryService = Depends(get_memory_service),
) -> Response:
    await memory_service.delete(owner_id, memory_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

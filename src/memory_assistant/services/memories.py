"""Owner-scoped memory management."""

from typing import Any
from uuid import UUID

from memory_assistant.core.errors import NotFoundError
from memory_assistant.core.logging import get_logger
from memory_assistant.domain.models import EmbeddingSpace, Memory
from memory_assistant.domain.models.utils import utc_now
from memory_assistant.services import EmbeddingGateway, MemoryRepository


class MemoryService:
    """Create, list, edit and delete memories. Every write re-embeds the content."""

    def __init__(self, repository: MemoryRepository, embeddings: EmbeddingGateway, logger: Any = None):
        self.repository = repository
        self.embeddings = embeddings
        self.logger = logger or get_logger(__name__)

    async def create(self, owner_id: str, content: str, space: EmbeddingSpace = EmbeddingSpace.SMALL) -> Memory:
        embedding = await self.embeddings.embed(content, space)
        memory = await self.repository.create_memory(Memory(owner_id=owner_id, content=content, embedding=embedding))
        self.logger.info("Memory created", owner_id=owner_id, memory_id=str(memory.id), space=space.value)
        return memory

    async def list_memories(self, owner_id: str, limit: int = 100, offset: int = 0) -> list[Memory]:
        """Newest first."""
        return await self.repository.list_memories(owner_id, limit=limit, offset=offset)

    async def update(
        self,
        owner_id: str,
        memory_id: UUID,
        content: str,
        space: EmbeddingSpace = EmbeddingSpace.SMALL,
    ) -> Memory:
        existing = await self.repository.get_memory(owner_id, memory_id)
        if existing is None:
            raise self._not_found(memory_id, "update_memory")

        embedding = await self.embeddings.embed(content, space)
        changed = existing.model_copy(update={"content": content, "embedding": embedding, "updated_at": utc_now()})
        updated = await self.repository.update_memory(changed)
        if updated is None:
            raise self._not_found(memory_id, "update_memory")

        self.logger.info("Memory updated", owner_id=owner_id, memory_id=str(memory_id), space=space.value)
        return updated

    async def delete(self, owner_id: str, memory_id: UUID) -> None:
        if not await self.repository.delete_memory(owner_id, memory_id):
            raise self._not_found(memory_id, "delete_memory")
        self.logger.info("Memory deleted", owner_id=owner_id, memory_id=str(memory_id))

    @staticmethod
    def _not_found(memory_id: UUID, operation: str) -> NotFoundError:
        return NotFoundError(
            f"Memory {memory_id} not found",
            details={"source": "memory_service", "operation": operation},
        )

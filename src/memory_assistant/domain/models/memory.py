"""Memory and document domain models."""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from memory_assistant.domain.models.embedding import Embedding
from memory_assistant.domain.models.utils import utc_now


class Memory(BaseModel):
    """A free-text note the user asked the assistant to remember."""

    id: UUID = Field(default_factory=uuid4)
    owner_id: str
    content: str
    embedding: Embedding | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Document(BaseModel):
    """An uploaded document. Its text lives in the chunks."""

    id: UUID = Field(default_factory=uuid4)
    owner_id: str
    title: str
    file_type: str = "text/plain"
    preview: str = ""
    created_at: datetime = Field(default_factory=utc_now)


class DocumentChunk(BaseModel, frozen=True):
    """A bounded slice of a document, embedded on ingestion and never changed."""

    id: UUID = Field(default_factory=uuid4)
    document_id: UUID
    owner_id: str
    content: str
    token_count: int
    chunk_index: int
    embedding: Embedding | None = None

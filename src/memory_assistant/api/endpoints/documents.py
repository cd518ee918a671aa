"""Document ingestion endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from memory_assistant.api.dependencies import get_current_owner, get_document_service
from memory_assistant.core.config import settings
from memory_assistant.core.decorators import with_error_handling
from memory_assistant.core.logging import get_logger
from memory_assistant.domain.models import Document, EmbeddingSpaceName
from memory_assistant.services.documents import DocumentService

logger = get_logger(__name__)

router = APIRouter()

MAX_DOCUMENT_CHARS = 10 * 1024 * 1024


class DocumentRequest(BaseModel):
    title: str = Field(min_length=1, max_length=500)
    content: str = Field(min_length=1, max_length=MAX_DOCUMENT_CHARS)
    file_type: str = Field(default="text/plain", description="text/plain or text/markdown")
    embedding_space: EmbeddingSpaceName | None = None


class DocumentResponse(BaseModel):
    id: UUID
    title: str
    file_type: str
    preview: str
    created_at: datetime

    @classmethod
    def from_document(cls, document: Document) -> "DocumentResponse":
        return cls.model_validate(document.model_dump(include=set(cls.model_fields)))


class IngestResponse(BaseModel):
    document: DocumentResponse
    chunks_processed: int
    chunks_failed: int


@router.post("", response_model=IngestResponse, status_code=status.HTTP_201_CREATED, operation_id="ingest_document")
@with_error_handling(reraise=True)
async def ingest_document(
    request: DocumentRequest,
    owner_id: str = Depends(get_current_owner),
    document_service: DocumentService = Depends(get_document_service),
) -> IngestResponse:
    """Chunk, embed and store a text document."""
    logger.info("Ingesting document", title=request.title, length=len(request.content))
    space = request.embedding_space or settings.chat.embedding_space
    result = await document_service.ingest(owner_id, request.title, request.content, request.file_type, space)
    return IngestResponse(
        document=DocumentResponse.from_document(result.document),
        chunks_processed=result.chunks_processed,
        chunks_failed=result.chunks_failed,
    )


@router.get("", response_model=list[DocumentResponse], operation_id="list_documents")
@with_error_handling(reraise=True)
async def list_documents(
    owner_id: str = Depends(get_current_owner),
    document_service: DocumentService = Depends(get_document_service),
) -> list[DocumentResponse]:
    documents = await document_service.list_documents(owner_id)
    return [DocumentResponse.from_document(d) for d in documents]


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT, operation_id="delete_document")
@with_error_handling(reraise=True)
async def delete_document(
    document_id: UUID,
    owner_id: str = Depends(get_current_owner),
    document_service: DocumentService = Depends(get_document_service),
) -> Response:
    """Delete a document and its chunks."""
    await document_service.delete(owner_id, document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

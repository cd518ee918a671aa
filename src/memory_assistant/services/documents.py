"""Document ingestion: chunk, embed and store text documents."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel

from memory_assistant.core.errors import InvalidInputError, NotFoundError
from memory_assistant.core.logging import get_logger
from memory_assistant.domain.models import Document, DocumentChunk, EmbeddingSpace
from memory_assistant.services import DocumentRepository, EmbeddingGateway
from memory_assistant.services.chunking import chunk_text
from memory_assistant.services.usage import estimate_tokens

SUPPORTED_FILE_TYPES = {"text/plain", "text/markdown"}
PREVIEW_LENGTH = 1000
CHUNK_TOKENS = 400


class IngestionResult(BaseModel):
    document: Document
    chunks_processed: int
    chunks_failed: int = 0


class DocumentService:
    """Ingests plain-text and markdown documents.

    A chunk that fails to embed or store is logged and skipped; the rest of
    the document is still ingested.
    """

    def __init__(self, repository: DocumentRepository, embeddings: EmbeddingGateway, logger: Any = None):
        self.repository = repository
        self.embeddings = embeddings
        self.logger = logger or get_logger(__name__)

    async def ingest(
        self,
        owner_id: str,
        title: str,
        content: str,
        file_type: str = "text/plain",
        space: EmbeddingSpace = EmbeddingSpace.SMALL,
    ) -> IngestionResult:
        if file_type not in SUPPORTED_FILE_TYPES:
            raise InvalidInputError(
                f"Unsupported file type: {file_type}",
                details={"source": "document_service", "operation": "ingest"},
            )
        if not content.strip():
            raise InvalidInputError(
                "Document is empty",
                details={"source": "document_service", "operation": "ingest"},
            )

        document = await self.repository.create_document(
            Document(owner_id=owner_id, title=title, file_type=file_type, preview=content[:PREVIEW_LENGTH])
        )

        chunks = chunk_text(content, CHUNK_TOKENS)
        failed = 0
        for index, text in enumerate(chunks):
            try:
                embedding = await self.embeddings.embed(text, space)
                await self.repository.add_chunk(
                    DocumentChunk(
                        document_id=document.id,
                        owner_id=owner_id,
                        content=text,
                        token_count=estimate_tokens(text),
                        chunk_index=index,
                        embedding=embedding,
                    )
                )
            except Exception as e:
                failed += 1
                self.logger.error(
                    "Failed to ingest chunk",
                    document_id=str(document.id),
                    chunk_index=index,
                    error=str(e),
                )

        self.logger.info(
            "Document ingested",
            owner_id=owner_id,
            document_id=str(document.id),
            chunks=len(chunks),
            failed=failed,
        )
        return IngestionResult(document=document, chunks_processed=len(chunks) - failed, chunks_failed=failed)

    async def list_documents(self, owner_id: str) -> list[Document]:
        return await self.repository.list_documents(owner_id)

    async def delete(self, owner_id: str, document_id: UUID) -> None:
        """Delete a document together with its chunks."""
        if not await self.repository.delete_document(owner_id, document_id):
            raise NotFoundError(
                f"Document {document_id} not found",
                details={"source": "document_service", "operation": "delete_document"},
            )

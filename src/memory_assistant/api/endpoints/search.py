"""Semantic search endpoint."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from memory_assistant.api.dependencies import get_current_owner, get_search_service
from memory_assistant.core.config import settings
from memory_assistant.core.decorators import with_error_handling
from memory_assistant.domain.models import EmbeddingSpaceName, QueryText, RetrievedSource
from memory_assistant.services.search import SearchScope, SearchService

router = APIRouter()


class SearchRequest(BaseModel):
    query: QueryText
    type: SearchScope = SearchScope.ALL
    limit: int = Field(default=10, ge=1, le=50)
    embedding_space: EmbeddingSpaceName | None = None


@router.post("", response_model=list[RetrievedSource], operation_id="search")
@with_error_handling(reraise=True)
async def search(
    request: SearchRequest,
    owner_id: str = Depends(get_current_owner),
    search_service: SearchService = Depends(get_search_service),
) -> list[RetrievedSource]:
    """Find the caller's memories and document chunks most similar to ``query``."""
    return await search_service.search(
        owner_id,
        request.query,
        request.type,
        request.limit,
        request.embedding_space or settings.chat.embedding_space,
    )

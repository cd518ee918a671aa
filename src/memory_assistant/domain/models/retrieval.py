"""Retrieval results and query classification."""

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints, computed_field

from memory_assistant.domain.models.embedding import Embedding

# User question text: surrounding whitespace stripped, never blank
QueryText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=8000)]


class SourceType(str, Enum):
    """Where a retrieved piece of context came from."""

    MEMORY = "memory"
    CHUNK = "chunk"
    CONVERSATION = "conversation"


class Collection(str, Enum):
    """Searchable collections in the store."""

    MEMORIES = "memories"
    CHUNKS = "chunks"
    CONVERSATIONS = "conversations"

    @property
    def source_type(self) -> SourceType:
        return {
            Collection.MEMORIES: SourceType.MEMORY,
            Collection.CHUNKS: SourceType.CHUNK,
            Collection.CONVERSATIONS: SourceType.CONVERSATION,
        }[self]


class RetrievedSource(BaseModel):
    """A search hit. Lives for one request only."""

    type: SourceType
    id: str
    content: str
    similarity: float = Field(ge=0.0, le=1.0)


class QueryClassification(BaseModel, frozen=True):
    """Intent flags for a user query."""

    is_personal_info: bool = False
    is_simple_greeting: bool = False
    is_simple_smalltalk: bool = False
    is_general_meta: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def skip_retrieval(self) -> bool:
        trivial = self.is_simple_greeting or self.is_simple_smalltalk or self.is_general_meta
        return trivial and not self.is_personal_info


class RetrievalResult(BaseModel):
    """Merged sources for one query plus what went wrong on the way."""

    sources: list[RetrievedSource] = Field(default_factory=list)
    query_embedding: Embedding | None = None
    failed_collections: list[Collection] = Field(default_factory=list)
    fallback: str | None = Field(default=None, description="Fallback tier used, if any")

    @property
    def is_empty(self) -> bool:
        return not self.sources

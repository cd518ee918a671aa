"""Conversation models."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from memory_assistant.domain.models.embedding import Embedding
from memory_assistant.domain.models.utils import utc_now

TITLE_MAX_LENGTH = 50


class MessageRole(str, Enum):
    """Message roles in a conversation."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Conversation(BaseModel):
    """A thread of messages owned by one user."""

    id: UUID = Field(default_factory=uuid4)
    owner_id: str
    title: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def titled_from(cls, owner_id: str, query: str) -> "Conversation":
        """Start a conversation titled after its first query."""
        return cls(owner_id=owner_id, title=query[:TITLE_MAX_LENGTH])


class ConversationMessage(BaseModel):
    """A persisted turn. Messages are only ever appended."""

    id: UUID = Field(default_factory=uuid4)
    conversation_id: UUID
    role: MessageRole
    content: str
    embedding: Embedding | None = None
    created_at: datetime = Field(default_factory=utc_now)


class ChatMessage(BaseModel):
    """A message as sent to the generation provider."""

    role: MessageRole
    content: str

    def to_provider(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}

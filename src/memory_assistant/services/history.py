"""Conversation threads: creation, replay into prompts, and turn persistence."""

import asyncio
from datetime import timedelta
from typing import Any
from uuid import UUID

from memory_assistant.core.errors import NotFoundError, PersistenceError
from memory_assistant.core.logging import get_logger
from memory_assistant.domain.models import (
    ChatMessage,
    Conversation,
    ConversationMessage,
    Embedding,
    EmbeddingSpace,
    MessageRole,
)
from memory_assistant.domain.models.utils import utc_now
from memory_assistant.services import ConversationStore, EmbeddingGateway

HISTORY_INSTRUCTION = (
    "Tu te souviens des échanges précédents de cette conversation et tu peux y faire "
    "référence pour garder une réponse cohérente avec ce qui a déjà été dit."
)


class ConversationHistoryManager:
    """Builds the message sequence for a turn and saves the turn afterwards.

    Only the last ``recency_window`` messages are replayed. There is no
    token budget beyond that count.
    """

    def __init__(
        self,
        store: ConversationStore,
        embeddings: EmbeddingGateway,
        recency_window: int = 10,
        logger: Any = None,
    ):
        self.store = store
        self.embeddings = embeddings
        self.recency_window = recency_window
        self.logger = logger or get_logger(__name__)

    async def require_conversation(self, owner_id: str, conversation_id: UUID) -> UUID:
        """Check that ``conversation_id`` exists and belongs to ``owner_id``."""
        if await self.store.get_conversation(owner_id, conversation_id) is None:
            raise NotFoundError(
                f"Conversation {conversation_id} not found",
                details={"source": "conversation_history", "operation": "require_conversation"},
            )
        return conversation_id

    async def ensure_conversation(self, owner_id: str, conversation_id: UUID | None, query: str) -> UUID:
        """Return the given conversation id once verified, or start a new thread titled after ``query``."""
        if conversation_id is not None:
            return await self.require_conversation(owner_id, conversation_id)

        conversation = await self.store.create_conversation(Conversation.titled_from(owner_id, query))
        self.logger.info("Started conversation", owner_id=owner_id, conversation_id=str(conversation.id))
        return conversation.id

    async def build_messages(
        self,
        system_prompt: str,
        conversation_id: UUID | None,
        contextual_message: str,
        owner_id: str,
        recency_window: int | None = None,
    ) -> list[ChatMessage]:
        window = self.recency_window if recency_window is None else recency_window
        messages = [ChatMessage(role=MessageRole.SYSTEM, content=f"{system_prompt}\n\n{HISTORY_INSTRUCTION}")]

        if conversation_id is not None and window > 0:
            history = await self.store.recent_messages(owner_id, conversation_id, window)
            for message in sorted(history, key=lambda m: m.created_at):
                messages.append(ChatMessage(role=message.role, content=message.content))

        messages.append(ChatMessage(role=MessageRole.USER, content=contextual_message))
        return messages

    async def persist_turn(
        self,
        owner_id: str,
        conversation_id: UUID,
        query: str,
        answer: str,
        space: EmbeddingSpace = EmbeddingSpace.SMALL,
    ) -> None:
        """Embed and save the user and assistant messages. Never raises."""
        user_at = utc_now()
        assistant_at = max(utc_now(), user_at + timedelta(microseconds=1))

        user_message = ConversationMessage(
            conversation_id=conversation_id, role=MessageRole.USER, content=query, created_at=user_at
        )
        assistant_message = ConversationMessage(
            conversation_id=conversation_id, role=MessageRole.ASSISTANT, content=answer, created_at=assistant_at
        )

        await asyncio.gather(
            self._save(owner_id, user_message, space),
            self._save(owner_id, assistant_message, space),
        )

    async def _embed(self, text: str, space: EmbeddingSpace) -> Embedding | None:
        try:
            return await self.embeddings.embed(text, space)
        except Exception as e:
            self.logger.warning("Saving message without embedding", error=str(e), space=space.value)
            return None

    async def _save(self, owner_id: str, message: ConversationMessage, space: EmbeddingSpace) -> None:
        message.embedding = await self._embed(message.content, space)
        try:
            await self.store.save_message(owner_id, message)
        except Exception as e:
            error = PersistenceError(
                f"Failed to save {message.role.value} message: {e}",
                details={
                    "source": "conversation_history",
                    "operation": "save_message",
                    "conversation_id": str(message.conversation_id),
                },
            )
            self.logger.error(
                error.message,
                error_code=error.code.value,
                owner_id=owner_id,
                conversation_id=str(message.conversation_id),
                role=message.role.value,
            )

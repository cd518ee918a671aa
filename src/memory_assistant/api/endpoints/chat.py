"""Streamed question answering over the caller's memories."""

from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, Field
from sse_starlette import EventSourceResponse

from memory_assistant.api.dependencies import get_chat_service, get_current_owner
from memory_assistant.core.decorators import with_error_handling
from memory_assistant.core.logging import bind_request_context, get_logger
from memory_assistant.domain.models import QueryText
from memory_assistant.services.chat import ChatOptions, ChatService

logger = get_logger(__name__)

router = APIRouter()


class ChatQueryRequest(ChatOptions):
    """A question, optionally continuing an existing conversation."""

    query: QueryText
    conversation_id: UUID | None = Field(
        default=None,
        validation_alias=AliasChoices("conversation_id", "conversationId"),
    )


@router.post("/query", operation_id="chat_query")
@with_error_handling(reraise=True)
async def chat_query(
    request: ChatQueryRequest,
    owner_id: str = Depends(get_current_owner),
    chat_service: ChatService = Depends(get_chat_service),
) -> EventSourceResponse:
    """Answer ``query`` as server-sent events.

    Retrieval happens before the stream opens, so an embedding failure is a
    plain HTTP error. Generation failures arrive as an ``error`` event.
    """
    logger.info(
        "Chat query received",
        query_length=len(request.query),
        conversation_id=str(request.conversation_id) if request.conversation_id else None,
    )

    options = ChatOptions.model_validate(request.model_dump(include=set(ChatOptions.model_fields)))
    prepared = await chat_service.prepare(owner_id, request.query, request.conversation_id, options)
    bind_request_context(conversation_id=str(prepared.conversation_id) if prepared.conversation_id else None)

    return EventSourceResponse(chat_service.stream(prepared))

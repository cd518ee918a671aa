"""Domain models for the memory assistant."""

from .conversation import ChatMessage, Conversation, ConversationMessage, MessageRole
from .embedding import Embedding, EmbeddingSpace, EmbeddingSpaceName
from .memory import Document, DocumentChunk, Memory
from .retrieval import Collection, QueryClassification, QueryText, RetrievalResult, RetrievedSource, SourceType
from .usage import CostBreakdown, GenerationChunk, GenerationParams, TokenUsage, UsageRecord

__all__ = [
    # Conversation
    "ChatMessage",
    # Retrieval
    "Collection",
    "Conversation",
    "ConversationMessage",
    # Usage
    "CostBreakdown",
    # Memory
    "Document",
    "DocumentChunk",
    # Embedding
    "Embedding",
    "EmbeddingSpace",
    "EmbeddingSpaceName",
    "GenerationChunk",
    "GenerationParams",
    "Memory",
    "MessageRole",
    "QueryClassification",
    "QueryText",
    "RetrievalResult",
    "RetrievedSource",
    "SourceType",
    "TokenUsage",
    "UsageRecord",
]

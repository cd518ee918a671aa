"""Token usage, costs and generation parameters."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from memory_assistant.domain.models.utils import utc_now


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0
    estimated: bool = Field(default=False, description="True when counted from characters, not reported")

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class CostBreakdown(BaseModel):
    """Costs in dollars, rounded to 5 decimals."""

    input_cost: float = 0.0
    output_cost: float = 0.0
    total_cost: float = 0.0
    cache_hit: bool = False
    cache_savings: float = 0.0
    final_cost: float = Field(default=0.0, description="total_cost minus cache_savings")


class UsageRecord(BaseModel):
    """One billed generation."""

    owner_id: str
    conversation_id: UUID | None = None
    model: str
    input_tokens: int
    output_tokens: int
    input_cost: float
    output_cost: float
    total_cost: float
    cache_hit: bool = False
    cache_savings: float = 0.0
    endpoint: str = "/api/v1/chat/query"
    created_at: datetime = Field(default_factory=utc_now)


class GenerationParams(BaseModel):
    """What the caller asked for. Capability rules are applied by the gateway."""

    model: str
    temperature: float = 0.7
    top_p: float = 1.0
    max_tokens: int | None = None


class GenerationChunk(BaseModel):
    """One streamed piece of output. The final chunk may carry usage only."""

    text: str | None = None
    usage: TokenUsage | None = None

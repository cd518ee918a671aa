"""Token accounting and modeled cost per generation."""

import math
from typing import Any
from uuid import UUID

from memory_assistant.core.logging import get_logger
from memory_assistant.domain.models import CostBreakdown, TokenUsage, UsageRecord
from memory_assistant.services import UsageSink
from memory_assistant.services.cache_estimator import CACHE_SAVINGS_RATE

CHARS_PER_TOKEN = 4

# Dollars per 1K tokens
MODEL_PRICING: dict[str, dict[str, float]] = {
    "gpt-4o": {"input": 0.0025, "output": 0.01},
    "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
    "gpt-5-2025-08-07": {"input": 0.005, "output": 0.02},
    "gpt-4-turbo": {"input": 0.001, "output": 0.003},
    "gpt-3.5-turbo": {"input": 0.0005, "output": 0.0015},
}

logger = get_logger(__name__)


def estimate_tokens(text: str) -> int:
    """Rough token count used when the provider reports none."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def calculate_costs(model: str, usage: TokenUsage, cache_hit: bool = False) -> CostBreakdown:
    """Price a generation. Unknown models cost nothing and log a warning."""
    pricing = MODEL_PRICING.get(model)
    if pricing is None:
        logger.warning("No pricing for model", model=model)
        return CostBreakdown(cache_hit=cache_hit)

    input_cost = usage.input_tokens / 1000 * pricing["input"]
    output_cost = usage.output_tokens / 1000 * pricing["output"]
    total_cost = input_cost + output_cost
    cache_savings = total_cost * CACHE_SAVINGS_RATE if cache_hit else 0.0

    return CostBreakdown(
        input_cost=round(input_cost, 5),
        output_cost=round(output_cost, 5),
        total_cost=round(total_cost, 5),
        cache_hit=cache_hit,
        cache_savings=round(cache_savings, 5),
        final_cost=round(total_cost - cache_savings, 5),
    )


class UsageRecorder:
    """Writes usage records to a sink without ever failing the request."""

    def __init__(self, sink: UsageSink, logger: Any = None):
        self.sink = sink
        self.logger = logger or get_logger(__name__)

    async def record(
        self,
        owner_id: str,
        conversation_id: UUID | None,
        model: str,
        usage: TokenUsage,
        costs: CostBreakdown,
        endpoint: str = "/api/v1/chat/query",
    ) -> UsageRecord | None:
        record = UsageRecord(
            owner_id=owner_id,
            conversation_id=conversation_id,
            model=model,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            input_cost=costs.input_cost,
            output_cost=costs.output_cost,
            total_cost=costs.final_cost,
            cache_hit=costs.cache_hit,
            cache_savings=costs.cache_savings,
            endpoint=endpoint,
        )
        try:
            await self.sink.record_usage(record)
        except Exception as e:
            self.logger.error("Failed to record usage", error=str(e), owner_id=owner_id, model=model)
            return None

        self.logger.info(
            "Usage recorded",
            model=model,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            estimated=usage.estimated,
            cost=costs.final_cost,
            cache_hit=costs.cache_hit,
        )
        return record

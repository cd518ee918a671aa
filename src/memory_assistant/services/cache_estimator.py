"""Billing heuristic that credits requests where retrieval clearly did the work.

Nothing is cached or reused here. A request counts as a "cache hit" when it
was answered from several strong sources that make up a meaningful share of
the prompt, and the user is credited half of the modeled cost.
"""

from pydantic import BaseModel

from memory_assistant.domain.models import RetrievedSource

HIGH_SIMILARITY = 0.7
MIN_SOURCES = 2
MIN_CONTEXT_RATIO = 0.2
CACHE_SAVINGS_RATE = 0.5


class CacheHitEstimate(BaseModel):
    cache_hit: bool
    cache_savings: float = 0.0
    context_ratio: float = 0.0


def estimate_cache_hit(
    sources: list[RetrievedSource],
    contextual_message: str,
    total_cost: float = 0.0,
) -> CacheHitEstimate:
    if not sources or not contextual_message:
        return CacheHitEstimate(cache_hit=False)

    has_high_quality = any(source.similarity > HIGH_SIMILARITY for source in sources)
    has_multiple = len(sources) >= MIN_SOURCES
    context_ratio = sum(len(source.content) for source in sources) / len(contextual_message)

    cache_hit = has_high_quality and has_multiple and context_ratio > MIN_CONTEXT_RATIO
    savings = round(total_cost * CACHE_SAVINGS_RATE, 5) if cache_hit else 0.0
    return CacheHitEstimate(cache_hit=cache_hit, cache_savings=savings, context_ratio=context_ratio)

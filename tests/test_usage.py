"""Tests for token estimates, cost calculation and usage recording."""

from uuid import uuid4

from conftest import FakeStore

from memory_assistant.domain.models import TokenUsage
from memory_assistant.services.usage import UsageRecorder, calculate_costs, estimate_tokens


class TestEstimateTokens:
    def test_rounds_up(self):
        assert estimate_tokens("abcde") == 2
        assert estimate_tokens("abcd") == 1

    def test_empty(self):
        assert estimate_tokens("") == 0


class TestCalculateCosts:
    def test_known_model(self):
        costs = calculate_costs("gpt-4o", TokenUsage(input_tokens=1000, output_tokens=500))

        assert costs.input_cost == 0.0025
        assert costs.output_cost == 0.005
        assert costs.total_cost == 0.0075
        assert costs.cache_savings == 0.0
        assert costs.final_cost == 0.0075

    def test_cache_hit_halves_final_cost(self):
        costs = calculate_costs("gpt-4o", TokenUsage(input_tokens=1000, output_tokens=500), cache_hit=True)

        assert costs.cache_hit
        assert costs.cache_savings == 0.00375
        assert costs.final_cost == 0.00375

    def test_rounds_to_five_decimals(self):
        costs = calculate_costs("gpt-4o-mini", TokenUsage(input_tokens=7, output_tokens=3))

        assert costs.input_cost == 0.0
        assert costs.total_cost == round(7 / 1000 * 0.00015 + 3 / 1000 * 0.0006, 5)

    def test_unknown_model_is_free(self):
        costs = calculate_costs("some-local-model", TokenUsage(input_tokens=1000, output_tokens=1000))

        assert costs.total_cost == 0.0
        assert costs.final_cost == 0.0


class TestUsageRecorder:
    async def test_stores_final_cost_as_total(self, owner_id):
        sink = FakeStore()
        usage = TokenUsage(input_tokens=1000, output_tokens=500)
        costs = calculate_costs("gpt-4o", usage, cache_hit=True)
        conversation_id = uuid4()

        record = await UsageRecorder(sink).record(owner_id, conversation_id, "gpt-4o", usage, costs)

        assert record is not None
        assert sink.usage == [record]
        assert record.total_cost == 0.00375
        assert record.conversation_id == conversation_id
        assert record.endpoint == "/api/v1/chat/query"

    async def test_sink_failure_is_swallowed(self, owner_id):
        sink = FakeStore()
        sink.fail_usage = True
        usage = TokenUsage(input_tokens=10, output_tokens=10)

        record = await UsageRecorder(sink).record(owner_id, None, "gpt-4o", usage, calculate_costs("gpt-4o", usage))

        assert record is None
        assert sink.usage == []

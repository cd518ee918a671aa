"""Tests for the tiered retrieval planner."""

import asyncio

import pytest
from conftest import FakeEmbeddingGateway, FakeStore, source

from memory_assistant.core.config import RetrievalSettings
from memory_assistant.core.errors import EmbeddingError
from memory_assistant.domain.models import Collection, EmbeddingSpace, SourceType
from memory_assistant.services.classifier import QueryClassifier
from memory_assistant.services.retrieval import RetrievalPlanner

classifier = QueryClassifier()

PERSONAL = classifier.classify("que sais-tu de moi")
NORMAL = classifier.classify("Quel est le nom de mon chat ?")
GREETING = classifier.classify("bonjour")


@pytest.fixture
def planner(embeddings: FakeEmbeddingGateway, store: FakeStore) -> RetrievalPlanner:
    return RetrievalPlanner(embeddings, store, RetrievalSettings())


class TestSkip:
    async def test_trivial_query_makes_no_calls(self, planner, embeddings, store, owner_id):
        result = await planner.plan("bonjour", GREETING, owner_id)

        assert result.sources == []
        assert result.query_embedding is None
        assert embeddings.calls == []
        assert store.calls == []


class TestTierOne:
    async def test_normal_query_thresholds(self, planner, store, owner_id):
        store.results[Collection.MEMORIES] = [source(SourceType.MEMORY, 0.8)]

        await planner.plan("chat", NORMAL, owner_id)

        searches = {call["collection"]: call for call in store.calls_to("search_similar")}
        assert searches[Collection.MEMORIES]["threshold"] == 0.6
        assert searches[Collection.MEMORIES]["limit"] == 5
        assert searches[Collection.CHUNKS]["threshold"] == 0.6
        assert searches[Collection.CONVERSATIONS]["threshold"] == 0.5
        assert searches[Collection.CONVERSATIONS]["limit"] == 5

    async def test_personal_query_thresholds(self, planner, store, owner_id):
        store.results[Collection.MEMORIES] = [source(SourceType.MEMORY, 0.2)]

        result = await planner.plan("que sais-tu de moi", PERSONAL, owner_id)

        searches = {call["collection"]: call for call in store.calls_to("search_similar")}
        assert searches[Collection.MEMORIES]["threshold"] == 0.1
        assert searches[Collection.MEMORIES]["limit"] == 20
        assert [s.similarity for s in result.sources] == [0.2]

    async def test_every_store_call_carries_owner(self, planner, store, owner_id):
        store.results[Collection.MEMORIES] = [source(SourceType.MEMORY, 0.4)]

        await planner.plan("chat", NORMAL, owner_id)

        assert store.calls
        assert all(call["owner_id"] == owner_id for call in store.calls)

    async def test_embeds_once_in_requested_space(self, planner, embeddings, owner_id):
        result = await planner.plan("chat", NORMAL, owner_id, EmbeddingSpace.LARGE)

        assert embeddings.calls == [("chat", EmbeddingSpace.LARGE)]
        assert result.query_embedding.space == EmbeddingSpace.LARGE


class TestFallback:
    async def test_no_fallback_when_tier_one_has_results(self, planner, store, owner_id):
        store.results[Collection.CHUNKS] = [source(SourceType.CHUNK, 0.9)]

        result = await planner.plan("chat", NORMAL, owner_id)

        assert len(store.calls_to("search_similar")) == 3
        assert store.calls_to("count") == []
        assert store.calls_to("list_recent") == []
        assert result.fallback is None

    async def test_personal_fallback_lists_recent_memories(self, planner, store, owner_id):
        store.results[Collection.MEMORIES] = [
            source(SourceType.MEMORY, 0.05, id="m1"),
            source(SourceType.MEMORY, 0.02, id="m2"),
        ]

        result = await planner.plan("que sais-tu de moi", PERSONAL, owner_id)

        assert result.fallback == "recent_memories"
        assert [s.id for s in result.sources] == ["m1", "m2"]
        assert all(s.similarity == 1.0 for s in result.sources)
        assert store.calls_to("list_recent")[0]["limit"] == 20

    async def test_personal_fallback_skipped_for_owner_without_memories(self, planner, store, owner_id):
        result = await planner.plan("que sais-tu de moi", PERSONAL, owner_id)

        assert result.sources == []
        assert store.calls_to("list_recent") == []

    async def test_normal_fallback_retries_with_lower_threshold(self, planner, store, owner_id):
        store.results[Collection.MEMORIES] = [
            source(SourceType.MEMORY, 0.45),
            source(SourceType.MEMORY, 0.35),
            source(SourceType.MEMORY, 0.32),
            source(SourceType.MEMORY, 0.31),
        ]

        result = await planner.plan("chat", NORMAL, owner_id)

        retries = [call for call in store.calls_to("search_similar") if call["threshold"] == 0.3]
        assert len(retries) == 1
        assert retries[0]["collection"] == Collection.MEMORIES
        assert retries[0]["limit"] == 3
        assert result.fallback == "relaxed_threshold"
        assert [s.similarity for s in result.sources] == [0.45, 0.35, 0.32]

    async def test_normal_fallback_only_for_collections_with_items(self, planner, store, owner_id):
        store.counts[Collection.MEMORIES] = 0
        store.counts[Collection.CHUNKS] = 0

        result = await planner.plan("chat", NORMAL, owner_id)

        assert len(store.calls_to("search_similar")) == 3
        assert len(store.calls_to("count")) == 2
        assert result.sources == []
        assert result.fallback is None


class TestFailures:
    async def test_embedding_failure_blocks_request(self, store, owner_id):
        planner = RetrievalPlanner(FakeEmbeddingGateway(fail=True), store)

        with pytest.raises(EmbeddingError) as exc_info:
            await planner.plan("chat", NORMAL, owner_id)

        assert exc_info.value.retryable
        assert store.calls == []

    async def test_embedding_timeout_is_retryable(self, store, owner_id):
        class SlowGateway:
            async def embed(self, text, space):
                await asyncio.sleep(1)

        planner = RetrievalPlanner(SlowGateway(), store, embedding_timeout=0.01)

        with pytest.raises(EmbeddingError) as exc_info:
            await planner.plan("chat", NORMAL, owner_id)

        assert exc_info.value.retryable

    async def test_failed_search_counts_as_empty(self, planner, store, owner_id):
        store.failing.add(Collection.CHUNKS)
        store.results[Collection.MEMORIES] = [source(SourceType.MEMORY, 0.9)]

        result = await planner.plan("chat", NORMAL, owner_id)

        assert result.failed_collections == [Collection.CHUNKS]
        assert [s.type for s in result.sources] == [SourceType.MEMORY]


class TestMerge:
    async def test_sorted_descending_across_collections(self, planner, store, owner_id):
        store.results[Collection.MEMORIES] = [source(SourceType.MEMORY, 0.9)]
        store.results[Collection.CHUNKS] = [source(SourceType.CHUNK, 0.95)]
        store.results[Collection.CONVERSATIONS] = [source(SourceType.CONVERSATION, 0.55)]

        result = await planner.plan("chat", NORMAL, owner_id)

        assert [s.similarity for s in result.sources] == [0.95, 0.9, 0.55]

    def test_ties_keep_discovery_order(self):
        memory = source(SourceType.MEMORY, 0.8)
        chunk = source(SourceType.CHUNK, 0.8)
        turn = source(SourceType.CONVERSATION, 0.8)

        merged = RetrievalPlanner.merge([memory], [chunk], [turn], 8)

        assert [s.type for s in merged] == [SourceType.MEMORY, SourceType.CHUNK, SourceType.CONVERSATION]

    def test_truncates_to_cap(self):
        merged = RetrievalPlanner.merge(
            [source(SourceType.MEMORY, 0.3)],
            [source(SourceType.CHUNK, 0.9)],
            [source(SourceType.CONVERSATION, 0.95)],
            2,
        )

        assert [s.similarity for s in merged] == [0.95, 0.9]

    async def test_personal_cap_is_25(self, planner, store, owner_id):
        store.results[Collection.MEMORIES] = [source(SourceType.MEMORY, 0.5, id=f"m{i}") for i in range(20)]
        store.results[Collection.CHUNKS] = [source(SourceType.CHUNK, 0.4, id=f"c{i}") for i in range(20)]

        result = await planner.plan("que sais-tu de moi", PERSONAL, owner_id)

        assert len(result.sources) == 25

"""Tests for standalone semantic search."""

import pytest
from conftest import FakeEmbeddingGateway, source

from memory_assistant.core.errors import EmbeddingError
from memory_assistant.domain.models import Collection, EmbeddingSpace, SourceType
from memory_assistant.services.search import SEARCH_THRESHOLD, SearchScope, SearchService


@pytest.fixture
def service(store, embeddings) -> SearchService:
    return SearchService(embeddings, store)


@pytest.fixture
def populated(store):
    store.results[Collection.MEMORIES] = [
        source(SourceType.MEMORY, 0.82, id="m1"),
        source(SourceType.MEMORY, 0.71, id="m2"),
        source(SourceType.MEMORY, 0.5, id="m-low"),
    ]
    store.results[Collection.CHUNKS] = [
        source(SourceType.CHUNK, 0.95, id="c1"),
        source(SourceType.CHUNK, 0.75, id="c2"),
    ]
    return store


class TestScope:
    async def test_all_merges_by_similarity(self, service, populated, owner_id):
        results = await service.search(owner_id, "mon chat")

        assert [s.id for s in results] == ["c1", "m1", "c2", "m2"]
        calls = populated.calls_to("search_similar")
        assert {c["collection"] for c in calls} == {Collection.MEMORIES, Collection.CHUNKS}
        assert all(c["threshold"] == SEARCH_THRESHOLD == 0.7 for c in calls)
        assert all(c["owner_id"] == owner_id for c in calls)

    @pytest.mark.parametrize(
        ("scope", "collection", "expected"),
        [
            (SearchScope.MEMORIES, Collection.MEMORIES, ["m1", "m2"]),
            (SearchScope.CHUNKS, Collection.CHUNKS, ["c1", "c2"]),
        ],
    )
    async def test_single_collection(self, service, populated, owner_id, scope, collection, expected):
        results = await service.search(owner_id, "mon chat", scope)

        assert [s.id for s in results] == expected
        assert [c["collection"] for c in populated.calls_to("search_similar")] == [collection]

    async def test_limit_caps_each_search_and_the_result(self, service, populated, owner_id):
        results = await service.search(owner_id, "mon chat", limit=3)

        assert [s.id for s in results] == ["c1", "m1", "c2"]
        assert {c["limit"] for c in populated.calls_to("search_similar")} == {3}

    async def test_no_fallback_when_nothing_matches(self, service, store, owner_id):
        store.results[Collection.MEMORIES] = [source(SourceType.MEMORY, 0.3)]

        assert await service.search(owner_id, "mon chat") == []
        assert store.calls_to("list_recent") == []
        assert store.calls_to("count") == []


class TestFailures:
    async def test_embedding_failure_propagates(self, store, owner_id):
        service = SearchService(FakeEmbeddingGateway(fail=True), store)

        with pytest.raises(EmbeddingError):
            await service.search(owner_id, "mon chat")

        assert store.calls == []

    async def test_failing_collection_contributes_nothing(self, service, populated, owner_id):
        populated.failing.add(Collection.CHUNKS)

        results = await service.search(owner_id, "mon chat")

        assert [s.id for s in results] == ["m1", "m2"]

    async def test_embeds_in_requested_space(self, service, embeddings, store, owner_id):
        await service.search(owner_id, "mon chat", space=EmbeddingSpace.LARGE)

        assert embeddings.calls == [("mon chat", EmbeddingSpace.LARGE)]

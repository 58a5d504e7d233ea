"""Unit tests for KnowledgeQueryService."""

from __future__ import annotations

import pytest

from knowledge_ingest.models.documents import EmbeddingRecord


async def _seed(embedding_provider, vector_store, texts: dict[str, str], **metadata) -> None:
    for doc_id, text in texts.items():
        vector = await embedding_provider.embed_single(text)
        await vector_store.upsert([EmbeddingRecord(id=doc_id, vector=vector, metadata={"source": doc_id, **metadata})])


class TestSearch:
    @pytest.mark.asyncio
    async def test_exact_text_ranks_first(self, query_service, embedding_provider, vector_store) -> None:
        await _seed(
            embedding_provider,
            vector_store,
            {"a.txt": "revenue grew nine percent", "b.txt": "office moved to Lisbon"},
        )

        matches = await query_service.search("office moved to Lisbon", top_k=2)

        assert [m.id for m in matches][0] == "b.txt"
        assert matches[0].score == pytest.approx(1.0)
        assert len(matches) == 2

    @pytest.mark.asyncio
    async def test_top_k_limits_results(self, query_service, embedding_provider, vector_store) -> None:
        await _seed(embedding_provider, vector_store, {f"{i}.txt": f"doc {i}" for i in range(5)})
        assert len(await query_service.search("doc", top_k=3)) == 3

    @pytest.mark.asyncio
    async def test_filters_are_passed_to_store(self, query_service, embedding_provider, vector_store) -> None:
        await _seed(embedding_provider, vector_store, {"a.csv": "rows"}, kind="table")
        await _seed(embedding_provider, vector_store, {"b.txt": "rows"}, kind="text")

        matches = await query_service.search("rows", filters={"kind": "text"})
        assert [m.id for m in matches] == ["b.txt"]

    @pytest.mark.asyncio
    async def test_empty_index(self, query_service) -> None:
        assert await query_service.search("anything") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_blank_query_rejected(self, query_service, embedding_provider, query: str) -> None:
        with pytest.raises(ValueError, match="blank"):
            await query_service.search(query)
        assert embedding_provider.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("top_k", [0, 101])
    async def test_top_k_out_of_range(self, query_service, top_k: int) -> None:
        with pytest.raises(ValueError, match="top_k"):
            await query_service.search("q", top_k=top_k)

"""Unit tests for factory functions in knowledge_ingest/main.py.

Covers embedding provider selection, vector store backend selection,
``_build_all`` assembly, the ``create_app`` factory, and the startup
lifespan, with external SDKs mocked or pointed at ``tmp_path``.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from knowledge_ingest.main import (
    _build_all,
    _build_embedding_provider,
    _build_vector_store,
    create_app,
)
from knowledge_ingest.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from knowledge_ingest.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from knowledge_ingest.providers.vector_store.chromadb_provider import ChromaDBProvider
from knowledge_ingest.providers.vector_store.pinecone_provider import PineconeProvider
from knowledge_ingest.services.ingestion.ingestion_service import KnowledgeIngestionService
from knowledge_ingest.services.query.query_service import KnowledgeQueryService
from knowledge_ingest.utils.errors import ConfigurationError, VectorStoreError


# ======================================================================
# _build_embedding_provider
# ======================================================================


class TestBuildEmbeddingProvider:
    def test_openai_when_key_set(self, settings_factory) -> None:
        provider = _build_embedding_provider(settings_factory(openai_api_key="sk-test"))
        assert isinstance(provider, OpenAIEmbeddingProvider)

    def test_nomic_fallback(self, settings_factory) -> None:
        provider = _build_embedding_provider(settings_factory())
        assert isinstance(provider, NomicEmbeddingProvider)

    def test_placeholder_key_falls_back(self, settings_factory) -> None:
        provider = _build_embedding_provider(settings_factory(openai_api_key="YOUR_OPENAI_API_KEY"))
        assert isinstance(provider, NomicEmbeddingProvider)


# ======================================================================
# _build_vector_store
# ======================================================================


class TestBuildVectorStore:
    def test_chromadb(self, settings_factory, tmp_path) -> None:
        settings = settings_factory(chromadb_persist_dir=str(tmp_path / "chroma"), vector_metric="euclidean")
        store = _build_vector_store(settings, dimension=8)
        assert isinstance(store, ChromaDBProvider)
        assert store.get_dimension() == 8

    def test_pinecone(self, settings_factory) -> None:
        settings = settings_factory(vector_store_backend="pinecone", pinecone_api_key="pc-test")
        with patch("knowledge_ingest.providers.vector_store.pinecone_provider.Pinecone") as pinecone_cls:
            store = _build_vector_store(settings, dimension=1536)

        assert isinstance(store, PineconeProvider)
        pinecone_cls.assert_called_once_with(api_key="pc-test")
        assert store.is_available() is True

    def test_unknown_backend(self, settings_factory) -> None:
        with pytest.raises(ConfigurationError, match="qdrant"):
            _build_vector_store(settings_factory(vector_store_backend="qdrant"), dimension=8)


# ======================================================================
# _build_all
# ======================================================================


class TestBuildAll:
    def test_components_and_registry(self, settings_factory, tmp_path) -> None:
        settings = settings_factory(
            openai_api_key="sk-test",
            s3_bucket_name="kb-bucket",
            chromadb_persist_dir=str(tmp_path / "chroma"),
        )

        components = _build_all(settings)

        assert isinstance(components["ingestion_service"], KnowledgeIngestionService)
        assert isinstance(components["query_service"], KnowledgeQueryService)
        registry = components["provider_registry"]
        assert registry["storage"] is True
        assert registry["embedding"] is True
        assert registry["embedding_provider"] == "openai_embedding"
        assert registry["vector_store_provider"] == "chromadb"
        assert registry["dimension"] == 1536

    def test_dimension_override(self, settings_factory, tmp_path) -> None:
        settings = settings_factory(
            openai_api_key="sk-test",
            embedding_dimension=256,
            chromadb_persist_dir=str(tmp_path / "chroma"),
        )

        components = _build_all(settings)

        assert components["vector_store"].get_dimension() == 256
        assert components["provider_registry"]["storage"] is False


# ======================================================================
# create_app / lifespan
# ======================================================================


def _fake_components(ensure_error: Exception | None = None) -> dict:
    vector_store = MagicMock()
    vector_store.ensure_index = AsyncMock(side_effect=ensure_error)
    return {
        "storage": MagicMock(),
        "embedding_provider": MagicMock(),
        "vector_store": vector_store,
        "ingestion_service": MagicMock(),
        "query_service": MagicMock(),
        "provider_registry": {
            "storage": True,
            "embedding": True,
            "vector_store": True,
            "embedding_provider": "mock_embedding",
            "vector_store_provider": "mock_vector_store",
            "dimension": 8,
        },
    }


class TestCreateApp:
    def test_routes_registered(self) -> None:
        app = create_app()
        paths = {route.path for route in app.routes}

        assert isinstance(app, FastAPI)
        assert "/knowledge-ingestion/presigned-upload-url" in paths
        assert "/knowledge-ingestion/process-document" in paths
        assert "/knowledge-query/search" in paths
        assert "/health" in paths

    def test_lifespan_populates_state(self) -> None:
        components = _fake_components()
        with patch("knowledge_ingest.main._build_all", return_value=components):
            with TestClient(create_app()) as client:
                response = client.get("/health")

        components["vector_store"].ensure_index.assert_awaited_once()
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_lifespan_survives_index_failure(self) -> None:
        components = _fake_components(VectorStoreError("index unreachable", provider_name="pinecone"))
        with patch("knowledge_ingest.main._build_all", return_value=components):
            with TestClient(create_app()) as client:
                body = client.get("/health").json()

        assert body["providers"]["vector_store"] is False
        assert body["status"] == "unhealthy"

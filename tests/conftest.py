"""Shared pytest fixtures for the knowledge-ingest test suite."""

from __future__ import annotations

import hashlib
import math
from pathlib import Path
from typing import Any

import pytest

from knowledge_ingest.config.settings import Settings
from knowledge_ingest.interfaces.embedding_provider import IEmbeddingProvider
from knowledge_ingest.interfaces.object_storage_provider import IObjectStorageProvider
from knowledge_ingest.interfaces.vector_store_provider import IVectorStoreProvider
from knowledge_ingest.models.documents import EmbeddingRecord, QueryMatch
from knowledge_ingest.services.embedding.batch_builder import EmbeddingBatchBuilder
from knowledge_ingest.services.extraction.document_parser import DocumentParser
from knowledge_ingest.services.ingestion.ingestion_service import KnowledgeIngestionService
from knowledge_ingest.services.query.query_service import KnowledgeQueryService
from knowledge_ingest.utils.errors import EmbeddingProviderError, StorageError, UpsertFailedError

TEST_DIMENSION = 8


def make_settings(**overrides: Any) -> Settings:
    """Build a Settings instance with safe defaults and optional overrides.

    Every credential defaults to empty so no SDK ever reaches a real service.
    """
    defaults: dict[str, Any] = {
        "aws_access_key_id": "",
        "aws_secret_access_key": "",
        "s3_bucket_name": "",
        "openai_api_key": "",
        "openai_base_url": "",
        "openai_embedding_model": "",
        "pinecone_api_key": "",
        "embedding_dimension": 0,
        "vector_store_backend": "chromadb",
        "app_env": "test",
    }
    defaults.update(overrides)
    return Settings(**defaults)


# ---------------------------------------------------------------------------
# In-memory fakes
# ---------------------------------------------------------------------------


class MockEmbeddingProvider(IEmbeddingProvider):
    """Deterministic embeddings: a normalized SHA-256 projection of the text.

    Identical texts map to identical vectors, so similarity search against
    :class:`MockVectorStore` ranks an exact match first.
    """

    def __init__(self, dimension: int = TEST_DIMENSION) -> None:
        self._dimension = dimension
        self.calls: list[str] = []
        self.fail_on: set[str] = set()

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_single(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        if text in self.fail_on:
            raise EmbeddingProviderError(message="mock failure", provider_name="mock")
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        raw = [digest[i % len(digest)] / 255.0 + 0.01 for i in range(self._dimension)]
        norm = math.sqrt(sum(v * v for v in raw))
        return [v / norm for v in raw]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "mock_embedding"

    def is_available(self) -> bool:
        return True


class MockVectorStore(IVectorStoreProvider):
    """Dict-backed vector index using cosine similarity."""

    def __init__(self, dimension: int = TEST_DIMENSION) -> None:
        self._dimension = dimension
        self.records: dict[str, EmbeddingRecord] = {}
        self.ensure_calls = 0
        self.fail_upsert = False

    async def ensure_index(self) -> None:
        self.ensure_calls += 1

    async def upsert(self, records: list[EmbeddingRecord]) -> int:
        if self.fail_upsert:
            raise UpsertFailedError(message="mock upsert rejected", provider_name="mock")
        for record in records:
            if len(record.vector) != self._dimension:
                raise UpsertFailedError(message="dimension mismatch", provider_name="mock")
            self.records[record.id] = record
        return len(records)

    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
        filters: dict[str, Any] | None = None,
    ) -> list[QueryMatch]:
        def _cosine(a: list[float], b: list[float]) -> float:
            dot = sum(x * y for x, y in zip(a, b))
            norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
            return dot / norm if norm else 0.0

        candidates = [
            r
            for r in self.records.values()
            if not filters or all(r.metadata.get(k) == v for k, v in filters.items())
        ]
        scored = sorted(
            (QueryMatch(id=r.id, score=_cosine(vector, r.vector), metadata=r.metadata) for r in candidates),
            key=lambda m: m.score,
            reverse=True,
        )
        return scored[:top_k]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "mock_vector_store"

    def is_available(self) -> bool:
        return True


class MockObjectStorage(IObjectStorageProvider):
    """Dict-backed object storage keyed by object key."""

    def __init__(self, objects: dict[str, bytes] | None = None) -> None:
        self.objects: dict[str, bytes] = dict(objects or {})
        self.signed: list[tuple[str, str]] = []

    async def get_presigned_upload_url(self, key: str, content_type: str) -> str:
        self.signed.append((key, content_type))
        return f"https://kb-bucket.s3.us-east-1.amazonaws.com/{key}?X-Amz-Signature=test"

    async def get_object_content(self, key: str) -> bytes:
        if key not in self.objects:
            raise StorageError(message=f"NoSuchKey: {key}", provider_name="mock")
        return self.objects[key]

    def get_provider_name(self) -> str:
        return "mock_storage"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def vector_store() -> MockVectorStore:
    return MockVectorStore()


@pytest.fixture
def object_storage() -> MockObjectStorage:
    return MockObjectStorage()


@pytest.fixture
def parser() -> DocumentParser:
    return DocumentParser()


@pytest.fixture
def batch_builder(embedding_provider: MockEmbeddingProvider) -> EmbeddingBatchBuilder:
    return EmbeddingBatchBuilder(embedding_provider)


@pytest.fixture
def ingestion_service(
    object_storage: MockObjectStorage,
    parser: DocumentParser,
    batch_builder: EmbeddingBatchBuilder,
    vector_store: MockVectorStore,
) -> KnowledgeIngestionService:
    """Ingestion service wired entirely to in-memory fakes."""
    return KnowledgeIngestionService(
        storage=object_storage,
        parser=parser,
        batch_builder=batch_builder,
        vector_store=vector_store,
    )


@pytest.fixture
def query_service(
    embedding_provider: MockEmbeddingProvider,
    vector_store: MockVectorStore,
) -> KnowledgeQueryService:
    return KnowledgeQueryService(embedding_provider=embedding_provider, vector_store=vector_store)


@pytest.fixture
def settings_factory():
    """Return :func:`make_settings` so tests can build Settings with overrides."""
    return make_settings

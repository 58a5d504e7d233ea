"""ChromaDB vector store provider adapter.

Wraps ``chromadb.PersistentClient`` to implement :class:`IVectorStoreProvider`.
Fully local, no external service required.  The distance function is set
once, when the collection is created, through ``hnsw:space``.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any

# Disable ChromaDB telemetry before importing chromadb.  ChromaDB's bundled
# PostHog client breaks against newer posthog releases ("capture() takes 1
# positional argument but 3 were given"), so it is switched off at every
# layer: env var, the posthog module flag, and client Settings below.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import posthog

posthog.disabled = True

import chromadb
import structlog

from knowledge_ingest.interfaces.vector_store_provider import IVectorStoreProvider
from knowledge_ingest.models.documents import EmbeddingRecord, QueryMatch
from knowledge_ingest.providers.vector_store.metadata import flatten_metadata
from knowledge_ingest.utils.errors import (
    ConfigurationError,
    KnowledgeIngestError,
    UpsertFailedError,
    VectorStoreError,
)

logger = structlog.get_logger(logger_name=__name__)

# Our metric names -> ChromaDB hnsw:space values.
_SPACES: dict[str, str] = {
    "cosine": "cosine",
    "euclidean": "l2",
    "dotproduct": "ip",
}
_UPSERT_BATCH_SIZE = 500


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Embedding function that refuses to run.

    Records always arrive with pre-computed vectors, so ChromaDB's default
    ONNX model must never be downloaded or loaded.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "knowledge-ingest supplies pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        """Return function name (required by ChromaDB's EmbeddingFunction protocol)."""
        return "noop_precomputed"


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store backed by a persistent local ChromaDB collection.

    Parameters
    ----------
    dimension:
        Vector length every record must have.
    persist_directory:
        On-disk location of the ChromaDB database.
    collection_name:
        Collection to read and write.
    metric:
        ``cosine``, ``euclidean`` or ``dotproduct``.
    """

    def __init__(
        self,
        dimension: int,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "knowledge_base",
        metric: str = "cosine",
    ) -> None:
        if metric not in _SPACES:
            raise ConfigurationError(
                message=f"Unsupported vector metric {metric!r}",
                provider_name="chromadb",
            )
        self._dimension = dimension
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._metric = metric
        self._client = chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        self._collection: Any | None = None

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def ensure_index(self) -> None:
        """Open (creating if needed) the collection and check stored dimensions."""
        await asyncio.to_thread(self._open_collection)

    async def upsert(self, records: list[EmbeddingRecord]) -> int:
        """Upsert *records* in batches of 500."""
        if not records:
            return 0
        self._check_dimensions(records)

        try:
            collection = await asyncio.to_thread(self._open_collection)
            for start in range(0, len(records), _UPSERT_BATCH_SIZE):
                batch = records[start : start + _UPSERT_BATCH_SIZE]
                await asyncio.to_thread(
                    collection.upsert,
                    ids=[r.id for r in batch],
                    embeddings=[r.vector for r in batch],
                    metadatas=[self._to_chroma_metadata(r) for r in batch],
                )
        except KnowledgeIngestError:
            raise
        except Exception as exc:
            raise UpsertFailedError(
                message=f"ChromaDB upsert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "chromadb_upsert",
            collection=self._collection_name,
            count=len(records),
            batches=(len(records) + _UPSERT_BATCH_SIZE - 1) // _UPSERT_BATCH_SIZE,
        )
        return len(records)

    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
        filters: dict[str, Any] | None = None,
    ) -> list[QueryMatch]:
        """Nearest-neighbour search; scores are similarities (higher is closer)."""
        try:
            collection = await asyncio.to_thread(self._open_collection)
            kwargs: dict[str, Any] = {
                "query_embeddings": [vector],
                "n_results": top_k,
                "include": ["metadatas", "distances"],
            }
            if filters:
                kwargs["where"] = filters
            results = await asyncio.to_thread(collection.query, **kwargs)
        except KnowledgeIngestError:
            raise
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not results["ids"] or not results["ids"][0]:
            return []

        ids = results["ids"][0]
        metadatas = results["metadatas"][0] if results.get("metadatas") else [{}] * len(ids)
        distances = results["distances"][0] if results.get("distances") else [0.0] * len(ids)

        matches = [
            QueryMatch(id=rid, score=self._similarity(distance), metadata=dict(meta or {}))
            for rid, meta, distance in zip(ids, metadatas, distances, strict=True)
        ]
        logger.info("chromadb_query", top_k=top_k, results=len(matches))
        return matches

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """Return ``True`` if the ChromaDB client answers a heartbeat."""
        try:
            self._client.heartbeat()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _open_collection(self) -> Any:
        if self._collection is not None:
            return self._collection

        metadata = {"hnsw:space": _SPACES[self._metric]}
        # Collections created with another embedding function reject the
        # no-op one; reopen without it in that case.
        try:
            collection = self._client.get_or_create_collection(
                name=self._collection_name,
                metadata=metadata,
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            collection = self._client.get_or_create_collection(
                name=self._collection_name,
                metadata=metadata,
            )

        self._validate_stored_dimension(collection)
        self._collection = collection
        logger.info(
            "chromadb_collection_ready",
            collection=self._collection_name,
            metric=self._metric,
            dimension=self._dimension,
        )
        return collection

    def _validate_stored_dimension(self, collection: Any) -> None:
        if collection.count() == 0:
            return
        sample = collection.peek(limit=1)
        embeddings = sample.get("embeddings") if sample else None
        if embeddings is None or len(embeddings) == 0:
            return
        stored_dim = len(embeddings[0])
        if stored_dim != self._dimension:
            raise ConfigurationError(
                message=(
                    f"Collection {self._collection_name!r} holds {stored_dim}-dim vectors "
                    f"but the embedding provider produces {self._dimension}-dim vectors"
                ),
                provider_name=self.get_provider_name(),
            )

    def _check_dimensions(self, records: list[EmbeddingRecord]) -> None:
        for record in records:
            if len(record.vector) != self._dimension:
                raise UpsertFailedError(
                    message=(
                        f"Record {record.id!r} has dimension {len(record.vector)}, "
                        f"index expects {self._dimension}"
                    ),
                    provider_name=self.get_provider_name(),
                )

    @staticmethod
    def _to_chroma_metadata(record: EmbeddingRecord) -> dict[str, Any]:
        flat = flatten_metadata(record.metadata)
        # ChromaDB rejects empty metadata dicts.
        return flat or {"record_id": record.id}

    def _similarity(self, distance: float) -> float:
        if self._metric == "euclidean":
            return 1.0 / (1.0 + distance)
        return 1.0 - distance

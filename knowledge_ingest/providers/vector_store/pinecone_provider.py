"""Pinecone vector store provider adapter.

Wraps the synchronous ``pinecone`` client to implement
:class:`IVectorStoreProvider`.  The index is auto-provisioned as a
serverless index (cloud and region from settings) with the configured
dimension and metric the first time :meth:`PineconeProvider.ensure_index`
runs.  Blocking SDK calls run in worker threads.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import structlog
from pinecone import Pinecone, ServerlessSpec

from knowledge_ingest.config.settings import Settings
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

_SUPPORTED_METRICS = frozenset({"cosine", "euclidean", "dotproduct"})
# Pinecone recommends at most 100 vectors per upsert request.
_UPSERT_BATCH_SIZE = 100
_READY_TIMEOUT_S = 60.0
_READY_POLL_S = 2.0


class PineconeProvider(IVectorStoreProvider):
    """Vector store backed by a Pinecone serverless index.

    Parameters
    ----------
    settings:
        Supplies API key, index name, cloud/region, namespace and metric.
    dimension:
        Vector length every record must have; used when creating the index.
    client:
        Pre-built ``Pinecone`` client (tests inject a mock here).
    """

    def __init__(self, settings: Settings, dimension: int, client: Any | None = None) -> None:
        if settings.vector_metric not in _SUPPORTED_METRICS:
            raise ConfigurationError(
                message=f"Unsupported vector metric {settings.vector_metric!r}",
                provider_name="pinecone",
            )
        self._configured = settings.pinecone_configured()
        self._index_name = settings.pinecone_index_name
        self._cloud = settings.pinecone_cloud
        self._region = settings.pinecone_region
        self._namespace = settings.pinecone_namespace
        self._metric = settings.vector_metric
        self._dimension = dimension
        self._client = client or Pinecone(api_key=settings.pinecone_api_key)
        self._index: Any | None = None

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def ensure_index(self) -> None:
        """Create the serverless index if absent, wait until ready, then connect."""
        if self._index is not None:
            return
        try:
            existing = await asyncio.to_thread(lambda: list(self._client.list_indexes().names()))
            if self._index_name not in existing:
                logger.info(
                    "pinecone_index_creating",
                    index=self._index_name,
                    dimension=self._dimension,
                    metric=self._metric,
                    cloud=self._cloud,
                    region=self._region,
                )
                await asyncio.to_thread(
                    self._client.create_index,
                    name=self._index_name,
                    dimension=self._dimension,
                    metric=self._metric,
                    spec=ServerlessSpec(cloud=self._cloud, region=self._region),
                )
                await self._wait_until_ready()
            else:
                description = await asyncio.to_thread(self._client.describe_index, self._index_name)
                self._check_index_dimension(description)

            self._index = self._client.Index(self._index_name)
        except KnowledgeIngestError:
            raise
        except Exception as exc:
            raise VectorStoreError(
                message=f"Could not provision Pinecone index {self._index_name!r}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("pinecone_index_ready", index=self._index_name)

    async def upsert(self, records: list[EmbeddingRecord]) -> int:
        """Upsert *records* in batches of 100 into the configured namespace."""
        if not records:
            return 0
        for record in records:
            if len(record.vector) != self._dimension:
                raise UpsertFailedError(
                    message=(
                        f"Record {record.id!r} has dimension {len(record.vector)}, "
                        f"index expects {self._dimension}"
                    ),
                    provider_name=self.get_provider_name(),
                )

        await self.ensure_index()
        vectors = [
            {
                "id": record.id,
                "values": record.vector,
                "metadata": flatten_metadata(record.metadata, allow_string_lists=True),
            }
            for record in records
        ]

        try:
            for start in range(0, len(vectors), _UPSERT_BATCH_SIZE):
                batch = vectors[start : start + _UPSERT_BATCH_SIZE]
                await asyncio.to_thread(
                    self._index.upsert, vectors=batch, namespace=self._namespace
                )
        except Exception as exc:
            raise UpsertFailedError(
                message=f"Pinecone upsert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "pinecone_upsert",
            index=self._index_name,
            namespace=self._namespace or "(default)",
            count=len(vectors),
        )
        return len(vectors)

    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
        filters: dict[str, Any] | None = None,
    ) -> list[QueryMatch]:
        await self.ensure_index()
        params: dict[str, Any] = {
            "vector": vector,
            "top_k": top_k,
            "include_metadata": True,
            "namespace": self._namespace,
        }
        if filters:
            params["filter"] = filters

        try:
            response = await asyncio.to_thread(self._index.query, **params)
        except Exception as exc:
            raise VectorStoreError(
                message=f"Pinecone query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        matches = [
            QueryMatch(id=m.id, score=float(m.score), metadata=dict(m.metadata or {}))
            for m in response.matches
        ]
        logger.info("pinecone_query", top_k=top_k, results=len(matches))
        return matches

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "pinecone"

    def is_available(self) -> bool:
        """Return ``True`` if a real API key is configured."""
        return self._configured

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _wait_until_ready(self) -> None:
        deadline = time.monotonic() + _READY_TIMEOUT_S
        while time.monotonic() < deadline:
            description = await asyncio.to_thread(self._client.describe_index, self._index_name)
            if description.status.ready:
                return
            await asyncio.sleep(_READY_POLL_S)
        raise VectorStoreError(
            message=f"Index {self._index_name!r} not ready after {_READY_TIMEOUT_S:.0f}s",
            provider_name=self.get_provider_name(),
        )

    def _check_index_dimension(self, description: Any) -> None:
        existing = getattr(description, "dimension", None)
        if existing is not None and int(existing) != self._dimension:
            raise ConfigurationError(
                message=(
                    f"Pinecone index {self._index_name!r} has dimension {existing}, "
                    f"embedding provider produces {self._dimension}"
                ),
                provider_name=self.get_provider_name(),
            )

"""Abstract base class for vector-index service providers.

Defines the contract for provisioning an index, upserting embedded
records, and similarity search.  Implementations wrap ChromaDB (local)
or Pinecone (managed serverless).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from knowledge_ingest.models.documents import EmbeddingRecord, QueryMatch


# Concrete implementations (knowledge_ingest/providers/vector_store/):
#   ChromaDBProvider  - persistent local collection
#   PineconeProvider  - serverless index, auto-provisioned on first use
class IVectorStoreProvider(ABC):
    """Contract for vector-index services.

    Every record sent to one index must have the same vector length
    (:meth:`get_dimension`).  Records with any other length are rejected
    with :class:`~knowledge_ingest.utils.errors.UpsertFailedError` before
    the backend is contacted.

    **Filter syntax** for :meth:`query` follows the Mongo-style operators
    both backends understand natively, e.g.
    ``{"original_filename": {"$eq": "report.pdf"}}``.
    """

    @abstractmethod
    async def ensure_index(self) -> None:
        """Create the index with the configured dimension and metric if absent.

        Idempotent: calling it against an existing index is a no-op apart
        from a dimension check.

        Raises
        ------
        knowledge_ingest.utils.errors.ConfigurationError
            If an existing index has a different dimension.
        """

    @abstractmethod
    async def upsert(self, records: list[EmbeddingRecord]) -> int:
        """Insert or update *records*, keyed by ``record.id``.

        Returns
        -------
        int
            Number of records written.

        Raises
        ------
        knowledge_ingest.utils.errors.UpsertFailedError
            If the index rejects the write or a vector has the wrong length.
        """

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
        filters: dict[str, Any] | None = None,
    ) -> list[QueryMatch]:
        """Return the *top_k* nearest records to *vector*.

        Parameters
        ----------
        vector:
            Query embedding, same dimension as the index.
        top_k:
            Maximum number of matches.
        filters:
            Optional metadata filter (see class docstring).

        Returns
        -------
        list[QueryMatch]
            Matches ranked by score, best first, metadata included.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the vector length this index accepts."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this vector store."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is configured and reachable."""

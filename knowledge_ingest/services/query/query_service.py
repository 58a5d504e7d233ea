"""Similarity search over the ingested knowledge base."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from knowledge_ingest.models.documents import QueryMatch

if TYPE_CHECKING:
    from knowledge_ingest.interfaces.embedding_provider import IEmbeddingProvider
    from knowledge_ingest.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)

_MAX_TOP_K = 100


class KnowledgeQueryService:
    """Embeds a query with the ingestion-time provider and searches the index.

    The same :class:`IEmbeddingProvider` used for ingestion must be injected
    here, otherwise query vectors land in a different embedding space.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store

    async def search(
        self,
        query_text: str,
        top_k: int = 5,
        filters: dict[str, Any] | None = None,
    ) -> list[QueryMatch]:
        """Return up to *top_k* records closest to *query_text*.

        Raises
        ------
        ValueError
            If *query_text* is blank or *top_k* is outside 1..100.
        """
        if not query_text.strip():
            raise ValueError("query_text must not be blank")
        if not 1 <= top_k <= _MAX_TOP_K:
            raise ValueError(f"top_k must be between 1 and {_MAX_TOP_K}")

        vector = await self._embedding_provider.embed_single(query_text)
        matches = await self._vector_store.query(vector, top_k=top_k, filters=filters)
        logger.info(
            "knowledge_query",
            query_length=len(query_text),
            top_k=top_k,
            results=len(matches),
            top_score=matches[0].score if matches else 0.0,
        )
        return matches

"""Ingestion orchestration: locator resolution and the stage machine.

1. **Retrieve** -- :func:`parse_locator` turns a URL/URI into an object key;
   the storage provider downloads the bytes.
2. **Extract** -- :class:`~knowledge_ingest.services.extraction.DocumentParser`
   produces normalized text and metadata.
3. **Embed** -- :class:`~knowledge_ingest.services.embedding.EmbeddingBatchBuilder`
   produces one vector per document.
4. **Upsert** -- the vector store persists the record keyed by object key.
"""

from knowledge_ingest.services.ingestion.ingestion_service import KnowledgeIngestionService
from knowledge_ingest.services.ingestion.locator import parse_locator

__all__ = ["KnowledgeIngestionService", "parse_locator"]

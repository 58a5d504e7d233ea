"""Utility modules for knowledge-ingest.

- **errors** -- Domain exception hierarchy rooted at KnowledgeIngestError;
  each pipeline stage raises its own subclass so callers can react to the
  stage that failed.
- **concurrency** -- semaphore-bounded ``asyncio.gather`` used for batch
  ingestion of several locators.
- **logging** -- structlog setup: coloured console output in development,
  structured JSON in production.
"""

# -- Domain exception hierarchy --------------------------------------------
from knowledge_ingest.utils.errors import (
    ConfigurationError,
    EmbeddingFailedError,
    EmbeddingProviderError,
    EmptyDocumentError,
    InvalidLocatorError,
    KnowledgeIngestError,
    MalformedContentError,
    ResourceCleanupError,
    StorageError,
    UnsupportedFormatError,
    UpsertFailedError,
    VectorStoreError,
)

# -- Async concurrency helpers ---------------------------------------------
from knowledge_ingest.utils.concurrency import throttled_gather

# -- Structured logging setup ----------------------------------------------
from knowledge_ingest.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "EmbeddingFailedError",
    "EmbeddingProviderError",
    "EmptyDocumentError",
    "InvalidLocatorError",
    "KnowledgeIngestError",
    "MalformedContentError",
    "ResourceCleanupError",
    "StorageError",
    "UnsupportedFormatError",
    "UpsertFailedError",
    "VectorStoreError",
    "configure_logging",
    "get_logger",
    "throttled_gather",
]

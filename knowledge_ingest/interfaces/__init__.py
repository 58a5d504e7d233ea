"""Public interface definitions for all external service providers.

Every external service in the pipeline is reached exclusively through the
abstract base classes defined here.  Concrete adapters implement them and
are injected at startup by ``knowledge_ingest/main.py`` (or the CLI), so
the extraction and orchestration code never imports an SDK directly.

CONCRETE PROVIDER MAP:
    Interface                  →  Implementations (knowledge_ingest/providers/)
    ─────────────────────────────────────────────────────────────────────
    IObjectStorageProvider     →  S3StorageProvider
    IEmbeddingProvider         →  OpenAIEmbeddingProvider, NomicEmbeddingProvider
    IVectorStoreProvider       →  ChromaDBProvider, PineconeProvider
"""

from knowledge_ingest.interfaces.embedding_provider import IEmbeddingProvider
from knowledge_ingest.interfaces.object_storage_provider import IObjectStorageProvider
from knowledge_ingest.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IEmbeddingProvider",
    "IObjectStorageProvider",
    "IVectorStoreProvider",
]

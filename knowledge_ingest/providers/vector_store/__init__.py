"""Vector store provider implementations.

- **ChromaDBProvider** -- local persistent collection (default backend).
- **PineconeProvider** -- managed serverless index, auto-provisioned.

Both flatten nested metadata into JSON strings
(:func:`~knowledge_ingest.providers.vector_store.metadata.flatten_metadata`).
"""

from knowledge_ingest.providers.vector_store.chromadb_provider import ChromaDBProvider
from knowledge_ingest.providers.vector_store.pinecone_provider import PineconeProvider

__all__ = ["ChromaDBProvider", "PineconeProvider"]

"""Embedding provider implementations.

Two implementations of IEmbeddingProvider, in selection order:
    1. OpenAIEmbeddingProvider - text-embedding-3-small (1536 dims), or any
       OpenAI-compatible host.  Requires an API key.
    2. NomicEmbeddingProvider  - nomic-embed-text via Ollama (768 dims).
       Free and local, but requires a running Ollama server.

Switching provider changes the vector dimension; an existing index built
with the other provider will reject the new vectors.
"""

from knowledge_ingest.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from knowledge_ingest.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["NomicEmbeddingProvider", "OpenAIEmbeddingProvider"]

"""Abstract base class for text-embedding service providers.

Implementations wrap OpenAI ``text-embedding-3-small``, Nomic
``nomic-embed-text`` (local via Ollama), or any other embedding backend.
The batch builder depends only on this contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations (knowledge_ingest/providers/embedding/):
#   OpenAIEmbeddingProvider - text-embedding-3-small (requires API key)
#   NomicEmbeddingProvider  - nomic-embed-text via Ollama (local)
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services.

    Vectors produced here are written to an
    :class:`~knowledge_ingest.interfaces.vector_store_provider.IVectorStoreProvider`
    and used again at query time.
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.  Implementations handle
            per-call API limits internally.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.

        Raises
        ------
        knowledge_ingest.utils.errors.EmbeddingProviderError
            If the embedding API call fails, including when an input
            exceeds the model's context window.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Parameters
        ----------
        text:
            The text string to embed.  Passed through whole; no chunking
            or truncation is applied.

        Returns
        -------
        list[float]
            The embedding vector with length equal to :meth:`get_dimension`.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Must stay constant for the lifetime of the provider and match the
        dimension of the vector index.  Example values: ``1536`` (OpenAI
        ``text-embedding-3-small``), ``768`` (Nomic ``nomic-embed-text``).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this embedding provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and reachable."""

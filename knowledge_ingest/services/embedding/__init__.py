"""Embedding-batch assembly on top of an injected embedding provider."""

from knowledge_ingest.services.embedding.batch_builder import EmbeddingBatchBuilder

__all__ = ["EmbeddingBatchBuilder"]

"""Pydantic data models for knowledge-ingest."""

from knowledge_ingest.models.documents import (
    EmbeddingRecord,
    ExtractedDocument,
    IngestionResult,
    IngestionStage,
    ParsedDocument,
    PresignedUpload,
    QueryMatch,
    SourceDocument,
    StorageLocator,
    clean_metadata,
)

__all__ = [
    "EmbeddingRecord",
    "ExtractedDocument",
    "IngestionResult",
    "IngestionStage",
    "ParsedDocument",
    "PresignedUpload",
    "QueryMatch",
    "SourceDocument",
    "StorageLocator",
    "clean_metadata",
]

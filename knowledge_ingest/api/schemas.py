"""Pydantic request/response schemas for the knowledge-ingest API.

Defines the public contract for every REST endpoint: pre-signed upload
URLs, document processing, similarity search, and health.

Request bodies use the camelCase field names existing clients already send
(``fileName``, ``s3ObjectUrl``, ``topK``); Python code reads the snake_case
attribute names.  ``populate_by_name`` lets tests and the CLI build the
models with either spelling.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PresignedUrlRequest(BaseModel):
    """Body of ``POST /knowledge-ingestion/presigned-upload-url``."""

    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(alias="fileName", min_length=1)
    file_type: str = Field(alias="fileType", min_length=1, description="MIME type bound into the signature.")


class PresignedUrlResponse(BaseModel):
    url: str


class ProcessDocumentRequest(BaseModel):
    """Body of ``POST /knowledge-ingestion/process-document``."""

    model_config = ConfigDict(populate_by_name=True)

    s3_object_url: str = Field(
        alias="s3ObjectUrl",
        min_length=1,
        description="s3://bucket/key, a virtual-hosted or path-style URL, or a bare key.",
    )


class ProcessDocumentResponse(BaseModel):
    """Acknowledgement for a processing request.

    ``documentId`` is only present when processing succeeded.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: str
    document_id: str | None = Field(default=None, alias="documentId")


class SearchRequest(BaseModel):
    """Body of ``POST /knowledge-query/search``."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(min_length=1)
    top_k: int = Field(default=5, ge=1, le=100, alias="topK")
    filter: dict[str, Any] | None = Field(
        default=None,
        description="Backend-native metadata filter (Pinecone / ChromaDB where syntax).",
    )


class SearchMatch(BaseModel):
    id: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)


class SearchResponse(BaseModel):
    matches: list[SearchMatch] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None

"""knowledge-ingest API layer: routes, schemas, and middleware."""

from knowledge_ingest.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from knowledge_ingest.api.routes import router
from knowledge_ingest.api.schemas import (
    ErrorResponse,
    HealthResponse,
    PresignedUrlRequest,
    PresignedUrlResponse,
    ProcessDocumentRequest,
    ProcessDocumentResponse,
    SearchRequest,
    SearchResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "ErrorResponse",
    "HealthResponse",
    "PresignedUrlRequest",
    "PresignedUrlResponse",
    "ProcessDocumentRequest",
    "ProcessDocumentResponse",
    "SearchRequest",
    "SearchResponse",
]

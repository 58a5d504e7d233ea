"""FastAPI routes for knowledge ingestion and search.

Service dependencies are resolved from ``app.state`` (populated at startup
by ``main._build_all``) via FastAPI's ``Depends`` using the ``Annotated``
pattern.

Endpoint                                        Method  Description
--------------------------------------------------------------------------
/knowledge-ingestion/presigned-upload-url       POST    Pre-signed PUT URL for a new upload
/knowledge-ingestion/process-document           POST    Retrieve -> extract -> embed -> upsert
/knowledge-query/search                         POST    Similarity search over the index
/health                                         GET     Health check + provider status
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status

from knowledge_ingest.api.schemas import (
    ErrorResponse,
    HealthResponse,
    PresignedUrlRequest,
    PresignedUrlResponse,
    ProcessDocumentRequest,
    ProcessDocumentResponse,
    SearchMatch,
    SearchRequest,
    SearchResponse,
)
from knowledge_ingest.services.ingestion.ingestion_service import KnowledgeIngestionService
from knowledge_ingest.services.query.query_service import KnowledgeQueryService
from knowledge_ingest.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

APP_VERSION = "0.1.0"

ingestion_router = APIRouter(prefix="/knowledge-ingestion", tags=["ingestion"])
query_router = APIRouter(prefix="/knowledge-query", tags=["query"])
router = APIRouter()


def _get_ingestion_service(request: Request) -> KnowledgeIngestionService:
    """Return the ingestion orchestrator from application state."""
    return request.app.state.ingestion_service


def _get_query_service(request: Request) -> KnowledgeQueryService:
    """Return the query service from application state."""
    return request.app.state.query_service


IngestionDep = Annotated[KnowledgeIngestionService, Depends(_get_ingestion_service)]
QueryDep = Annotated[KnowledgeQueryService, Depends(_get_query_service)]


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


@ingestion_router.post(
    "/presigned-upload-url",
    response_model=PresignedUrlResponse,
    status_code=status.HTTP_200_OK,
    responses={500: {"model": ErrorResponse}},
    summary="Create a pre-signed upload URL",
)
async def presigned_upload_url(
    body: PresignedUrlRequest,
    ingestion: IngestionDep,
) -> PresignedUrlResponse:
    """Return a time-limited URL the client can PUT the file to."""
    _logger.info("presigned_url_requested", file_name=body.file_name, file_type=body.file_type)
    upload = await ingestion.generate_presigned_url(body.file_name, body.file_type)
    return PresignedUrlResponse(url=upload.url)


@ingestion_router.post(
    "/process-document",
    response_model=ProcessDocumentResponse,
    response_model_exclude_none=True,
    response_model_by_alias=True,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Ingest an uploaded document into the vector index",
)
async def process_document(
    body: ProcessDocumentRequest,
    ingestion: IngestionDep,
) -> ProcessDocumentResponse:
    """Run the ingestion pipeline for one uploaded object.

    Failures are reported in the body of a 202 response without a
    ``documentId``; the cause is logged server-side.
    """
    _logger.info("process_document_requested", s3_object_url=body.s3_object_url)
    try:
        result = await ingestion.process_document(body.s3_object_url)
    except Exception as exc:
        _logger.error(
            "process_document_failed",
            s3_object_url=body.s3_object_url,
            error_type=type(exc).__name__,
            error=str(exc),
            exc_info=True,
        )
        return ProcessDocumentResponse(message="Failed to start document processing.")

    return ProcessDocumentResponse(
        message="Document processing started.",
        document_id=result.document_id,
    )


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


@query_router.post(
    "/search",
    response_model=SearchResponse,
    responses={422: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Similarity search over ingested documents",
)
async def search(body: SearchRequest, query_service: QueryDep) -> SearchResponse:
    """Embed the query text and return the closest records."""
    try:
        matches = await query_service.search(body.query, top_k=body.top_k, filters=body.filter)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return SearchResponse(
        matches=[SearchMatch(id=m.id, score=m.score, metadata=dict(m.metadata)) for m in matches]
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability.

    ``healthy`` when storage, embedding and vector store are all available,
    ``degraded`` when storage is not (search still works), otherwise
    ``unhealthy``.
    """
    providers: dict[str, Any] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)

    search_ok = providers.get("embedding", False) and providers.get("vector_store", False)
    if search_ok and providers.get("storage", False):
        health = "healthy"
    elif search_ok:
        health = "degraded"
    else:
        health = "unhealthy"

    return HealthResponse(status=health, version=APP_VERSION, providers=providers)


router.include_router(ingestion_router)
router.include_router(query_router)

"""API middleware: CORS, request logging, and error handling.

Provides helper functions and middleware classes to configure cross-origin
resource sharing, structured request logging (via structlog), and automatic
conversion of ``KnowledgeIngestError`` subclasses into JSON ``ErrorResponse``
bodies.

Starlette middleware runs last-added-first, so ``main.create_app`` adds
``ErrorHandlingMiddleware`` before ``RequestLoggingMiddleware``; the logger
then sees the final status code even when an error was converted.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from knowledge_ingest.api.schemas import ErrorResponse
from knowledge_ingest.utils.errors import (
    EmptyDocumentError,
    InvalidLocatorError,
    KnowledgeIngestError,
    MalformedContentError,
    UnsupportedFormatError,
)
from knowledge_ingest.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Errors caused by the request itself rather than by a backend.
_CLIENT_ERRORS = (
    InvalidLocatorError,
    UnsupportedFormatError,
    MalformedContentError,
    EmptyDocumentError,
)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]`` for
        development; override with specific origins in production.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


def status_for(exc: KnowledgeIngestError) -> int:
    """Map a domain error to its HTTP status code."""
    return 422 if isinstance(exc, _CLIENT_ERRORS) else 500


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch ``KnowledgeIngestError`` subclasses and return structured JSON errors.

    Locator, format, malformed-content and empty-document errors map to
    422; every other domain error maps to 500.  Details are logged server-side; the client
    only sees the error class name and message.  Non-domain exceptions fall
    through to FastAPI's default 500 handler.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except KnowledgeIngestError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            body = ErrorResponse(
                error=type(exc).__name__,
                detail=exc.message,
            )
            return JSONResponse(
                status_code=status_for(exc),
                content=body.model_dump(),
            )

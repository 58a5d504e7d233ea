"""knowledge-ingest FastAPI application entry point.

Wires together providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.  ``_build_all`` is also used by the CLI so both entry
points assemble the pipeline the same way.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from knowledge_ingest.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from knowledge_ingest.api.routes import APP_VERSION
from knowledge_ingest.api.routes import router as api_router
from knowledge_ingest.config.loader import load_config
from knowledge_ingest.config.settings import Settings
from knowledge_ingest.interfaces.embedding_provider import IEmbeddingProvider
from knowledge_ingest.interfaces.vector_store_provider import IVectorStoreProvider
from knowledge_ingest.providers.storage.s3_provider import S3StorageProvider
from knowledge_ingest.services.embedding.batch_builder import EmbeddingBatchBuilder
from knowledge_ingest.services.extraction.document_parser import DocumentParser
from knowledge_ingest.services.ingestion.ingestion_service import KnowledgeIngestionService
from knowledge_ingest.services.query.query_service import KnowledgeQueryService
from knowledge_ingest.utils.errors import ConfigurationError, KnowledgeIngestError
from knowledge_ingest.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(settings)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Select the embedding provider.

    OpenAI (or an OpenAI-compatible endpoint) when an API key is set,
    otherwise ``nomic-embed-text`` via the local Ollama server.
    """
    if app_settings.openai_configured():
        from knowledge_ingest.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        return OpenAIEmbeddingProvider(settings=app_settings)

    from knowledge_ingest.providers.embedding.nomic_embedding_provider import (
        NomicEmbeddingProvider,
    )

    return NomicEmbeddingProvider(settings=app_settings)


def _build_vector_store(app_settings: Settings, dimension: int) -> IVectorStoreProvider:
    """Instantiate the backend named by ``vector_store_backend``.

    Raises
    ------
    ConfigurationError
        For an unknown backend name.
    """
    backend = app_settings.vector_store_backend
    if backend == "pinecone":
        from knowledge_ingest.providers.vector_store.pinecone_provider import PineconeProvider

        return PineconeProvider(settings=app_settings, dimension=dimension)

    if backend == "chromadb":
        from knowledge_ingest.providers.vector_store.chromadb_provider import ChromaDBProvider

        return ChromaDBProvider(
            dimension=dimension,
            persist_directory=app_settings.chromadb_persist_dir,
            collection_name=app_settings.chromadb_collection,
            metric=app_settings.vector_metric,
        )

    raise ConfigurationError(
        message=f"Unknown vector store backend {backend!r} (expected 'chromadb' or 'pinecone')",
        provider_name="config",
    )


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    storage = S3StorageProvider(settings=app_settings)
    embedding_provider = _build_embedding_provider(app_settings)
    dimension = app_settings.embedding_dimension or embedding_provider.get_dimension()
    vector_store = _build_vector_store(app_settings, dimension)

    parser = DocumentParser()
    batch_builder = EmbeddingBatchBuilder(embedding_provider, dimension=dimension)

    ingestion_service = KnowledgeIngestionService(
        storage=storage,
        parser=parser,
        batch_builder=batch_builder,
        vector_store=vector_store,
        upload_prefix=app_settings.s3_upload_prefix,
        stage_to_disk=app_settings.ingest_stage_to_disk,
        concurrency=app_settings.ingest_concurrency,
        presigned_url_expiry=app_settings.presigned_url_expiry,
    )
    query_service = KnowledgeQueryService(
        embedding_provider=embedding_provider,
        vector_store=vector_store,
    )

    # -- Provider registry for /health --
    provider_registry: dict[str, Any] = {
        "storage": storage.is_available(),
        "embedding": embedding_provider.is_available(),
        "vector_store": vector_store.is_available(),
        "embedding_provider": embedding_provider.get_provider_name(),
        "vector_store_provider": vector_store.get_provider_name(),
        "dimension": dimension,
    }

    return {
        "storage": storage,
        "embedding_provider": embedding_provider,
        "vector_store": vector_store,
        "ingestion_service": ingestion_service,
        "query_service": query_service,
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup."""
    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    vector_store: IVectorStoreProvider = components["vector_store"]
    try:
        await vector_store.ensure_index()
    except KnowledgeIngestError as exc:
        # Startup continues; /health reports the store as down.
        components["provider_registry"]["vector_store"] = False
        _logger.error("vector_index_unavailable", error=str(exc))

    _logger.info(
        "app_startup",
        version=APP_VERSION,
        environment=settings.app_env,
        embedding=components["provider_registry"]["embedding_provider"],
        vector_store=components["provider_registry"]["vector_store_provider"],
    )

    yield

    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="knowledge-ingest API",
        version=APP_VERSION,
        description=(
            "Pre-signed uploads to S3, then text extraction (PDF, CSV, JSON, "
            "plain text), embedding, and upsert into a vector index for "
            "similarity search."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=config.get("app", {}).get("cors_origins"))

    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# Server entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "knowledge_ingest.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )

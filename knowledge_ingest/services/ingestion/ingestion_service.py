"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **retrieve -> extract -> embed -> upsert**.

:class:`KnowledgeIngestionService` coordinates four collaborators (object
storage, document parser, embedding batch builder, vector store) without
any of them knowing about each other.  Every collaborator is injected via
the constructor so backends can be swapped (S3 -> MinIO, Pinecone ->
ChromaDB) without touching this class.

A request moves through :class:`~knowledge_ingest.models.documents.IngestionStage`
in order and stops at ``FAILED`` the moment any stage raises.  The failing
stage is logged and the original exception re-raised unchanged; nothing is
retried.  When disk staging is enabled, the staged temp file is removed
on every exit path.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
import time
from collections.abc import Sequence
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

import structlog

from knowledge_ingest.models.documents import (
    ExtractedDocument,
    IngestionResult,
    IngestionStage,
    ParsedDocument,
    PresignedUpload,
    SourceDocument,
)
from knowledge_ingest.services.ingestion.locator import parse_locator
from knowledge_ingest.utils.concurrency import throttled_gather
from knowledge_ingest.utils.errors import (
    EmbeddingFailedError,
    EmptyDocumentError,
    ResourceCleanupError,
)

if TYPE_CHECKING:
    from knowledge_ingest.interfaces.object_storage_provider import IObjectStorageProvider
    from knowledge_ingest.interfaces.vector_store_provider import IVectorStoreProvider
    from knowledge_ingest.services.embedding.batch_builder import EmbeddingBatchBuilder
    from knowledge_ingest.services.extraction.document_parser import DocumentParser

logger = structlog.get_logger(logger_name=__name__)


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class KnowledgeIngestionService:
    """Orchestrates retrieve -> extract -> embed -> upsert for uploaded documents.

    Parameters
    ----------
    storage:
        Object storage the documents were uploaded to.
    parser:
        Format detection and text extraction.
    batch_builder:
        Converts extracted documents into embedding records.
    vector_store:
        Destination index for the records.
    upload_prefix:
        Key prefix for pre-signed uploads (``uploads`` by default).
    stage_to_disk:
        When ``True``, downloaded bytes are written to a temp file and
        parsed by path; otherwise they are parsed in memory.
    concurrency:
        Maximum number of requests :meth:`process_documents` runs at once.
    presigned_url_expiry:
        Lifetime in seconds reported for pre-signed upload URLs; must match
        the storage adapter's signing expiry.
    """

    def __init__(
        self,
        storage: IObjectStorageProvider,
        parser: DocumentParser,
        batch_builder: EmbeddingBatchBuilder,
        vector_store: IVectorStoreProvider,
        upload_prefix: str = "uploads",
        stage_to_disk: bool = False,
        concurrency: int = 4,
        presigned_url_expiry: int = 300,
    ) -> None:
        self._storage = storage
        self._parser = parser
        self._batch_builder = batch_builder
        self._vector_store = vector_store
        self._upload_prefix = upload_prefix.strip("/")
        self._stage_to_disk = stage_to_disk
        self._concurrency = max(1, concurrency)
        self._presigned_url_expiry = presigned_url_expiry

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    async def generate_presigned_url(self, file_name: str, file_type: str) -> PresignedUpload:
        """Return a pre-signed PUT URL for a new upload of *file_name*.

        The key is ``<upload_prefix>/<epoch-ms>-<basename>``; only the base
        name of *file_name* is kept so clients cannot choose the prefix.
        """
        basename = PurePosixPath(file_name.replace("\\", "/")).name or "upload"
        name = f"{_epoch_ms()}-{basename}"
        key = f"{self._upload_prefix}/{name}" if self._upload_prefix else name
        url = await self._storage.get_presigned_upload_url(key, file_type)
        logger.info("presigned_url_generated", key=key, content_type=file_type)
        return PresignedUpload(url=url, key=key, expires_in=self._presigned_url_expiry)

    # ------------------------------------------------------------------
    # Single document
    # ------------------------------------------------------------------

    async def process_document(self, locator: str) -> IngestionResult:
        """Run one locator through every stage and return the result.

        Raises
        ------
        InvalidLocatorError, StorageError
            RETRIEVING failed.
        EmptyDocumentError, UnsupportedFormatError, MalformedContentError
            EXTRACTING failed (the latter two only when staging to disk).
        EmbeddingFailedError, EmbeddingProviderError
            EMBEDDING failed.
        UpsertFailedError
            UPSERTING failed.
        """
        start = time.monotonic()
        stage = IngestionStage.RETRIEVING
        staged_path: Path | None = None

        with structlog.contextvars.bound_contextvars(request_locator=locator):
            try:
                resolved = parse_locator(locator)
                key = resolved.key
                file_name = PurePosixPath(key).name
                logger.info("ingestion_stage", stage=stage.value, key=key, style=resolved.style)
                content = await self._storage.get_object_content(key)
                source = SourceDocument(id=key, raw_content=content, file_name=file_name)

                stage = IngestionStage.EXTRACTING
                logger.info("ingestion_stage", stage=stage.value, bytes=len(content))
                if self._stage_to_disk:
                    # Path is claimed before any await so cleanup sees it even on cancel.
                    fd, staged_path = self._stage(source.file_name)
                    await asyncio.to_thread(self._write_staged, fd, source.raw_content)
                    parsed = await asyncio.to_thread(
                        self._parser.parse_file, staged_path, source.file_name
                    )
                else:
                    parsed = await asyncio.to_thread(self._parser.parse_source, source)
                self._require_content(parsed, key)

                stage = IngestionStage.EMBEDDING
                logger.info("ingestion_stage", stage=stage.value, text_length=len(parsed.text_content))
                document = ExtractedDocument(
                    id=key,
                    content=parsed.text_content,
                    metadata={
                        **parsed.metadata,
                        "s3_url": locator,
                        "original_filename": file_name,
                    },
                )
                records = await self._batch_builder.embed_batch([document])
                if not records:
                    raise EmbeddingFailedError(
                        message=f"No embedding produced for {key!r}",
                        provider_name="batch_builder",
                    )

                stage = IngestionStage.UPSERTING
                logger.info("ingestion_stage", stage=stage.value, records=len(records))
                upserted = await self._vector_store.upsert(records)

                stage = IngestionStage.DONE
                result = IngestionResult(
                    document_id=key,
                    source=locator,
                    file_name=file_name,
                    records_upserted=upserted,
                    text_length=len(parsed.text_content),
                    stage=stage,
                    ingestion_time=round(time.monotonic() - start, 3),
                )
                logger.info(
                    "ingestion_complete",
                    document_id=key,
                    records=upserted,
                    elapsed_s=result.ingestion_time,
                )
                return result
            except Exception as exc:
                logger.error(
                    "ingestion_failed",
                    stage=stage.value,
                    failed_state=IngestionStage.FAILED.value,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                raise
            finally:
                if staged_path is not None:
                    await asyncio.to_thread(self._cleanup, staged_path)

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    async def process_documents(
        self, locators: Sequence[str]
    ) -> list[IngestionResult | BaseException]:
        """Process several locators concurrently.

        Each locator is an independent request; a failure is returned in
        its slot instead of cancelling the others.
        """
        semaphore = asyncio.Semaphore(self._concurrency)
        results = await throttled_gather(
            [self.process_document(loc) for loc in locators],
            semaphore=semaphore,
            return_exceptions=True,
        )
        failures = sum(1 for r in results if isinstance(r, BaseException))
        logger.info("ingestion_batch_complete", total=len(results), failed=failures)
        return results

    async def ingest_directory(self, directory: str | Path) -> IngestionResult:
        """Extract, embed and upsert every supported file in *directory*.

        Unparseable files are skipped (see
        :meth:`DocumentParser.process_directory`); blank files are skipped
        by the batch builder.  Record ids are the files' full paths.
        """
        start = time.monotonic()
        documents = await asyncio.to_thread(self._parser.process_directory, directory)
        records = await self._batch_builder.embed_batch(documents)
        upserted = await self._vector_store.upsert(records) if records else 0

        result = IngestionResult(
            document_id=str(directory),
            source=str(directory),
            file_name="",
            records_upserted=upserted,
            text_length=sum(len(d.content) for d in documents),
            stage=IngestionStage.DONE,
            ingestion_time=round(time.monotonic() - start, 3),
        )
        logger.info(
            "directory_ingestion_complete",
            directory=str(directory),
            documents=len(documents),
            records=upserted,
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _require_content(parsed: ParsedDocument, key: str) -> None:
        if not parsed.text_content.strip() and not parsed.has_descriptive_metadata():
            raise EmptyDocumentError(
                message=f"Document {key!r} produced no text and no metadata",
                provider_name="document_parser",
            )

    @staticmethod
    def _stage(file_name: str) -> tuple[int, Path]:
        """Create the temp file ``doc-<ms>-<random>-<file_name>``; returns its open fd and path."""
        fd, path = tempfile.mkstemp(prefix=f"doc-{_epoch_ms()}-", suffix=f"-{file_name}")
        return fd, Path(path)

    @staticmethod
    def _write_staged(fd: int, content: bytes) -> None:
        # Writes go through the fd, so an unlinked path is never recreated.
        with os.fdopen(fd, "wb") as handle:
            handle.write(content)
        logger.debug("staged_to_disk", bytes=len(content))

    @staticmethod
    def _cleanup(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            error = ResourceCleanupError(
                message=f"Could not remove staged file {path}: {exc}",
                provider_name="filesystem",
            )
            logger.error("resource_cleanup_failed", path=str(path), error=str(error))

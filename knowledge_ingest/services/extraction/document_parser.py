"""Format detection and normalized text extraction.

:class:`DocumentParser` dispatches on the lower-cased file extension to one
of the per-format extractors and wraps the result in a
:class:`~knowledge_ingest.models.documents.ParsedDocument` whose metadata
always records the original file name under ``source``.

Two entry points share one dispatch table but differ on unknown types:

* :meth:`DocumentParser.parse_content` (in-memory) passes unknown formats
  through as text.
* :meth:`DocumentParser.parse_file` (on-disk) raises
  :class:`~knowledge_ingest.utils.errors.UnsupportedFormatError`.

Malformed PDF and CSV payloads never raise from either entry point: the
failure becomes placeholder text plus an ``extractionError`` metadata
entry.  Malformed JSON falls back to the raw text in memory, but raises
:class:`~knowledge_ingest.utils.errors.MalformedContentError` from
``parse_file`` so that a directory batch skips the file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog

from knowledge_ingest.models.documents import ExtractedDocument, ParsedDocument, SourceDocument
from knowledge_ingest.services.extraction.extractors import (
    CSVExtractor,
    JSONExtractor,
    PDFExtractor,
    TextExtractor,
    decode_text,
)
from knowledge_ingest.utils.errors import MalformedContentError, UnsupportedFormatError

logger = structlog.get_logger(logger_name=__name__)

SUPPORTED_EXTENSIONS = frozenset({".pdf", ".csv", ".txt", ".json"})


def file_extension(file_name: str) -> str:
    """Return the lower-cased extension of *file_name*, including the dot."""
    return Path(file_name).suffix.lower()


class DocumentParser:
    """Extracts normalized text and metadata from PDF, CSV, JSON and text files.

    The parser is stateless and safe to share between concurrent requests;
    each call works only on its own arguments.
    """

    def __init__(self) -> None:
        self._pdf_extractor = PDFExtractor()
        self._csv_extractor = CSVExtractor()
        self._json_extractor = JSONExtractor()
        self._text_extractor = TextExtractor()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse_content(self, content: bytes | str, file_name: str) -> ParsedDocument:
        """Parse an in-memory payload, choosing the format from *file_name*.

        Parameters
        ----------
        content:
            Raw payload.  PDF payloads may also be base64 strings.
        file_name:
            Original file name; its extension selects the extractor and it
            is recorded as ``metadata["source"]``.

        Returns
        -------
        ParsedDocument
            Never raises for malformed content; unknown extensions are
            passed through as text.
        """
        return self._dispatch(content, file_extension(file_name), file_name)

    def parse_source(self, source: SourceDocument) -> ParsedDocument:
        """Parse a retrieved :class:`SourceDocument` in memory (see :meth:`parse_content`)."""
        return self.parse_content(source.raw_content, source.file_name)

    def parse_file(self, file_path: str | Path, source_name: str | None = None) -> ParsedDocument:
        """Parse a file on disk.

        Parameters
        ----------
        file_path:
            Path of the file to read.  Its extension selects the extractor.
        source_name:
            Name recorded as ``metadata["source"]``; defaults to the file's
            base name.  Used when the on-disk name is a temp-file alias.

        Raises
        ------
        UnsupportedFormatError
            If the extension is not one of ``.pdf``, ``.csv``, ``.txt``, ``.json``.
        MalformedContentError
            If a ``.json`` file does not parse.
        OSError
            If the file cannot be read.
        """
        path = Path(file_path)
        extension = path.suffix.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            raise UnsupportedFormatError(
                message=f"Unsupported file type: {extension or '(none)'}",
                provider_name="document_parser",
            )
        return self._dispatch(path.read_bytes(), extension, source_name or path.name, strict_json=True)

    def process_directory(self, directory: str | Path) -> list[ExtractedDocument]:
        """Parse every regular file directly inside *directory*.

        Files are visited in name order.  Sub-directories are ignored.  A
        file that fails to parse (unsupported type, malformed JSON, unreadable)
        is logged and skipped; the rest of the batch continues.  Each result's ``id``
        is the file's full path.

        Raises
        ------
        FileNotFoundError
            If *directory* does not exist or is not a directory.
        """
        root = Path(directory)
        if not root.is_dir():
            raise FileNotFoundError(f"Not a directory: {directory}")

        documents: list[ExtractedDocument] = []
        skipped = 0
        for entry in sorted(root.iterdir()):
            if not entry.is_file():
                continue
            try:
                parsed = self.parse_file(entry)
            except Exception as exc:
                skipped += 1
                logger.warning(
                    "directory_file_skipped",
                    path=str(entry),
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                continue
            documents.append(
                ExtractedDocument(
                    id=str(entry),
                    content=parsed.text_content,
                    metadata=parsed.metadata,
                )
            )

        logger.info(
            "directory_processed",
            directory=str(root),
            parsed=len(documents),
            skipped=skipped,
        )
        return documents

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _dispatch(
        self,
        content: bytes | str,
        extension: str,
        source: str,
        strict_json: bool = False,
    ) -> ParsedDocument:
        if extension == ".pdf":
            text, extra = self._extract_or_placeholder(self._pdf_extractor, content, "PDF", source)
        elif extension == ".csv":
            text, extra = self._extract_or_placeholder(self._csv_extractor, content, "CSV", source)
        elif extension == ".json":
            text, extra = self._extract_json(content, source, strict_json)
        elif extension == ".txt":
            text, extra = self._text_extractor.extract(content)
        else:
            logger.debug("unknown_format_passthrough", source=source, extension=extension)
            text, extra = decode_text(content), {}

        return ParsedDocument(text_content=text, metadata={"source": source, **extra})

    @staticmethod
    def _extract_or_placeholder(
        extractor: PDFExtractor | CSVExtractor,
        content: bytes | str,
        label: str,
        source: str,
    ) -> tuple[str, dict[str, Any]]:
        try:
            return extractor.extract(content)
        except MalformedContentError as exc:
            logger.warning(
                "extraction_soft_failure",
                source=source,
                format=label,
                error=exc.message,
            )
            return (
                f"Failed to parse {label} content. Error: {exc.message}",
                {"extractionError": exc.message},
            )

    def _extract_json(
        self, content: bytes | str, source: str, strict: bool
    ) -> tuple[str, dict[str, Any]]:
        try:
            return self._json_extractor.extract(content)
        except MalformedContentError as exc:
            if strict:
                raise
            logger.warning("json_parse_fallback_to_raw", source=source, error=exc.message)
            return decode_text(content), {}

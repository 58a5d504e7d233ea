"""Extractor for PDF documents.

Opens the payload in memory with PyMuPDF (fitz) and joins the text of
every page that has any.  Harvests ``pageCount`` and the document info
block (title, author, producer, ...) as metadata.

Payloads may arrive as bytes or as a string.  A string consisting solely
of base64 alphabet characters is treated as base64; any other string is
re-encoded to bytes (latin-1 when possible, so binary read as text
round-trips byte for byte).
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Any

import fitz  # PyMuPDF
import structlog

from knowledge_ingest.models.documents import clean_metadata
from knowledge_ingest.utils.errors import MalformedContentError

logger = structlog.get_logger(logger_name=__name__)

_BASE64_PATTERN = re.compile(r"[A-Za-z0-9+/=]+")


class PDFExtractor:
    """Extracts text and document info from PDF payloads."""

    def extract(self, content: bytes | str) -> tuple[str, dict[str, Any]]:
        """Return ``(text, metadata)`` for a PDF payload.

        Raises
        ------
        MalformedContentError
            If PyMuPDF cannot open or read the payload.
        """
        payload = self._to_bytes(content)
        if not payload:
            raise MalformedContentError("PDF payload is empty", provider_name="pymupdf")

        try:
            doc = fitz.open(stream=payload, filetype="pdf")
        except Exception as exc:
            raise MalformedContentError(str(exc), provider_name="pymupdf") from exc

        try:
            page_count = len(doc)
            pages: list[str] = []
            for page_num in range(page_count):
                text = doc[page_num].get_text("text").strip()
                if text:
                    pages.append(text)
            info = clean_metadata({k: v for k, v in (doc.metadata or {}).items() if v})
        except Exception as exc:
            raise MalformedContentError(str(exc), provider_name="pymupdf") from exc
        finally:
            doc.close()

        if not pages:
            logger.warning("pdf_no_text_extracted", page_count=page_count)

        logger.debug("pdf_extracted", page_count=page_count, pages_with_text=len(pages))
        return "\n\n".join(pages), {"pageCount": page_count, "info": info}

    @staticmethod
    def _to_bytes(content: bytes | str) -> bytes:
        if isinstance(content, bytes):
            return content

        stripped = content.strip()
        if stripped and _BASE64_PATTERN.fullmatch(stripped):
            try:
                return base64.b64decode(stripped, validate=True)
            except (binascii.Error, ValueError):
                logger.debug("pdf_base64_decode_failed", length=len(stripped))

        try:
            return content.encode("latin-1")
        except UnicodeEncodeError:
            return content.encode("utf-8")

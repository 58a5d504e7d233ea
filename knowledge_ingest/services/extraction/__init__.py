"""Format detection and text extraction for uploaded documents.

:class:`DocumentParser` is the only entry point other layers use; the
per-format extractors live in ``extractors/``.
"""

from knowledge_ingest.services.extraction.document_parser import (
    SUPPORTED_EXTENSIONS,
    DocumentParser,
    file_extension,
)

__all__ = ["SUPPORTED_EXTENSIONS", "DocumentParser", "file_extension"]

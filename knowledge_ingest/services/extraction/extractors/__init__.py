"""Per-format text extractors.

Each extractor turns one payload into ``(text, metadata)`` and raises
:class:`~knowledge_ingest.utils.errors.MalformedContentError` when the
payload cannot be parsed; the document parser decides whether that
failure is absorbed.

- **PDFExtractor**  -- ``.pdf`` via PyMuPDF, page text + info block
- **CSVExtractor**  -- ``.csv`` rows as JSON-object lines, delimiter sniffing
- **JSONExtractor** -- ``.json`` canonical re-serialization
- **TextExtractor** -- ``.txt`` verbatim
"""

from knowledge_ingest.services.extraction.extractors.csv_extractor import CSVExtractor
from knowledge_ingest.services.extraction.extractors.json_extractor import JSONExtractor
from knowledge_ingest.services.extraction.extractors.pdf_extractor import PDFExtractor
from knowledge_ingest.services.extraction.extractors.text_extractor import (
    TextExtractor,
    decode_text,
)

__all__ = [
    "CSVExtractor",
    "JSONExtractor",
    "PDFExtractor",
    "TextExtractor",
    "decode_text",
]

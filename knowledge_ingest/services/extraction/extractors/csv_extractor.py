"""Extractor for delimited-text (CSV) documents.

The first non-blank row is the header.  Every following row becomes one
JSON object keyed by header field, serialized on its own line, so each
row stays self-describing once embedded.  Rows whose field count differs
from the header are still emitted and also recorded in ``parseErrors``.
"""

from __future__ import annotations

import csv
import io
import json
from typing import Any

import structlog

from knowledge_ingest.services.extraction.extractors.text_extractor import decode_text
from knowledge_ingest.utils.errors import MalformedContentError

logger = structlog.get_logger(logger_name=__name__)

_CANDIDATE_DELIMITERS = ",;\t|"
_DEFAULT_DELIMITER = ","
_SNIFF_SAMPLE_CHARS = 4096
_EXTRA_FIELDS_KEY = "_extra"


class CSVExtractor:
    """Converts CSV payloads into JSON-object lines plus table metadata."""

    def extract(self, content: bytes | str) -> tuple[str, dict[str, Any]]:
        """Return ``(text, metadata)`` for a CSV payload.

        Metadata keys: ``rowCount``, ``fields``, ``delimiter``, ``parseErrors``.

        Raises
        ------
        MalformedContentError
            If the csv module cannot tokenize the payload.
        """
        text = decode_text(content)
        delimiter = self._detect_delimiter(text)

        try:
            reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
            rows = [row for row in reader if any(cell.strip() for cell in row)]
        except csv.Error as exc:
            raise MalformedContentError(str(exc), provider_name="csv") from exc

        if not rows:
            return "", {"rowCount": 0, "fields": [], "delimiter": delimiter, "parseErrors": []}

        fields = [name.strip() for name in rows[0]]
        lines: list[str] = []
        parse_errors: list[dict[str, Any]] = []

        for index, row in enumerate(rows[1:]):
            record: dict[str, Any] = dict(zip(fields, row))
            if len(row) != len(fields):
                parse_errors.append(self._field_mismatch(index, len(fields), len(row)))
                if len(row) > len(fields):
                    record[_EXTRA_FIELDS_KEY] = row[len(fields):]
            lines.append(json.dumps(record, ensure_ascii=False, separators=(",", ":")))

        if parse_errors:
            logger.info("csv_field_mismatches", rows=len(parse_errors))

        metadata = {
            "rowCount": len(lines),
            "fields": fields,
            "delimiter": delimiter,
            "parseErrors": parse_errors,
        }
        return "\n".join(lines), metadata

    @staticmethod
    def _detect_delimiter(text: str) -> str:
        sample = text[:_SNIFF_SAMPLE_CHARS]
        try:
            return csv.Sniffer().sniff(sample, delimiters=_CANDIDATE_DELIMITERS).delimiter
        except csv.Error:
            return _DEFAULT_DELIMITER

    @staticmethod
    def _field_mismatch(row: int, expected: int, actual: int) -> dict[str, Any]:
        too_few = actual < expected
        return {
            "type": "FieldMismatch",
            "code": "TooFewFields" if too_few else "TooManyFields",
            "message": (
                f"Too {'few' if too_few else 'many'} fields: "
                f"expected {expected} fields but parsed {actual}"
            ),
            "row": row,
        }

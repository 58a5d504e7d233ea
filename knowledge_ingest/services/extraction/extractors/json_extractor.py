"""Extractor for JSON documents: parse, then re-serialize canonically."""

from __future__ import annotations

import json
from typing import Any

from knowledge_ingest.services.extraction.extractors.text_extractor import decode_text
from knowledge_ingest.utils.errors import MalformedContentError


class JSONExtractor:
    """Re-serializes JSON with sorted keys and compact separators.

    Two payloads that differ only in whitespace or key order therefore
    produce identical text (and identical embeddings).
    """

    def extract(self, content: bytes | str) -> tuple[str, dict[str, Any]]:
        text = decode_text(content)
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedContentError(str(exc), provider_name="json") from exc
        return json.dumps(parsed, sort_keys=True, separators=(",", ":"), ensure_ascii=False), {}

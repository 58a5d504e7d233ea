"""Flatten document metadata into what vector indexes accept.

ChromaDB and Pinecone both store flat key/value metadata: strings,
numbers and booleans (Pinecone additionally takes lists of strings).
Nested values such as the PDF ``info`` block or CSV ``parseErrors`` are
stored as compact JSON strings.
"""

from __future__ import annotations

import json
from typing import Any

_SCALAR_TYPES = (str, int, float, bool)


def flatten_metadata(
    metadata: dict[str, Any],
    allow_string_lists: bool = False,
) -> dict[str, str | int | float | bool | list[str]]:
    """Return a copy of *metadata* with nested values JSON-encoded."""
    flat: dict[str, str | int | float | bool | list[str]] = {}
    for key, value in metadata.items():
        if value is None:
            continue
        if isinstance(value, _SCALAR_TYPES):
            flat[key] = value
        elif (
            allow_string_lists
            and isinstance(value, list)
            and all(isinstance(v, str) for v in value)
        ):
            flat[key] = list(value)
        else:
            flat[key] = json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return flat

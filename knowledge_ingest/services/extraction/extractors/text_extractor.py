"""Plain-text extraction and the shared byte-to-text decoding rule."""

from __future__ import annotations

from typing import Any

_BOM = "\ufeff"


def decode_text(content: bytes | str) -> str:
    """Decode *content* as UTF-8, replacing invalid bytes and dropping a leading BOM."""
    if isinstance(content, bytes):
        return content.decode("utf-8-sig", errors="replace")
    return content[1:] if content.startswith(_BOM) else content


class TextExtractor:
    """Returns ``.txt`` content verbatim.  Never fails."""

    def extract(self, content: bytes | str) -> tuple[str, dict[str, Any]]:
        return decode_text(content), {}

"""Unit tests for DocumentParser and the per-format extractors.

PDF parsing is exercised against a patched ``fitz`` module so no real PDF
fixture is needed; CSV, JSON and text run against the real extractors.
"""

from __future__ import annotations

import base64
import json
from unittest.mock import MagicMock, patch

import pytest

from knowledge_ingest.models.documents import SourceDocument
from knowledge_ingest.services.extraction.document_parser import DocumentParser, file_extension
from knowledge_ingest.services.extraction.extractors import (
    CSVExtractor,
    JSONExtractor,
    PDFExtractor,
    decode_text,
)
from knowledge_ingest.utils.errors import MalformedContentError, UnsupportedFormatError

_FITZ = "knowledge_ingest.services.extraction.extractors.pdf_extractor.fitz"


def _fake_pdf(pages: list[str], metadata: dict | None = None) -> MagicMock:
    doc = MagicMock()
    doc.__len__.return_value = len(pages)
    page_mocks = []
    for text in pages:
        page = MagicMock()
        page.get_text.return_value = text
        page_mocks.append(page)
    doc.__getitem__.side_effect = lambda i: page_mocks[i]
    doc.metadata = metadata if metadata is not None else {}
    return doc


# ======================================================================
# Helpers
# ======================================================================


class TestHelpers:
    def test_file_extension_is_lowercased(self) -> None:
        assert file_extension("Report.PDF") == ".pdf"
        assert file_extension("archive.tar.gz") == ".gz"
        assert file_extension("README") == ""

    def test_decode_text_strips_bom_and_replaces_invalid_bytes(self) -> None:
        assert decode_text(b"\xef\xbb\xbfhello") == "hello"
        assert decode_text("\ufeffhello") == "hello"
        assert decode_text(b"ok \xff") == "ok \ufffd"


# ======================================================================
# Plain text / unknown formats
# ======================================================================


class TestTextAndUnknown:
    def test_txt_returns_content_verbatim(self, parser: DocumentParser) -> None:
        result = parser.parse_content(b"line one\nline two", "notes.txt")
        assert result.text_content == "line one\nline two"
        assert result.metadata == {"source": "notes.txt"}

    def test_txt_extraction_is_idempotent(self, parser: DocumentParser) -> None:
        first = parser.parse_content("Some  text\twith   spacing", "a.txt")
        second = parser.parse_content(first.text_content, "a.txt")
        assert second.text_content == first.text_content

    def test_unknown_extension_passes_through(self, parser: DocumentParser) -> None:
        result = parser.parse_content(b"# Title\n\nbody", "README.md")
        assert result.text_content == "# Title\n\nbody"
        assert result.metadata == {"source": "README.md"}

    def test_no_extension_passes_through(self, parser: DocumentParser) -> None:
        result = parser.parse_content("plain", "Makefile")
        assert result.text_content == "plain"

    def test_invalid_utf8_never_raises(self, parser: DocumentParser) -> None:
        result = parser.parse_content(b"\xff\xfe\xfa", "binary.txt")
        assert "\ufffd" in result.text_content


# ======================================================================
# JSON
# ======================================================================


class TestJSON:
    def test_json_is_canonicalized(self, parser: DocumentParser) -> None:
        result = parser.parse_content(b'{ "x": 1 }', "data.json")
        assert json.loads(result.text_content) == {"x": 1}
        assert result.text_content == '{"x":1}'

    def test_key_order_does_not_change_text(self) -> None:
        extractor = JSONExtractor()
        a, _ = extractor.extract('{"b": 2, "a": 1}')
        b, _ = extractor.extract('{\n  "a": 1,\n  "b": 2\n}')
        assert a == b

    def test_malformed_json_falls_back_to_raw_text(self, parser: DocumentParser) -> None:
        result = parser.parse_content("{not json", "broken.json")
        assert result.text_content == "{not json"
        assert result.metadata == {"source": "broken.json"}

    def test_extractor_raises_on_malformed(self) -> None:
        with pytest.raises(MalformedContentError):
            JSONExtractor().extract("[1, 2")


# ======================================================================
# CSV
# ======================================================================


class TestCSV:
    def test_rows_become_json_lines(self, parser: DocumentParser) -> None:
        result = parser.parse_content(b"a,b\n1,2\n3,4", "table.csv")
        lines = result.text_content.split("\n")

        assert len(lines) == 2
        assert json.loads(lines[0]) == {"a": "1", "b": "2"}
        assert json.loads(lines[1]) == {"a": "3", "b": "4"}
        assert result.metadata["rowCount"] == 2
        assert result.metadata["fields"] == ["a", "b"]
        assert result.metadata["parseErrors"] == []
        assert result.metadata["source"] == "table.csv"

    def test_blank_rows_are_skipped(self) -> None:
        text, meta = CSVExtractor().extract("name,age\n\nann,31\n,\nbob,40\n")
        assert meta["rowCount"] == 2
        assert "ann" in text and "bob" in text

    def test_semicolon_delimiter_detected(self) -> None:
        _, meta = CSVExtractor().extract("city;country\nParis;France\nLima;Peru\n")
        assert meta["delimiter"] == ";"
        assert meta["fields"] == ["city", "country"]

    def test_field_count_mismatch_is_recorded(self) -> None:
        text, meta = CSVExtractor().extract("a,b\n1,2\n3\n4,5,6\n")
        codes = [e["code"] for e in meta["parseErrors"]]

        assert codes == ["TooFewFields", "TooManyFields"]
        assert meta["rowCount"] == 3
        assert json.loads(text.split("\n")[2])["_extra"] == ["6"]

    def test_empty_csv(self) -> None:
        text, meta = CSVExtractor().extract("")
        assert text == ""
        assert meta["rowCount"] == 0

    def test_malformed_csv_yields_placeholder(self, parser: DocumentParser) -> None:
        # A single field beyond the csv module's field size limit.
        payload = "a,b\n" + "x" * 200_000
        result = parser.parse_content(payload, "huge.csv")

        assert result.text_content
        assert "error" in result.text_content.lower()
        assert "extractionError" in result.metadata


# ======================================================================
# PDF
# ======================================================================


class TestPDF:
    def test_pages_are_joined(self) -> None:
        fake = _fake_pdf(["Page one.", "  ", "Page three."], {"title": "Q3", "author": ""})
        with patch(_FITZ) as fitz_mock:
            fitz_mock.open.return_value = fake
            text, meta = PDFExtractor().extract(b"%PDF-1.7 fake")

        assert text == "Page one.\n\nPage three."
        assert meta["pageCount"] == 3
        assert meta["info"] == {"title": "Q3"}
        fake.close.assert_called_once()

    def test_base64_string_is_decoded(self) -> None:
        raw = b"%PDF-1.4 bytes"
        with patch(_FITZ) as fitz_mock:
            fitz_mock.open.return_value = _fake_pdf(["hello"])
            PDFExtractor().extract(base64.b64encode(raw).decode("ascii"))

        assert fitz_mock.open.call_args.kwargs["stream"] == raw

    def test_open_failure_is_malformed(self) -> None:
        with patch(_FITZ) as fitz_mock:
            fitz_mock.open.side_effect = RuntimeError("cannot open broken document")
            with pytest.raises(MalformedContentError):
                PDFExtractor().extract(b"not a pdf")

    def test_empty_payload_is_malformed(self) -> None:
        with pytest.raises(MalformedContentError):
            PDFExtractor().extract(b"")

    def test_malformed_pdf_yields_placeholder(self, parser: DocumentParser) -> None:
        with patch(_FITZ) as fitz_mock:
            fitz_mock.open.side_effect = RuntimeError("cannot open broken document")
            result = parser.parse_content(b"garbage", "scan.pdf")

        assert result.text_content.startswith("Failed to parse PDF content. Error:")
        assert "error" in result.text_content.lower()
        assert result.metadata["extractionError"] == "cannot open broken document"
        assert result.metadata["source"] == "scan.pdf"


# ======================================================================
# File and directory entry points
# ======================================================================


class TestParseFile:
    def test_parse_file_uses_source_name(self, parser: DocumentParser, tmp_path) -> None:
        path = tmp_path / "doc-1700000000000-abc-notes.txt"
        path.write_text("hello")

        result = parser.parse_file(path, source_name="notes.txt")
        assert result.metadata["source"] == "notes.txt"

    def test_parse_file_defaults_source_to_basename(self, parser: DocumentParser, tmp_path) -> None:
        path = tmp_path / "a.json"
        path.write_text('{"k": [1, 2]}')

        result = parser.parse_file(path)
        assert result.metadata["source"] == "a.json"
        assert json.loads(result.text_content) == {"k": [1, 2]}

    def test_unsupported_extension_raises(self, parser: DocumentParser, tmp_path) -> None:
        path = tmp_path / "slides.pptx"
        path.write_bytes(b"PK")

        with pytest.raises(UnsupportedFormatError, match=r"\.pptx"):
            parser.parse_file(path)

    def test_malformed_json_file_raises(self, parser: DocumentParser, tmp_path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(MalformedContentError):
            parser.parse_file(path)


class TestParseSource:
    def test_source_document_is_parsed_in_memory(self, parser: DocumentParser) -> None:
        source = SourceDocument(id="uploads/t.csv", raw_content=b"a,b\n1,2", file_name="t.csv")

        result = parser.parse_source(source)

        assert result.metadata["source"] == "t.csv"
        assert result.metadata["rowCount"] == 1
        assert json.loads(result.text_content) == {"a": "1", "b": "2"}


class TestProcessDirectory:
    def test_bad_file_is_skipped(self, parser: DocumentParser, tmp_path) -> None:
        (tmp_path / "a.txt").write_text("alpha")
        (tmp_path / "b.json").write_text("{not json")
        (tmp_path / "c.csv").write_text("h\n1\n")
        (tmp_path / "nested").mkdir()

        documents = parser.process_directory(tmp_path)

        assert [d.id for d in documents] == [str(tmp_path / "a.txt"), str(tmp_path / "c.csv")]
        assert documents[0].content == "alpha"
        assert documents[0].metadata["source"] == "a.txt"

    def test_unsupported_file_is_skipped(self, parser: DocumentParser, tmp_path) -> None:
        (tmp_path / "a.txt").write_text("alpha")
        (tmp_path / "c.docx").write_bytes(b"PK")

        documents = parser.process_directory(tmp_path)

        assert [d.id for d in documents] == [str(tmp_path / "a.txt")]

    def test_missing_directory_raises(self, parser: DocumentParser, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            parser.process_directory(tmp_path / "nope")

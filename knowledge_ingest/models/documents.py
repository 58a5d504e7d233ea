"""Document and record models for the knowledge-ingest pipeline.

Pydantic v2 models for every unit that flows through ingestion:

    SourceDocument  -> ParsedDocument  -> ExtractedDocument -> EmbeddingRecord
    (raw bytes)        (text+metadata)    (id+text+metadata)   (id+vector+metadata)

All models are frozen.  Metadata is a closed variant: every value must be
a string, number, boolean, or a list/dict built from those.  Values coming
from third-party parsers (PyMuPDF info blocks, CSV rows) pass through
:func:`clean_metadata` first, which drops ``None`` and stringifies
anything else outside the variant.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_SCALAR_TYPES = (str, int, float, bool)


def _is_metadata_value(value: Any) -> bool:
    if isinstance(value, _SCALAR_TYPES):
        return True
    if isinstance(value, list):
        return all(_is_metadata_value(v) for v in value)
    if isinstance(value, dict):
        return all(isinstance(k, str) and _is_metadata_value(v) for k, v in value.items())
    return False


def _validate_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    for key, value in metadata.items():
        if not _is_metadata_value(value):
            raise ValueError(
                f"metadata[{key!r}] has unsupported type {type(value).__name__}"
            )
    return metadata


def clean_metadata(raw: dict[str, Any]) -> dict[str, Any]:
    """Coerce an arbitrary mapping into valid metadata.

    ``None`` values are dropped, tuples become lists, dates become ISO
    strings, and any other non-variant value is stringified.
    """
    return {str(k): _clean_value(v) for k, v in raw.items() if v is not None}


def _clean_value(value: Any) -> Any:
    if isinstance(value, _SCALAR_TYPES):
        return value
    if isinstance(value, (list, tuple)):
        return [_clean_value(v) for v in value if v is not None]
    if isinstance(value, dict):
        return clean_metadata(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


# ---------------------------------------------------------------------------
# Extraction models
# ---------------------------------------------------------------------------
class SourceDocument(BaseModel):
    """A raw file retrieved from object storage, before extraction."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Stable unique identifier (the storage key).")
    raw_content: bytes | str = Field(description="Undecoded payload as retrieved.")
    file_name: str = Field(description="Base name used for format detection.")


class ParsedDocument(BaseModel):
    """Normalized text plus harvested metadata for one file.

    ``metadata["source"]`` always carries the original file name.
    """

    model_config = ConfigDict(frozen=True)

    text_content: str = Field(default="", description="Normalized text; may be empty.")
    metadata: dict[str, Any] = Field(description="Format-specific metadata.")

    @field_validator("metadata")
    @classmethod
    def _check_metadata(cls, value: dict[str, Any]) -> dict[str, Any]:
        return _validate_metadata(value)

    @model_validator(mode="after")
    def _require_source(self) -> ParsedDocument:
        if "source" not in self.metadata:
            raise ValueError("metadata must include 'source'")
        return self

    def has_descriptive_metadata(self) -> bool:
        """Return ``True`` if metadata carries anything beyond ``source``."""
        return any(key != "source" for key in self.metadata)


class ExtractedDocument(BaseModel):
    """Input unit of the embedding batch builder."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Identifier reused as the vector-index primary key.")
    content: str = Field(default="", description="Text to embed.")
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("metadata")
    @classmethod
    def _check_metadata(cls, value: dict[str, Any]) -> dict[str, Any]:
        return _validate_metadata(value)


class EmbeddingRecord(BaseModel):
    """One vector ready for upsert into the index."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Index primary key; equals the source document id.")
    vector: list[float] = Field(min_length=1, description="Embedding of length D.")
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("metadata")
    @classmethod
    def _check_metadata(cls, value: dict[str, Any]) -> dict[str, Any]:
        return _validate_metadata(value)


# ---------------------------------------------------------------------------
# Orchestration models
# ---------------------------------------------------------------------------
class IngestionStage(str, Enum):  # noqa: UP042
    """Stages of a single ingestion request.

    RETRIEVING → EXTRACTING → EMBEDDING → UPSERTING → DONE, with FAILED
    reachable from any stage.
    """

    RETRIEVING = "RETRIEVING"
    EXTRACTING = "EXTRACTING"
    EMBEDDING = "EMBEDDING"
    UPSERTING = "UPSERTING"
    DONE = "DONE"
    FAILED = "FAILED"


class StorageLocator(BaseModel):
    """A locator string resolved into bucket and key."""

    model_config = ConfigDict(frozen=True)

    bucket: str | None = Field(default=None, description="Bucket, when the locator names one.")
    key: str = Field(min_length=1, description="Storage-relative object key.")
    style: Literal["s3_uri", "virtual_hosted", "path_style", "custom", "key"] = Field(
        description="Which locator form was recognised."
    )


class PresignedUpload(BaseModel):
    """A pre-signed PUT URL and the key it will write to."""

    model_config = ConfigDict(frozen=True)

    url: str
    key: str
    expires_in: int = Field(ge=1, description="Seconds until the URL expires.")


class IngestionResult(BaseModel):
    """Summary of one completed ingestion request."""

    model_config = ConfigDict(frozen=True)

    document_id: str = Field(description="Primary key the record was upserted under.")
    source: str = Field(description="Locator or path the document came from.")
    file_name: str = Field(default="")
    records_upserted: int = Field(default=0, ge=0)
    text_length: int = Field(default=0, ge=0, description="Characters of extracted text.")
    stage: IngestionStage = IngestionStage.DONE
    ingestion_time: float = Field(
        default=0.0,
        ge=0.0,
        description="Wall-clock time in seconds for the request.",
    )
    completed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class QueryMatch(BaseModel):
    """A single similarity-search hit."""

    model_config = ConfigDict(frozen=True)

    id: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)

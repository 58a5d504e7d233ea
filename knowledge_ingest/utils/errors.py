"""Custom exception hierarchy for knowledge-ingest.

All application exceptions inherit from :class:`KnowledgeIngestError`, which
carries an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "s3", "openai_embedding", "pinecone") caused the failure.

The hierarchy is organized by pipeline stage:

    KnowledgeIngestError  (base -- catch-all for any knowledge-ingest error)
    +-- InvalidLocatorError      (RETRIEVING: no key derivable from a locator)
    +-- StorageError             (RETRIEVING: object storage call failed)
    +-- UnsupportedFormatError   (EXTRACTING: path variant, unknown extension)
    +-- MalformedContentError    (EXTRACTING: placeholder, or raised for .json files)
    +-- EmptyDocumentError       (EXTRACTING: nothing worth embedding)
    +-- EmbeddingProviderError   (EMBEDDING: model API call failed)
    +-- EmbeddingFailedError     (EMBEDDING: no usable vectors produced)
    +-- UpsertFailedError        (UPSERTING: vector index rejected the write)
    +-- VectorStoreError         (query time: index search failed)
    +-- ResourceCleanupError     (any stage: temp file removal failed, logged only)
    +-- ConfigurationError       (startup / missing config)

``MalformedContentError`` is converted into placeholder text by the document
parser, except that ``parse_file`` raises it for a malformed ``.json`` file.
``ResourceCleanupError`` is only ever logged so that it cannot mask the
primary outcome of a request.
"""


class KnowledgeIngestError(Exception):
    """Base exception for all knowledge-ingest errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets, e.g.
    ``[pinecone] Upsert rejected``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Retrieval errors
# ---------------------------------------------------------------------------

class InvalidLocatorError(KnowledgeIngestError):
    """Raised when no storage key can be derived from a locator string."""

    def __init__(
        self,
        message: str = "Could not derive a storage key from the locator",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(KnowledgeIngestError):
    """Raised when an object-storage call (download, pre-signing) fails."""

    def __init__(
        self,
        message: str = "Object storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Extraction errors
# ---------------------------------------------------------------------------

class UnsupportedFormatError(KnowledgeIngestError):
    """Raised by the path-based parser for extensions it cannot extract."""

    def __init__(
        self,
        message: str = "Unsupported file type",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class MalformedContentError(KnowledgeIngestError):
    """Raised by a format extractor when the payload cannot be parsed."""

    def __init__(
        self,
        message: str = "Document content is malformed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmptyDocumentError(KnowledgeIngestError):
    """Raised when extraction yields neither text nor descriptive metadata."""

    def __init__(
        self,
        message: str = "Document produced no content or metadata",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Embedding / vector-index errors
# ---------------------------------------------------------------------------

class EmbeddingProviderError(KnowledgeIngestError):
    """Raised when an embedding API call fails."""

    def __init__(
        self,
        message: str = "Embedding provider call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingFailedError(KnowledgeIngestError):
    """Raised when embedding yields no usable vectors (empty batch, bad dimension)."""

    def __init__(
        self,
        message: str = "Embedding produced no usable vectors",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class VectorStoreError(KnowledgeIngestError):
    """Raised when a vector-index read (query, describe) fails."""

    def __init__(
        self,
        message: str = "Vector store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UpsertFailedError(KnowledgeIngestError):
    """Raised when the vector index rejects an upsert."""

    def __init__(
        self,
        message: str = "Vector index upsert failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Lifecycle / configuration errors
# ---------------------------------------------------------------------------

class ResourceCleanupError(KnowledgeIngestError):
    """Describes a failed temp-resource removal.  Logged, never raised to callers."""

    def __init__(
        self,
        message: str = "Failed to clean up temporary resource",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(KnowledgeIngestError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)

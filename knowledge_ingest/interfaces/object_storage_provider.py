"""Abstract base class for object-storage service providers.

Clients upload files directly to object storage through a pre-signed URL;
the ingestion orchestrator later downloads them by key.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: S3StorageProvider (knowledge_ingest/providers/storage/)
class IObjectStorageProvider(ABC):
    """Contract for object-storage services (S3 and compatibles)."""

    @abstractmethod
    async def get_presigned_upload_url(self, key: str, content_type: str) -> str:
        """Return a time-limited URL that accepts an HTTP PUT of *key*.

        Parameters
        ----------
        key:
            Object key the upload will be stored under.
        content_type:
            MIME type the client must send with the PUT.

        Raises
        ------
        knowledge_ingest.utils.errors.StorageError
            If the URL cannot be signed.
        """

    @abstractmethod
    async def get_object_content(self, key: str) -> bytes:
        """Download the full body of the object stored at *key*.

        Raises
        ------
        knowledge_ingest.utils.errors.StorageError
            If the object does not exist or cannot be read.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"s3"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if a bucket is configured."""

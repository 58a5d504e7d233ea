"""Object-storage provider implementations.

- **S3StorageProvider** -- boto3 client against one bucket; pre-signed PUT
  URLs for uploads and ``get_object`` downloads for ingestion.
"""

from knowledge_ingest.providers.storage.s3_provider import S3StorageProvider

__all__ = ["S3StorageProvider"]

"""Amazon S3 object-storage provider adapter.

Wraps a synchronous ``boto3`` S3 client to implement
:class:`IObjectStorageProvider`.  Every blocking SDK call runs in a worker
thread via ``asyncio.to_thread`` so downloads never stall the event loop.
Presigned URLs use Signature Version 4.
"""

from __future__ import annotations

import asyncio
from typing import Any

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from knowledge_ingest.config.settings import Settings, is_placeholder
from knowledge_ingest.interfaces.object_storage_provider import IObjectStorageProvider
from knowledge_ingest.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)


class S3StorageProvider(IObjectStorageProvider):
    """Object storage backed by a single S3 bucket.

    Credentials come from settings when both key fields are real values;
    otherwise boto3's default chain (env, shared config, instance role)
    applies.
    """

    def __init__(self, settings: Settings, client: Any | None = None) -> None:
        self._bucket = settings.s3_bucket_name
        self._region = settings.aws_region
        self._expires_in = settings.presigned_url_expiry
        self._configured = settings.s3_configured()
        self._client = client or self._build_client(settings)

    @staticmethod
    def _build_client(settings: Settings) -> Any:
        client_kwargs: dict[str, Any] = {
            "region_name": settings.aws_region,
            "config": Config(signature_version="s3v4"),
        }
        if not is_placeholder(settings.aws_access_key_id) and not is_placeholder(
            settings.aws_secret_access_key
        ):
            client_kwargs["aws_access_key_id"] = settings.aws_access_key_id
            client_kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
        return boto3.client("s3", **client_kwargs)

    # ------------------------------------------------------------------
    # IObjectStorageProvider implementation
    # ------------------------------------------------------------------

    async def get_presigned_upload_url(self, key: str, content_type: str) -> str:
        """Sign a ``put_object`` request for *key* valid for the configured expiry."""
        try:
            url = await asyncio.to_thread(
                self._client.generate_presigned_url,
                "put_object",
                Params={"Bucket": self._bucket, "Key": key, "ContentType": content_type},
                ExpiresIn=self._expires_in,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(
                message=f"Could not sign upload URL for {key!r}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("s3_presigned_put", bucket=self._bucket, key=key, expires_in=self._expires_in)
        return url

    async def get_object_content(self, key: str) -> bytes:
        """Download the whole object body as bytes."""
        try:
            body = await asyncio.to_thread(self._read_object, key)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "Unknown")
            raise StorageError(
                message=f"S3 get_object failed for {key!r} ({code}): {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except BotoCoreError as exc:
            raise StorageError(
                message=f"S3 get_object failed for {key!r}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("s3_object_downloaded", bucket=self._bucket, key=key, bytes=len(body))
        return body

    def get_provider_name(self) -> str:
        return "s3"

    def is_available(self) -> bool:
        """Return ``True`` if a real bucket name is configured."""
        return self._configured

    def _read_object(self, key: str) -> bytes:
        response = self._client.get_object(Bucket=self._bucket, Key=key)
        stream = response["Body"]
        try:
            return stream.read()
        finally:
            stream.close()

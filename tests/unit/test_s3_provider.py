"""Unit tests for the S3 object storage adapter (boto3 client mocked)."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from knowledge_ingest.providers.storage.s3_provider import S3StorageProvider
from knowledge_ingest.utils.errors import StorageError


def _client_error(code: str, operation: str = "GetObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class TestS3StorageProvider:
    @pytest.fixture()
    def client(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture()
    def provider(self, settings_factory, client) -> S3StorageProvider:
        settings = settings_factory(s3_bucket_name="kb-bucket", presigned_url_expiry=120)
        return S3StorageProvider(settings, client=client)

    @pytest.mark.asyncio
    async def test_presigned_put_url(self, provider, client) -> None:
        client.generate_presigned_url.return_value = "https://kb-bucket.s3.amazonaws.com/k?sig"

        url = await provider.get_presigned_upload_url("uploads/k.pdf", "application/pdf")

        assert url == "https://kb-bucket.s3.amazonaws.com/k?sig"
        client.generate_presigned_url.assert_called_once_with(
            "put_object",
            Params={"Bucket": "kb-bucket", "Key": "uploads/k.pdf", "ContentType": "application/pdf"},
            ExpiresIn=120,
        )

    @pytest.mark.asyncio
    async def test_presign_failure(self, provider, client) -> None:
        client.generate_presigned_url.side_effect = _client_error("AccessDenied", "PutObject")
        with pytest.raises(StorageError):
            await provider.get_presigned_upload_url("k", "text/plain")

    @pytest.mark.asyncio
    async def test_get_object_content_reads_and_closes_body(self, provider, client) -> None:
        body = MagicMock()
        body.read.return_value = b"payload"
        client.get_object.return_value = {"Body": body}

        content = await provider.get_object_content("uploads/a.txt")

        assert content == b"payload"
        client.get_object.assert_called_once_with(Bucket="kb-bucket", Key="uploads/a.txt")
        body.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_missing_key_is_storage_error(self, provider, client) -> None:
        client.get_object.side_effect = _client_error("NoSuchKey")

        with pytest.raises(StorageError, match="NoSuchKey") as exc_info:
            await provider.get_object_content("missing")

        assert exc_info.value.provider_name == "s3"
        assert isinstance(exc_info.value.__cause__, ClientError)

    @pytest.mark.asyncio
    async def test_network_failure_is_storage_error(self, provider, client) -> None:
        client.get_object.side_effect = EndpointConnectionError(endpoint_url="https://s3.amazonaws.com")
        with pytest.raises(StorageError):
            await provider.get_object_content("k")

    def test_availability_follows_bucket_setting(self, settings_factory, client) -> None:
        assert S3StorageProvider(settings_factory(s3_bucket_name="kb"), client=client).is_available()
        assert not S3StorageProvider(settings_factory(s3_bucket_name="your-bucket-name"), client=client).is_available()
        assert S3StorageProvider(settings_factory(), client=client).get_provider_name() == "s3"

    def test_client_uses_sigv4_and_explicit_credentials(self, settings_factory) -> None:
        settings = settings_factory(
            aws_access_key_id="AKIATEST",
            aws_secret_access_key="secret",
            aws_region="eu-west-1",
        )
        with patch("knowledge_ingest.providers.storage.s3_provider.boto3.client") as boto_client:
            S3StorageProvider(settings)

        args, kwargs = boto_client.call_args
        assert args == ("s3",)
        assert kwargs["region_name"] == "eu-west-1"
        assert kwargs["aws_access_key_id"] == "AKIATEST"
        assert kwargs["config"].signature_version == "s3v4"

    def test_placeholder_credentials_use_default_chain(self, settings_factory) -> None:
        settings = settings_factory(
            aws_access_key_id="YOUR_ACCESS_KEY_ID",
            aws_secret_access_key="YOUR_SECRET_ACCESS_KEY",
        )
        with patch("knowledge_ingest.providers.storage.s3_provider.boto3.client") as boto_client:
            S3StorageProvider(settings)

        assert "aws_access_key_id" not in boto_client.call_args.kwargs

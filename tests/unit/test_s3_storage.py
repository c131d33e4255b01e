"""
Unit tests for S3FileStorage adapter against a mocked boto3 client.
"""

from unittest.mock import Mock

import pytest
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import ClientError, EndpointConnectionError

from src.adapters.storage.s3 import S3FileStorage
from src.domain.exceptions import StorageFailed


@pytest.fixture
def client() -> Mock:
    return Mock()


@pytest.fixture
def storage(client: Mock) -> S3FileStorage:
    return S3FileStorage(client, bucket="itfest-payments", region="ap-southeast-1")


class TestUpload:
    def test_uploads_with_content_type(self, storage: S3FileStorage, client: Mock) -> None:
        storage.upload("payments/u/abc.png", b"\x89PNG", "image/png")

        kwargs = client.upload_fileobj.call_args.kwargs
        assert kwargs["Bucket"] == "itfest-payments"
        assert kwargs["Key"] == "payments/u/abc.png"
        assert kwargs["ExtraArgs"] == {"ContentType": "image/png"}
        assert kwargs["Fileobj"].read() == b"\x89PNG"

    def test_returns_public_url(self, storage: S3FileStorage) -> None:
        url = storage.upload("payments/u/abc.pdf", b"%PDF", "application/pdf")

        assert url == "https://itfest-payments.s3.ap-southeast-1.amazonaws.com/payments/u/abc.pdf"

    @pytest.mark.parametrize(
        "error",
        [
            ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"),
            EndpointConnectionError(endpoint_url="https://s3.example"),
            S3UploadFailedError("upload failed"),
        ],
    )
    def test_failures_become_storage_failed(
        self, storage: S3FileStorage, client: Mock, error: Exception
    ) -> None:
        client.upload_fileobj.side_effect = error

        with pytest.raises(StorageFailed):
            storage.upload("payments/u/abc.png", b"\x89PNG", "image/png")

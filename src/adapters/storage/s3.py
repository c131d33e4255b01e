"""
S3 file storage adapter - Implements FileStorage protocol via boto3.

Uploads payment proofs and returns their virtual-hosted-style URL.
"""

import io
import logging

from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError

from src.domain.exceptions import StorageFailed

logger = logging.getLogger(__name__)


class S3FileStorage:
    """
    Implements FileStorage protocol via a boto3 S3 client.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, client, bucket: str, region: str) -> None:
        """
        Args:
            client: boto3 S3 client
            bucket: Target bucket name
            region: Bucket region, used to build the public URL
        """
        self._client = client
        self._bucket = bucket
        self._region = region

    def upload(self, key: str, content: bytes, content_type: str) -> str:
        try:
            self._client.upload_fileobj(
                Fileobj=io.BytesIO(content),
                Bucket=self._bucket,
                Key=key,
                ExtraArgs={"ContentType": content_type},
            )
        except (Boto3Error, BotoCoreError, ClientError) as e:
            logger.error("S3 upload of %s failed: %s", key, e)
            raise StorageFailed("failed to upload file") from e

        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"

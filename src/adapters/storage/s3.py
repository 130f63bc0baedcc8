"""S3 storage adapter - Implements ObjectStorage protocol with boto3."""

import logging

import boto3

from src.adapters.storage.local import object_key
from src.domain.ports import StoredObject

logger = logging.getLogger(__name__)


class S3ObjectStorage:
    """
    Implements ObjectStorage protocol on an S3 bucket.

    Objects are written under ``prefix`` and addressed by their virtual-hosted
    URL, so the bucket (or prefix) must allow public reads for profile
    pictures to render.
    """

    def __init__(self, bucket: str, region: str, prefix: str = "", client=None) -> None:
        self._bucket = bucket
        self._region = region
        self._prefix = prefix
        self._client = client or boto3.client("s3", region_name=region)

    def public_url(self, key: str) -> str:
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"

    def upload(self, data: bytes, filename: str, content_type: str) -> StoredObject:
        key = object_key(filename, self._prefix)
        self._client.put_object(
            Bucket=self._bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        logger.info("Uploaded %d bytes to s3://%s/%s", len(data), self._bucket, key)
        return StoredObject(url=self.public_url(key), reference=key)

    def delete(self, reference: str) -> None:
        self._client.delete_object(Bucket=self._bucket, Key=reference)
        logger.info("Deleted s3://%s/%s", self._bucket, reference)

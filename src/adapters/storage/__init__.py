"""Object storage adapters."""

from .local import LocalObjectStorage
from .s3 import S3ObjectStorage

__all__ = ["LocalObjectStorage", "S3ObjectStorage"]

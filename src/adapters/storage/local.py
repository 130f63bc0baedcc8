"""
Local filesystem storage adapter - Implements ObjectStorage protocol.

Stores uploads under a directory that is expected to be served as static
files at ``public_url``. Intended for development and single-host setups.
"""

import logging
import uuid
from pathlib import Path

from src.domain.ports import StoredObject

logger = logging.getLogger(__name__)


def object_key(filename: str, prefix: str = "") -> str:
    """Random object name keeping the original extension."""
    suffix = Path(filename).suffix.lower()[:10]
    key = f"{uuid.uuid4().hex}{suffix}"
    return f"{prefix.strip('/')}/{key}" if prefix else key


class LocalObjectStorage:
    """Implements ObjectStorage protocol on the local filesystem."""

    def __init__(self, base_dir: str | Path, public_url: str) -> None:
        self._base_dir = Path(base_dir)
        self._public_url = public_url.rstrip("/")

    def upload(self, data: bytes, filename: str, content_type: str) -> StoredObject:
        self._base_dir.mkdir(parents=True, exist_ok=True)
        key = object_key(filename)
        (self._base_dir / key).write_bytes(data)
        logger.info("Stored %d bytes (%s) as %s", len(data), content_type, key)
        return StoredObject(url=f"{self._public_url}/{key}", reference=key)

    def delete(self, reference: str) -> None:
        # References are bare file names; never follow a path out of base_dir
        (self._base_dir / Path(reference).name).unlink(missing_ok=True)

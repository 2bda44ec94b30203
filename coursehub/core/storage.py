"""
Object Storage

Bucket/key blob store backed by the local filesystem. Files live under
settings.STORAGE_ROOT/<bucket>/<key> and are served by the /static mount,
so the returned URL is settings.STORAGE_BASE_URL/<bucket>/<key>.
"""

import logging
import re
import time
import uuid
from pathlib import Path
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from coursehub.core.config import settings
from coursehub.core.exceptions import UpstreamError, ValidationError


logger = logging.getLogger(__name__)

COURSES_BUCKET = "courses"
USERS_BUCKET = "users"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]")


def sanitize_filename(name: str, max_length: int = 50) -> str:
    """Replace anything but ASCII letters and digits with underscores."""
    return _UNSAFE_CHARS.sub("_", name)[:max_length]


def unique_image_key(prefix: str, extension: str = "jpeg") -> str:
    """Build a collision-resistant key like course-1700000000000-123456789.jpeg."""
    millis = int(time.time() * 1000)
    return f"{prefix}-{millis}-{uuid.uuid4().int % 10**9}.{extension}"


class LocalObjectStorage:
    """Filesystem implementation of put/delete on bucket keys."""

    def __init__(self, root: str, base_url: str):
        self._root = Path(root)
        self._base_url = base_url.rstrip("/")

    def _path(self, bucket: str, key: str) -> Path:
        path = (self._root / bucket / key).resolve()
        bucket_root = (self._root / bucket).resolve()
        if bucket_root not in path.parents:
            raise ValidationError(f"Invalid storage key: {key}")
        return path

    def url_for(self, bucket: str, key: str) -> str:
        """Public URL of a stored object."""
        return f"{self._base_url}/{bucket}/{key}"

    def key_from_url(self, bucket: str, url: str) -> Optional[str]:
        """Inverse of url_for; None if the URL is not in this bucket."""
        prefix = f"{self._base_url}/{bucket}/"
        if url and url.startswith(prefix):
            return url[len(prefix):]
        return None

    async def put(self, bucket: str, key: str, data: bytes, content_type: str) -> str:
        """
        Store bytes under bucket/key.

        Existing objects are never overwritten.

        Returns:
            Public URL of the stored object.

        Raises:
            UpstreamError: If the object exists or cannot be written.
        """
        path = self._path(bucket, key)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "xb") as f:
                f.write(data)

        try:
            await run_in_threadpool(_write)
        except OSError as e:
            logger.error("Failed to store %s/%s (%s): %s", bucket, key, content_type, e)
            raise UpstreamError(f"Failed to upload file: {e.strerror or e}")

        logger.info("Stored %s/%s (%d bytes, %s)", bucket, key, len(data), content_type)
        return self.url_for(bucket, key)

    async def delete(self, bucket: str, key: str) -> None:
        """Remove bucket/key. Missing objects are ignored."""
        path = self._path(bucket, key)
        try:
            await run_in_threadpool(path.unlink, True)
        except OSError as e:
            raise UpstreamError(f"Failed to delete file: {e.strerror or e}")


_storage: Optional[LocalObjectStorage] = None


def get_storage() -> LocalObjectStorage:
    """Get or create the shared storage instance (FastAPI dependency)."""
    global _storage
    if _storage is None:
        _storage = LocalObjectStorage(settings.STORAGE_ROOT, settings.STORAGE_BASE_URL)
    return _storage

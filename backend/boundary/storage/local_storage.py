"""
Local filesystem dataset storage.

Keys are relative paths under a root directory. Used in development and
tests in place of the S3 bucket.

Dependencies: pathlib
System role: Development storage backend for data source files and datasets
"""

import logging
from datetime import datetime
from pathlib import Path

from backend.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class LocalDatasetStorage:
    """Dataset storage rooted at a local directory."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()

    def _path_for(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if self._root not in path.parents:
            raise StorageError("Storage key escapes the storage root", key=key)
        return path

    def read_bytes(self, key: str) -> bytes:
        path = self._path_for(key)
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}", key=key) from e

    def write_bytes(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> int:
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}", key=key) from e
        logger.debug("Wrote %d bytes to %s", len(data), path)
        return len(data)

    def delete(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)

    def exists(self, key: str) -> bool:
        return self._path_for(key).is_file()

    def download_url(self, key: str, filename: str | None = None) -> tuple[str, datetime | None]:
        """Local files have no signed URL; the file URI never expires."""
        return self._path_for(key).as_uri(), None

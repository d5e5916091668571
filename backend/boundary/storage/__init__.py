"""
Dataset storage boundary.

Selects between the local filesystem (dev) and S3 (prod) backends based on
STORAGE_BACKEND. Both expose the same DatasetStorage interface.

Dependencies: backend.boundary.aws, backend.configs
System role: Dataset storage instantiation and selection
"""

import logging
from datetime import datetime
from functools import lru_cache
from typing import Protocol

from backend.boundary.aws.s3_client import S3DatasetClient
from backend.boundary.storage.local_storage import LocalDatasetStorage
from backend.configs import get_settings

logger = logging.getLogger(__name__)


class DatasetStorage(Protocol):
    """Blob storage used by the ingest and encode stages."""

    def read_bytes(self, key: str) -> bytes: ...

    def write_bytes(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> int: ...

    def delete(self, key: str) -> None: ...

    def exists(self, key: str) -> bool: ...

    def download_url(
        self, key: str, filename: str | None = None
    ) -> tuple[str, datetime | None]: ...


@lru_cache
def get_dataset_storage() -> DatasetStorage:
    """
    Factory function to get dataset storage based on environment configuration.

    Returns:
        LocalDatasetStorage or S3DatasetClient: Configured storage instance

    Raises:
        ValueError: If STORAGE_BACKEND is invalid
    """
    storage = get_settings().storage
    backend = storage.backend.lower()

    if backend == "local":
        logger.info(f"{__name__}:get_dataset_storage - Using local storage at {storage.local_root}")
        return LocalDatasetStorage(storage.local_root)

    if backend == "s3":
        logger.info(f"{__name__}:get_dataset_storage - Using S3 bucket {storage.bucket}")
        return S3DatasetClient(
            bucket=storage.bucket,
            region=storage.region,
            endpoint_url=storage.endpoint_url,
            download_url_expiry_seconds=storage.download_url_expiry_seconds,
        )

    raise ValueError(
        f"Invalid STORAGE_BACKEND: {storage.backend}. "
        f"Must be 'local' (dev) or 's3' (production)."
    )


__all__ = [
    "DatasetStorage",
    "LocalDatasetStorage",
    "S3DatasetClient",
    "get_dataset_storage",
]

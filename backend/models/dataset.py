"""
Dataset domain models and schemas.

Response schemas for produced datasets, previews and download links.

Dependencies: pydantic
System role: Dataset API contracts
"""

import uuid
from datetime import datetime
from typing import Any

from pydantic import Field

from backend.models.common import CamelModel


class DatasetResponse(CamelModel):
    """Dataset as returned by the API."""

    id: uuid.UUID
    project_id: uuid.UUID
    job_id: uuid.UUID
    data_source_id: uuid.UUID
    name: str
    format: str
    record_count: int
    file_size: int
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="dataset_metadata")
    created_at: datetime
    updated_at: datetime


class DatasetEnvelope(CamelModel):
    """{"dataset": {...}} payload."""

    dataset: DatasetResponse


class DatasetPreview(CamelModel):
    """First rows of a dataset file."""

    columns: list[str]
    rows: list[dict[str, Any]]
    total_rows: int


class DatasetPreviewEnvelope(CamelModel):
    """{"preview": {...}} payload."""

    preview: DatasetPreview


class DatasetDownload(CamelModel):
    """Download link for a dataset file."""

    dataset_id: uuid.UUID
    name: str
    format: str
    file_size: int
    download_url: str
    expires_at: datetime | None = None


class DatasetDownloadEnvelope(CamelModel):
    """{"download": {...}} payload."""

    download: DatasetDownload

"""
Dataset storage configuration.

Settings for where raw data source files are read from and where produced
datasets are written (local filesystem for dev, S3 for prod).

Dependencies: pydantic_settings
System role: Dataset storage configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Settings for dataset and data source file storage."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STORAGE_",
        case_sensitive=False,
        extra="ignore",
    )

    backend: str = Field(
        default="local",
        description="Storage backend: 'local' for dev, 's3' for production",
    )
    local_root: str = Field(
        default=".data",
        description="Root directory for the local storage backend",
    )
    bucket: str = Field(
        default="dataset-pipeline-dev-datasets",
        description="S3 bucket for data source files and datasets",
    )
    region: str = Field(default="ap-southeast-2", description="AWS region of the bucket")
    endpoint_url: str | None = Field(
        default=None,
        description="Custom S3 endpoint (MinIO, LocalStack)",
    )
    download_url_expiry_seconds: int = Field(
        default=3600,
        description="Lifetime of presigned dataset download URLs",
    )

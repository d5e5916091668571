"""
Processing pipeline configuration settings.

Controls how jobs are dispatched to workers and how stages behave.

Dependencies: pydantic, pydantic_settings
System role: Job pipeline configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineSettings(BaseSettings):
    """Settings for the processing job pipeline."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PIPELINE_",
        case_sensitive=False,
        extra="ignore",
    )

    dispatch_mode: str = Field(
        default="celery",
        description="'celery' to queue jobs on the broker, 'background' to run in-process (dev)",
    )
    hash_salt: str = Field(
        default="",
        description="Salt mixed into values redacted with the 'hash' method",
    )
    hash_length: int = Field(
        default=16,
        description="Hex characters kept from the sha256 digest for hashed values",
    )
    progress_report_every: int = Field(
        default=500,
        description="Records between intra-stage progress writes",
    )

"""
Job domain models and schemas.

Request/response schemas for processing job creation, status, progress and
logs.

Dependencies: pydantic
System role: Processing job API contracts
"""

import uuid
from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from backend.boundary.db.models import JobLogLevel, JobStatus, OutputFormat
from backend.core.job_pipeline import ProgressSnapshot
from backend.models.common import CamelModel

MAX_OUTPUT_NAME_LENGTH = 200


class CreateJobRequest(CamelModel):
    """Request body for creating a processing job."""

    schema_mapping_id: uuid.UUID = Field(description="Schema mapping to apply")
    output_format: OutputFormat = Field(description="json, csv or jsonl")
    output_name: str | None = Field(
        default=None,
        max_length=MAX_OUTPUT_NAME_LENGTH,
        description="Dataset name (defaults to '<data source name>-output')",
    )

    @field_validator("output_name")
    @classmethod
    def blank_name_is_default(cls, v: str | None) -> str | None:
        """Treat a blank name as not supplied."""
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v


class JobResponse(CamelModel):
    """Processing job as returned by the API."""

    id: uuid.UUID
    project_id: uuid.UUID
    data_source_id: uuid.UUID
    data_source_name: str | None = None
    schema_mapping_id: uuid.UUID
    status: JobStatus
    output_format: OutputFormat
    output_name: str | None
    input_record_count: int
    output_record_count: int | None
    pii_detected_count: int | None
    progress: int
    current_stage: str | None
    error_message: str | None
    started_at: datetime | None
    completed_at: datetime | None
    created_at: datetime


class JobEnvelope(CamelModel):
    """{"job": {...}} payload."""

    job: JobResponse


class ProgressResponse(CamelModel):
    """Job progress for polling clients."""

    job_id: uuid.UUID
    status: JobStatus
    current_stage: str | None
    overall_progress: int
    processed_records: int
    total_records: int
    estimated_time_remaining: int | None = Field(
        description="Seconds until completion, only while processing"
    )
    pii_detected_count: int | None

    @classmethod
    def from_snapshot(cls, snapshot: ProgressSnapshot) -> "ProgressResponse":
        return cls.model_validate(snapshot)


class ProgressEnvelope(CamelModel):
    """{"progress": {...}} payload."""

    progress: ProgressResponse


class JobLogResponse(CamelModel):
    """One job log entry."""

    id: int
    level: JobLogLevel
    message: str
    details: dict[str, Any] | None
    timestamp: datetime = Field(validation_alias="created_at")

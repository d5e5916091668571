"""
Processing job ORM model.

One row per requested transformation run of a data source into a dataset.
Status, progress and current stage are updated by the job runner as stages
complete; cancel and retry are applied by the job service.

Dependencies: sqlalchemy, backend.boundary.db.base
System role: Processing job persistence (job record store)
"""

import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.boundary.db.base import (
    Base,
    OrganisationScopedMixin,
    TimestampMixin,
    UUIDMixin,
)


class JobStatus(str, enum.Enum):
    """
    Processing job lifecycle states.

    PENDING: Job stored and queued, awaiting a worker claim
    PROCESSING: A worker owns the job and is running stages
    COMPLETED: All stages finished; a dataset was produced
    FAILED: A stage raised; see error_message
    CANCELLED: Cancelled by a user before finishing
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class OutputFormat(str, enum.Enum):
    """Serialization formats a job can produce."""

    JSON = "json"
    CSV = "csv"
    JSONL = "jsonl"


class ProcessingJobModel(Base, UUIDMixin, TimestampMixin, OrganisationScopedMixin):
    """
    Processing job ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        organisation_id: Owning organisation
        project_id: Project the job was requested in
        data_source_id: Borrowed data source being transformed
        schema_mapping_id: Borrowed mapping applied during processing
        status: Lifecycle state (see JobStatus)
        output_format: Requested output format
        output_name: Name given to the produced dataset
        input_record_count: Data source record count snapshot taken at creation
        output_record_count: Records written; set on completion only
        pii_detected_count: PII findings; set on completion only
        progress: Percentage complete (0-100), non-decreasing within a run
        current_stage: Tag of the stage being executed
        error_message: Failure reason when FAILED
        started_at: When the current run was claimed by a worker
        completed_at: Set iff status is terminal
        created_at: Creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)

    Relationships:
        logs: One-to-many with JobLogModel
        dataset: One-to-one with DatasetModel (completed jobs only)
    """

    __tablename__ = "processing_jobs"
    __table_args__ = (
        Index("processing_jobs_org_status_idx", "organisation_id", "status"),
    )

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    data_source_id: Mapped[UUID] = mapped_column(
        ForeignKey("data_sources.id", ondelete="CASCADE"),
        nullable=False,
    )
    schema_mapping_id: Mapped[UUID] = mapped_column(
        ForeignKey("schema_mappings.id", ondelete="CASCADE"),
        nullable=False,
    )

    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=JobStatus.PENDING,
        index=True,
    )
    output_format: Mapped[OutputFormat] = mapped_column(
        Enum(OutputFormat, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    output_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    input_record_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    output_record_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pii_detected_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    progress: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Progress percentage (0-100)",
    )
    current_stage: Mapped[str | None] = mapped_column(String(50), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    data_source = relationship("DataSourceModel", lazy="raise")
    schema_mapping = relationship("SchemaMappingModel", lazy="raise")
    logs = relationship(
        "JobLogModel",
        back_populates="job",
        cascade="all, delete-orphan",
        lazy="raise",
    )
    dataset = relationship(
        "DatasetModel",
        back_populates="job",
        uselist=False,
        lazy="raise",
    )

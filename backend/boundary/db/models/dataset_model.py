"""
Dataset ORM model.

Output artifact of a successfully completed processing job. Exactly one row
per completed job, inserted in the same transaction as the job's transition
to COMPLETED.

Dependencies: sqlalchemy, backend.boundary.db.base
System role: Dataset persistence
"""

from uuid import UUID

from sqlalchemy import JSON, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.boundary.db.base import (
    Base,
    OrganisationScopedMixin,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDMixin,
)


class DatasetModel(
    Base, UUIDMixin, TimestampMixin, OrganisationScopedMixin, SoftDeleteMixin
):
    """
    Dataset ORM model.

    Attributes:
        id: UUID primary key
        organisation_id: Owning organisation
        project_id: Project the dataset belongs to
        job_id: Producing job (unique)
        data_source_id: Source the records came from
        name: Dataset display name (job output_name)
        format: Serialization format (json, csv, jsonl)
        file_path: Storage key of the written file
        file_size: Size in bytes
        record_count: Number of records written
        dataset_metadata: Free-form metadata (pii counts, stage timings)
        deleted_at: Soft delete marker
    """

    __tablename__ = "datasets"

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    job_id: Mapped[UUID] = mapped_column(
        ForeignKey("processing_jobs.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    data_source_id: Mapped[UUID] = mapped_column(
        ForeignKey("data_sources.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    format: Mapped[str] = mapped_column(String(20), nullable=False)
    file_path: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    record_count: Mapped[int] = mapped_column(Integer, nullable=False)
    dataset_metadata: Mapped[dict] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
    )

    job = relationship("ProcessingJobModel", back_populates="dataset")

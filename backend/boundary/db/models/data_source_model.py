"""
Data source ORM model.

A file upload or connected system whose records feed processing jobs.
Only sources in READY status may be processed.

Dependencies: sqlalchemy, backend.boundary.db.base
System role: Data source persistence (read side)
"""

import enum
from uuid import UUID

from sqlalchemy import JSON, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.boundary.db.base import (
    Base,
    OrganisationScopedMixin,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDMixin,
)


class DataSourceStatus(str, enum.Enum):
    """
    Data source preparation states.

    PENDING: Registered, upload or sync not finished
    PROCESSING: Being validated or counted
    READY: Records available for jobs
    ERROR: Preparation failed; see error_message
    """

    PENDING = "pending"
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"


class DataSourceModel(
    Base, UUIDMixin, TimestampMixin, OrganisationScopedMixin, SoftDeleteMixin
):
    """
    Data source ORM model.

    Attributes:
        id: UUID primary key
        organisation_id: Owning organisation
        project_id: Parent project
        name: Display name (used for default job output names)
        type: Source kind (file, teamwork_desk)
        format: Record encoding of the stored file (json, jsonl, csv)
        file_path: Storage key of the raw records
        file_size: Raw file size in bytes
        record_count: Number of records, known once READY
        status: Preparation state
        error_message: Preparation failure reason
        source_metadata: Free-form metadata
    """

    __tablename__ = "data_sources"

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False, default="file")
    format: Mapped[str | None] = mapped_column(String(20), nullable=True)
    file_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    record_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[DataSourceStatus] = mapped_column(
        Enum(DataSourceStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=DataSourceStatus.PENDING,
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    source_metadata: Mapped[dict] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
    )

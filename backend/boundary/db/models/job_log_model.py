"""
Job log ORM model.

Append-only audit trail per processing job. Entries are never updated or
deleted by the application; the autoincrement id gives a total order.

Dependencies: sqlalchemy, backend.boundary.db.base
System role: Job log sink persistence
"""

import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.boundary.db.base import Base, utcnow


class JobLogLevel(str, enum.Enum):
    """Severity of a job log entry."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class JobLogModel(Base):
    """
    Job log entry.

    Attributes:
        id: Autoincrement primary key (creation order)
        job_id: Owning processing job
        level: Entry severity
        message: Human-readable message
        details: Optional structured payload
        created_at: Write timestamp (UTC)
    """

    __tablename__ = "job_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_id: Mapped[UUID] = mapped_column(
        ForeignKey("processing_jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    level: Mapped[JobLogLevel] = mapped_column(
        Enum(JobLogLevel, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    job = relationship("ProcessingJobModel", back_populates="logs")

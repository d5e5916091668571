"""
Job log CRUD operations.

Append and read operations for JobLogModel. There is deliberately no update
or delete: log entries are immutable once written.

Dependencies: sqlalchemy, backend.boundary.db.models.job_log_model
System role: Job log sink
"""

from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from backend.boundary.db.CRUD.base_crud import BaseCRUD
from backend.boundary.db.models.job_log_model import JobLogLevel, JobLogModel


class JobLogCRUD(BaseCRUD[JobLogModel]):
    """CRUD operations for JobLogModel."""

    def __init__(self) -> None:
        """Initialize JobLogCRUD with JobLogModel."""
        super().__init__(JobLogModel)

    async def append(
        self,
        session: AsyncSession,
        job_id: UUID,
        level: JobLogLevel,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> JobLogModel:
        """
        Append a log entry to a job.

        Args:
            session: Async database session
            job_id: Owning job UUID
            level: Entry severity
            message: Human-readable message
            details: Optional structured payload

        Returns:
            The persisted JobLogModel
        """
        return await self.create(
            session,
            job_id=job_id,
            level=level,
            message=message,
            details=details,
        )

    async def list_for_job(
        self,
        session: AsyncSession,
        job_id: UUID,
        limit: int | None = None,
        offset: int = 0,
        newest_first: bool = True,
    ) -> tuple[Sequence[JobLogModel], int]:
        """
        List a job's log entries with the unpaged total.

        Args:
            session: Async database session
            job_id: Job UUID
            limit: Page size
            offset: Rows to skip
            newest_first: Order by descending write order when True

        Returns:
            tuple: (entries on this page, total entries for the job)
        """
        order = JobLogModel.id.desc() if newest_first else JobLogModel.id.asc()
        return await self.list_page(
            session,
            JobLogModel.job_id == job_id,
            order_by=order,
            limit=limit,
            offset=offset,
        )


job_log_crud = JobLogCRUD()

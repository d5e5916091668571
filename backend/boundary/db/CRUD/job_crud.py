"""
Processing job CRUD operations.

Provides Create, Read, Update operations for ProcessingJobModel with
job-specific queries for project listing and status tracking, plus the
compare-and-swap write every status change goes through.

Dependencies: sqlalchemy, backend.boundary.db.models.job_model
System role: Job record store
"""

from datetime import datetime
from typing import Iterable, Sequence
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.boundary.db.CRUD.base_crud import BaseCRUD
from backend.boundary.db.models.job_model import JobStatus, ProcessingJobModel


class JobCRUD(BaseCRUD[ProcessingJobModel]):
    """
    CRUD operations for ProcessingJobModel.

    Extends BaseCRUD with project-scoped listing, the pending sweep query and
    conditional (optimistic) status updates.
    """

    def __init__(self) -> None:
        """Initialize JobCRUD with ProcessingJobModel."""
        super().__init__(ProcessingJobModel)

    async def list_stale_pending(
        self,
        session: AsyncSession,
        older_than: datetime,
        limit: int,
    ) -> Sequence[ProcessingJobModel]:
        """
        Retrieve PENDING jobs last touched before a cutoff, oldest first.

        Args:
            session: Async database session
            older_than: Only jobs with updated_at before this are returned
            limit: Maximum number of jobs to return

        Returns:
            Sequence of stranded pending jobs
        """
        return await self.list_where(
            session,
            ProcessingJobModel.status == JobStatus.PENDING,
            ProcessingJobModel.updated_at < older_than,
            order_by=ProcessingJobModel.updated_at,
            limit=limit,
        )

    async def list_stale_processing(
        self,
        session: AsyncSession,
        older_than: datetime,
        limit: int,
    ) -> Sequence[ProcessingJobModel]:
        """
        Retrieve PROCESSING jobs whose run stopped writing before a cutoff.

        Args:
            session: Async database session
            older_than: Only jobs with updated_at before this are returned
            limit: Maximum number of jobs to return

        Returns:
            Sequence of abandoned running jobs, oldest first
        """
        return await self.list_where(
            session,
            ProcessingJobModel.status == JobStatus.PROCESSING,
            ProcessingJobModel.updated_at < older_than,
            order_by=ProcessingJobModel.updated_at,
            limit=limit,
        )

    async def list_for_project(
        self,
        session: AsyncSession,
        project_id: UUID,
        status: JobStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[Sequence[ProcessingJobModel], int]:
        """
        List a project's jobs, newest first, with the unpaged total.

        Args:
            session: Async database session
            project_id: Project UUID
            status: Optional status filter
            limit: Page size
            offset: Rows to skip

        Returns:
            tuple: (jobs on this page, total matching jobs)
        """
        criteria = [ProcessingJobModel.project_id == project_id]
        if status is not None:
            criteria.append(ProcessingJobModel.status == status)

        return await self.list_page(
            session,
            *criteria,
            order_by=(ProcessingJobModel.created_at.desc(), ProcessingJobModel.id),
            limit=limit,
            offset=offset,
            options=(selectinload(ProcessingJobModel.data_source),),
        )

    async def compare_and_set(
        self,
        session: AsyncSession,
        id: UUID,
        expected: JobStatus | Iterable[JobStatus],
        *,
        updated_before: datetime | None = None,
        **values,
    ) -> ProcessingJobModel | None:
        """
        Update a job only if its status is still one of the expected values.

        Runs as a single UPDATE ... WHERE id = :id AND status IN (...)
        RETURNING, so the status check and the write cannot interleave with
        another writer.

        Args:
            session: Async database session
            id: Job UUID
            expected: Status (or statuses) the row must currently have
            updated_before: If set, the row must also be last updated before this
            **values: Columns to write

        Returns:
            Updated ProcessingJobModel, or None if the job is missing or its
            status no longer matches
        """
        if isinstance(expected, JobStatus):
            expected = (expected,)
        criteria = [
            ProcessingJobModel.id == id,
            ProcessingJobModel.status.in_(list(expected)),
        ]
        if updated_before is not None:
            criteria.append(ProcessingJobModel.updated_at < updated_before)
        stmt = (
            update(ProcessingJobModel)
            .where(*criteria)
            .values(**values)
            .returning(ProcessingJobModel)
            .execution_options(populate_existing=True, synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_with_data_source(
        self,
        session: AsyncSession,
        id: UUID,
    ) -> ProcessingJobModel | None:
        """
        Retrieve a job with its data source eagerly loaded.

        Args:
            session: Async database session
            id: Job UUID

        Returns:
            ProcessingJobModel with data_source loaded, or None
        """
        stmt = (
            select(ProcessingJobModel)
            .where(ProcessingJobModel.id == id)
            .options(selectinload(ProcessingJobModel.data_source))
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def last_completed_at(self, session: AsyncSession, project_id: UUID) -> datetime | None:
        """
        Completion time of a project's most recently completed job.

        Args:
            session: Async database session
            project_id: Project UUID

        Returns:
            Latest completed_at, or None if no job has completed
        """
        stmt = select(func.max(ProcessingJobModel.completed_at)).where(
            ProcessingJobModel.project_id == project_id,
            ProcessingJobModel.status == JobStatus.COMPLETED,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_status(self, session: AsyncSession, id: UUID) -> JobStatus | None:
        """
        Read only the current status column of a job.

        Args:
            session: Async database session
            id: Job UUID

        Returns:
            Current JobStatus, or None if the job does not exist
        """
        stmt = select(ProcessingJobModel.status).where(ProcessingJobModel.id == id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()


job_crud = JobCRUD()

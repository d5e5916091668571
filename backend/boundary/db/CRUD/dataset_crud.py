"""
Dataset CRUD operations.

Provides Create, Read and soft-delete operations for DatasetModel.

Dependencies: sqlalchemy, backend.boundary.db.models.dataset_model
System role: Dataset persistence operations
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.boundary.db.base import utcnow
from backend.boundary.db.CRUD.base_crud import BaseCRUD
from backend.boundary.db.models.dataset_model import DatasetModel


class DatasetCRUD(BaseCRUD[DatasetModel]):
    """CRUD operations for DatasetModel, hiding soft-deleted rows."""

    def __init__(self) -> None:
        """Initialize DatasetCRUD with DatasetModel."""
        super().__init__(DatasetModel)

    async def get_live(self, session: AsyncSession, id: UUID) -> DatasetModel | None:
        """
        Retrieve a dataset that has not been soft-deleted.

        Args:
            session: Async database session
            id: Dataset UUID

        Returns:
            DatasetModel if found and live, None otherwise
        """
        stmt = select(DatasetModel).where(
            DatasetModel.id == id,
            DatasetModel.deleted_at.is_(None),
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_job_id(
        self,
        session: AsyncSession,
        job_id: UUID,
    ) -> DatasetModel | None:
        """
        Retrieve the dataset produced by a job.

        Args:
            session: Async database session
            job_id: Producing job UUID

        Returns:
            DatasetModel if the job produced one, None otherwise
        """
        stmt = select(DatasetModel).where(DatasetModel.job_id == job_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_project(
        self,
        session: AsyncSession,
        project_id: UUID,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[Sequence[DatasetModel], int]:
        """
        List a project's live datasets, newest first, with the unpaged total.

        Args:
            session: Async database session
            project_id: Project UUID
            limit: Page size
            offset: Rows to skip

        Returns:
            tuple: (datasets on this page, total live datasets)
        """
        criteria = (
            DatasetModel.project_id == project_id,
            DatasetModel.deleted_at.is_(None),
        )
        return await self.list_page(
            session,
            *criteria,
            order_by=(DatasetModel.created_at.desc(), DatasetModel.id),
            limit=limit,
            offset=offset,
        )

    async def count_live_for_project(self, session: AsyncSession, project_id: UUID) -> int:
        """Count a project's datasets that have not been soft-deleted."""
        return await self.count_where(
            session,
            DatasetModel.project_id == project_id,
            DatasetModel.deleted_at.is_(None),
        )

    async def soft_delete(self, session: AsyncSession, id: UUID) -> DatasetModel | None:
        """
        Mark a dataset deleted.

        Args:
            session: Async database session
            id: Dataset UUID

        Returns:
            Updated DatasetModel if found, None otherwise
        """
        return await self.update_by_id(session, id, deleted_at=utcnow())


dataset_crud = DatasetCRUD()

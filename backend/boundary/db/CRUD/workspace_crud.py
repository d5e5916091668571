"""
Workspace CRUD operations.

Access to the entities a processing job borrows: projects, data sources and
schema mappings. Projects and data sources are written by the workspace
service, so only lookups and counts live here; schema mappings are managed
through this API and have a full write path.

Dependencies: sqlalchemy, backend.boundary.db.models
System role: Workspace lookups and schema mapping store
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.boundary.db.base import utcnow
from backend.boundary.db.CRUD.base_crud import BaseCRUD
from backend.boundary.db.models.data_source_model import DataSourceModel
from backend.boundary.db.models.project_model import ProjectModel
from backend.boundary.db.models.schema_mapping_model import SchemaMappingModel


class ProjectCRUD(BaseCRUD[ProjectModel]):
    """CRUD operations for ProjectModel."""

    def __init__(self) -> None:
        """Initialize ProjectCRUD with ProjectModel."""
        super().__init__(ProjectModel)

    async def get_live(self, session: AsyncSession, id: UUID) -> ProjectModel | None:
        """
        Retrieve a project that has not been soft-deleted.

        Args:
            session: Async database session
            id: Project UUID

        Returns:
            ProjectModel if found and live, None otherwise
        """
        stmt = select(ProjectModel).where(
            ProjectModel.id == id,
            ProjectModel.deleted_at.is_(None),
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_organisation(
        self,
        session: AsyncSession,
        organisation_id: UUID,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[Sequence[ProjectModel], int]:
        """
        List an organisation's live projects, most recently updated first.

        Args:
            session: Async database session
            organisation_id: Owning organisation
            limit: Page size
            offset: Rows to skip

        Returns:
            tuple: (projects on this page, total live projects)
        """
        return await self.list_page(
            session,
            ProjectModel.organisation_id == organisation_id,
            ProjectModel.deleted_at.is_(None),
            order_by=(ProjectModel.updated_at.desc(), ProjectModel.id),
            limit=limit,
            offset=offset,
        )


class DataSourceCRUD(BaseCRUD[DataSourceModel]):
    """CRUD operations for DataSourceModel."""

    def __init__(self) -> None:
        """Initialize DataSourceCRUD with DataSourceModel."""
        super().__init__(DataSourceModel)

    async def get_live_in_project(
        self,
        session: AsyncSession,
        id: UUID,
        project_id: UUID,
    ) -> DataSourceModel | None:
        """
        Retrieve a live data source only if it belongs to the given project.

        Args:
            session: Async database session
            id: Data source UUID
            project_id: Project the data source must belong to

        Returns:
            DataSourceModel if found, live and in the project, None otherwise
        """
        stmt = select(DataSourceModel).where(
            DataSourceModel.id == id,
            DataSourceModel.project_id == project_id,
            DataSourceModel.deleted_at.is_(None),
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def count_live_in_project(self, session: AsyncSession, project_id: UUID) -> int:
        """Count a project's data sources that have not been soft-deleted."""
        return await self.count_where(
            session,
            DataSourceModel.project_id == project_id,
            DataSourceModel.deleted_at.is_(None),
        )


class SchemaMappingCRUD(BaseCRUD[SchemaMappingModel]):
    """CRUD operations for SchemaMappingModel, hiding soft-deleted rows."""

    def __init__(self) -> None:
        """Initialize SchemaMappingCRUD with SchemaMappingModel."""
        super().__init__(SchemaMappingModel)

    async def get_live(self, session: AsyncSession, id: UUID) -> SchemaMappingModel | None:
        """
        Retrieve a live mapping with its data source eagerly loaded.

        Args:
            session: Async database session
            id: Schema mapping UUID

        Returns:
            SchemaMappingModel if found and live, None otherwise
        """
        stmt = (
            select(SchemaMappingModel)
            .where(
                SchemaMappingModel.id == id,
                SchemaMappingModel.deleted_at.is_(None),
            )
            .options(selectinload(SchemaMappingModel.data_source))
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_in_project(
        self,
        session: AsyncSession,
        id: UUID,
        project_id: UUID,
    ) -> SchemaMappingModel | None:
        """
        Retrieve a live mapping only if it belongs to the given project.

        Args:
            session: Async database session
            id: Schema mapping UUID
            project_id: Project the mapping must belong to

        Returns:
            SchemaMappingModel if found in the project, None otherwise
        """
        stmt = select(SchemaMappingModel).where(
            SchemaMappingModel.id == id,
            SchemaMappingModel.project_id == project_id,
            SchemaMappingModel.deleted_at.is_(None),
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_live_for_data_source(
        self,
        session: AsyncSession,
        data_source_id: UUID,
    ) -> SchemaMappingModel | None:
        """
        Retrieve the live mapping of a data source, if any.

        Args:
            session: Async database session
            data_source_id: Data source UUID

        Returns:
            SchemaMappingModel if the data source has a live mapping, None otherwise
        """
        stmt = select(SchemaMappingModel).where(
            SchemaMappingModel.data_source_id == data_source_id,
            SchemaMappingModel.deleted_at.is_(None),
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_project(
        self,
        session: AsyncSession,
        project_id: UUID,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[Sequence[SchemaMappingModel], int]:
        """
        List a project's live mappings, newest first, with the unpaged total.

        Args:
            session: Async database session
            project_id: Project UUID
            limit: Page size
            offset: Rows to skip

        Returns:
            tuple: (mappings on this page, total live mappings)
        """
        return await self.list_page(
            session,
            SchemaMappingModel.project_id == project_id,
            SchemaMappingModel.deleted_at.is_(None),
            order_by=(SchemaMappingModel.created_at.desc(), SchemaMappingModel.id),
            limit=limit,
            offset=offset,
            options=(selectinload(SchemaMappingModel.data_source),),
        )

    async def soft_delete(self, session: AsyncSession, id: UUID) -> SchemaMappingModel | None:
        """
        Mark a mapping deleted. Jobs that used it keep their reference.

        Args:
            session: Async database session
            id: Schema mapping UUID

        Returns:
            Updated SchemaMappingModel if found, None otherwise
        """
        return await self.update_by_id(session, id, deleted_at=utcnow(), is_active=False)


project_crud = ProjectCRUD()
data_source_crud = DataSourceCRUD()
schema_mapping_crud = SchemaMappingCRUD()

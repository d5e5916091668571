"""
Project service orchestrator.

Read-only project views for the caller's organisation, with the data source
and dataset counts clients show next to each project.

Dependencies: backend.boundary.db.CRUD
System role: Project query orchestration
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from backend.application.services.access import get_accessible_project
from backend.boundary.db.CRUD import data_source_crud, dataset_crud, job_crud, project_crud
from backend.boundary.db.models import ProjectModel
from backend.models.auth import Principal
from backend.models.common import Pagination
from backend.models.project import ProjectResponse


class ProjectService:
    """Project service orchestrator."""

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize project service.

        Args:
            db: AsyncSession for database operations
        """
        self.db = db

    async def _to_response(self, project: ProjectModel) -> ProjectResponse:
        response = ProjectResponse.model_validate(project)
        return response.model_copy(
            update={
                "data_source_count": await data_source_crud.count_live_in_project(self.db, project.id),
                "dataset_count": await dataset_crud.count_live_for_project(self.db, project.id),
                "last_processed_at": await job_crud.last_completed_at(self.db, project.id),
            }
        )

    async def list_projects(
        self,
        principal: Principal,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[ProjectResponse], Pagination]:
        """
        List the organisation's live projects, most recently updated first.

        Returns:
            tuple: (projects on the page, pagination metadata)
        """
        projects, total = await project_crud.list_for_organisation(
            self.db,
            principal.organisation_id,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        return (
            [await self._to_response(project) for project in projects],
            Pagination.from_counts(page, page_size, total),
        )

    async def get_project(self, project_id: UUID, principal: Principal) -> ProjectResponse:
        """
        Get a single project.

        Raises:
            NotFoundError: Project missing or deleted
            ForbiddenError: Project belongs to another organisation
        """
        project = await get_accessible_project(self.db, project_id, principal)
        return await self._to_response(project)

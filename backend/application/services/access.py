"""
Tenant access checks shared by services.

Dependencies: backend.boundary.db.CRUD
System role: Organisation-scoped authorisation
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from backend.boundary.db.CRUD import project_crud
from backend.boundary.db.models import ProjectModel
from backend.core.exceptions import ForbiddenError, NotFoundError
from backend.models.auth import Principal


def ensure_same_organisation(organisation_id: UUID, principal: Principal, resource: str) -> None:
    """
    Reject access to a row owned by another organisation.

    Raises:
        ForbiddenError: If the row belongs to a different organisation
    """
    if organisation_id != principal.organisation_id:
        raise ForbiddenError(f"Access denied to this {resource}")


async def get_accessible_project(
    db: AsyncSession,
    project_id: UUID,
    principal: Principal,
) -> ProjectModel:
    """
    Load a live project the caller's organisation owns.

    Raises:
        NotFoundError: If the project does not exist or was deleted
        ForbiddenError: If the project belongs to another organisation
    """
    project = await project_crud.get_live(db, project_id)
    if project is None:
        raise NotFoundError("project", str(project_id))
    ensure_same_organisation(project.organisation_id, principal, "project")
    return project

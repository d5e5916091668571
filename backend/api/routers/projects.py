"""
Project API endpoints.

Routes:
    GET /projects
    GET /projects/{project_id}

Dependencies: backend.application.services.project_service, backend.models
System role: Project HTTP API (read only)
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from backend.api.deps import get_current_principal, get_project_service
from backend.api.routers.router_utils import PageParams, page_params
from backend.application.services.project_service import ProjectService
from backend.models.auth import Principal
from backend.models.common import DataResponse, PaginatedResponse
from backend.models.project import ProjectEnvelope, ProjectResponse

router = APIRouter(tags=["projects"])


@router.get("/projects", response_model=PaginatedResponse[ProjectResponse])
async def list_projects(
    paging: PageParams = Depends(page_params),
    principal: Principal = Depends(get_current_principal),
    project_service: ProjectService = Depends(get_project_service),
) -> PaginatedResponse[ProjectResponse]:
    """List the caller's organisation's projects, most recently updated first."""
    projects, pagination = await project_service.list_projects(
        principal, page=paging.page, page_size=paging.page_size
    )
    return PaginatedResponse(data=projects, pagination=pagination)


@router.get("/projects/{project_id}", response_model=DataResponse[ProjectEnvelope])
async def get_project(
    project_id: UUID,
    principal: Principal = Depends(get_current_principal),
    project_service: ProjectService = Depends(get_project_service),
) -> DataResponse[ProjectEnvelope]:
    """Get a single project with its counts."""
    project = await project_service.get_project(project_id, principal)
    return DataResponse(data=ProjectEnvelope(project=project))

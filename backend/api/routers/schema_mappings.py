"""
Schema mapping API endpoints.

Routes:
    GET    /projects/{project_id}/schema-mappings
    POST   /projects/{project_id}/schema-mappings
    GET    /schema-mappings/{mapping_id}
    PATCH  /schema-mappings/{mapping_id}
    DELETE /schema-mappings/{mapping_id}

Dependencies: backend.application.services.schema_mapping_service, backend.models
System role: Schema mapping HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from backend.api.deps import get_current_principal, get_schema_mapping_service, require_role
from backend.api.routers.router_utils import PageParams, page_params
from backend.application.services.schema_mapping_service import SchemaMappingService
from backend.models.auth import Principal, Role
from backend.models.common import DataResponse, PaginatedResponse
from backend.models.schema_mapping import (
    CreateSchemaMappingRequest,
    SchemaMappingEnvelope,
    SchemaMappingResponse,
    UpdateSchemaMappingRequest,
)

router = APIRouter(tags=["schema-mappings"])

require_editor = require_role(Role.ADMIN, Role.EDITOR)


@router.get(
    "/projects/{project_id}/schema-mappings",
    response_model=PaginatedResponse[SchemaMappingResponse],
)
async def list_schema_mappings(
    project_id: UUID,
    paging: PageParams = Depends(page_params),
    principal: Principal = Depends(get_current_principal),
    mapping_service: SchemaMappingService = Depends(get_schema_mapping_service),
) -> PaginatedResponse[SchemaMappingResponse]:
    """List a project's schema mappings, newest first."""
    mappings, pagination = await mapping_service.list_mappings(
        project_id, principal, page=paging.page, page_size=paging.page_size
    )
    return PaginatedResponse(data=mappings, pagination=pagination)


@router.post(
    "/projects/{project_id}/schema-mappings",
    response_model=DataResponse[SchemaMappingEnvelope],
    status_code=status.HTTP_201_CREATED,
)
async def create_schema_mapping(
    project_id: UUID,
    request: CreateSchemaMappingRequest,
    principal: Principal = Depends(require_editor),
    mapping_service: SchemaMappingService = Depends(get_schema_mapping_service),
) -> DataResponse[SchemaMappingEnvelope]:
    """
    Create a schema mapping for a data source in the project.

    A data source has at most one live mapping; a second create returns 409.
    """
    mapping = await mapping_service.create_mapping(project_id, request, principal)
    return DataResponse(data=SchemaMappingEnvelope(schema_mapping=mapping))


@router.get("/schema-mappings/{mapping_id}", response_model=DataResponse[SchemaMappingEnvelope])
async def get_schema_mapping(
    mapping_id: UUID,
    principal: Principal = Depends(get_current_principal),
    mapping_service: SchemaMappingService = Depends(get_schema_mapping_service),
) -> DataResponse[SchemaMappingEnvelope]:
    """Get a single schema mapping."""
    mapping = await mapping_service.get_mapping(mapping_id, principal)
    return DataResponse(data=SchemaMappingEnvelope(schema_mapping=mapping))


@router.patch("/schema-mappings/{mapping_id}", response_model=DataResponse[SchemaMappingEnvelope])
async def update_schema_mapping(
    mapping_id: UUID,
    request: UpdateSchemaMappingRequest,
    principal: Principal = Depends(require_editor),
    mapping_service: SchemaMappingService = Depends(get_schema_mapping_service),
) -> DataResponse[SchemaMappingEnvelope]:
    """Update configs or toggle isActive; omitted fields are unchanged."""
    mapping = await mapping_service.update_mapping(mapping_id, request, principal)
    return DataResponse(data=SchemaMappingEnvelope(schema_mapping=mapping))


@router.delete("/schema-mappings/{mapping_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schema_mapping(
    mapping_id: UUID,
    principal: Principal = Depends(require_role(Role.ADMIN)),
    mapping_service: SchemaMappingService = Depends(get_schema_mapping_service),
) -> Response:
    """Soft delete a schema mapping."""
    await mapping_service.delete_mapping(mapping_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

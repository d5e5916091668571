"""
Dataset API endpoints.

Routes:
    GET    /projects/{project_id}/datasets
    GET    /datasets/{dataset_id}
    GET    /datasets/{dataset_id}/preview
    GET    /datasets/{dataset_id}/download
    DELETE /datasets/{dataset_id}

Dependencies: backend.application.services.dataset_service, backend.models
System role: Dataset HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from backend.api.deps import get_current_principal, get_dataset_service, require_role
from backend.api.routers.router_utils import PageParams, page_params
from backend.application.services.dataset_service import DatasetService
from backend.models.auth import Principal, Role
from backend.models.common import DataResponse, PaginatedResponse
from backend.models.dataset import (
    DatasetDownloadEnvelope,
    DatasetEnvelope,
    DatasetPreviewEnvelope,
    DatasetResponse,
)

router = APIRouter(tags=["datasets"])


@router.get(
    "/projects/{project_id}/datasets",
    response_model=PaginatedResponse[DatasetResponse],
)
async def list_datasets(
    project_id: UUID,
    paging: PageParams = Depends(page_params),
    principal: Principal = Depends(get_current_principal),
    dataset_service: DatasetService = Depends(get_dataset_service),
) -> PaginatedResponse[DatasetResponse]:
    """List a project's datasets, newest first."""
    datasets, pagination = await dataset_service.list_datasets(
        project_id, principal, page=paging.page, page_size=paging.page_size
    )
    return PaginatedResponse(data=datasets, pagination=pagination)


@router.get("/datasets/{dataset_id}", response_model=DataResponse[DatasetEnvelope])
async def get_dataset(
    dataset_id: UUID,
    principal: Principal = Depends(get_current_principal),
    dataset_service: DatasetService = Depends(get_dataset_service),
) -> DataResponse[DatasetEnvelope]:
    """Get a single dataset."""
    dataset = await dataset_service.get_dataset(dataset_id, principal)
    return DataResponse(data=DatasetEnvelope(dataset=dataset))


@router.get("/datasets/{dataset_id}/preview", response_model=DataResponse[DatasetPreviewEnvelope])
async def preview_dataset(
    dataset_id: UUID,
    principal: Principal = Depends(get_current_principal),
    dataset_service: DatasetService = Depends(get_dataset_service),
) -> DataResponse[DatasetPreviewEnvelope]:
    """Preview the first 100 rows of a dataset."""
    preview = await dataset_service.preview_dataset(dataset_id, principal)
    return DataResponse(data=DatasetPreviewEnvelope(preview=preview))


@router.get("/datasets/{dataset_id}/download", response_model=DataResponse[DatasetDownloadEnvelope])
async def download_dataset(
    dataset_id: UUID,
    principal: Principal = Depends(require_role(Role.ADMIN, Role.EDITOR)),
    dataset_service: DatasetService = Depends(get_dataset_service),
) -> DataResponse[DatasetDownloadEnvelope]:
    """Get a download link for a dataset file."""
    download = await dataset_service.get_download(dataset_id, principal)
    return DataResponse(data=DatasetDownloadEnvelope(download=download))


@router.delete("/datasets/{dataset_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_dataset(
    dataset_id: UUID,
    principal: Principal = Depends(require_role(Role.ADMIN)),
    dataset_service: DatasetService = Depends(get_dataset_service),
) -> Response:
    """Soft delete a dataset."""
    await dataset_service.delete_dataset(dataset_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

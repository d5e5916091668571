"""
Job API endpoints.

Routes:
    POST /projects/{project_id}/jobs
    GET  /projects/{project_id}/jobs
    GET  /jobs/{job_id}
    GET  /jobs/{job_id}/progress
    GET  /jobs/{job_id}/logs
    POST /jobs/{job_id}/cancel
    POST /jobs/{job_id}/retry

Dependencies: backend.application.services.job_service, backend.models
System role: Processing job HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from backend.api.deps import get_current_principal, get_job_service, require_role
from backend.api.routers.router_utils import PageParams, page_params
from backend.application.services.job_service import JobService
from backend.boundary.db.models import JobStatus
from backend.models.auth import Principal, Role
from backend.models.common import DataResponse, MessageResponse, PaginatedResponse
from backend.models.job import (
    CreateJobRequest,
    JobEnvelope,
    JobLogResponse,
    JobResponse,
    ProgressEnvelope,
)

router = APIRouter(tags=["jobs"])

require_editor = require_role(Role.ADMIN, Role.EDITOR)


@router.post(
    "/projects/{project_id}/jobs",
    response_model=DataResponse[JobEnvelope],
    status_code=status.HTTP_201_CREATED,
)
async def create_job(
    project_id: UUID,
    request: CreateJobRequest,
    principal: Principal = Depends(require_editor),
    job_service: JobService = Depends(get_job_service),
) -> DataResponse[JobEnvelope]:
    """
    Create a processing job for a schema mapping.

    The job is stored as pending and handed to a worker; the response does
    not wait for processing. Poll /jobs/{id}/progress for status.
    """
    job = await job_service.create_job(project_id, request, principal)
    return DataResponse(data=JobEnvelope(job=job))


@router.get(
    "/projects/{project_id}/jobs",
    response_model=PaginatedResponse[JobResponse],
)
async def list_jobs(
    project_id: UUID,
    status_filter: JobStatus | None = Query(default=None, alias="status"),
    paging: PageParams = Depends(page_params),
    principal: Principal = Depends(get_current_principal),
    job_service: JobService = Depends(get_job_service),
) -> PaginatedResponse[JobResponse]:
    """List a project's jobs, newest first, optionally filtered by status."""
    jobs, pagination = await job_service.list_jobs(
        project_id,
        principal,
        status=status_filter,
        page=paging.page,
        page_size=paging.page_size,
    )
    return PaginatedResponse(data=jobs, pagination=pagination)


@router.get("/jobs/{job_id}", response_model=DataResponse[JobEnvelope])
async def get_job(
    job_id: UUID,
    principal: Principal = Depends(get_current_principal),
    job_service: JobService = Depends(get_job_service),
) -> DataResponse[JobEnvelope]:
    """Get a single job."""
    job = await job_service.get_job(job_id, principal)
    return DataResponse(data=JobEnvelope(job=job))


@router.get("/jobs/{job_id}/progress", response_model=DataResponse[ProgressEnvelope])
async def get_job_progress(
    job_id: UUID,
    principal: Principal = Depends(get_current_principal),
    job_service: JobService = Depends(get_job_service),
) -> DataResponse[ProgressEnvelope]:
    """
    Get job progress for polling.

    estimatedTimeRemaining is only set while the job is processing and has
    made progress.
    """
    progress = await job_service.get_progress(job_id, principal)
    return DataResponse(data=ProgressEnvelope(progress=progress))


@router.get("/jobs/{job_id}/logs", response_model=PaginatedResponse[JobLogResponse])
async def get_job_logs(
    job_id: UUID,
    paging: PageParams = Depends(page_params),
    principal: Principal = Depends(get_current_principal),
    job_service: JobService = Depends(get_job_service),
) -> PaginatedResponse[JobLogResponse]:
    """List a job's log entries, newest first."""
    entries, pagination = await job_service.get_logs(
        job_id, principal, page=paging.page, page_size=paging.page_size
    )
    return PaginatedResponse(data=entries, pagination=pagination)


@router.post("/jobs/{job_id}/cancel", response_model=DataResponse[MessageResponse])
async def cancel_job(
    job_id: UUID,
    principal: Principal = Depends(require_editor),
    job_service: JobService = Depends(get_job_service),
) -> DataResponse[MessageResponse]:
    """Cancel a pending or processing job."""
    message = await job_service.cancel_job(job_id, principal)
    return DataResponse(data=MessageResponse(message=message))


@router.post("/jobs/{job_id}/retry", response_model=DataResponse[MessageResponse])
async def retry_job(
    job_id: UUID,
    principal: Principal = Depends(require_editor),
    job_service: JobService = Depends(get_job_service),
) -> DataResponse[MessageResponse]:
    """Re-queue a failed job under the same id."""
    message = await job_service.retry_job(job_id, principal)
    return DataResponse(data=MessageResponse(message=message))

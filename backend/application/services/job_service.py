"""
Job service orchestrator.

Translates API requests (create, cancel, retry, progress and log queries)
into job state machine operations. Status changes are conditional writes:
if another writer moved the job first, the caller gets a ConflictError
instead of a silently overwritten row.

Dependencies: backend.boundary.db.CRUD, backend.core.job_pipeline,
    backend.application.adapters
System role: Job controller
"""

import logging
from datetime import datetime
from typing import Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from backend.application.adapters.job_dispatcher import JobDispatcher
from backend.application.services.access import ensure_same_organisation, get_accessible_project
from backend.boundary.db.base import utcnow
from backend.boundary.db.CRUD import (
    data_source_crud,
    job_crud,
    job_log_crud,
    schema_mapping_crud,
)
from backend.boundary.db.models import (
    DataSourceStatus,
    JobLogLevel,
    JobStatus,
    ProcessingJobModel,
)
from backend.core.exceptions import BadRequestError, ConflictError, NotFoundError
from backend.core.job_pipeline import (
    CANCELLABLE_JOB_STATES,
    RETRYABLE_JOB_STATES,
    JobRunState,
    build_progress_snapshot,
)
from backend.models.auth import Principal
from backend.models.common import Pagination
from backend.models.job import (
    MAX_OUTPUT_NAME_LENGTH,
    CreateJobRequest,
    JobLogResponse,
    JobResponse,
    ProgressResponse,
)

logger = logging.getLogger(__name__)

CONCURRENT_UPDATE_MESSAGE = "Job was modified by another request, please retry"


def to_job_response(job: ProcessingJobModel, data_source_name: str | None = None) -> JobResponse:
    """Build the API view of a job."""
    response = JobResponse.model_validate(job)
    if data_source_name is None and "data_source" in job.__dict__ and job.data_source is not None:
        data_source_name = job.data_source.name
    return response.model_copy(update={"data_source_name": data_source_name})


class JobService:
    """
    Job service orchestrator.

    Every public method takes the authenticated principal and enforces that
    the job (or project) belongs to the caller's organisation.
    """

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: JobDispatcher,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize job service.

        Args:
            db: AsyncSession for database operations
            dispatcher: Hands committed jobs to workers
            clock: Source of the current UTC time
        """
        self.db = db
        self.dispatcher = dispatcher
        self._clock = clock

    async def _get_owned_job(
        self,
        job_id: UUID,
        principal: Principal,
        with_data_source: bool = False,
    ) -> ProcessingJobModel:
        if with_data_source:
            job = await job_crud.get_with_data_source(self.db, job_id)
        else:
            job = await job_crud.get_by_id(self.db, job_id)
        if job is None:
            raise NotFoundError("job", str(job_id))
        ensure_same_organisation(job.organisation_id, principal, "job")
        return job

    async def _dispatch(self, job_id: UUID) -> None:
        """Hand a committed job to the dispatcher; failures leave it PENDING for the sweep."""
        try:
            await self.dispatcher.dispatch(job_id)
        except Exception as e:
            logger.warning(
                f"{__name__}:_dispatch - Dispatch of job {job_id} failed, left pending: {e}",
                exc_info=True,
            )
            await job_log_crud.append(
                self.db,
                job_id,
                JobLogLevel.WARN,
                "Job could not be queued yet; it will be picked up automatically",
                {"error": str(e)},
            )
            await self.db.commit()

    async def create_job(
        self,
        project_id: UUID,
        request: CreateJobRequest,
        principal: Principal,
    ) -> JobResponse:
        """
        Create a processing job and queue it.

        Args:
            project_id: Project the job runs in
            request: Mapping, output format and optional output name
            principal: Authenticated caller

        Returns:
            JobResponse: The job in PENDING status

        Raises:
            NotFoundError: Project or mapping missing
            ForbiddenError: Project belongs to another organisation
            BadRequestError: Mapping inactive or data source not ready
        """
        project = await get_accessible_project(self.db, project_id, principal)

        mapping = await schema_mapping_crud.get_in_project(
            self.db, request.schema_mapping_id, project.id
        )
        if mapping is None:
            raise NotFoundError(
                "schema mapping",
                str(request.schema_mapping_id),
                message="Schema mapping not found in this project",
            )
        if not mapping.is_active:
            raise BadRequestError("Schema mapping is not active")

        data_source = await data_source_crud.get_by_id(self.db, mapping.data_source_id)
        if (
            data_source is None
            or data_source.deleted_at is not None
            or data_source.status != DataSourceStatus.READY
        ):
            raise BadRequestError("Data source is not ready for processing")

        output_name = request.output_name or f"{data_source.name}-output"
        job = await job_crud.create(
            self.db,
            organisation_id=project.organisation_id,
            project_id=project.id,
            data_source_id=data_source.id,
            schema_mapping_id=mapping.id,
            status=JobStatus.PENDING,
            output_format=request.output_format,
            output_name=output_name[:MAX_OUTPUT_NAME_LENGTH],
            input_record_count=data_source.record_count or 0,
            progress=0,
        )
        await job_log_crud.append(
            self.db,
            job.id,
            JobLogLevel.INFO,
            "Job created and queued for processing",
            {
                "schemaMappingId": str(mapping.id),
                "outputFormat": request.output_format.value,
                "createdBy": str(principal.user_id),
            },
        )
        await self.db.commit()
        logger.info(
            f"{__name__}:create_job - Created job {job.id}",
            extra={"project_id": str(project.id), "organisation_id": str(project.organisation_id)},
        )

        response = to_job_response(job, data_source.name)
        await self._dispatch(job.id)
        return response

    async def list_jobs(
        self,
        project_id: UUID,
        principal: Principal,
        status: JobStatus | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[JobResponse], Pagination]:
        """
        List a project's jobs, newest first.

        Returns:
            tuple: (jobs on the page, pagination metadata)
        """
        project = await get_accessible_project(self.db, project_id, principal)
        jobs, total = await job_crud.list_for_project(
            self.db,
            project.id,
            status=status,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        return (
            [to_job_response(job) for job in jobs],
            Pagination.from_counts(page, page_size, total),
        )

    async def get_job(self, job_id: UUID, principal: Principal) -> JobResponse:
        """
        Get a single job.

        Raises:
            NotFoundError: Job missing
            ForbiddenError: Job belongs to another organisation
        """
        job = await self._get_owned_job(job_id, principal, with_data_source=True)
        return to_job_response(job)

    async def get_progress(self, job_id: UUID, principal: Principal) -> ProgressResponse:
        """
        Get a job's progress snapshot for polling.

        Reads have no side effects; the ETA is derived from the clock.
        """
        job = await self._get_owned_job(job_id, principal)
        return ProgressResponse.from_snapshot(build_progress_snapshot(job, self._clock()))

    async def get_logs(
        self,
        job_id: UUID,
        principal: Principal,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[JobLogResponse], Pagination]:
        """
        List a job's log entries, newest first.

        Returns:
            tuple: (entries on the page, pagination metadata)
        """
        job = await self._get_owned_job(job_id, principal)
        entries, total = await job_log_crud.list_for_job(
            self.db,
            job.id,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        return (
            [JobLogResponse.model_validate(entry) for entry in entries],
            Pagination.from_counts(page, page_size, total),
        )

    async def cancel_job(self, job_id: UUID, principal: Principal) -> str:
        """
        Cancel a pending or processing job.

        A running stage notices at its next progress write and stops.

        Returns:
            str: Confirmation message

        Raises:
            InvalidTransitionError: Job is not pending or processing
            ConflictError: Job finished while the request was in flight
        """
        job = await self._get_owned_job(job_id, principal)
        previous_status = job.status
        cancelled = JobRunState.from_model(job).cancel(self._clock())

        # Only status and completed_at: a concurrent runner may have advanced progress
        updated = await job_crud.compare_and_set(
            self.db,
            job.id,
            CANCELLABLE_JOB_STATES,
            status=cancelled.status,
            completed_at=cancelled.completed_at,
        )
        if updated is None:
            await self.db.rollback()
            raise ConflictError(CONCURRENT_UPDATE_MESSAGE)

        await job_log_crud.append(
            self.db,
            job.id,
            JobLogLevel.INFO,
            "Job cancelled by user",
            {"previousStatus": previous_status.value, "cancelledBy": str(principal.user_id)},
        )
        await self.db.commit()
        logger.info(f"{__name__}:cancel_job - Cancelled job {job.id} (was {previous_status.value})")
        return "Job cancelled successfully"

    async def retry_job(self, job_id: UUID, principal: Principal) -> str:
        """
        Re-queue a failed job under the same id.

        Run-scoped fields are cleared; input record count and output
        settings are kept.

        Returns:
            str: Confirmation message

        Raises:
            InvalidTransitionError: Job is not failed
            ConflictError: Job was retried concurrently
        """
        job = await self._get_owned_job(job_id, principal)
        previous_error = job.error_message
        reset = JobRunState.from_model(job).reset_for_retry()

        updated = await job_crud.compare_and_set(
            self.db, job.id, RETRYABLE_JOB_STATES, **reset.as_update()
        )
        if updated is None:
            await self.db.rollback()
            raise ConflictError(CONCURRENT_UPDATE_MESSAGE)

        await job_log_crud.append(
            self.db,
            job.id,
            JobLogLevel.INFO,
            "Job queued for retry",
            {"previousError": previous_error, "retriedBy": str(principal.user_id)},
        )
        await self.db.commit()
        logger.info(f"{__name__}:retry_job - Job {job.id} queued for retry")

        await self._dispatch(job.id)
        return "Job queued for retry"

"""
Processing job runner.

Claims a pending job, runs the stages in order and finalises the job.
Every write is conditioned on the job still being in the status the runner
last saw, so a user cancellation between (or during) stages wins: the next
conditional write matches no row and the runner stops without touching the
job again.

A run whose worker died without recording an outcome is failed by
fail_stale once it has not written for the stale-run timeout.

Each write uses its own short-lived session so API requests (cancel, progress
reads) never wait on a long-running stage.

Dependencies: sqlalchemy, backend.boundary.db, backend.boundary.storage,
    backend.core.job_pipeline
System role: Job execution orchestrator (worker side)
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from backend.boundary.db.base import utcnow
from backend.boundary.db.CRUD import (
    data_source_crud,
    dataset_crud,
    job_crud,
    job_log_crud,
    schema_mapping_crud,
)
from backend.boundary.db.models import JobLogLevel, JobStatus, ProcessingJobModel
from backend.boundary.storage import DatasetStorage, get_dataset_storage
from backend.configs import get_settings
from backend.configs.pipeline import PipelineSettings
from backend.core.exceptions import PipelineAppException, StageExecutionError
from backend.core.job_pipeline.progress import stage_progress
from backend.core.job_pipeline.stages import (
    EncodedDataset,
    JobSnapshot,
    PipelineStage,
    StageContext,
    default_stages,
)
from backend.core.job_pipeline.state_machine import INITIAL_STAGE, JobRunState

logger = logging.getLogger(__name__)

STALE_RUN_MESSAGE = "Job stopped reporting progress and was marked as failed"


class RunInterrupted(Exception):
    """Raised inside a run when the job left PROCESSING (cancelled)."""


class _RunTracker:
    """Holds the latest persisted run state and writes advances through CAS."""

    def __init__(self, runner: "JobRunner", job_id: UUID, state: JobRunState) -> None:
        self._runner = runner
        self.job_id = job_id
        self.state = state

    async def advance(
        self,
        progress: int,
        current_stage: str | None,
        log_message: str | None = None,
        log_details: dict[str, Any] | None = None,
    ) -> None:
        """
        Persist progress and stage tag atomically with the status check.

        Raises:
            RunInterrupted: If the job is no longer PROCESSING
        """
        next_state = self.state.advance(progress, current_stage)
        async with self._runner.session_factory() as session:
            updated = await job_crud.compare_and_set(
                session, self.job_id, JobStatus.PROCESSING, **next_state.as_update()
            )
            if updated is None:
                await session.rollback()
                raise RunInterrupted()
            if log_message:
                await job_log_crud.append(
                    session, self.job_id, JobLogLevel.INFO, log_message, log_details
                )
            await session.commit()
        self.state = next_state


class JobRunner:
    """
    Run processing jobs through the stage sequence.

    Usage:
        runner = JobRunner(get_async_session_factory())
        final_status = await runner.run(job_id)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        storage: DatasetStorage | None = None,
        stages: Sequence[PipelineStage] | None = None,
        settings: PipelineSettings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize runner.

        Args:
            session_factory: Factory for short-lived async sessions
            storage: Dataset storage (configured backend if None)
            stages: Stages in run order (ingest, map_redact, filter, encode if None)
            settings: Pipeline settings (application settings if None)
            clock: Source of the current UTC time
        """
        self.session_factory = session_factory
        self._storage = storage
        self._stages = list(stages) if stages is not None else default_stages()
        self._settings = settings or get_settings().pipeline
        self._clock = clock
        if not self._stages:
            raise ValueError("A job runner needs at least one stage")

    @property
    def storage(self) -> DatasetStorage:
        if self._storage is None:
            self._storage = get_dataset_storage()
        return self._storage

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self._stages]

    async def claim(self, job_id: UUID) -> ProcessingJobModel | None:
        """
        Move a job from PENDING to PROCESSING if this caller wins the row.

        Args:
            job_id: Job UUID

        Returns:
            The claimed job, or None if it is missing, not pending, or another
            worker claimed it first
        """
        async with self.session_factory() as session:
            job = await job_crud.get_by_id(session, job_id)
            if job is None:
                logger.warning(f"{__name__}:claim - Job {job_id} not found")
                return None
            if job.status != JobStatus.PENDING:
                logger.info(
                    f"{__name__}:claim - Job {job_id} is {job.status.value}, not claiming"
                )
                return None

            state = JobRunState.from_model(job).claim(self._clock())
            claimed = await job_crud.compare_and_set(
                session, job_id, JobStatus.PENDING, **state.as_update()
            )
            if claimed is None:
                await session.rollback()
                logger.info(f"{__name__}:claim - Job {job_id} claimed by another worker")
                return None

            await job_log_crud.append(
                session,
                job_id,
                JobLogLevel.INFO,
                "Job processing started",
                {"stage": INITIAL_STAGE, "stages": self.stage_names},
            )
            await session.commit()

        logger.info(f"{__name__}:claim - Claimed job {job_id}")
        return claimed

    async def fail_stale(self, job_id: UUID, stale_before: datetime) -> bool:
        """
        Fail a PROCESSING job whose run has not written since a cutoff.

        A worker that loses its database mid-run cannot record its own
        failure, and its retried task finds the job already claimed. Failing
        the job here makes it retryable. A run that writes again after this
        loses its next conditional write and stops.

        Args:
            job_id: Job UUID
            stale_before: The job must not have been updated since this time

        Returns:
            bool: True if this call moved the job to FAILED
        """
        async with self.session_factory() as session:
            job = await job_crud.get_by_id(session, job_id)
            if job is None or job.status != JobStatus.PROCESSING:
                return False

            last_update = job.updated_at
            failed_state = JobRunState.from_model(job).fail(STALE_RUN_MESSAGE, self._clock())
            updated = await job_crud.compare_and_set(
                session,
                job_id,
                JobStatus.PROCESSING,
                updated_before=stale_before,
                **failed_state.as_update(),
            )
            if updated is None:
                await session.rollback()
                return False

            await job_log_crud.append(
                session,
                job_id,
                JobLogLevel.ERROR,
                STALE_RUN_MESSAGE,
                {
                    "stage": failed_state.current_stage,
                    "lastUpdate": last_update.isoformat() if last_update else None,
                },
            )
            await session.commit()

        logger.warning(
            f"{__name__}:fail_stale - Job {job_id} stuck in {failed_state.current_stage}, marked failed"
        )
        return True

    async def run(self, job_id: UUID) -> JobStatus | None:
        """
        Claim and run a job to a terminal state.

        Stage failures are recorded on the job and never raised.

        Args:
            job_id: Job UUID

        Returns:
            Final JobStatus of this run, or None if the job was not claimed
        """
        job = await self.claim(job_id)
        if job is None:
            return None

        tracker = _RunTracker(self, job_id, JobRunState.from_model(job))
        total_stages = len(self._stages)
        stage_records: dict[str, int] = {}
        pii_findings = 0
        artifact: Any = None
        encoded: EncodedDataset | None = None

        try:
            context = await self._build_context(job)
            await tracker.advance(0, self._stages[0].name)

            for index, stage in enumerate(self._stages):
                stage_context = replace(
                    context,
                    artifact=artifact,
                    report_progress=self._progress_reporter(tracker, index, total_stages, stage.name),
                )
                logger.info(f"{__name__}:run - Job {job_id} running stage {stage.name}")
                outcome = await stage.execute(stage_context)

                artifact = outcome.artifact
                stage_records[stage.name] = outcome.records_processed
                if outcome.pii_findings:
                    pii_findings += outcome.pii_findings
                if isinstance(artifact, EncodedDataset):
                    encoded = artifact

                details = {"stage": stage.name, "records_processed": outcome.records_processed}
                if outcome.pii_findings is not None:
                    details["pii_findings"] = outcome.pii_findings
                if index + 1 < total_stages:
                    await tracker.advance(
                        stage_progress(index + 1, total_stages, 0.0),
                        self._stages[index + 1].name,
                        f"Stage {stage.name} completed",
                        details,
                    )

            if encoded is None:
                raise StageExecutionError(
                    "Pipeline finished without producing a dataset",
                    stage=self._stages[-1].name,
                )
            return await self._complete(tracker, job, encoded, pii_findings, stage_records)

        except RunInterrupted:
            logger.info(f"{__name__}:run - Job {job_id} stopped: no longer processing")
            await self._discard(encoded)
            return await _read_status(self.session_factory, job_id)
        except Exception as e:
            return await self._fail(tracker, e)

    async def _build_context(self, job: ProcessingJobModel) -> StageContext:
        async with self.session_factory() as session:
            data_source = await data_source_crud.get_by_id(session, job.data_source_id)
            schema_mapping = await schema_mapping_crud.get_by_id(session, job.schema_mapping_id)
        if data_source is None:
            raise StageExecutionError("Data source not found", stage=INITIAL_STAGE)
        if schema_mapping is None:
            raise StageExecutionError("Schema mapping not found", stage=INITIAL_STAGE)
        return StageContext(
            job=JobSnapshot.from_model(job),
            data_source=data_source,
            schema_mapping=schema_mapping,
            storage=self.storage,
            settings=self._settings,
        )

    def _progress_reporter(
        self,
        tracker: _RunTracker,
        index: int,
        total_stages: int,
        stage_name: str,
    ):
        async def report(fraction: float) -> None:
            progress = stage_progress(index, total_stages, fraction)
            if progress > tracker.state.progress:
                await tracker.advance(progress, stage_name)

        return report

    async def _complete(
        self,
        tracker: _RunTracker,
        job: ProcessingJobModel,
        encoded: EncodedDataset,
        pii_findings: int,
        stage_records: dict[str, int],
    ) -> JobStatus:
        final_state = tracker.state.complete(
            output_record_count=encoded.record_count,
            pii_detected_count=pii_findings,
            now=self._clock(),
        )
        async with self.session_factory() as session:
            updated = await job_crud.compare_and_set(
                session, tracker.job_id, JobStatus.PROCESSING, **final_state.as_update()
            )
            if updated is None:
                await session.rollback()
                raise RunInterrupted()

            await dataset_crud.create(
                session,
                organisation_id=job.organisation_id,
                project_id=job.project_id,
                job_id=job.id,
                data_source_id=job.data_source_id,
                name=job.output_name or f"job-{job.id}",
                format=encoded.format.value,
                file_path=encoded.file_path,
                file_size=encoded.file_size,
                record_count=encoded.record_count,
                dataset_metadata={
                    "inputRecordCount": job.input_record_count,
                    "piiDetectedCount": pii_findings,
                    "stageRecordCounts": stage_records,
                },
            )
            await job_log_crud.append(
                session,
                tracker.job_id,
                JobLogLevel.INFO,
                "Job completed successfully",
                {
                    "output_record_count": encoded.record_count,
                    "pii_detected_count": pii_findings,
                    "file_path": encoded.file_path,
                },
            )
            await session.commit()

        tracker.state = final_state
        logger.info(
            f"{__name__}:run - Job {tracker.job_id} completed",
            extra={"records": encoded.record_count, "pii_findings": pii_findings},
        )
        return JobStatus.COMPLETED

    async def _fail(self, tracker: _RunTracker, error: Exception) -> JobStatus | None:
        if isinstance(error, PipelineAppException):
            message = error.message
            logger.warning(f"{__name__}:run - Job {tracker.job_id} failed: {error}")
        else:
            message = str(error) or type(error).__name__
            logger.exception(f"{__name__}:run - Job {tracker.job_id} failed unexpectedly")

        stage = getattr(error, "stage", None) or tracker.state.current_stage
        failed_state = tracker.state.fail(message, self._clock())
        try:
            async with self.session_factory() as session:
                updated = await job_crud.compare_and_set(
                    session, tracker.job_id, JobStatus.PROCESSING, **failed_state.as_update()
                )
                if updated is None:
                    await session.rollback()
                    logger.info(
                        f"{__name__}:run - Job {tracker.job_id} left processing before failure was recorded"
                    )
                    return await _read_status(self.session_factory, tracker.job_id)
                await job_log_crud.append(
                    session,
                    tracker.job_id,
                    JobLogLevel.ERROR,
                    f"Stage {stage} failed: {message}" if stage else f"Job failed: {message}",
                    {"stage": stage, "error": message, "error_type": type(error).__name__},
                )
                await session.commit()
        except SQLAlchemyError:
            logger.exception(f"{__name__}:run - Could not record failure of job {tracker.job_id}")
            raise

        tracker.state = failed_state
        return JobStatus.FAILED

    async def _discard(self, encoded: EncodedDataset | None) -> None:
        if encoded is None:
            return
        try:
            self.storage.delete(encoded.file_path)
        except PipelineAppException:
            logger.warning(f"{__name__}:run - Could not remove orphaned file {encoded.file_path}")


async def _read_status(session_factory: async_sessionmaker, job_id: UUID) -> JobStatus | None:
    """Read a job's current status in a fresh session."""
    async with session_factory() as session:
        return await job_crud.get_status(session, job_id)

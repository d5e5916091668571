"""
Job dispatch adapters.

Hand a committed PENDING job to whatever executes it: a Celery worker in
deployed environments, or an asyncio task inside the API process for local
development. Dispatch only enqueues; claiming happens in the runner.

Dependencies: celery (via backend.workers), backend.core.job_pipeline, backend.observability
System role: Decouples job creation from job execution
"""

import asyncio
import logging
from functools import lru_cache
from typing import Callable, Protocol
from uuid import UUID

from backend.boundary.db import get_async_session_factory
from backend.configs import get_settings
from backend.core.job_pipeline import JobRunner
from backend.observability.correlation import job_correlation

logger = logging.getLogger(__name__)


class JobDispatcher(Protocol):
    """Enqueues a pending job for execution."""

    async def dispatch(self, job_id: UUID) -> None: ...


class CeleryJobDispatcher:
    """Dispatch jobs to the Celery processing queue."""

    def __init__(self, queue: str | None = None) -> None:
        self._queue = queue or get_settings().celery.queue_name

    async def dispatch(self, job_id: UUID) -> None:
        # Imported lazily so the API process only loads the Celery app on first dispatch
        from backend.workers.tasks.processing_job import run_processing_job

        await asyncio.to_thread(
            run_processing_job.apply_async,
            args=[str(job_id)],
            queue=self._queue,
        )
        logger.info(f"{__name__}:dispatch - Queued job {job_id} on {self._queue}")


class BackgroundJobDispatcher:
    """
    Run jobs as asyncio tasks in the current event loop.

    Development only: jobs in flight are lost if the process exits. The
    pending sweep does not cover this mode.
    """

    def __init__(self, runner_factory: Callable[[], JobRunner] | None = None) -> None:
        self._runner_factory = runner_factory or (
            lambda: JobRunner(get_async_session_factory())
        )
        self._tasks: set[asyncio.Task] = set()

    async def dispatch(self, job_id: UUID) -> None:
        task = asyncio.create_task(self._run(job_id), name=f"job-{job_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info(f"{__name__}:dispatch - Started background run for job {job_id}")

    async def _run(self, job_id: UUID) -> None:
        with job_correlation(job_id):
            try:
                status = await self._runner_factory().run(job_id)
                logger.info(f"{__name__}:_run - Job {job_id} finished with status {status}")
            except Exception:
                logger.exception(f"{__name__}:_run - Background run of job {job_id} crashed")

    async def drain(self) -> None:
        """Wait for all in-flight background runs (used on shutdown and in tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


@lru_cache
def get_job_dispatcher() -> JobDispatcher:
    """
    Factory function to get the dispatcher for PIPELINE_DISPATCH_MODE.

    Returns:
        CeleryJobDispatcher or BackgroundJobDispatcher

    Raises:
        ValueError: If PIPELINE_DISPATCH_MODE is invalid
    """
    mode = get_settings().pipeline.dispatch_mode.lower()
    if mode == "celery":
        return CeleryJobDispatcher()
    if mode == "background":
        logger.info(f"{__name__}:get_job_dispatcher - Running jobs in-process (development mode)")
        return BackgroundJobDispatcher()
    raise ValueError(
        f"Invalid PIPELINE_DISPATCH_MODE: {mode}. Must be 'celery' or 'background'."
    )

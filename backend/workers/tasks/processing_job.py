"""
Processing job Celery tasks.

Task: run_processing_job(job_id)
Flow: claim (PENDING -> PROCESSING) -> ingest -> map_redact -> filter -> encode
    -> COMPLETED + dataset, or FAILED

Task: sweep_pending_jobs()
Flow: find jobs stranded in PENDING -> re-enqueue run_processing_job

Task: fail_stale_runs()
Flow: find PROCESSING jobs with no write within the stale-run timeout -> FAILED

Each task invocation runs its own event loop, so it builds a NullPool
engine bound to that loop instead of reusing the API's pooled engine.

Dependencies: celery, sqlalchemy, backend.core.job_pipeline, backend.observability, backend.workers
System role: Async job execution task
"""

import asyncio
import logging
from datetime import timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from backend.boundary.db.base import utcnow
from backend.boundary.db.CRUD import job_crud
from backend.configs import get_settings
from backend.core.job_pipeline import JobRunner
from backend.observability.correlation import job_correlation
from backend.workers import celery_app

logger = logging.getLogger(__name__)


async def _with_session_factory(work):
    engine = create_async_engine(
        get_settings().database.async_database_url,
        poolclass=NullPool,
    )
    try:
        session_factory = async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        return await work(session_factory)
    finally:
        await engine.dispose()


async def _run_job(job_id: UUID) -> str | None:
    async def work(session_factory):
        status = await JobRunner(session_factory).run(job_id)
        return status.value if status is not None else None

    return await _with_session_factory(work)


async def _find_stale_pending() -> list[str]:
    celery_config = get_settings().celery
    cutoff = utcnow() - timedelta(seconds=celery_config.pending_sweep_interval_seconds)

    async def work(session_factory):
        async with session_factory() as session:
            jobs = await job_crud.list_stale_pending(
                session, cutoff, celery_config.pending_sweep_batch_size
            )
            return [str(job.id) for job in jobs]

    return await _with_session_factory(work)


async def _fail_stale_runs() -> list[str]:
    celery_config = get_settings().celery
    cutoff = utcnow() - timedelta(seconds=celery_config.stale_run_timeout_seconds)

    async def work(session_factory):
        async with session_factory() as session:
            jobs = await job_crud.list_stale_processing(
                session, cutoff, celery_config.pending_sweep_batch_size
            )
            job_ids = [job.id for job in jobs]

        runner = JobRunner(session_factory)
        failed = []
        for job_id in job_ids:
            with job_correlation(job_id):
                if await runner.fail_stale(job_id, cutoff):
                    failed.append(str(job_id))
        return failed

    return await _with_session_factory(work)


@celery_app.task(
    bind=True,
    max_retries=3,
    autoretry_for=(OperationalError, DBAPIError),
    retry_backoff=60,
    retry_backoff_max=600,
)
def run_processing_job(self, job_id: str) -> dict[str, Any]:
    """
    Run a processing job.

    Stage failures are recorded on the job and do not fail the task; only
    database connectivity errors trigger a Celery retry.

    Args:
        job_id: Job UUID as string

    Returns:
        dict: Job id and final status (None if another worker owned the job)
    """
    with job_correlation(job_id):
        logger.info(f"{__name__}:run_processing_job - Received job {job_id}")
        status = asyncio.run(_run_job(UUID(job_id)))
    return {"job_id": job_id, "status": status}


@celery_app.task(bind=True)
def sweep_pending_jobs(self) -> dict[str, Any]:
    """
    Re-dispatch jobs left in PENDING (e.g. enqueue lost during a broker outage).

    Duplicate deliveries are harmless: only one claim can win.

    Returns:
        dict: Number of jobs re-dispatched
    """
    job_ids = asyncio.run(_find_stale_pending())
    for job_id in job_ids:
        run_processing_job.apply_async(args=[job_id])
    if job_ids:
        logger.info(f"{__name__}:sweep_pending_jobs - Re-dispatched {len(job_ids)} pending jobs")
    return {"redispatched": len(job_ids)}


@celery_app.task(bind=True)
def fail_stale_runs(self) -> dict[str, Any]:
    """
    Mark jobs failed whose worker stopped writing while PROCESSING.

    Such jobs can be retried like any other failed job.

    Returns:
        dict: Ids of the jobs marked failed
    """
    job_ids = asyncio.run(_fail_stale_runs())
    if job_ids:
        logger.warning(f"{__name__}:fail_stale_runs - Marked {len(job_ids)} stale runs as failed")
    return {"failed": job_ids}

"""
Tests for the processing job Celery tasks.

Tasks are called directly (eager, no broker); database access is redirected
to the in-memory test session factory.
"""

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from backend.boundary.db.base import utcnow
from backend.application.services.job_service import JobService
from backend.boundary.db.CRUD import job_crud, job_log_crud
from backend.boundary.db.models import JobLogLevel, JobStatus
from backend.core.job_pipeline.runner import STALE_RUN_MESSAGE
from backend.workers.tasks import processing_job
from tests.factories import insert_job


@pytest.fixture
def use_test_database(monkeypatch, session_factory):
    """Route the tasks' per-invocation engine to the test session factory."""

    async def with_test_session_factory(work):
        return await work(session_factory)

    monkeypatch.setattr(processing_job, "_with_session_factory", with_test_session_factory)


class TestFindStalePending:
    """Test suite for the pending sweep query."""

    @pytest.mark.asyncio
    async def test_returns_only_old_pending_jobs(self, use_test_database, test_async_db, workspace):
        # Arrange
        stale = await insert_job(test_async_db, workspace)
        await job_crud.update_by_id(test_async_db, stale.id, updated_at=utcnow() - timedelta(hours=1))
        await insert_job(test_async_db, workspace)
        old_failed = await insert_job(test_async_db, workspace, status=JobStatus.FAILED)
        await job_crud.update_by_id(
            test_async_db, old_failed.id, updated_at=utcnow() - timedelta(hours=1)
        )
        await test_async_db.commit()

        # Act
        job_ids = await processing_job._find_stale_pending()

        # Assert
        assert job_ids == [str(stale.id)]


class TestFailStaleRuns:
    """Test suite for failing runs whose worker went silent."""

    @pytest.mark.asyncio
    async def test_fails_only_old_processing_jobs(self, use_test_database, test_async_db, workspace):
        # Arrange
        hour_ago = utcnow() - timedelta(hours=1)
        stuck = await insert_job(
            test_async_db,
            workspace,
            status=JobStatus.PROCESSING,
            progress=40,
            current_stage="map_redact",
            started_at=hour_ago,
        )
        await job_crud.update_by_id(test_async_db, stuck.id, updated_at=hour_ago)
        running = await insert_job(test_async_db, workspace, status=JobStatus.PROCESSING)
        old_pending = await insert_job(test_async_db, workspace)
        await job_crud.update_by_id(test_async_db, old_pending.id, updated_at=hour_ago)
        await test_async_db.commit()

        # Act
        job_ids = await processing_job._fail_stale_runs()

        # Assert
        assert job_ids == [str(stuck.id)]
        failed = await job_crud.get_by_id(test_async_db, stuck.id)
        assert failed.status == JobStatus.FAILED
        assert failed.error_message == STALE_RUN_MESSAGE
        assert failed.current_stage == "map_redact"
        assert failed.progress == 40
        assert failed.completed_at is not None
        entries, _ = await job_log_crud.list_for_job(test_async_db, stuck.id)
        assert entries[0].level == JobLogLevel.ERROR
        assert entries[0].details["stage"] == "map_redact"
        assert (await job_crud.get_status(test_async_db, running.id)) == JobStatus.PROCESSING
        assert (await job_crud.get_status(test_async_db, old_pending.id)) == JobStatus.PENDING

    @pytest.mark.asyncio
    async def test_failed_stale_run_can_be_retried_to_completion(
        self,
        use_test_database,
        test_async_db,
        workspace,
        storage,
        principal,
        mock_dispatcher,
        monkeypatch,
    ):
        # Arrange
        monkeypatch.setattr(
            "backend.core.job_pipeline.runner.get_dataset_storage", lambda: storage
        )
        stuck = await insert_job(test_async_db, workspace, status=JobStatus.PROCESSING)
        await job_crud.update_by_id(
            test_async_db, stuck.id, updated_at=utcnow() - timedelta(hours=1)
        )
        await test_async_db.commit()
        assert await processing_job._run_job(stuck.id) is None

        # Act
        await processing_job._fail_stale_runs()
        await JobService(test_async_db, mock_dispatcher).retry_job(stuck.id, principal)
        status = await processing_job._run_job(stuck.id)

        # Assert
        assert status == "completed"
        mock_dispatcher.dispatch.assert_awaited_once_with(stuck.id)


class TestRunJob:
    """Test suite for the run coroutine behind the task."""

    @pytest.mark.asyncio
    async def test_run_job_completes_pending_job(
        self, use_test_database, test_async_db, workspace, storage, monkeypatch
    ):
        # Arrange
        job = await insert_job(test_async_db, workspace)
        monkeypatch.setattr(
            "backend.core.job_pipeline.runner.get_dataset_storage", lambda: storage
        )

        # Act
        status = await processing_job._run_job(job.id)

        # Assert
        assert status == "completed"

    @pytest.mark.asyncio
    async def test_run_job_for_unknown_job_returns_none(self, use_test_database):
        assert await processing_job._run_job(uuid.uuid4()) is None


class TestSweepPendingJobs:
    """Test suite for the sweep task."""

    def test_sweep_redispatches_each_stale_job(self, monkeypatch):
        job_ids = [str(uuid.uuid4()), str(uuid.uuid4())]
        monkeypatch.setattr(processing_job, "_find_stale_pending", AsyncMock(return_value=job_ids))

        with patch.object(processing_job, "run_processing_job") as task:
            result = processing_job.sweep_pending_jobs()

        assert result == {"redispatched": 2}
        assert [c.kwargs["args"] for c in task.apply_async.call_args_list] == [
            [job_ids[0]],
            [job_ids[1]],
        ]

    def test_sweep_with_nothing_pending(self, monkeypatch):
        monkeypatch.setattr(processing_job, "_find_stale_pending", AsyncMock(return_value=[]))

        with patch.object(processing_job, "run_processing_job") as task:
            result = processing_job.sweep_pending_jobs()

        assert result == {"redispatched": 0}
        task.apply_async.assert_not_called()

"""
Unit tests for the job dispatch adapters.
"""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from backend.application.adapters.job_dispatcher import (
    BackgroundJobDispatcher,
    CeleryJobDispatcher,
)
from backend.boundary.db.models import JobStatus


class TestBackgroundJobDispatcher:
    """Test suite for in-process dispatch."""

    @pytest.mark.asyncio
    async def test_dispatch_runs_job_in_background(self):
        # Arrange
        runner = MagicMock()
        runner.run = AsyncMock(return_value=JobStatus.COMPLETED)
        dispatcher = BackgroundJobDispatcher(runner_factory=lambda: runner)
        job_id = uuid.uuid4()

        # Act
        await dispatcher.dispatch(job_id)
        await dispatcher.drain()

        # Assert
        runner.run.assert_awaited_once_with(job_id)

    @pytest.mark.asyncio
    async def test_crashing_run_does_not_escape(self):
        runner = MagicMock()
        runner.run = AsyncMock(side_effect=RuntimeError("database gone"))
        dispatcher = BackgroundJobDispatcher(runner_factory=lambda: runner)

        await dispatcher.dispatch(uuid.uuid4())
        await dispatcher.drain()

        runner.run.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_drain_without_tasks_returns(self):
        await BackgroundJobDispatcher(runner_factory=MagicMock()).drain()


class TestCeleryJobDispatcher:
    """Test suite for Celery dispatch."""

    @pytest.mark.asyncio
    async def test_dispatch_enqueues_task_on_queue(self):
        job_id = uuid.uuid4()

        with patch("backend.workers.tasks.processing_job.run_processing_job") as task:
            await CeleryJobDispatcher(queue="jobs-test").dispatch(job_id)

        task.apply_async.assert_called_once_with(args=[str(job_id)], queue="jobs-test")

    @pytest.mark.asyncio
    async def test_broker_failure_propagates(self):
        with patch("backend.workers.tasks.processing_job.run_processing_job") as task:
            task.apply_async.side_effect = ConnectionError("broker down")

            with pytest.raises(ConnectionError):
                await CeleryJobDispatcher(queue="jobs-test").dispatch(uuid.uuid4())

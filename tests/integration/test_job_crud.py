"""
Integration tests for JobCRUD operations.

Tests CRUD operations for processing jobs using in-memory SQLite database.
"""

from datetime import timedelta

import pytest

from backend.boundary.db.base import utcnow
from backend.boundary.db.CRUD import job_crud
from backend.boundary.db.models import JobStatus, OutputFormat
from tests.factories import insert_job


class TestJobCRUDCreate:
    """Test suite for job creation."""

    @pytest.mark.asyncio
    async def test_create_job_should_apply_defaults(self, test_async_db, workspace):
        # Arrange & Act
        job = await job_crud.create(
            test_async_db,
            organisation_id=workspace.organisation_id,
            project_id=workspace.project.id,
            data_source_id=workspace.data_source.id,
            schema_mapping_id=workspace.schema_mapping.id,
            output_format=OutputFormat.JSON,
        )

        # Assert
        assert job.id is not None
        assert job.status == JobStatus.PENDING
        assert job.progress == 0
        assert job.input_record_count == 0
        assert job.current_stage is None
        assert job.created_at is not None


class TestJobCRUDCompareAndSet:
    """Test suite for conditional status writes."""

    @pytest.mark.asyncio
    async def test_matching_status_should_update(self, test_async_db, workspace):
        # Arrange
        job = await insert_job(test_async_db, workspace)

        # Act
        updated = await job_crud.compare_and_set(
            test_async_db,
            job.id,
            JobStatus.PENDING,
            status=JobStatus.PROCESSING,
            current_stage="initializing",
        )

        # Assert
        assert updated is not None
        assert updated.status == JobStatus.PROCESSING
        assert updated.current_stage == "initializing"

    @pytest.mark.asyncio
    async def test_stale_expected_status_should_not_update(self, test_async_db, workspace):
        # Arrange
        job = await insert_job(test_async_db, workspace, status=JobStatus.CANCELLED)

        # Act
        updated = await job_crud.compare_and_set(
            test_async_db,
            job.id,
            JobStatus.PROCESSING,
            progress=50,
        )

        # Assert
        assert updated is None
        assert await job_crud.get_status(test_async_db, job.id) == JobStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_accepts_several_expected_statuses(self, test_async_db, workspace):
        job = await insert_job(test_async_db, workspace, status=JobStatus.PROCESSING)

        updated = await job_crud.compare_and_set(
            test_async_db,
            job.id,
            {JobStatus.PENDING, JobStatus.PROCESSING},
            status=JobStatus.CANCELLED,
        )

        assert updated.status == JobStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_second_writer_with_same_expectation_loses(self, session_factory, workspace):
        # Arrange
        async with session_factory() as session:
            job = await insert_job(session, workspace)

        # Act
        async with session_factory() as first:
            won = await job_crud.compare_and_set(
                first, job.id, JobStatus.PENDING, status=JobStatus.PROCESSING
            )
            await first.commit()
        async with session_factory() as second:
            lost = await job_crud.compare_and_set(
                second, job.id, JobStatus.PENDING, status=JobStatus.CANCELLED
            )
            await second.rollback()

        # Assert
        assert won is not None
        assert lost is None
        async with session_factory() as session:
            assert await job_crud.get_status(session, job.id) == JobStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_updated_before_guard_skips_recently_written_job(self, test_async_db, workspace):
        job = await insert_job(test_async_db, workspace, status=JobStatus.PROCESSING)

        skipped = await job_crud.compare_and_set(
            test_async_db,
            job.id,
            JobStatus.PROCESSING,
            updated_before=utcnow() - timedelta(minutes=5),
            status=JobStatus.FAILED,
        )
        applied = await job_crud.compare_and_set(
            test_async_db,
            job.id,
            JobStatus.PROCESSING,
            updated_before=utcnow() + timedelta(minutes=5),
            status=JobStatus.FAILED,
        )

        assert skipped is None
        assert applied.status == JobStatus.FAILED

    @pytest.mark.asyncio
    async def test_unknown_job_returns_none(self, test_async_db, job_id):
        assert await job_crud.compare_and_set(test_async_db, job_id, JobStatus.PENDING, progress=1) is None


class TestJobCRUDQueries:
    """Test suite for job listing queries."""

    @pytest.mark.asyncio
    async def test_list_for_project_filters_and_counts(self, test_async_db, workspace):
        # Arrange
        await insert_job(test_async_db, workspace, status=JobStatus.PENDING)
        await insert_job(test_async_db, workspace, status=JobStatus.FAILED)
        await insert_job(test_async_db, workspace, status=JobStatus.FAILED)

        # Act
        all_jobs, all_total = await job_crud.list_for_project(test_async_db, workspace.project.id)
        failed, failed_total = await job_crud.list_for_project(
            test_async_db, workspace.project.id, status=JobStatus.FAILED, limit=1
        )

        # Assert
        assert all_total == 3
        assert len(all_jobs) == 3
        assert failed_total == 2
        assert len(failed) == 1
        assert failed[0].data_source.name == "messages"

    @pytest.mark.asyncio
    async def test_list_stale_pending_uses_cutoff(self, test_async_db, workspace):
        # Arrange
        stale = await insert_job(test_async_db, workspace)
        await job_crud.update_by_id(
            test_async_db, stale.id, updated_at=utcnow() - timedelta(minutes=30)
        )
        await insert_job(test_async_db, workspace)
        await insert_job(test_async_db, workspace, status=JobStatus.FAILED)
        await test_async_db.commit()

        # Act
        found = await job_crud.list_stale_pending(
            test_async_db, older_than=utcnow() - timedelta(minutes=5), limit=10
        )

        # Assert
        assert [job.id for job in found] == [stale.id]

    @pytest.mark.asyncio
    async def test_list_stale_processing_uses_cutoff(self, test_async_db, workspace):
        # Arrange
        stale = await insert_job(test_async_db, workspace, status=JobStatus.PROCESSING)
        await job_crud.update_by_id(
            test_async_db, stale.id, updated_at=utcnow() - timedelta(hours=1)
        )
        await insert_job(test_async_db, workspace, status=JobStatus.PROCESSING)
        old_pending = await insert_job(test_async_db, workspace)
        await job_crud.update_by_id(
            test_async_db, old_pending.id, updated_at=utcnow() - timedelta(hours=1)
        )
        await test_async_db.commit()

        # Act
        found = await job_crud.list_stale_processing(
            test_async_db, older_than=utcnow() - timedelta(minutes=30), limit=10
        )

        # Assert
        assert [job.id for job in found] == [stale.id]

    @pytest.mark.asyncio
    async def test_get_with_data_source_loads_relationship(self, test_async_db, workspace):
        job = await insert_job(test_async_db, workspace)

        loaded = await job_crud.get_with_data_source(test_async_db, job.id)

        assert loaded.data_source.id == workspace.data_source.id

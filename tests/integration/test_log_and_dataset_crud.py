"""
Integration tests for JobLogCRUD and DatasetCRUD operations.
"""

import pytest

from backend.boundary.db.CRUD import dataset_crud, job_log_crud
from backend.boundary.db.models import JobLogLevel
from tests.factories import insert_job


async def insert_dataset(session, workspace, job, name="messages-output"):
    dataset = await dataset_crud.create(
        session,
        organisation_id=workspace.organisation_id,
        project_id=workspace.project.id,
        job_id=job.id,
        data_source_id=workspace.data_source.id,
        name=name,
        format="jsonl",
        file_path=f"datasets/{job.id}/{name}.jsonl",
        file_size=10,
        record_count=2,
        dataset_metadata={"piiDetectedCount": 1},
    )
    await session.commit()
    return dataset


class TestJobLogCRUD:
    """Test suite for the append-only job log."""

    @pytest.mark.asyncio
    async def test_append_and_list_newest_first(self, test_async_db, workspace):
        # Arrange
        job = await insert_job(test_async_db, workspace)
        for message in ("first", "second", "third"):
            await job_log_crud.append(test_async_db, job.id, JobLogLevel.INFO, message)
        await job_log_crud.append(
            test_async_db, job.id, JobLogLevel.ERROR, "fourth", {"stage": "filter"}
        )
        await test_async_db.commit()

        # Act
        page, total = await job_log_crud.list_for_job(test_async_db, job.id, limit=2)
        second_page, _ = await job_log_crud.list_for_job(test_async_db, job.id, limit=2, offset=2)

        # Assert
        assert total == 4
        assert [e.message for e in page] == ["fourth", "third"]
        assert [e.message for e in second_page] == ["second", "first"]
        assert page[0].level == JobLogLevel.ERROR
        assert page[0].details == {"stage": "filter"}

    @pytest.mark.asyncio
    async def test_logs_are_scoped_to_job(self, test_async_db, workspace):
        job = await insert_job(test_async_db, workspace)
        other = await insert_job(test_async_db, workspace)
        await job_log_crud.append(test_async_db, job.id, JobLogLevel.INFO, "mine")
        await job_log_crud.append(test_async_db, other.id, JobLogLevel.WARN, "theirs")
        await test_async_db.commit()

        entries, total = await job_log_crud.list_for_job(test_async_db, job.id)

        assert total == 1
        assert entries[0].message == "mine"


class TestDatasetCRUD:
    """Test suite for dataset reads and soft delete."""

    @pytest.mark.asyncio
    async def test_soft_deleted_dataset_is_hidden(self, test_async_db, workspace):
        # Arrange
        job = await insert_job(test_async_db, workspace)
        dataset = await insert_dataset(test_async_db, workspace, job)

        # Act
        await dataset_crud.soft_delete(test_async_db, dataset.id)
        await test_async_db.commit()

        # Assert
        assert await dataset_crud.get_live(test_async_db, dataset.id) is None
        assert await dataset_crud.get_by_id(test_async_db, dataset.id) is not None
        datasets, total = await dataset_crud.list_for_project(test_async_db, workspace.project.id)
        assert total == 0
        assert list(datasets) == []

    @pytest.mark.asyncio
    async def test_list_for_project_pages(self, test_async_db, workspace):
        for index in range(3):
            job = await insert_job(test_async_db, workspace)
            await insert_dataset(test_async_db, workspace, job, name=f"set-{index}")

        page, total = await dataset_crud.list_for_project(
            test_async_db, workspace.project.id, limit=2, offset=0
        )

        assert total == 3
        assert len(page) == 2

    @pytest.mark.asyncio
    async def test_get_by_job_id(self, test_async_db, workspace):
        job = await insert_job(test_async_db, workspace)
        dataset = await insert_dataset(test_async_db, workspace, job)

        found = await dataset_crud.get_by_job_id(test_async_db, job.id)

        assert found.id == dataset.id
        assert found.dataset_metadata == {"piiDetectedCount": 1}

"""
Integration tests for ProjectService.
"""

import uuid
from datetime import timedelta

import pytest

from backend.application.services.project_service import ProjectService
from backend.boundary.db.base import utcnow
from backend.boundary.db.CRUD import dataset_crud, job_crud, project_crud
from backend.boundary.db.models import JobStatus
from backend.core.exceptions import ForbiddenError, NotFoundError
from tests.factories import add_data_source, insert_job, seed_workspace


@pytest.fixture
def project_service(test_async_db) -> ProjectService:
    return ProjectService(test_async_db)


async def insert_dataset(session, workspace, job, **values):
    dataset = await dataset_crud.create(
        session,
        organisation_id=workspace.organisation_id,
        project_id=workspace.project.id,
        job_id=job.id,
        data_source_id=workspace.data_source.id,
        name="messages-output",
        format="jsonl",
        file_path=f"datasets/{job.id}/messages-output.jsonl",
        file_size=10,
        record_count=4,
        **values,
    )
    await session.commit()
    return dataset


class TestListProjects:
    """Test suite for listing an organisation's projects."""

    @pytest.mark.asyncio
    async def test_list_should_only_include_live_projects_of_caller(
        self, project_service, workspace, principal, outsider, test_async_db, storage
    ):
        # Arrange
        await seed_workspace(test_async_db, storage, outsider.organisation_id)
        deleted = await seed_workspace(test_async_db, storage, principal.organisation_id)
        await project_crud.update_by_id(test_async_db, deleted.project.id, deleted_at=utcnow())
        await test_async_db.commit()

        # Act
        projects, pagination = await project_service.list_projects(principal)

        # Assert
        assert [p.id for p in projects] == [workspace.project.id]
        assert pagination.total_count == 1

    @pytest.mark.asyncio
    async def test_list_should_order_by_last_update(self, project_service, workspace, principal, test_async_db, storage):
        newer = await seed_workspace(test_async_db, storage, principal.organisation_id)
        await project_crud.update_by_id(
            test_async_db, workspace.project.id, updated_at=utcnow() - timedelta(days=1)
        )
        await test_async_db.commit()

        projects, _ = await project_service.list_projects(principal, page=1, page_size=1)

        assert [p.id for p in projects] == [newer.project.id]


class TestGetProject:
    """Test suite for a single project with counts."""

    @pytest.mark.asyncio
    async def test_counts_for_fresh_project(self, project_service, workspace, principal):
        project = await project_service.get_project(workspace.project.id, principal)

        assert project.name == "Support logs"
        assert project.data_source_count == 1
        assert project.dataset_count == 0
        assert project.last_processed_at is None

    @pytest.mark.asyncio
    async def test_counts_skip_deleted_rows(self, project_service, workspace, principal, test_async_db):
        # Arrange
        await add_data_source(test_async_db, workspace, name="tickets")
        await add_data_source(test_async_db, workspace, name="archived", deleted_at=utcnow())
        done = await insert_job(
            test_async_db, workspace, status=JobStatus.COMPLETED, completed_at=utcnow()
        )
        older = await insert_job(
            test_async_db,
            workspace,
            status=JobStatus.COMPLETED,
            completed_at=utcnow() - timedelta(days=2),
        )
        await insert_job(test_async_db, workspace, status=JobStatus.FAILED, completed_at=utcnow())
        await insert_dataset(test_async_db, workspace, done)
        await insert_dataset(test_async_db, workspace, older, deleted_at=utcnow())

        # Act
        project = await project_service.get_project(workspace.project.id, principal)

        # Assert
        assert project.data_source_count == 2
        assert project.dataset_count == 1
        reloaded = await job_crud.get_by_id(test_async_db, done.id)
        assert project.last_processed_at == reloaded.completed_at

    @pytest.mark.asyncio
    async def test_unknown_project_should_raise_not_found(self, project_service, principal):
        with pytest.raises(NotFoundError):
            await project_service.get_project(uuid.uuid4(), principal)

    @pytest.mark.asyncio
    async def test_other_organisation_should_be_forbidden(self, project_service, workspace, outsider):
        with pytest.raises(ForbiddenError, match="Access denied to this project"):
            await project_service.get_project(workspace.project.id, outsider)

"""
Dataset service orchestrator.

Lists, previews, links and soft-deletes datasets produced by completed jobs.

Dependencies: backend.boundary.db.CRUD, backend.boundary.storage
System role: Dataset management orchestration
"""

import asyncio
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from backend.application.services.access import ensure_same_organisation, get_accessible_project
from backend.boundary.db.CRUD import dataset_crud
from backend.boundary.db.models import DatasetModel
from backend.boundary.storage import DatasetStorage
from backend.core.exceptions import InternalServerError, NotFoundError, PipelineAppException
from backend.core.job_pipeline.stages.ingest import IngestStage
from backend.models.auth import Principal
from backend.models.common import Pagination
from backend.models.dataset import DatasetDownload, DatasetPreview, DatasetResponse

logger = logging.getLogger(__name__)

PREVIEW_ROWS = 100


class DatasetService:
    """Dataset service orchestrator."""

    def __init__(self, db: AsyncSession, storage: DatasetStorage) -> None:
        """
        Initialize dataset service.

        Args:
            db: AsyncSession for database operations
            storage: Storage holding dataset files
        """
        self.db = db
        self.storage = storage

    async def _get_owned_dataset(self, dataset_id: UUID, principal: Principal) -> DatasetModel:
        dataset = await dataset_crud.get_live(self.db, dataset_id)
        if dataset is None:
            raise NotFoundError("dataset", str(dataset_id))
        ensure_same_organisation(dataset.organisation_id, principal, "dataset")
        return dataset

    async def list_datasets(
        self,
        project_id: UUID,
        principal: Principal,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[DatasetResponse], Pagination]:
        """List a project's live datasets, newest first."""
        project = await get_accessible_project(self.db, project_id, principal)
        datasets, total = await dataset_crud.list_for_project(
            self.db,
            project.id,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        return (
            [DatasetResponse.model_validate(d) for d in datasets],
            Pagination.from_counts(page, page_size, total),
        )

    async def get_dataset(self, dataset_id: UUID, principal: Principal) -> DatasetResponse:
        """Get a single dataset."""
        return DatasetResponse.model_validate(await self._get_owned_dataset(dataset_id, principal))

    async def preview_dataset(
        self,
        dataset_id: UUID,
        principal: Principal,
        limit: int = PREVIEW_ROWS,
    ) -> DatasetPreview:
        """
        Read the first rows of a dataset file.

        Raises:
            InternalServerError: If the stored file cannot be read or decoded
        """
        dataset = await self._get_owned_dataset(dataset_id, principal)
        try:
            raw = await asyncio.to_thread(self.storage.read_bytes, dataset.file_path)
            records = IngestStage().decode(raw, dataset.format)
        except PipelineAppException as e:
            logger.error(f"{__name__}:preview_dataset - Cannot read {dataset.file_path}: {e}")
            raise InternalServerError("Dataset file could not be read") from e

        rows = records[:limit]
        columns = list(dict.fromkeys(key for row in rows for key in row))
        return DatasetPreview(columns=columns, rows=rows, total_rows=dataset.record_count)

    async def get_download(self, dataset_id: UUID, principal: Principal) -> DatasetDownload:
        """Create a download link for a dataset file."""
        dataset = await self._get_owned_dataset(dataset_id, principal)
        filename = dataset.file_path.rsplit("/", 1)[-1]
        url, expires_at = await asyncio.to_thread(
            self.storage.download_url, dataset.file_path, filename
        )
        logger.info(
            f"{__name__}:get_download - Issued download link for dataset {dataset.id}",
            extra={"user_id": str(principal.user_id)},
        )
        return DatasetDownload(
            dataset_id=dataset.id,
            name=dataset.name,
            format=dataset.format,
            file_size=dataset.file_size,
            download_url=url,
            expires_at=expires_at,
        )

    async def delete_dataset(self, dataset_id: UUID, principal: Principal) -> None:
        """Soft delete a dataset. The stored file is kept."""
        dataset = await self._get_owned_dataset(dataset_id, principal)
        await dataset_crud.soft_delete(self.db, dataset.id)
        await self.db.commit()
        logger.info(f"{__name__}:delete_dataset - Soft deleted dataset {dataset.id}")

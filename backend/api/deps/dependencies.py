"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: backend.application, backend.boundary
System role: DI container for service injection
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.application.adapters.job_dispatcher import JobDispatcher, get_job_dispatcher
from backend.application.services import (
    DatasetService,
    JobService,
    ProjectService,
    SchemaMappingService,
)
from backend.boundary.db import get_async_db
from backend.boundary.storage import DatasetStorage, get_dataset_storage


def get_dispatcher() -> JobDispatcher:
    """
    Get the job dispatcher selected by PIPELINE_DISPATCH_MODE.

    Returns:
        JobDispatcher: Celery or in-process background dispatcher
    """
    return get_job_dispatcher()


def get_storage() -> DatasetStorage:
    """
    Get dataset storage selected by STORAGE_BACKEND.

    Returns:
        DatasetStorage: Local or S3 storage
    """
    return get_dataset_storage()


def get_job_service(
    db: AsyncSession = Depends(get_async_db),
    dispatcher: JobDispatcher = Depends(get_dispatcher),
) -> JobService:
    """
    Get job service instance.

    Args:
        db: Async database session (injected via Depends)
        dispatcher: Job dispatcher (injected via Depends)

    Returns:
        JobService: Job service instance
    """
    return JobService(db=db, dispatcher=dispatcher)


def get_dataset_service(
    db: AsyncSession = Depends(get_async_db),
    storage: DatasetStorage = Depends(get_storage),
) -> DatasetService:
    """
    Get dataset service instance.

    Args:
        db: Async database session (injected via Depends)
        storage: Dataset storage (injected via Depends)

    Returns:
        DatasetService: Dataset service instance
    """
    return DatasetService(db=db, storage=storage)


def get_schema_mapping_service(
    db: AsyncSession = Depends(get_async_db),
) -> SchemaMappingService:
    """
    Get schema mapping service instance.

    Args:
        db: Async database session (injected via Depends)

    Returns:
        SchemaMappingService: Schema mapping service instance
    """
    return SchemaMappingService(db=db)


def get_project_service(db: AsyncSession = Depends(get_async_db)) -> ProjectService:
    """Get project service instance."""
    return ProjectService(db=db)

"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from backend.boundary.db.CRUD import job_crud, job_log_crud

    # Use singleton instances
    job = await job_crud.get_by_id(db, job_id)

    # Or instantiate classes directly for custom behavior
    from backend.boundary.db.CRUD import JobCRUD
    custom_crud = JobCRUD()
"""

from backend.boundary.db.CRUD.base_crud import BaseCRUD
from backend.boundary.db.CRUD.job_crud import JobCRUD, job_crud
from backend.boundary.db.CRUD.job_log_crud import JobLogCRUD, job_log_crud
from backend.boundary.db.CRUD.dataset_crud import DatasetCRUD, dataset_crud
from backend.boundary.db.CRUD.workspace_crud import (
    DataSourceCRUD,
    ProjectCRUD,
    SchemaMappingCRUD,
    data_source_crud,
    project_crud,
    schema_mapping_crud,
)

__all__ = [
    "BaseCRUD",
    "JobCRUD",
    "job_crud",
    "JobLogCRUD",
    "job_log_crud",
    "DatasetCRUD",
    "dataset_crud",
    "ProjectCRUD",
    "project_crud",
    "DataSourceCRUD",
    "data_source_crud",
    "SchemaMappingCRUD",
    "schema_mapping_crud",
]

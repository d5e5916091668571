"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), get_async_db(): Async connection management
  - ProcessingJobModel, JobLogModel, DatasetModel: Pipeline entities
  - ProjectModel, DataSourceModel, SchemaMappingModel: Borrowed workspace entities
  - JobStatus, OutputFormat, JobLogLevel, DataSourceStatus: Enum types for state tracking
  - job_crud, job_log_crud, dataset_crud, ...: CRUD operation singletons

Dependencies: sqlalchemy, backend.configs
System role: Database adapter providing persistent storage for processing jobs,
their logs and output datasets.
"""

from backend.boundary.db.base import Base, TimestampMixin, UUIDMixin
from backend.boundary.db.connection import (
    create_all_tables,
    get_async_db,
    get_async_engine,
    get_async_session_factory,
)
from backend.boundary.db.models import (
    DatasetModel,
    DataSourceModel,
    DataSourceStatus,
    JobLogLevel,
    JobLogModel,
    JobStatus,
    OutputFormat,
    ProcessingJobModel,
    ProjectModel,
    SchemaMappingModel,
)
from backend.boundary.db.CRUD import (
    BaseCRUD,
    JobCRUD,
    JobLogCRUD,
    DatasetCRUD,
    job_crud,
    job_log_crud,
    dataset_crud,
    project_crud,
    data_source_crud,
    schema_mapping_crud,
)

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Connection
    "create_all_tables",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    # Models
    "DatasetModel",
    "DataSourceModel",
    "DataSourceStatus",
    "JobLogLevel",
    "JobLogModel",
    "JobStatus",
    "OutputFormat",
    "ProcessingJobModel",
    "ProjectModel",
    "SchemaMappingModel",
    # CRUD classes
    "BaseCRUD",
    "JobCRUD",
    "JobLogCRUD",
    "DatasetCRUD",
    # CRUD singletons
    "job_crud",
    "job_log_crud",
    "dataset_crud",
    "project_crud",
    "data_source_crud",
    "schema_mapping_crud",
]

"""
Database models package.

Exports:
  - ProjectModel: Project ORM model
  - DataSourceModel, DataSourceStatus: Data source ORM model and status enum
  - SchemaMappingModel: Schema mapping ORM model
  - ProcessingJobModel, JobStatus, OutputFormat: Processing job ORM model and enums
  - JobLogModel, JobLogLevel: Job log ORM model and level enum
  - DatasetModel: Dataset ORM model

Dependencies: sqlalchemy, backend.boundary.db.base
System role: Database model definitions for domain entities
"""

from backend.boundary.db.models.project_model import ProjectModel
from backend.boundary.db.models.data_source_model import DataSourceModel, DataSourceStatus
from backend.boundary.db.models.schema_mapping_model import SchemaMappingModel
from backend.boundary.db.models.job_model import JobStatus, OutputFormat, ProcessingJobModel
from backend.boundary.db.models.job_log_model import JobLogLevel, JobLogModel
from backend.boundary.db.models.dataset_model import DatasetModel

__all__ = [
    "ProjectModel",
    "DataSourceModel",
    "DataSourceStatus",
    "SchemaMappingModel",
    "ProcessingJobModel",
    "JobStatus",
    "OutputFormat",
    "JobLogModel",
    "JobLogLevel",
    "DatasetModel",
]

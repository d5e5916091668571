"""Service orchestrators."""

from .dataset_service import DatasetService
from .job_service import JobService
from .project_service import ProjectService
from .schema_mapping_service import SchemaMappingService

__all__ = [
    "DatasetService",
    "JobService",
    "ProjectService",
    "SchemaMappingService",
]

"""API-specific dependencies."""

# Re-export common dependencies
from .auth import get_current_principal, require_role
from .dependencies import (
    get_dataset_service,
    get_dispatcher,
    get_job_service,
    get_project_service,
    get_schema_mapping_service,
    get_storage,
)

__all__ = [
    "get_current_principal",
    "get_dataset_service",
    "get_dispatcher",
    "get_job_service",
    "get_project_service",
    "get_schema_mapping_service",
    "get_storage",
    "require_role",
]

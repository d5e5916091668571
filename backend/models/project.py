"""
Project schemas.

Read-only views of the projects jobs and datasets live in.

Dependencies: pydantic
System role: Project API contracts
"""

import uuid
from datetime import datetime

from backend.models.common import CamelModel


class ProjectResponse(CamelModel):
    """Project with its data source and dataset counts."""

    id: uuid.UUID
    name: str
    description: str | None
    data_source_count: int = 0
    dataset_count: int = 0
    last_processed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ProjectEnvelope(CamelModel):
    """{"project": {...}} payload."""

    project: ProjectResponse

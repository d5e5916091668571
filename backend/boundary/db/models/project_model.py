"""
Project ORM model.

Projects group data sources, schema mappings, jobs and datasets inside an
organisation. Projects are created and edited by the workspace service; this
service lists and reads them, and uses them to scope and authorise requests.

Dependencies: sqlalchemy, backend.boundary.db.base
System role: Project persistence (read side)
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.boundary.db.base import (
    Base,
    OrganisationScopedMixin,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDMixin,
)


class ProjectModel(
    Base, UUIDMixin, TimestampMixin, OrganisationScopedMixin, SoftDeleteMixin
):
    """
    Project ORM model.

    Attributes:
        id: UUID primary key
        organisation_id: Owning organisation
        name: Project name
        description: Optional description
        deleted_at: Soft delete marker
    """

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

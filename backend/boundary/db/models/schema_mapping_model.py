"""
Schema mapping ORM model.

Configuration applied by processing jobs: field correspondence
(mapping_config), PII handling (pii_config) and inclusion rules
(filter_config). At most one live mapping per data source; deleted mappings
stay behind for the jobs that used them.

Dependencies: sqlalchemy, backend.boundary.db.base
System role: Schema mapping persistence
"""

from uuid import UUID

from sqlalchemy import JSON, Boolean, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.boundary.db.base import (
    Base,
    OrganisationScopedMixin,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDMixin,
)


class SchemaMappingModel(
    Base, UUIDMixin, TimestampMixin, OrganisationScopedMixin, SoftDeleteMixin
):
    """
    Schema mapping ORM model.

    Attributes:
        id: UUID primary key
        organisation_id: Owning organisation
        project_id: Parent project
        data_source_id: Source this mapping applies to (unique among live mappings)
        mapping_config: Target field -> source field map
        pii_config: Enabled detectors, redaction method, custom patterns
        filter_config: Optional rules and AND/OR logic
        is_active: Inactive mappings cannot be used for new jobs
        deleted_at: Soft delete marker

    Relationships:
        data_source: Many-to-one with DataSourceModel
    """

    __tablename__ = "schema_mappings"
    __table_args__ = (
        Index(
            "schema_mappings_live_data_source_uq",
            "data_source_id",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    data_source_id: Mapped[UUID] = mapped_column(
        ForeignKey("data_sources.id", ondelete="CASCADE"),
        nullable=False,
    )
    mapping_config: Mapped[dict] = mapped_column(JSON, nullable=False)
    pii_config: Mapped[dict] = mapped_column(JSON, nullable=False)
    filter_config: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    data_source = relationship("DataSourceModel", lazy="raise")

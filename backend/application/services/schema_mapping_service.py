"""
Schema mapping service orchestrator.

Creates, reads, updates and soft-deletes the schema mappings processing jobs
are started from. Configs are validated by the request models before they
reach this service and are stored as the JSON the stages read back.

Dependencies: backend.boundary.db.CRUD, backend.models.schema_mapping
System role: Schema mapping management orchestration
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.application.services.access import ensure_same_organisation, get_accessible_project
from backend.boundary.db.CRUD import data_source_crud, schema_mapping_crud
from backend.boundary.db.models import SchemaMappingModel
from backend.core.exceptions import ConflictError, NotFoundError
from backend.models.auth import Principal
from backend.models.common import Pagination
from backend.models.schema_mapping import (
    CreateSchemaMappingRequest,
    SchemaMappingResponse,
    UpdateSchemaMappingRequest,
    config_to_json,
)

logger = logging.getLogger(__name__)

DUPLICATE_MAPPING_MESSAGE = "A mapping already exists for this data source"


def to_mapping_response(
    mapping: SchemaMappingModel,
    data_source_name: str | None = None,
) -> SchemaMappingResponse:
    """Build the API view of a schema mapping."""
    response = SchemaMappingResponse.model_validate(mapping)
    if data_source_name is None and "data_source" in mapping.__dict__ and mapping.data_source is not None:
        data_source_name = mapping.data_source.name
    return response.model_copy(update={"data_source_name": data_source_name})


class SchemaMappingService:
    """
    Schema mapping service orchestrator.

    Every public method enforces that the mapping (or its project) belongs to
    the caller's organisation.
    """

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize schema mapping service.

        Args:
            db: AsyncSession for database operations
        """
        self.db = db

    async def _get_owned_mapping(self, mapping_id: UUID, principal: Principal) -> SchemaMappingModel:
        mapping = await schema_mapping_crud.get_live(self.db, mapping_id)
        if mapping is None:
            raise NotFoundError("schema mapping", str(mapping_id))
        ensure_same_organisation(mapping.organisation_id, principal, "schema mapping")
        return mapping

    async def list_mappings(
        self,
        project_id: UUID,
        principal: Principal,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[SchemaMappingResponse], Pagination]:
        """
        List a project's live schema mappings, newest first.

        Returns:
            tuple: (mappings on the page, pagination metadata)
        """
        project = await get_accessible_project(self.db, project_id, principal)
        mappings, total = await schema_mapping_crud.list_for_project(
            self.db,
            project.id,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        return (
            [to_mapping_response(mapping) for mapping in mappings],
            Pagination.from_counts(page, page_size, total),
        )

    async def create_mapping(
        self,
        project_id: UUID,
        request: CreateSchemaMappingRequest,
        principal: Principal,
    ) -> SchemaMappingResponse:
        """
        Create an active schema mapping for a data source in the project.

        Raises:
            NotFoundError: Project missing, or data source not in the project
            ForbiddenError: Project belongs to another organisation
            ConflictError: The data source already has a live mapping
        """
        project = await get_accessible_project(self.db, project_id, principal)

        data_source = await data_source_crud.get_live_in_project(
            self.db, request.data_source_id, project.id
        )
        if data_source is None:
            raise NotFoundError(
                "data source",
                str(request.data_source_id),
                message="Data source not found in this project",
            )

        if await schema_mapping_crud.get_live_for_data_source(self.db, data_source.id) is not None:
            raise ConflictError(DUPLICATE_MAPPING_MESSAGE)

        try:
            mapping = await schema_mapping_crud.create(
                self.db,
                organisation_id=project.organisation_id,
                project_id=project.id,
                data_source_id=data_source.id,
                mapping_config=config_to_json(request.mapping_config),
                pii_config=config_to_json(request.pii_config),
                filter_config=config_to_json(request.filter_config),
                is_active=True,
            )
            await self.db.commit()
        except IntegrityError as e:
            # Lost a race with another create for the same data source
            await self.db.rollback()
            raise ConflictError(DUPLICATE_MAPPING_MESSAGE) from e

        logger.info(
            f"{__name__}:create_mapping - Created schema mapping {mapping.id}",
            extra={"project_id": str(project.id), "data_source_id": str(data_source.id)},
        )
        return to_mapping_response(mapping, data_source.name)

    async def get_mapping(self, mapping_id: UUID, principal: Principal) -> SchemaMappingResponse:
        """
        Get a single schema mapping.

        Raises:
            NotFoundError: Mapping missing or deleted
            ForbiddenError: Mapping belongs to another organisation
        """
        return to_mapping_response(await self._get_owned_mapping(mapping_id, principal))

    async def update_mapping(
        self,
        mapping_id: UUID,
        request: UpdateSchemaMappingRequest,
        principal: Principal,
    ) -> SchemaMappingResponse:
        """
        Apply a partial update. Jobs already created keep running with the
        config they load at claim time.

        Raises:
            NotFoundError: Mapping missing or deleted
            ForbiddenError: Mapping belongs to another organisation
        """
        mapping = await self._get_owned_mapping(mapping_id, principal)

        values = {}
        provided = request.model_fields_set
        if "mapping_config" in provided:
            values["mapping_config"] = config_to_json(request.mapping_config)
        if "pii_config" in provided:
            values["pii_config"] = config_to_json(request.pii_config)
        if "filter_config" in provided:
            values["filter_config"] = config_to_json(request.filter_config)
        if "is_active" in provided:
            values["is_active"] = request.is_active

        if not values:
            return to_mapping_response(mapping)

        await schema_mapping_crud.update_by_id(self.db, mapping.id, **values)
        await self.db.commit()
        logger.info(
            f"{__name__}:update_mapping - Updated schema mapping {mapping.id}",
            extra={"fields": sorted(values)},
        )
        return to_mapping_response(await schema_mapping_crud.get_live(self.db, mapping.id))

    async def delete_mapping(self, mapping_id: UUID, principal: Principal) -> None:
        """Soft delete a schema mapping. It can no longer be used for new jobs."""
        mapping = await self._get_owned_mapping(mapping_id, principal)
        await schema_mapping_crud.soft_delete(self.db, mapping.id)
        await self.db.commit()
        logger.info(f"{__name__}:delete_mapping - Soft deleted schema mapping {mapping.id}")

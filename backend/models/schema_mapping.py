"""
Schema mapping configuration models and schemas.

Typed views of the JSON configs stored on a schema mapping: field mapping,
PII handling and filter rules. Stages validate the stored JSON through these
before touching any records, and the schema mapping API validates request
bodies through them before anything is stored.

Dependencies: pydantic
System role: Schema mapping config validation and API contracts
"""

import re
import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from backend.models.common import CamelModel


class PiiDetector(str, Enum):
    """Built-in PII detectors."""

    EMAIL = "email"
    PHONE = "phone"
    SSN = "ssn"
    CREDIT_CARD = "credit_card"
    PERSON_NAME = "person_name"


class RedactionMethod(str, Enum):
    """How detected PII is replaced."""

    MASK = "mask"
    REMOVE = "remove"
    HASH = "hash"


class FilterOperator(str, Enum):
    """Comparison applied by a filter rule."""

    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    REGEX = "regex"


class FilterLogic(str, Enum):
    """How filter rule results are combined."""

    AND = "AND"
    OR = "OR"


class MappingConfig(BaseModel):
    """Target field -> source field correspondence."""

    model_config = ConfigDict(extra="ignore")

    message_id: str
    role: str
    message_text: str
    timestamp: str
    thread_id: str | None = None
    metadata: dict[str, str] | None = None


class CustomPattern(BaseModel):
    """User-defined PII pattern with its own replacement."""

    name: str
    regex: str
    replacement: str

    @field_validator("regex")
    @classmethod
    def validate_regex(cls, v: str) -> str:
        """Reject patterns that do not compile."""
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid regex: {e}") from e
        return v


class PiiConfig(BaseModel):
    """PII detection and redaction settings."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    enabled_detectors: list[PiiDetector] = Field(default_factory=list)
    redaction_method: RedactionMethod = RedactionMethod.MASK
    custom_patterns: list[CustomPattern] = Field(default_factory=list)


class FilterRule(BaseModel):
    """Single inclusion rule over a mapped field."""

    field: str
    operator: FilterOperator
    value: str


class FilterConfig(BaseModel):
    """Inclusion rules combined with AND/OR logic."""

    rules: list[FilterRule] = Field(default_factory=list)
    logic: FilterLogic = FilterLogic.AND


def config_to_json(config: BaseModel | None) -> dict[str, Any] | None:
    """Serialise a validated config the way it is stored on the mapping row."""
    if config is None:
        return None
    return config.model_dump(mode="json", by_alias=True, exclude_none=True)


class CreateSchemaMappingRequest(CamelModel):
    """Request body for creating a schema mapping."""

    data_source_id: uuid.UUID = Field(description="Data source in the same project")
    mapping_config: MappingConfig
    pii_config: PiiConfig
    filter_config: FilterConfig | None = None


class UpdateSchemaMappingRequest(CamelModel):
    """
    Partial update of a schema mapping.

    Omitted fields are left alone; an explicit null filterConfig removes the
    filter rules.
    """

    mapping_config: MappingConfig | None = None
    pii_config: PiiConfig | None = None
    filter_config: FilterConfig | None = None
    is_active: bool | None = None

    @field_validator("mapping_config", "pii_config", "is_active")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        """These fields can be omitted but not cleared."""
        if v is None:
            raise ValueError("cannot be null")
        return v


class SchemaMappingResponse(CamelModel):
    """Schema mapping as returned by the API."""

    id: uuid.UUID
    project_id: uuid.UUID
    data_source_id: uuid.UUID
    data_source_name: str | None = None
    mapping_config: dict[str, Any]
    pii_config: dict[str, Any]
    filter_config: dict[str, Any] | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class SchemaMappingEnvelope(CamelModel):
    """{"schemaMapping": {...}} payload."""

    schema_mapping: SchemaMappingResponse

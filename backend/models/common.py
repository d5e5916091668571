"""
Common response models and utilities.

Generic response envelopes, pagination metadata and error schemas. Field
names are snake_case in Python and camelCase on the wire.

Dependencies: pydantic
System role: Common API response structures
"""

import math
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys, built from ORM attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class DataResponse(BaseModel, Generic[T]):
    """Generic success envelope: {"data": ...}."""

    data: T


class Pagination(CamelModel):
    """Pagination metadata."""

    page: int
    page_size: int
    total_pages: int
    total_count: int

    @classmethod
    def from_counts(cls, page: int, page_size: int, total_count: int) -> "Pagination":
        return cls(
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total_count / page_size) if page_size else 0,
            total_count=total_count,
        )


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated envelope: {"data": [...], "pagination": {...}}."""

    data: list[T]
    pagination: Pagination


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str


class ErrorBody(BaseModel):
    """Error description inside the error envelope."""

    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Error message")
    details: Any | None = Field(default=None, description="Additional error context")


class ErrorResponse(BaseModel):
    """Error envelope: {"error": {"code", "message", "details"?}}."""

    error: ErrorBody

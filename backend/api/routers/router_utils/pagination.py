"""
Pagination query parameters shared by list endpoints.

Dependencies: fastapi
System role: Page/page_size parsing for list routes
"""

from dataclasses import dataclass

from fastapi import Query

from backend.models.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


@dataclass(frozen=True)
class PageParams:
    """Validated page request."""

    page: int
    page_size: int


def page_params(
    page: int = Query(default=1, ge=1, description="Page number (1-based)"),
    page_size: int = Query(
        default=DEFAULT_PAGE_SIZE,
        ge=1,
        le=MAX_PAGE_SIZE,
        description="Items per page",
    ),
) -> PageParams:
    """FastAPI dependency reading page and page_size query parameters."""
    return PageParams(page=page, page_size=page_size)

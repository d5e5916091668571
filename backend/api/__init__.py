"""
API routes module.

FastAPI routers for all HTTP endpoints.
"""

from fastapi import APIRouter

from .routers import (
    datasets_router,
    health_router,
    jobs_router,
    projects_router,
    schema_mappings_router,
)

api_router = APIRouter()

# Include all routers
api_router.include_router(health_router)
api_router.include_router(projects_router)
api_router.include_router(schema_mappings_router)
api_router.include_router(jobs_router)
api_router.include_router(datasets_router)

__all__ = ["api_router"]

"""API routers."""

from .datasets import router as datasets_router
from .health import router as health_router
from .jobs import router as jobs_router
from .projects import router as projects_router
from .schema_mappings import router as schema_mappings_router

__all__ = [
    "datasets_router",
    "health_router",
    "jobs_router",
    "projects_router",
    "schema_mappings_router",
]

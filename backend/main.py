"""
FastAPI application entry point.

Initializes FastAPI app, registers routers, adds middleware, and configures lifespan.

Dependencies: fastapi, backend.api, backend.observability, backend.configs
System role: Application initialization and configuration
"""

from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.configs import get_settings
from backend.api import api_router
from backend.api.error_handlers import register_exception_handlers
from backend.application.adapters.job_dispatcher import BackgroundJobDispatcher, get_job_dispatcher
from backend.boundary.db import create_all_tables, get_async_engine
from backend.observability.logger import configure_logging
from backend.observability.middleware import (
    RequestLoggingMiddleware,
    CorrelationMiddleware,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events. SQLite databases (development)
    get their tables created on startup; other databases are migrated
    out of band.
    """
    settings = get_settings()

    # Startup
    configure_logging(settings.log_level)
    logger.info("Application startup: logging configured")

    if settings.database.is_sqlite:
        await create_all_tables()
        logger.info("Development database tables created")

    logger.info(
        "Application startup complete",
        extra={
            "service": settings.service_name,
            "environment": settings.environment,
            "dispatch_mode": settings.pipeline.dispatch_mode,
            "storage_backend": settings.storage.backend,
        },
    )

    yield

    # Shutdown
    dispatcher = get_job_dispatcher()
    if isinstance(dispatcher, BackgroundJobDispatcher):
        await dispatcher.drain()
    await get_async_engine().dispose()
    logger.info("Application shutdown")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Dataset Pipeline API",
        description="Processing jobs that turn data sources into redacted, filtered datasets",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    # Add observability middleware (added last = first to execute)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-ID"],
    )

    # Register API routes
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backend.main:app",
        host="localhost",
        port=8082,
        reload=True,
    )

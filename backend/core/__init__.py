"""
Core business logic module.

Contains the exception hierarchy and the processing job pipeline (state
machine, progress accounting, stages and runner).
"""

from backend.core.exceptions import (
    PipelineAppException,
    BadRequestError,
    ValidationError,
    InvalidTransitionError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    InternalServerError,
    StageExecutionError,
    StorageError,
)

__all__ = [
    "PipelineAppException",
    "BadRequestError",
    "ValidationError",
    "InvalidTransitionError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "InternalServerError",
    "StageExecutionError",
    "StorageError",
]

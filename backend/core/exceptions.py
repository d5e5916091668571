"""
Exception hierarchy for the dataset pipeline application.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging, plus the
HTTP status and machine-readable code used in the API error envelope.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class PipelineAppException(Exception):
    """Base exception for all dataset pipeline application errors."""

    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (defaults per subclass)
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class BadRequestError(PipelineAppException):
    """Raised when a request is well-formed but not allowed in the current state."""

    status_code = 400
    default_code = "BAD_REQUEST"


class ValidationError(BadRequestError):
    """Raised when input validation fails."""

    default_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details=details)


class InvalidTransitionError(BadRequestError):
    """Raised when a job status transition is not permitted."""

    default_code = "INVALID_TRANSITION"

    def __init__(
        self,
        message: str,
        current_status: str,
        target_status: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize invalid transition error.

        Args:
            message: Error message
            current_status: Status the job is in
            target_status: Status the caller tried to move it to
            details: Additional context
        """
        details = details or {}
        details["current_status"] = current_status
        details["target_status"] = target_status
        super().__init__(message, details=details)


class UnauthorizedError(PipelineAppException):
    """Raised when authentication is missing or invalid."""

    status_code = 401
    default_code = "UNAUTHORIZED"


class ForbiddenError(PipelineAppException):
    """Raised when the caller may not access a resource or action."""

    status_code = 403
    default_code = "FORBIDDEN"


class NotFoundError(PipelineAppException):
    """Raised when a resource cannot be found."""

    status_code = 404
    default_code = "NOT_FOUND"

    def __init__(
        self,
        resource: str,
        resource_id: str | None = None,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize not found error.

        Args:
            resource: Kind of resource (job, project, schema mapping)
            resource_id: ID of the missing resource
            message: Override for the default "<Resource> not found" message
            details: Additional context
        """
        details = details or {}
        if resource_id:
            details[f"{resource.replace(' ', '_')}_id"] = resource_id
        super().__init__(message or f"{resource.capitalize()} not found", details=details)


class ConflictError(PipelineAppException):
    """Raised when a concurrent writer changed the resource first."""

    status_code = 409
    default_code = "CONFLICT"


class InternalServerError(PipelineAppException):
    """Raised for unexpected server-side failures."""

    status_code = 500
    default_code = "INTERNAL_ERROR"


class StageExecutionError(PipelineAppException):
    """Raised by a pipeline stage when it cannot complete."""

    def __init__(
        self,
        message: str,
        stage: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize stage execution error.

        Args:
            message: Error message
            stage: Name of the failing stage
            details: Additional context
        """
        details = details or {}
        details["stage"] = stage
        self.stage = stage
        super().__init__(message, code="STAGE_FAILED", details=details)


class StorageError(PipelineAppException):
    """Raised when dataset storage operations fail."""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize storage error.

        Args:
            message: Error message
            key: Storage key involved
            details: Additional context
        """
        details = details or {}
        if key:
            details["key"] = key
        super().__init__(message, code="STORAGE_ERROR", details=details)

"""
Exception handlers rendering the API error envelope.

Every error leaves the API as {"error": {"code", "message", "details"?}}.

Dependencies: fastapi, backend.core.exceptions
System role: HTTP error mapping
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.configs import get_settings
from backend.core.exceptions import PipelineAppException

logger = logging.getLogger(__name__)

_HTTP_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def error_response(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    """Build an error envelope response."""
    body = {"code": code, "message": message}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content={"error": body})


async def handle_app_exception(request: Request, exc: PipelineAppException) -> JSONResponse:
    """Render domain exceptions with their own status and code."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        f"{__name__}:handle_app_exception - {exc.code}: {exc.message}",
        extra={"path": request.url.path, "status_code": exc.status_code},
    )
    return error_response(exc.status_code, exc.code, exc.message, exc.details or None)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as 400 with per-field messages."""
    errors = exc.errors()
    path_errors = [e for e in errors if e.get("loc", ())[:1] == ("path",)]
    if path_errors:
        param = str(path_errors[0]["loc"][-1])
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "INVALID_ID",
            f"Invalid {param}",
            [{"field": param, "message": path_errors[0].get("msg", "Invalid value")}],
        )

    details = [
        {
            "field": ".".join(
                str(part) for part in e.get("loc", ()) if part not in ("body", "query")
            ),
            "message": e.get("msg", "Invalid value"),
        }
        for e in errors
    ]
    return error_response(
        status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", "Validation failed", details
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (unknown route, wrong method) in the envelope."""
    code = _HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
    return error_response(exc.status_code, code, str(exc.detail))


async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and hide their text unless debug is on."""
    logger.exception(
        f"{__name__}:handle_unexpected_exception - Unhandled error on {request.method} {request.url.path}"
    )
    message = str(exc) if get_settings().debug else "An unexpected error occurred"
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", message)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all envelope handlers to the app."""
    app.add_exception_handler(PipelineAppException, handle_app_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_exception)

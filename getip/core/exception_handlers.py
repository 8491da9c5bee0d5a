"""Global exception handlers for consistent error responses.

Every error leaves the service as ``{"error": <message>, "timestamp": <ISO-8601>}``
with the CORS header attached.

- AppError subclasses → status by type (InvalidKeyAppError → 500)
- HTTPException (404, 405, 429, ...) → same status and headers, uniform body
- Unexpected Exception → generic 500 (safety net)
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from getip.core.errors import AppError, InvalidKeyAppError
from getip.core.logging import get_request_id
from getip.core.responses import error_response

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."

_HTTP_MESSAGES = {
    404: "Not found",
    405: "Method not allowed",
}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors.

    InvalidKeyAppError means the client IP extraction produced an unusable
    key. That is a bug on our side, so the caller gets a generic 500 while
    the code and details go to the log.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code.
    """
    status_code = 400
    if isinstance(exc, InvalidKeyAppError):
        status_code = 500

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "error_details": exc.details,
            "status_code": status_code,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    message = INTERNAL_ERROR_MESSAGE if status_code >= 500 else exc.message
    return error_response(status_code, message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors (routing misses, 429s) with the uniform error body."""
    message = _HTTP_MESSAGES.get(exc.status_code) or str(exc.detail)
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs the failure and returns a generic message; no stack traces or
    exception text reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return error_response(500, INTERNAL_ERROR_MESSAGE)


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)

"""
Global error handling.
Provides consistent error responses and logging.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from orgstats.core.exceptions import (
    BaseAppException,
    InvariantError,
    OrgNotFoundError,
    RateLimitError,
    ValidationError,
)
from orgstats.core.logger import get_logger

logger = get_logger(__name__)


def status_for(error: BaseAppException) -> int:
    """HTTP status for an application exception."""
    if isinstance(error, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(error, OrgNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, RateLimitError):
        return status.HTTP_429_TOO_MANY_REQUESTS
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_error_response(
    error_type: str,
    message: str,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    request_id: str = "unknown",
    warning: Optional[str] = None,
) -> JSONResponse:
    """
    Create a standardized error response.

    Args:
        error_type: Type of error
        message: Human-readable error message
        status_code: HTTP status code
        request_id: Request tracking ID
        warning: Non-fatal warning to surface alongside the error

    Returns:
        JSON error response
    """
    content = {
        "error": message,
        "errorType": error_type,
        "requestId": request_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if warning:
        content["warning"] = warning

    return JSONResponse(status_code=status_code, content=content)


async def handle_app_error(request: Request, error: BaseAppException) -> JSONResponse:
    """Handle every application exception from the stats core."""
    request_id = getattr(request.state, "request_id", "unknown")
    status_code = status_for(error)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Stats request failed",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "error_type": type(error).__name__,
            "error": error.message,
            "status_code": status_code,
        },
    )

    message = error.message
    if isinstance(error, InvariantError):
        message = "Invalid response from GitHub API"

    return create_error_response(
        error_type=type(error).__name__,
        message=message,
        status_code=status_code,
        request_id=request_id,
        warning=getattr(request.state, "warning", None),
    )


async def handle_request_validation_error(
    request: Request, error: RequestValidationError
) -> JSONResponse:
    """Handle malformed request bodies."""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.warning(
        "Request validation error",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "errors": str(error.errors()),
        },
    )

    return create_error_response(
        error_type="RequestValidationError",
        message="Request validation failed",
        status_code=422,
        request_id=request_id,
    )


async def handle_generic_error(request: Request, error: Exception) -> JSONResponse:
    """Handle all other unhandled exceptions."""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.opt(exception=error).error(
        "Unhandled exception",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "error_type": type(error).__name__,
        },
    )

    return create_error_response(
        error_type="InternalServerError",
        message="Failed to fetch stats",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        request_id=request_id,
        warning=getattr(request.state, "warning", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the handlers above to an application."""
    app.add_exception_handler(BaseAppException, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_generic_error)

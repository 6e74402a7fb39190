"""
Global exception handlers for the FastAPI application.

Domain exceptions become structured ``ErrorResponse`` bodies; anything else
is reported as a generic internal error.
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from basketball_api.exceptions import (
    BasketballApiException,
    ErrorCode,
    ExternalServiceException,
)
from basketball_api.schemas.error import ErrorResponse

logger = logging.getLogger(__name__)


async def basketball_api_exception_handler(
    request: Request,
    exc: BasketballApiException
) -> JSONResponse:
    """Convert a domain exception into a JSON error response."""
    status_code = _get_status_code_for_exception(exc)

    error_response = ErrorResponse(
        error_code=exc.error_code.value,
        message=exc.message,
        details=exc.details,
        timestamp=datetime.fromisoformat(exc.timestamp),
        path=str(request.url.path),
        method=request.method,
    )

    logger.error(
        f"Application error: {exc.error_code.value}",
        extra={
            "error_data": exc.to_dict(),
            "request_path": str(request.url.path),
            "request_method": request.method,
            "status_code": status_code,
        },
    )

    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json", exclude_none=True)
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with generic error response."""
    error_response = ErrorResponse(
        error_code=ErrorCode.INTERNAL_SERVER_ERROR.value,
        message="An unexpected error occurred",
        timestamp=datetime.now(timezone.utc),
        path=str(request.url.path),
        method=request.method,
        details={"exception_type": type(exc).__name__}
    )

    logger.error(
        "Unhandled exception",
        extra={
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
            "request_path": str(request.url.path),
            "request_method": request.method,
        },
        exc_info=exc
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(mode="json", exclude_none=True)
    )


def _get_status_code_for_exception(exc: BasketballApiException) -> int:
    """Map domain exceptions to HTTP status codes."""
    if isinstance(exc, ExternalServiceException):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""
    app.add_exception_handler(BasketballApiException, basketball_api_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

"""Custom exception classes and error handling for the Stock Watch API."""

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from ..config.logging import get_logger
from .models.responses import ErrorResponse

logger = get_logger(__name__)


class APIException(Exception):
    """Base exception for errors reported through the API envelope."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class ValidationException(APIException):
    """Exception for validation errors."""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, str]] = None,
    ):
        super().__init__(
            message=message,
            status_code=400,
            details={"field_errors": field_errors or {}},
        )


class NotFoundError(APIException):
    """Exception for resource not found errors."""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            message=f"{resource} not found",
            status_code=404,
            details={"resource": resource, "identifier": str(identifier)},
        )


class DatabaseError(APIException):
    """Failed database operation; the client only sees a generic message."""

    def __init__(self, operation: str):
        super().__init__(
            message=f"Failed to {operation}",
            status_code=500,
            details={"operation": operation},
        )


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def _error_response(
    request: Request,
    status_code: int,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    error_response = ErrorResponse(
        success=False,
        error=message,
        details=details or None,
        request_id=_request_id(request),
    )
    return JSONResponse(status_code=status_code, content=error_response.model_dump())


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Handle API exceptions raised by routers."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "API exception occurred",
        exception_type=type(exc).__name__,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        request_id=_request_id(request),
        path=request.url.path,
        method=request.method,
    )
    return _error_response(request, exc.status_code, exc.message, exc.details)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError | ValidationError
) -> JSONResponse:
    """Handle request body validation failures as 400 responses."""
    field_errors = {}
    for error in exc.errors():
        # Drop the leading "body" location segment
        loc = [str(part) for part in error["loc"] if part != "body"]
        field_errors[".".join(loc) or "body"] = error["msg"].removeprefix(
            "Value error, "
        )

    logger.warning(
        "Validation error occurred",
        field_errors=field_errors,
        request_id=_request_id(request),
        path=request.url.path,
        method=request.method,
    )
    return _error_response(
        request, 400, "Request validation failed", {"field_errors": field_errors}
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions."""
    logger.warning(
        "HTTP exception occurred",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=_request_id(request),
        path=request.url.path,
        method=request.method,
    )
    return _error_response(request, exc.status_code, str(exc.detail))


async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """Handle database errors without exposing driver messages."""
    logger.error(
        "Database exception occurred",
        exception_type=type(exc).__name__,
        request_id=_request_id(request),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )
    return _error_response(request, 500, "A database error occurred")


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "Unexpected exception occurred",
        exception_type=type(exc).__name__,
        message=str(exc),
        request_id=_request_id(request),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )
    # Internal details stay in the log
    return _error_response(request, 500, "An unexpected error occurred")


def setup_exception_handlers(app):
    """Register exception handlers with FastAPI app."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")

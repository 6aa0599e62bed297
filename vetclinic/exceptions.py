"""
Global exception handlers and custom exception classes.

Every application error derives from AppException and carries the HTTP
status it maps to. The handlers registered here are the single boundary
where exceptions become responses.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
import logging

# Set up logging
logger = logging.getLogger(__name__)

class AppException(Exception):
    """
    Base exception class for application-specific exceptions.
    """
    def __init__(self, status_code: int, detail: str, headers: Optional[Dict[str, str]] = None):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail
        self.headers = headers


class NotFoundException(AppException):
    """Raised when an identity or resource does not exist."""
    def __init__(self, resource: str, field: str = "id", value: Any = None):
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found with {field}: {value}"
        )


class DuplicateResourceException(AppException):
    """Raised when a unique constraint would be violated."""
    def __init__(self, resource: str, field: str, value: Any = None):
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{resource} already exists with {field}: {value}"
        )


class BusinessException(AppException):
    """Raised when a business rule is violated."""
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class InvalidDataException(BusinessException):
    """Raised when a field value is rejected by a domain rule."""
    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(detail=f"Invalid value for '{field}': {reason}")


def _error_body(request: Request, status_code: int, detail: Any) -> Dict[str, Any]:
    return {
        "detail": detail,
        "status": status_code,
        "path": request.url.path,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def app_exception_handler(request: Request, exc: AppException):
    """
    Handler for application-specific exceptions.

    Args:
        request: The request that caused the exception
        exc: The exception instance

    Returns:
        JSONResponse: Standardized error response
    """
    if exc.status_code >= 500:
        logger.error(f"Application error: {exc.detail}")
    else:
        logger.warning(f"{type(exc).__name__}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.status_code, exc.detail),
        headers=exc.headers
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for request validation exceptions.

    Args:
        request: The request that caused the exception
        exc: The validation exception instance

    Returns:
        JSONResponse: Standardized error response with validation details
    """
    logger.warning(f"Validation error: {len(exc.errors())} errors found")
    body = _error_body(request, status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error")
    # Input values are dropped so submitted passwords never come back in the body
    body["errors"] = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=body)


async def integrity_exception_handler(request: Request, exc: IntegrityError):
    """
    Handler for unique/foreign key violations that escaped the service layer.
    """
    logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=_error_body(request, status.HTTP_409_CONFLICT, "Resource already exists")
    )


def internal_error_response(request: Request) -> JSONResponse:
    """Generic 500 response; details of the failure never reach the client."""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Handler of last resort for errors raised outside the request logging
    middleware. Full details stay in the server log.
    """
    logger.error(f"Unexpected error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return internal_error_response(request)


# Register exception handlers with FastAPI app
def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

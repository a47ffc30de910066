"""
Shared exception classes and error handling utilities for HealthVault API.

This module provides:
- Custom exception hierarchy for domain-specific errors
- Consistent error response formatting
- Exception handlers for FastAPI integration

Usage:
    from core.exceptions import RecordNotFoundError, UnauthorizedError

    # In service layer - raise domain exceptions
    raise RecordNotFoundError(record_id="6f1c...")

    # In FastAPI - register handlers via setup_exception_handlers(app)
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# =============================================================================
# BASE EXCEPTION CLASS
# =============================================================================

class HealthVaultError(Exception):
    """
    Base exception for all HealthVault domain errors.

    All custom exceptions should inherit from this class.
    Provides consistent error structure with status code, a stable kind
    and a detail message.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "internal_error"
    detail: str = "An unexpected error occurred"
    headers: Optional[Dict[str, str]] = None

    def __init__(
        self,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any
    ):
        """
        Initialize the exception.

        Args:
            detail: Human-readable error message. Uses class default if not provided.
            status_code: HTTP status code. Uses class default if not provided.
            **kwargs: Additional context to include in error response.
                Never pass filesystem paths here.
        """
        self.detail = detail or self.__class__.detail
        self.status_code = status_code or self.__class__.status_code
        self.context = {key: value for key, value in kwargs.items() if value is not None}
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        result: Dict[str, Any] = {"detail": self.detail, "kind": self.kind}
        if self.context:
            result["context"] = self.context
        return result


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================

class ValidationError(HealthVaultError):
    """Raised when required input is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "validation_error"
    detail = "Invalid request data"


class FileTooLargeError(ValidationError):
    """Raised when an uploaded file exceeds the size limit."""

    status_code = status.HTTP_413_CONTENT_TOO_LARGE
    detail = "File size exceeds maximum allowed"


class InvalidFileTypeError(ValidationError):
    """Raised when an uploaded file has a disallowed type."""

    status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    detail = "Unsupported file type"


# =============================================================================
# AUTHENTICATION / AUTHORIZATION EXCEPTIONS
# =============================================================================

class UnauthenticatedError(HealthVaultError):
    """Raised when the caller identity is missing, invalid or expired."""

    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "unauthenticated"
    detail = "Not authenticated"
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidCredentialsError(UnauthenticatedError):
    """Raised when an email/password pair does not match."""

    detail = "Invalid email or password"


class UnauthorizedError(HealthVaultError):
    """Raised when a valid caller touches a record it does not own."""

    status_code = status.HTTP_403_FORBIDDEN
    kind = "unauthorized"
    detail = "Not authorized to access this record"


# =============================================================================
# NOT FOUND / CONFLICT EXCEPTIONS
# =============================================================================

class NotFoundError(HealthVaultError):
    """Raised when a requested entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"
    detail = "Resource not found"


class RecordNotFoundError(NotFoundError):
    """Raised when a medical record is not found."""

    detail = "Record not found"

    def __init__(self, record_id: Optional[str] = None, **kwargs: Any):
        super().__init__(record_id=record_id, **kwargs)


class UserNotFoundError(NotFoundError):
    """Raised when a user account is not found."""

    detail = "User not found"


class DuplicateEmailError(HealthVaultError):
    """Raised when an email address is already registered."""

    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"
    detail = "Email already in use"


# =============================================================================
# STORAGE EXCEPTIONS
# =============================================================================

class StorageError(HealthVaultError):
    """Raised when a repository or attachment store operation fails."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "storage_error"
    detail = "Storage operation failed"

    def __init__(self, operation: Optional[str] = None, **kwargs: Any):
        detail = f"Storage error during {operation}" if operation else self.detail
        super().__init__(detail=detail, operation=operation, **kwargs)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

async def healthvault_exception_handler(
    request: Request,
    exc: HealthVaultError
) -> JSONResponse:
    """
    Handle HealthVaultError exceptions and return consistent JSON responses.

    This handler logs the error and returns a standardized JSON error response.
    """
    logger.warning(
        f"HealthVaultError: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "kind": exc.kind,
            "path": request.url.path,
            "method": request.method,
            "context": exc.context
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions with a generic error response.

    Logs the full exception for debugging but returns a safe error message.
    """
    logger.exception(
        f"Unhandled exception: {exc}",
        extra={
            "path": request.url.path,
            "method": request.method
        }
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An internal server error occurred", "kind": "internal_error"}
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Call this function during app initialization to enable consistent
    error handling across all endpoints.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(HealthVaultError, healthvault_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

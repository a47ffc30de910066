"""
Core module for application configuration, logging, and shared utilities.

This module provides:
- Settings: Application configuration via pydantic-settings
- Exceptions: Domain-specific exception classes with HTTP status codes
- Datetime utilities: UTC-first datetime handling

Dependency injection functions live in core.dependencies and the auth
dependency in core.auth; import them from there.
"""
from core.config import settings, Settings

# Exception classes for consistent error handling
from core.exceptions import (
    HealthVaultError,
    ValidationError,
    FileTooLargeError,
    InvalidFileTypeError,
    UnauthenticatedError,
    InvalidCredentialsError,
    UnauthorizedError,
    NotFoundError,
    RecordNotFoundError,
    UserNotFoundError,
    DuplicateEmailError,
    StorageError,
    setup_exception_handlers,
)

# UTC datetime utilities
from core.datetime_utils import (
    utc_now,
    to_utc,
    parse_datetime,
    format_iso,
    to_db_string,
    from_db_string,
)

__all__ = [
    # Settings
    "settings",
    "Settings",
    # Exceptions
    "HealthVaultError",
    "ValidationError",
    "FileTooLargeError",
    "InvalidFileTypeError",
    "UnauthenticatedError",
    "InvalidCredentialsError",
    "UnauthorizedError",
    "NotFoundError",
    "RecordNotFoundError",
    "UserNotFoundError",
    "DuplicateEmailError",
    "StorageError",
    "setup_exception_handlers",
    # Datetime utilities
    "utc_now",
    "to_utc",
    "parse_datetime",
    "format_iso",
    "to_db_string",
    "from_db_string",
]

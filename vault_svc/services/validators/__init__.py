"""
Validation utilities for services.
"""
from services.validators.upload_validator import (
    validate_upload_file,
    validate_file_size,
    validate_file_present,
    validate_file_extension,
    ALLOWED_EXTENSIONS,
)

__all__ = [
    "validate_upload_file",
    "validate_file_size",
    "validate_file_present",
    "validate_file_extension",
    "ALLOWED_EXTENSIONS",
]

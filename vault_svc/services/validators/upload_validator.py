"""
Validation utilities for file uploads.

All checks run before anything is written to the attachment store.
"""
import logging
from pathlib import Path
from typing import Dict, FrozenSet, Optional

from core.exceptions import FileTooLargeError, InvalidFileTypeError, ValidationError
from models.upload import UploadedFile

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".heic"})
DOCUMENT_EXTENSIONS = frozenset({".pdf", ".txt", ".doc", ".docx"})

# Allowed extensions per attachment category
ALLOWED_EXTENSIONS: Dict[str, FrozenSet[str]] = {
    "records": IMAGE_EXTENSIONS | DOCUMENT_EXTENSIONS,
    "profile": IMAGE_EXTENSIONS,
}


def validate_file_present(file: Optional[UploadedFile]) -> None:
    """
    Validate that a file was provided.

    Raises:
        ValidationError: If no file is provided.
    """
    if file is None:
        logger.error("No file provided in upload request")
        raise ValidationError("No file provided")


def validate_file_extension(file: UploadedFile, category: str) -> str:
    """
    Validate that the file has an extension allowed for the category.

    Returns:
        str: The lower-cased extension (with leading dot).

    Raises:
        InvalidFileTypeError: If the extension is missing or not allowed.
    """
    allowed = ALLOWED_EXTENSIONS[category]
    file_extension = Path(file.filename).suffix.lower() if file.filename else ""

    if not file_extension or file_extension not in allowed:
        logger.error(f"Invalid file extension for {category}: {file_extension!r}")
        raise InvalidFileTypeError(
            f"Invalid file extension. Allowed extensions: {', '.join(sorted(allowed))}"
        )

    return file_extension


def validate_file_size(file_size: int, max_size: int) -> None:
    """
    Validate that the file size is within allowed limits.

    Raises:
        ValidationError: If the file is empty.
        FileTooLargeError: If the file exceeds max_size.
    """
    if file_size == 0:
        logger.error("Empty file uploaded")
        raise ValidationError("File is empty")

    if file_size > max_size:
        logger.error(f"File size {file_size} exceeds maximum {max_size}")
        raise FileTooLargeError(
            f"File size exceeds maximum allowed size of {max_size / (1024 * 1024):.1f}MB"
        )


def validate_upload_file(file: Optional[UploadedFile], category: str, max_size: int) -> str:
    """
    Run all validation checks on an uploaded file.

    Args:
        file: The uploaded file.
        category: Attachment category ("records" or "profile").
        max_size: Maximum allowed file size in bytes.

    Returns:
        str: The validated file extension.
    """
    validate_file_present(file)
    file_extension = validate_file_extension(file, category)
    validate_file_size(file.size, max_size)
    return file_extension

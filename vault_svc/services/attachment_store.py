"""
Attachment store - binary file persistence on local disk.

Files live under <upload_dir>/<category>/ and are referenced by their public
path "/uploads/<category>/<filename>", which is what records and user
profiles store and what the static file mount serves.
"""
import logging
import secrets
import time
from pathlib import Path
from typing import Optional

from core.config import UPLOAD_DIR, UPLOAD_MAX_SIZE
from core.exceptions import StorageError
from models.upload import UploadedFile
from services.validators.upload_validator import ALLOWED_EXTENSIONS, validate_upload_file

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads"
CATEGORIES = tuple(ALLOWED_EXTENSIONS)


def generate_filename(file_extension: str) -> str:
    """Millisecond timestamp plus 64 random bits; the client's file name is never used."""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(8)}{file_extension}"


class AttachmentStore:
    """Stores, resolves and deletes uploaded attachments."""

    def __init__(self, upload_dir: str = UPLOAD_DIR, max_size: int = UPLOAD_MAX_SIZE):
        """
        Initialize the attachment store.

        Args:
            upload_dir: Root directory for all categories.
            max_size: Maximum allowed file size in bytes.
        """
        self.upload_dir = Path(upload_dir).resolve()
        self.max_size = max_size
        for category in CATEGORIES:
            (self.upload_dir / category).mkdir(parents=True, exist_ok=True)

    def validate(self, category: str, file: UploadedFile) -> str:
        """
        Check a file against the category's rules without writing it.

        Returns:
            str: The validated file extension.

        Raises:
            ValidationError: If the file is empty, too large or of a disallowed type.
        """
        if category not in CATEGORIES:
            raise ValueError(f"Unknown attachment category: {category}")
        return validate_upload_file(file, category, self.max_size)

    def store(self, category: str, file: UploadedFile) -> str:
        """
        Validate and write a file under the given category.

        Args:
            category: "records" or "profile".
            file: The uploaded file.

        Returns:
            str: The public reference of the stored file.

        Raises:
            ValidationError: If the file is empty, too large or of a disallowed type.
            StorageError: If the file cannot be written.
        """
        file_extension = self.validate(category, file)
        unique_filename = generate_filename(file_extension)
        upload_path = self.upload_dir / category / unique_filename

        try:
            with open(upload_path, "xb") as f:
                f.write(file.content)
        except OSError as e:
            logger.error(f"Failed to write attachment to disk: {e}")
            raise StorageError(operation="store_attachment") from e

        logger.info(
            f"Stored attachment: {unique_filename} (size: {file.size} bytes)",
            extra={"category": category}
        )
        return f"{UPLOAD_URL_PREFIX}/{category}/{unique_filename}"

    def resolve(self, reference: str) -> Optional[Path]:
        """
        Map a public reference to its file path.

        Returns:
            The path inside the category directory, or None if the reference is
            malformed, names an unknown category or escapes the upload root.
        """
        prefix = f"{UPLOAD_URL_PREFIX}/"
        if not reference or not reference.startswith(prefix):
            return None

        parts = reference[len(prefix):].split("/")
        if len(parts) != 2:
            return None
        category, filename = parts
        if category not in CATEGORIES or filename in ("", ".", ".."):
            return None

        category_dir = self.upload_dir / category
        path = (category_dir / filename).resolve()
        if path.parent != category_dir:
            return None
        return path

    def exists(self, reference: str) -> bool:
        """Whether the reference still points at a stored file."""
        path = self.resolve(reference)
        return path is not None and path.is_file()

    def delete(self, reference: str) -> bool:
        """
        Delete a stored file by reference.

        A missing file or unusable reference is a no-op logged as a warning.

        Returns:
            bool: True if a file was removed.

        Raises:
            StorageError: If the file exists but cannot be removed.
        """
        path = self.resolve(reference)
        if path is None:
            logger.warning("Ignoring invalid attachment reference", extra={"reference": reference})
            return False

        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Attachment already missing", extra={"reference": reference})
            return False
        except OSError as e:
            logger.error(f"Failed to delete attachment: {e}", extra={"reference": reference})
            raise StorageError(operation="delete_attachment") from e

        logger.info("Deleted attachment", extra={"reference": reference})
        return True

"""
Service layer for the medical record lifecycle.

This service owns create/read/update/delete of records together with their
file attachments and orchestrates calls to the record repository and the
attachment store.

Architecture:
    API Layer (routers) → RecordService → RecordRepository → Database
                                        → AttachmentStore  → disk

Ordering rules:
    - The ownership check runs before any mutation or attachment-store call.
    - Input validation (title, vitals, file slots, upload type and size) runs
      before any file write or delete.
    - Deleting a replaced or orphaned attachment is best-effort: failures are
      logged and never fail the operation.

There is no transaction spanning the repository and the attachment store; a
crash between the two can leave an orphaned file or a dangling reference.
"""
import logging
from typing import List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from core.exceptions import (
    HealthVaultError,
    RecordNotFoundError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)
from models.record import ATTACHMENT_SLOTS, Record, RecordFields, Vitals
from models.upload import UploadedFile
from repositories import RecordRepository
from schemas.record import VitalsSchema
from services.attachment_store import AttachmentStore

logger = logging.getLogger(__name__)

RECORDS_CATEGORY = "records"


def parse_vitals(raw: Optional[str]) -> Optional[Vitals]:
    """
    Parse the JSON-encoded vitals field.

    Returns:
        Vitals, or None when the field is absent or blank.

    Raises:
        ValidationError: If the text is not a JSON object of text/number values.
    """
    if raw is None or not raw.strip():
        return None
    try:
        payload = VitalsSchema.model_validate_json(raw)
    except PydanticValidationError as e:
        raise ValidationError("Vitals must be a JSON object of text values", field="vitals") from e
    return Vitals(**payload.model_dump())


def check_attachment_slots(files: Mapping[str, UploadedFile]) -> None:
    """Reject uploads for slots a record does not have."""
    unknown = sorted(set(files) - set(ATTACHMENT_SLOTS))
    if unknown:
        raise ValidationError(
            f"Unknown attachment field(s): {', '.join(unknown)}. "
            f"Allowed: {', '.join(ATTACHMENT_SLOTS)}"
        )


def check_uploads(store: AttachmentStore, files: Mapping[str, UploadedFile]) -> None:
    """Reject unknown slots and invalid files before anything is written or deleted."""
    check_attachment_slots(files)
    for upload in files.values():
        store.validate(RECORDS_CATEGORY, upload)


def check_owner(record: Record, owner_id: str) -> None:
    """
    Ownership check for every record-scoped operation other than create.

    Raises:
        UnauthorizedError: If the caller does not own the record.
    """
    if record.owner_id != owner_id:
        logger.warning(
            "Ownership check failed",
            extra={"record_id": record.id, "caller_id": owner_id}
        )
        raise UnauthorizedError(record_id=record.id)


class RecordService:
    """
    Record Lifecycle Manager.

    Receives its repository and attachment store via constructor injection.
    Use core.dependencies.get_record_service() in routers with Depends().
    """

    def __init__(self, record_repository: RecordRepository, attachment_store: AttachmentStore):
        """
        Initialize the record service.

        Args:
            record_repository: RecordRepository instance for record persistence.
            attachment_store: AttachmentStore instance for file persistence.
        """
        self._repo = record_repository
        self._store = attachment_store

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def create(
        self,
        owner_id: str,
        fields: RecordFields,
        files: Optional[Mapping[str, UploadedFile]] = None
    ) -> Record:
        """
        Create a record owned by the caller.

        Args:
            owner_id: Authenticated caller id; becomes the immutable owner.
            fields: Submitted text fields. title is required and non-empty.
            files: At most one file per slot (labReport, prescription).

        Returns:
            Record: The persisted record with id and timestamps.

        Raises:
            ValidationError: Missing owner/title, malformed vitals, bad upload.
            StorageError: If the record or a file cannot be persisted.
        """
        files = files or {}
        if not owner_id:
            raise ValidationError("Owner id is required")
        if not fields.title or not fields.title.strip():
            raise ValidationError("Title is required", field="title")
        vitals = parse_vitals(fields.vitals) or Vitals()
        check_uploads(self._store, files)

        record = Record(
            owner_id=owner_id,
            title=fields.title,
            medical_history=fields.medical_history or "",
            doctor_notes=fields.doctor_notes or "",
            vitals=vitals,
        )

        stored: List[str] = []
        try:
            for slot, upload in files.items():
                reference = self._store.store(RECORDS_CATEGORY, upload)
                stored.append(reference)
                record.files.set(slot, reference)
            created = self._persist(self._repo.insert, record, operation="create_record")
        except HealthVaultError:
            # Nothing references these files yet
            for reference in stored:
                self._discard_attachment(reference)
            raise

        logger.info(
            "Record created",
            extra={"record_id": created.id, "owner_id": owner_id, "attachments": len(stored)}
        )
        return created

    def list(self, owner_id: str) -> List[Record]:
        """
        List the caller's records, newest first.

        Returns:
            List[Record]: Possibly empty.
        """
        return self._persist(self._repo.find_by_owner, owner_id, operation="list_records")

    def get(self, record_id: str, owner_id: str) -> Record:
        """
        Get a single record owned by the caller.

        Raises:
            RecordNotFoundError: If the record does not exist.
            UnauthorizedError: If the caller does not own it.
        """
        return self._load_owned(record_id, owner_id)

    def update(
        self,
        record_id: str,
        owner_id: str,
        fields: RecordFields,
        files: Optional[Mapping[str, UploadedFile]] = None
    ) -> Record:
        """
        Partially update a record.

        - title, medical_history, doctor_notes change only when not None;
          an empty string overwrites.
        - vitals, when given, replaces the whole structure.
        - A new file for a slot replaces the old one; the old file is deleted
          first (best-effort). Slots without a new file are left untouched.

        Raises:
            RecordNotFoundError, UnauthorizedError, ValidationError, StorageError
        """
        files = files or {}
        record = self._load_owned(record_id, owner_id)

        vitals = parse_vitals(fields.vitals)
        check_uploads(self._store, files)

        if fields.title is not None:
            record.title = fields.title
        if fields.medical_history is not None:
            record.medical_history = fields.medical_history
        if fields.doctor_notes is not None:
            record.doctor_notes = fields.doctor_notes
        if vitals is not None:
            record.vitals = vitals

        stored: List[str] = []
        try:
            for slot, upload in files.items():
                previous = record.files.get(slot)
                if previous:
                    self._discard_attachment(previous)
                reference = self._store.store(RECORDS_CATEGORY, upload)
                stored.append(reference)
                record.files.set(slot, reference)
            updated = self._persist(self._repo.save, record, operation="update_record")
        except HealthVaultError:
            # The saved record never pointed at these files
            for reference in stored:
                self._discard_attachment(reference)
            raise

        logger.info(
            "Record updated",
            extra={"record_id": record_id, "replaced_attachments": sorted(files)}
        )
        return updated

    def delete(self, record_id: str, owner_id: str) -> None:
        """
        Delete a record and, best-effort, its attachments.

        A second delete of the same id raises RecordNotFoundError.

        Raises:
            RecordNotFoundError, UnauthorizedError, StorageError
        """
        record = self._load_owned(record_id, owner_id)

        for reference in record.files.references():
            self._discard_attachment(reference)

        self._persist(self._repo.delete_by_id, record_id, operation="delete_record")
        logger.info("Record deleted", extra={"record_id": record_id})

    def delete_all_for_owner(self, owner_id: str) -> int:
        """
        Delete every record of a user together with their attachments.

        Used when the owning account is deleted.

        Returns:
            int: Number of records deleted.
        """
        records = self._persist(self._repo.find_by_owner, owner_id, operation="list_records")
        for record in records:
            for reference in record.files.references():
                self._discard_attachment(reference)
        return self._persist(self._repo.delete_all_by_owner, owner_id, operation="delete_owner_records")

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _load_owned(self, record_id: str, owner_id: str) -> Record:
        record = self._persist(self._repo.find_by_id, record_id, operation="load_record")
        if record is None:
            raise RecordNotFoundError(record_id=record_id)
        check_owner(record, owner_id)
        return record

    def _discard_attachment(self, reference: str) -> None:
        """Best-effort delete of a file that is no longer (or never was) referenced."""
        try:
            self._store.delete(reference)
        except StorageError as e:
            logger.warning(
                "Could not delete attachment; leaving orphaned file",
                extra={"reference": reference, "error": str(e)}
            )

    def _persist(self, call, *args, operation: str):
        """Run a repository call, wrapping unexpected failures in StorageError."""
        try:
            return call(*args)
        except HealthVaultError:
            raise
        except Exception as e:
            logger.error(f"Database error during {operation}: {e}", exc_info=True)
            raise StorageError(operation=operation) from e

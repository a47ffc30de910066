"""
Repository for medical record database operations.

Architecture:
    RecordRepository is the data access layer for records.
    It should be injected via core.dependencies.get_record_repository().

All SQL is encapsulated in this repository - no SQL in service or API layers.
"""
import logging
import uuid
from dataclasses import replace
from typing import List, Optional

from repositories.base import Database
from models.record import Record
from core.datetime_utils import utc_now, to_db_string
from core.exceptions import RecordNotFoundError

logger = logging.getLogger(__name__)

RECORD_COLUMNS = """
    id, owner_id, title, medical_history, doctor_notes, vitals,
    lab_report, prescription, created_at, updated_at
"""


class RecordRepository:
    """
    Repository for record CRUD operations.

    Records are returned as models.record.Record instances.
    """

    def __init__(self, db: Database):
        """
        Initialize the record repository.

        Args:
            db: Database instance for data access.
                Injected via core.dependencies.get_record_repository().
        """
        self._db = db

    def find_by_id(self, record_id: str) -> Optional[Record]:
        """
        Get a record by id.

        Returns:
            The Record, or None if no record has this id.
        """
        conn = self._db.get_connection()
        try:
            row = conn.execute(
                f"SELECT {RECORD_COLUMNS} FROM records WHERE id = ?",
                (record_id,)
            ).fetchone()
        finally:
            conn.close()

        return Record.from_row(row) if row else None

    def find_by_owner(self, owner_id: str) -> List[Record]:
        """
        Get all records owned by a user, newest first.

        Records created within the same timestamp keep reverse insertion order.
        """
        conn = self._db.get_connection()
        try:
            rows = conn.execute(
                f"""
                SELECT {RECORD_COLUMNS} FROM records
                WHERE owner_id = ?
                ORDER BY created_at DESC, rowid DESC
                """,
                (owner_id,)
            ).fetchall()
        finally:
            conn.close()

        return [Record.from_row(row) for row in rows]

    def insert(self, record: Record) -> Record:
        """
        Insert a new record, assigning its id and timestamps.

        created_at and updated_at are set from the same clock reading.

        Returns:
            A copy of the record with id, created_at and updated_at populated.
        """
        now = utc_now()
        created = replace(record, id=uuid.uuid4().hex, created_at=now, updated_at=now)

        conn = self._db.get_connection()
        try:
            conn.execute(
                f"INSERT INTO records ({RECORD_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    created.id,
                    created.owner_id,
                    created.title,
                    created.medical_history,
                    created.doctor_notes,
                    created.vitals.to_json(),
                    created.files.lab_report,
                    created.files.prescription,
                    to_db_string(now),
                    to_db_string(now),
                )
            )
            conn.commit()
        finally:
            conn.close()

        logger.debug("Record inserted", extra={"record_id": created.id})
        return created

    def save(self, record: Record) -> Record:
        """
        Persist all mutable fields of an existing record and refresh updated_at.

        owner_id and created_at are never written here.

        Raises:
            RecordNotFoundError: If the record no longer exists.
        """
        updated = replace(record, updated_at=utc_now())

        conn = self._db.get_connection()
        try:
            cursor = conn.execute(
                """
                UPDATE records
                SET title = ?, medical_history = ?, doctor_notes = ?, vitals = ?,
                    lab_report = ?, prescription = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    updated.title,
                    updated.medical_history,
                    updated.doctor_notes,
                    updated.vitals.to_json(),
                    updated.files.lab_report,
                    updated.files.prescription,
                    to_db_string(updated.updated_at),
                    updated.id,
                )
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise RecordNotFoundError(record_id=record.id)
        finally:
            conn.close()

        return updated

    def delete_by_id(self, record_id: str) -> None:
        """
        Delete a record.

        Raises:
            RecordNotFoundError: If no record has this id.
        """
        conn = self._db.get_connection()
        try:
            cursor = conn.execute("DELETE FROM records WHERE id = ?", (record_id,))
            conn.commit()
            if cursor.rowcount == 0:
                raise RecordNotFoundError(record_id=record_id)
        finally:
            conn.close()

    def delete_all_by_owner(self, owner_id: str) -> int:
        """
        Delete every record owned by a user.

        Returns:
            int: Number of records deleted.
        """
        conn = self._db.get_connection()
        try:
            cursor = conn.execute("DELETE FROM records WHERE owner_id = ?", (owner_id,))
            conn.commit()
            deleted = cursor.rowcount
        finally:
            conn.close()

        logger.info(f"Deleted {deleted} records for owner", extra={"owner_id": owner_id})
        return deleted

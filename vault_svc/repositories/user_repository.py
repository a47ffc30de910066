"""
Repository for user account database operations.

Architecture:
    UserRepository is the data access layer for users.
    It should be injected via core.dependencies.get_user_repository().
"""
import sqlite3
import logging
import uuid
from dataclasses import replace
from typing import Optional

from repositories.base import Database
from models.user import User
from core.datetime_utils import utc_now, to_db_string

logger = logging.getLogger(__name__)

USER_COLUMNS = "id, name, email, password_hash, profile_picture, created_at, updated_at"


class UserRepository:
    """Repository for user CRUD operations."""

    def __init__(self, db: Database):
        """
        Initialize the user repository.

        Args:
            db: Database instance for data access.
        """
        self._db = db

    def add(self, user: User) -> Optional[User]:
        """
        Insert a new user, assigning id and timestamps.

        Returns:
            Optional[User]: The created user, or None if the email is already
                registered (UNIQUE constraint violation).
        """
        now = utc_now()
        created = replace(user, id=uuid.uuid4().hex, created_at=now, updated_at=now)

        conn = self._db.get_connection()
        try:
            conn.execute(
                f"INSERT INTO users ({USER_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    created.id,
                    created.name,
                    created.email,
                    created.password_hash,
                    created.profile_picture,
                    to_db_string(now),
                    to_db_string(now),
                )
            )
            conn.commit()
            return created
        except sqlite3.IntegrityError:
            # Email already exists (UNIQUE constraint)
            return None
        finally:
            conn.close()

    def get_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by id, or None if not found."""
        conn = self._db.get_connection()
        try:
            row = conn.execute(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,)
            ).fetchone()
        finally:
            conn.close()
        return User.from_row(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by (normalized) email, or None if not found."""
        conn = self._db.get_connection()
        try:
            row = conn.execute(
                f"SELECT {USER_COLUMNS} FROM users WHERE email = ?", (email,)
            ).fetchone()
        finally:
            conn.close()
        return User.from_row(row) if row else None

    def exists(self, user_id: str) -> bool:
        """Check whether a user id is still registered."""
        conn = self._db.get_connection()
        try:
            row = conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone()
        finally:
            conn.close()
        return row is not None

    def save(self, user: User) -> Optional[User]:
        """
        Persist name, email, password hash and profile picture; refresh updated_at.

        Returns:
            Optional[User]: The saved user, or None if the new email belongs
                to another account.
        """
        updated = replace(user, updated_at=utc_now())

        conn = self._db.get_connection()
        try:
            conn.execute(
                """
                UPDATE users
                SET name = ?, email = ?, password_hash = ?, profile_picture = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    updated.name,
                    updated.email,
                    updated.password_hash,
                    updated.profile_picture,
                    to_db_string(updated.updated_at),
                    updated.id,
                )
            )
            conn.commit()
            return updated
        except sqlite3.IntegrityError:
            return None
        finally:
            conn.close()

    def delete_by_id(self, user_id: str) -> bool:
        """
        Delete a user.

        Returns:
            bool: True if a row was deleted.
        """
        conn = self._db.get_connection()
        try:
            cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

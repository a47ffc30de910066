"""
Domain model for user accounts.
"""
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.datetime_utils import from_db_string


@dataclass
class User:
    """Model representing a registered user."""

    name: str
    email: str
    password_hash: str
    profile_picture: str = ""
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "User":
        """Create a User from a `users` table row."""
        return cls(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
            profile_picture=row["profile_picture"] or "",
            created_at=from_db_string(row["created_at"]),
            updated_at=from_db_string(row["updated_at"]),
        )

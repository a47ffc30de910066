"""
Repository layer for database access.

This module contains all database access operations, encapsulating SQL and data persistence logic.
"""
from repositories.base import Database
from repositories.record_repository import RecordRepository
from repositories.user_repository import UserRepository

__all__ = [
    "Database",
    "RecordRepository",
    "UserRepository",
]

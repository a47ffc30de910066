"""
Base database connection and initialization.

This module handles database connection management and schema initialization.
Optimized for SQLite concurrency with WAL mode and busy_timeout.

IMPORTANT: Database instantiation should be done through the application
lifespan (main.py) and reached via core.dependencies.get_database().
"""
import sqlite3
import logging
from typing import Optional
from pathlib import Path

from core.config import DATABASE_PATH, DATABASE_BUSY_TIMEOUT

logger = logging.getLogger(__name__)


class Database:
    """
    SQLite database connection manager with concurrency optimizations.

    Features:
    - WAL mode for better concurrent read/write performance
    - Busy timeout to handle lock contention gracefully
    - Rows returned as sqlite3.Row (access by column name)
    - UTC timestamps written by the application, never by SQLite defaults

    Usage:
        # Via dependency injection (recommended):
        from core.dependencies import get_database

        # Direct instantiation (for testing):
        db = Database(db_path="/tmp/test.db")
    """

    def __init__(self, db_path: Optional[str] = None, busy_timeout: Optional[int] = None):
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file. Defaults to config DATABASE_PATH.
            busy_timeout: SQLite busy timeout in milliseconds. Defaults to config value.
        """
        self.db_path = db_path or DATABASE_PATH
        self.busy_timeout = busy_timeout if busy_timeout is not None else DATABASE_BUSY_TIMEOUT

        db_dir = Path(self.db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)

        self._init_db()

    def _configure_connection(self, conn: sqlite3.Connection) -> None:
        """
        Configure connection with optimal settings for concurrency.

        Args:
            conn: SQLite connection to configure.
        """
        # Wait for locks instead of failing immediately
        conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout}")
        conn.row_factory = sqlite3.Row

    def _init_db(self) -> None:
        """Initialize database schema and enable WAL mode if not already enabled."""
        conn = sqlite3.connect(self.db_path)
        self._configure_connection(conn)
        cursor = conn.cursor()

        # WAL mode persists in the database file, so this only needs to run once
        cursor.execute("PRAGMA journal_mode = WAL")
        result = cursor.fetchone()
        if result and result[0].lower() == 'wal':
            logger.info(f"SQLite WAL mode enabled for {self.db_path}")
        else:
            logger.warning(f"Failed to enable WAL mode, current mode: {tuple(result) if result else None}")

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                profile_picture TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        # No foreign key to users: RecordService.delete_all_for_owner removes
        # a user's rows together with their attachments
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS records (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                title TEXT NOT NULL,
                medical_history TEXT NOT NULL DEFAULT '',
                doctor_notes TEXT NOT NULL DEFAULT '',
                vitals TEXT NOT NULL DEFAULT '{}',
                lab_report TEXT NOT NULL DEFAULT '',
                prescription TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_records_owner_created "
            "ON records (owner_id, created_at)"
        )

        conn.commit()
        conn.close()

        logger.info(
            f"Database initialized: {self.db_path} "
            f"(busy_timeout={self.busy_timeout}ms)"
        )

    def get_connection(self) -> sqlite3.Connection:
        """
        Get a new database connection with concurrency settings.

        Returns:
            sqlite3.Connection: A new connection with busy timeout set and
                sqlite3.Row as row factory.
        """
        conn = sqlite3.connect(self.db_path)
        self._configure_connection(conn)
        return conn

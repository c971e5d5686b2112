"""
Brotherhood KOS - Database Manager
==================================

Central SQLite database manager for all KOS data.
"""

import os
import sqlite3
import threading
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Union

from brotherhood_kos.core.logger import logger
from brotherhood_kos.core.constants import DB_CONNECTION_TIMEOUT, SQLITE_BUSY_TIMEOUT

from brotherhood_kos.core.database.schema import SchemaMixin
from brotherhood_kos.core.database.entries import EntriesMixin
from brotherhood_kos.core.database.history import HistoryMixin
from brotherhood_kos.core.database.logs import LogsMixin
from brotherhood_kos.core.database.config_store import ConfigStoreMixin
from brotherhood_kos.core.database.auth import AuthMixin


# =============================================================================
# Constants
# =============================================================================

DEFAULT_DB_PATH: Path = Path("data") / "kos.db"

DB_PATH: Optional[Path] = None
"""Explicit database path; falls back to DATABASE_PATH, then DEFAULT_DB_PATH."""

Params = Union[Sequence[Any], Mapping[str, Any]]


def _resolve_db_path() -> Path:
    if DB_PATH is not None:
        return Path(DB_PATH)
    return Path(os.getenv("DATABASE_PATH") or DEFAULT_DB_PATH)


# =============================================================================
# Database Manager (Singleton)
# =============================================================================

class DatabaseManager(
    SchemaMixin,
    EntriesMixin,
    HistoryMixin,
    LogsMixin,
    ConfigStoreMixin,
    AuthMixin,
):
    """
    Centralized database manager with thread-safe operations.

    DESIGN: Singleton pattern ensures single database connection.
    Uses WAL mode for better concurrency with multiple readers.
    All operations are thread-safe via internal locking.
    """

    _instance: Optional["DatabaseManager"] = None
    _lock: threading.Lock = threading.Lock()

    def __new__(cls) -> "DatabaseManager":
        """Singleton pattern - only one instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        """Initialize database connection and tables."""
        if self._initialized:
            return

        self._db_lock: threading.Lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None
        self.db_path: Path = _resolve_db_path()

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connect()
        self._init_tables()
        self._initialized = True

        logger.tree("Database Manager Initialized", [
            ("Path", str(self.db_path)),
            ("WAL Mode", "Enabled"),
        ], emoji="🗄️")

    # =========================================================================
    # Connection Management
    # =========================================================================

    def _connect(self) -> None:
        """Establish database connection with WAL mode."""
        try:
            self._conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                timeout=DB_CONNECTION_TIMEOUT,
                isolation_level=None,
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA synchronous=NORMAL")
            self._conn.execute("PRAGMA temp_store=MEMORY")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT}")
            self._conn.row_factory = sqlite3.Row
        except sqlite3.Error as e:
            logger.error("Database Connection Failed", [
                ("Path", str(self.db_path)),
                ("Error", str(e)),
            ])
            raise

    def _ensure_connection(self) -> sqlite3.Connection:
        """Ensure connection is valid, reconnect if needed."""
        if self._conn is None:
            self._connect()
        try:
            self._conn.execute("SELECT 1")
        except sqlite3.Error:
            self._connect()
        return self._conn

    def execute(
        self,
        query: str,
        params: Params = (),
        commit: bool = True
    ) -> sqlite3.Cursor:
        """Execute a query with thread safety."""
        with self._db_lock:
            conn = self._ensure_connection()
            cursor = conn.cursor()
            cursor.execute(query, params)
            if commit and conn.in_transaction:
                conn.commit()
            return cursor

    def executemany(
        self,
        query: str,
        params_list: List[Sequence[Any]],
        commit: bool = True
    ) -> sqlite3.Cursor:
        """Execute many queries with thread safety."""
        with self._db_lock:
            conn = self._ensure_connection()
            cursor = conn.cursor()
            cursor.executemany(query, params_list)
            if commit and conn.in_transaction:
                conn.commit()
            return cursor

    def fetchone(self, query: str, params: Params = ()) -> Optional[sqlite3.Row]:
        """Execute query and fetch one result."""
        cursor = self.execute(query, params, commit=False)
        return cursor.fetchone()

    def fetchall(self, query: str, params: Params = ()) -> List[sqlite3.Row]:
        """Execute query and fetch all results."""
        cursor = self.execute(query, params, commit=False)
        return cursor.fetchall()

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            return self.fetchone("SELECT 1 AS ok") is not None
        except sqlite3.Error as e:
            logger.warning("Database Ping Failed", [("Error", str(e))])
            return False

    def close(self) -> None:
        """Close database connection."""
        with self._db_lock:
            if self._conn:
                self._conn.close()
                self._conn = None
                logger.info("Database Connection Closed")

    # =========================================================================
    # Transaction Support
    # =========================================================================

    class Transaction:
        """
        Context manager for atomic database transactions.

        Usage:
            with db.transaction() as tx:
                tx.execute("UPDATE kos_entries ...", (...))
                tx.execute("INSERT INTO kos_history ...", (...))
            # Commits on success, rolls back on exception
        """

        def __init__(self, db: "DatabaseManager"):
            self._db = db
            self._cursor: Optional[sqlite3.Cursor] = None

        def __enter__(self) -> "DatabaseManager.Transaction":
            self._db._db_lock.acquire()
            try:
                conn = self._db._ensure_connection()
                conn.execute("BEGIN IMMEDIATE")
                self._cursor = conn.cursor()
            except BaseException:
                self._db._db_lock.release()
                raise
            return self

        def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
            conn = self._db._ensure_connection()
            try:
                if exc_type is None:
                    conn.commit()
                else:
                    conn.rollback()
                    logger.warning("Database Transaction Rolled Back", [
                        ("Error", str(exc_val)[:100] if exc_val else "Unknown"),
                    ])
            finally:
                self._db._db_lock.release()
            return False

        def execute(self, query: str, params: Params = ()) -> sqlite3.Cursor:
            """Execute a query within this transaction."""
            self._cursor.execute(query, params)
            return self._cursor

        def fetchone(self) -> Optional[sqlite3.Row]:
            """Fetch one result from the last query."""
            return self._cursor.fetchone() if self._cursor else None

        def fetchall(self) -> List[sqlite3.Row]:
            """Fetch all results from the last query."""
            return self._cursor.fetchall() if self._cursor else []

        @property
        def lastrowid(self) -> int:
            """Get the last inserted row ID."""
            return self._cursor.lastrowid if self._cursor else 0

    def transaction(self) -> "DatabaseManager.Transaction":
        """
        Create a new transaction context manager.

        Returns:
            Transaction context manager for atomic operations.
        """
        return self.Transaction(self)


# =============================================================================
# Global Instance
# =============================================================================

def get_db() -> DatabaseManager:
    """Get the global database manager instance."""
    return DatabaseManager()


def reset_db() -> None:
    """Close and drop the singleton so the next get_db() reconnects."""
    with DatabaseManager._lock:
        instance = DatabaseManager._instance
        if instance is not None and getattr(instance, "_initialized", False):
            instance.close()
        DatabaseManager._instance = None


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["DatabaseManager", "get_db", "reset_db", "DB_PATH", "DEFAULT_DB_PATH"]

"""
Brotherhood KOS - Database Module
=================================

SQLite persistence for KOS entries, history, logs, config and auth.
"""

from brotherhood_kos.core.database.manager import (
    DatabaseManager,
    get_db,
    reset_db,
    DEFAULT_DB_PATH,
)

from brotherhood_kos.core.database.models import (
    Actor,
    KosEntryRecord,
    HistoryRecord,
    LogRecord,
    AuthCodeRecord,
    SessionRecord,
)

__all__ = [
    # Main interface
    "DatabaseManager",
    "get_db",
    "reset_db",
    "DEFAULT_DB_PATH",

    # Type definitions
    "Actor",
    "KosEntryRecord",
    "HistoryRecord",
    "LogRecord",
    "AuthCodeRecord",
    "SessionRecord",
]

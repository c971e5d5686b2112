"""
Brotherhood KOS - Operational Logs Mixin
========================================

Structured log rows in kos_logs, readable through /api/logs.
"""

import json
import time
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from brotherhood_kos.core.database.models import LogRecord

if TYPE_CHECKING:
    from brotherhood_kos.core.database.manager import DatabaseManager


class LogsMixin:
    """Mixin for kos_logs operations."""

    def add_log(
        self: "DatabaseManager",
        level: str,
        category: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
        username: Optional[str] = None,
    ) -> int:
        """
        Insert an operational log row.

        Args:
            level: One of LOG_LEVELS.
            category: One of LOG_CATEGORIES.
            message: Short description of the event.
            details: Optional JSON-serializable context.
            user_id: Actor ID, if any.
            username: Actor display name, if any.

        Returns:
            ID of the inserted row.
        """
        cursor = self.execute(
            """INSERT INTO kos_logs
               (level, category, message, details, user_id, username, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                level, category, message,
                json.dumps(details, default=str) if details is not None else None,
                user_id, username, time.time(),
            )
        )
        return cursor.lastrowid

    def get_logs(
        self: "DatabaseManager",
        limit: int = 50,
        category: Optional[str] = None,
        level: Optional[str] = None,
    ) -> List[LogRecord]:
        """Get log rows, newest first, optionally filtered."""
        clauses = []
        params: list = []
        if category:
            clauses.append("category = ?")
            params.append(category)
        if level:
            clauses.append("level = ?")
            params.append(level)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        rows = self.fetchall(
            f"SELECT * FROM kos_logs {where} ORDER BY created_at DESC, id DESC LIMIT ?",
            tuple(params) + (limit,)
        )
        return [dict(row) for row in rows]


__all__ = ["LogsMixin"]

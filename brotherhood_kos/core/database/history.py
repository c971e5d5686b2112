"""
Brotherhood KOS - History Operations Mixin
==========================================

Append-only KOS audit trail.
"""

from typing import TYPE_CHECKING, List, Optional, Tuple

from brotherhood_kos.core.constants import HISTORY_ACTIONS
from brotherhood_kos.core.database.models import HistoryRecord, KosEntryRecord

if TYPE_CHECKING:
    from brotherhood_kos.core.database.manager import DatabaseManager


class HistoryMixin:
    """Mixin for kos_history operations."""

    # =========================================================================
    # Writes (inside entry transactions)
    # =========================================================================

    def _insert_history(
        self: "DatabaseManager",
        tx: "DatabaseManager.Transaction",
        entry: KosEntryRecord,
        action: str,
        reason: Optional[str],
        performed_by_id: str,
        performed_by_name: str,
        now: float,
    ) -> int:
        """
        Append a history row within an open transaction.

        Args:
            tx: Transaction that also carries the entry mutation.
            entry: Entry row after the mutation.
            action: One of HISTORY_ACTIONS.
            reason: Reason recorded for the action.
            performed_by_id: Actor ID (Discord ID or "system").
            performed_by_name: Actor display name.
            now: Timestamp shared with the entry mutation.

        Returns:
            ID of the inserted history row.
        """
        if action not in HISTORY_ACTIONS:
            raise ValueError(f"Unknown history action: {action}")

        tx.execute(
            """INSERT INTO kos_history
               (entry_id, roblox_user_id, roblox_username, action, reason,
                performed_by_id, performed_by_name, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                entry["id"], entry["roblox_user_id"], entry["roblox_username"],
                action, reason, performed_by_id, performed_by_name, now,
            )
        )
        return tx.lastrowid

    # =========================================================================
    # Reads
    # =========================================================================

    def get_kos_history(
        self: "DatabaseManager",
        limit: int = 20,
        offset: int = 0,
        roblox_user_id: Optional[str] = None,
    ) -> Tuple[List[HistoryRecord], int]:
        """
        Get history rows, newest first.

        Args:
            limit: Maximum rows to return.
            offset: Rows to skip.
            roblox_user_id: Restrict to one Roblox user.

        Returns:
            Tuple of (rows, total matching rows).
        """
        where = ""
        params: Tuple = ()
        if roblox_user_id:
            where = "WHERE roblox_user_id = ?"
            params = (roblox_user_id,)

        total_row = self.fetchone(f"SELECT COUNT(*) AS n FROM kos_history {where}", params)
        rows = self.fetchall(
            f"""SELECT * FROM kos_history {where}
                ORDER BY created_at DESC, id DESC
                LIMIT ? OFFSET ?""",
            params + (limit, offset)
        )
        return [dict(row) for row in rows], total_row["n"] if total_row else 0

    def count_history_actions(
        self: "DatabaseManager",
        action: str,
        roblox_user_id: Optional[str] = None,
    ) -> int:
        """Count history rows for an action, optionally for one user."""
        if roblox_user_id:
            row = self.fetchone(
                "SELECT COUNT(*) AS n FROM kos_history WHERE action = ? AND roblox_user_id = ?",
                (action, roblox_user_id)
            )
        else:
            row = self.fetchone(
                "SELECT COUNT(*) AS n FROM kos_history WHERE action = ?",
                (action,)
            )
        return row["n"] if row else 0


__all__ = ["HistoryMixin"]

"""
Brotherhood KOS - KOS Entry Operations Mixin
============================================

Storage for the KOS list itself.

DESIGN:
    Every mutation of kos_entries runs inside one BEGIN IMMEDIATE
    transaction together with its kos_history row, so the audit trail
    can never drift from the entry table. The existence check happens
    inside the same transaction, which serializes concurrent adds for
    the same Roblox user.
"""

from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from brotherhood_kos.core.constants import (
    ACTION_ADDED,
    STATUS_ACTIVE,
    STATUS_ARCHIVED,
)
from brotherhood_kos.core.database.models import KosEntryRecord

if TYPE_CHECKING:
    from brotherhood_kos.core.database.manager import DatabaseManager


# =============================================================================
# Filter Clauses
# =============================================================================

_FILTER_CLAUSES: Dict[str, str] = {
    "active": "status = 'active'",
    "expiring": (
        "status = 'active' AND is_permanent = 0 AND expires_at IS NOT NULL "
        "AND expires_at >= :now AND expires_at <= :until"
    ),
    "permanent": "status = 'active' AND is_permanent = 1",
    "archived": "status = 'archived'",
}


class EntriesMixin:
    """Mixin for kos_entries operations."""

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_kos_entry(self: "DatabaseManager", roblox_user_id: str) -> Optional[KosEntryRecord]:
        """Get the entry for a Roblox user in any status."""
        row = self.fetchone(
            "SELECT * FROM kos_entries WHERE roblox_user_id = ?",
            (roblox_user_id,)
        )
        return dict(row) if row else None

    def get_active_kos_entry(self: "DatabaseManager", roblox_user_id: str) -> Optional[KosEntryRecord]:
        """Get the active entry for a Roblox user, if any."""
        row = self.fetchone(
            "SELECT * FROM kos_entries WHERE roblox_user_id = ? AND status = ?",
            (roblox_user_id, STATUS_ACTIVE)
        )
        return dict(row) if row else None

    # =========================================================================
    # Mutations
    # =========================================================================

    def insert_kos_entry(
        self: "DatabaseManager",
        roblox_user_id: str,
        roblox_username: str,
        reason: str,
        added_by_id: str,
        added_by_name: str,
        expires_at: Optional[float],
        is_permanent: bool,
        thumbnail_url: Optional[str],
        now: float,
    ) -> Optional[KosEntryRecord]:
        """
        Add a user to the KOS list, reactivating an archived row if present.

        Returns:
            The active entry, or None if the user already had an active entry.
        """
        with self.transaction() as tx:
            tx.execute(
                "SELECT id, status FROM kos_entries WHERE roblox_user_id = ?",
                (roblox_user_id,)
            )
            existing = tx.fetchone()

            if existing and existing["status"] == STATUS_ACTIVE:
                return None

            if existing:
                entry_id = existing["id"]
                tx.execute(
                    """UPDATE kos_entries SET
                       roblox_username = ?, reason = ?, added_by_id = ?, added_by_name = ?,
                       created_at = ?, updated_at = ?, expires_at = ?, is_permanent = ?,
                       status = ?, thumbnail_url = ?,
                       archived_at = NULL, archived_by_id = NULL,
                       archived_by_name = NULL, archive_reason = NULL
                       WHERE id = ?""",
                    (
                        roblox_username, reason, added_by_id, added_by_name,
                        now, now, expires_at, int(is_permanent),
                        STATUS_ACTIVE, thumbnail_url, entry_id,
                    )
                )
            else:
                tx.execute(
                    """INSERT INTO kos_entries
                       (roblox_user_id, roblox_username, reason, added_by_id, added_by_name,
                        created_at, updated_at, expires_at, is_permanent, status, thumbnail_url)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        roblox_user_id, roblox_username, reason, added_by_id, added_by_name,
                        now, now, expires_at, int(is_permanent), STATUS_ACTIVE, thumbnail_url,
                    )
                )
                entry_id = tx.lastrowid

            tx.execute("SELECT * FROM kos_entries WHERE id = ?", (entry_id,))
            entry = dict(tx.fetchone())

            self._insert_history(
                tx, entry, ACTION_ADDED, reason, added_by_id, added_by_name, now,
            )

        return entry

    def archive_kos_entry(
        self: "DatabaseManager",
        roblox_user_id: str,
        reason: str,
        archived_by_id: str,
        archived_by_name: str,
        action: str,
        now: float,
    ) -> Optional[KosEntryRecord]:
        """
        Archive the active entry of a Roblox user.

        Args:
            roblox_user_id: Roblox user to archive.
            reason: Archive reason stored on the entry and in history.
            archived_by_id: Actor ID.
            archived_by_name: Actor display name.
            action: History action ("removed" or "expired").
            now: Timestamp for the archive.

        Returns:
            The archived entry, or None if no active entry existed.
        """
        with self.transaction() as tx:
            tx.execute(
                "SELECT id FROM kos_entries WHERE roblox_user_id = ? AND status = ?",
                (roblox_user_id, STATUS_ACTIVE)
            )
            row = tx.fetchone()
            if not row:
                return None

            tx.execute(
                """UPDATE kos_entries SET
                   status = ?, updated_at = ?, archived_at = ?,
                   archived_by_id = ?, archived_by_name = ?, archive_reason = ?
                   WHERE id = ?""",
                (STATUS_ARCHIVED, now, now, archived_by_id, archived_by_name, reason, row["id"])
            )

            tx.execute("SELECT * FROM kos_entries WHERE id = ?", (row["id"],))
            entry = dict(tx.fetchone())

            self._insert_history(
                tx, entry, action, reason, archived_by_id, archived_by_name, now,
            )

        return entry

    # =========================================================================
    # Listing & Counting
    # =========================================================================

    def list_kos_entries(
        self: "DatabaseManager",
        filter_name: str,
        now: float,
        expiring_until: float,
        limit: int,
        offset: int,
        search: Optional[str] = None,
    ) -> Tuple[List[KosEntryRecord], int]:
        """
        List entries matching a named filter, newest first.

        Args:
            filter_name: One of LIST_FILTERS.
            now: Current timestamp for the expiring window.
            expiring_until: Upper bound of the expiring window.
            limit: Maximum rows to return.
            offset: Rows to skip.
            search: Optional case-insensitive username substring.

        Returns:
            Tuple of (rows, total matching rows).
        """
        where = _FILTER_CLAUSES[filter_name]
        params: Dict[str, object] = {"now": now, "until": expiring_until}

        if search:
            escaped = search.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            where += " AND LOWER(roblox_username) LIKE :search ESCAPE '\\'"
            params["search"] = f"%{escaped}%"

        total_row = self.fetchone(f"SELECT COUNT(*) AS n FROM kos_entries WHERE {where}", params)
        rows = self.fetchall(
            f"""SELECT * FROM kos_entries WHERE {where}
                ORDER BY created_at DESC, id DESC
                LIMIT :limit OFFSET :offset""",
            {**params, "limit": limit, "offset": offset}
        )
        return [dict(row) for row in rows], total_row["n"] if total_row else 0

    def get_expired_kos_entries(self: "DatabaseManager", now: float) -> List[KosEntryRecord]:
        """Get active, non-permanent entries whose expiry has passed."""
        rows = self.fetchall(
            """SELECT * FROM kos_entries
               WHERE status = ? AND is_permanent = 0
               AND expires_at IS NOT NULL AND expires_at < ?
               ORDER BY expires_at ASC""",
            (STATUS_ACTIVE, now)
        )
        return [dict(row) for row in rows]

    def get_kos_counts(
        self: "DatabaseManager",
        now: float,
        expiring_until: float,
        added_since: Optional[float] = None,
    ) -> Dict[str, int]:
        """
        Count entries by state in a single pass.

        Returns:
            Dict with active, permanent, expiring, archived and recent counts.
        """
        row = self.fetchone(
            """SELECT
                 COALESCE(SUM(CASE WHEN status = 'active' THEN 1 ELSE 0 END), 0) AS active,
                 COALESCE(SUM(CASE WHEN status = 'active' AND is_permanent = 1 THEN 1 ELSE 0 END), 0) AS permanent,
                 COALESCE(SUM(CASE WHEN status = 'active' AND is_permanent = 0
                          AND expires_at IS NOT NULL AND expires_at >= ? AND expires_at <= ?
                          THEN 1 ELSE 0 END), 0) AS expiring,
                 COALESCE(SUM(CASE WHEN status = 'archived' THEN 1 ELSE 0 END), 0) AS archived,
                 COALESCE(SUM(CASE WHEN status = 'active' AND created_at >= ? THEN 1 ELSE 0 END), 0) AS recent
               FROM kos_entries""",
            (now, expiring_until, added_since if added_since is not None else now)
        )
        return {
            "active": row["active"],
            "permanent": row["permanent"],
            "expiring": row["expiring"],
            "archived": row["archived"],
            "recent": row["recent"],
        }


__all__ = ["EntriesMixin"]

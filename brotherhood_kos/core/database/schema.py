"""
Brotherhood KOS - Database Schema
=================================

Table definitions.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from brotherhood_kos.core.database.manager import DatabaseManager


class SchemaMixin:
    """Mixin for database schema initialization."""

    def _init_tables(self: "DatabaseManager") -> None:
        """
        Initialize all database tables.

        DESIGN: Tables are created if not exist, allowing safe restarts.
        Indexes cover the filters used by list, sweep and history queries.
        """
        conn = self._ensure_connection()
        cursor = conn.cursor()

        # -----------------------------------------------------------------
        # KOS Entries
        # DESIGN: One row per Roblox user; removal archives, never deletes
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS kos_entries (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                roblox_user_id TEXT NOT NULL UNIQUE,
                roblox_username TEXT NOT NULL,
                reason TEXT NOT NULL,
                added_by_id TEXT NOT NULL,
                added_by_name TEXT NOT NULL,
                created_at REAL NOT NULL,
                updated_at REAL NOT NULL,
                expires_at REAL,
                is_permanent INTEGER NOT NULL DEFAULT 0,
                status TEXT NOT NULL DEFAULT 'active',
                thumbnail_url TEXT,
                archived_at REAL,
                archived_by_id TEXT,
                archived_by_name TEXT,
                archive_reason TEXT
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_kos_status_created ON kos_entries(status, created_at DESC)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_kos_expires ON kos_entries(status, is_permanent, expires_at)"
        )

        # -----------------------------------------------------------------
        # KOS History
        # DESIGN: Append-only audit trail, written with each entry mutation
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS kos_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                entry_id INTEGER NOT NULL,
                roblox_user_id TEXT NOT NULL,
                roblox_username TEXT NOT NULL,
                action TEXT NOT NULL,
                reason TEXT,
                performed_by_id TEXT NOT NULL,
                performed_by_name TEXT NOT NULL,
                created_at REAL NOT NULL,
                FOREIGN KEY (entry_id) REFERENCES kos_entries(id)
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_history_user ON kos_history(roblox_user_id, created_at DESC)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_history_created ON kos_history(created_at DESC)"
        )

        # -----------------------------------------------------------------
        # Operational Logs
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS kos_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                level TEXT NOT NULL,
                category TEXT NOT NULL,
                message TEXT NOT NULL,
                details TEXT,
                user_id TEXT,
                username TEXT,
                created_at REAL NOT NULL
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_logs_category ON kos_logs(category, created_at DESC)"
        )

        # -----------------------------------------------------------------
        # Bot Config (key/value)
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS bot_config (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                description TEXT,
                updated_at REAL NOT NULL
            )
        """)

        # -----------------------------------------------------------------
        # API Auth Codes
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS auth_codes (
                code TEXT PRIMARY KEY,
                discord_user_id TEXT NOT NULL,
                discord_username TEXT NOT NULL,
                created_at REAL NOT NULL,
                expires_at REAL NOT NULL,
                used INTEGER NOT NULL DEFAULT 0,
                used_at REAL
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_auth_codes_expires ON auth_codes(expires_at)"
        )

        # -----------------------------------------------------------------
        # Sessions (API and admin)
        # DESIGN: Keyed by sha256 of the bearer token, raw token never stored
        # -----------------------------------------------------------------
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS sessions (
                token_hash TEXT PRIMARY KEY,
                kind TEXT NOT NULL,
                actor_id TEXT NOT NULL,
                actor_name TEXT NOT NULL,
                created_at REAL NOT NULL,
                expires_at REAL NOT NULL,
                last_used_at REAL
            )
        """)
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_sessions_expires ON sessions(kind, expires_at)"
        )

        conn.commit()


__all__ = ["SchemaMixin"]

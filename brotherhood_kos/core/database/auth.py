"""
Brotherhood KOS - Auth Database Mixin
=====================================

Persistence for API auth codes and bearer sessions.

Sessions are keyed by the sha256 of the token; the raw token never
touches the database.
"""

from typing import TYPE_CHECKING, Optional

from brotherhood_kos.core.database.models import AuthCodeRecord, SessionRecord

if TYPE_CHECKING:
    from brotherhood_kos.core.database.manager import DatabaseManager


class AuthMixin:
    """Mixin for auth_codes and sessions operations."""

    # =========================================================================
    # Auth Codes
    # =========================================================================

    def insert_auth_code(
        self: "DatabaseManager",
        code: str,
        discord_user_id: str,
        discord_username: str,
        created_at: float,
        expires_at: float,
    ) -> None:
        """Store a freshly generated auth code."""
        self.execute(
            """INSERT INTO auth_codes
               (code, discord_user_id, discord_username, created_at, expires_at, used)
               VALUES (?, ?, ?, ?, ?, 0)""",
            (code, discord_user_id, discord_username, created_at, expires_at)
        )

    def get_auth_code(self: "DatabaseManager", code: str) -> Optional[AuthCodeRecord]:
        """Get an auth code row by its (uppercase) code."""
        row = self.fetchone("SELECT * FROM auth_codes WHERE code = ?", (code,))
        return dict(row) if row else None

    def consume_auth_code(self: "DatabaseManager", code: str, now: float) -> bool:
        """
        Mark an unused, unexpired code as used.

        Returns:
            True if this call consumed the code, False otherwise.
        """
        cursor = self.execute(
            """UPDATE auth_codes SET used = 1, used_at = ?
               WHERE code = ? AND used = 0 AND expires_at > ?""",
            (now, code, now)
        )
        return cursor.rowcount == 1

    def delete_expired_auth_codes(self: "DatabaseManager", now: float) -> int:
        """Delete expired codes. Returns number removed."""
        cursor = self.execute("DELETE FROM auth_codes WHERE expires_at <= ?", (now,))
        return cursor.rowcount

    # =========================================================================
    # Sessions
    # =========================================================================

    def insert_session(
        self: "DatabaseManager",
        token_hash: str,
        kind: str,
        actor_id: str,
        actor_name: str,
        created_at: float,
        expires_at: float,
    ) -> None:
        """Store a new session."""
        self.execute(
            """INSERT INTO sessions
               (token_hash, kind, actor_id, actor_name, created_at, expires_at, last_used_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (token_hash, kind, actor_id, actor_name, created_at, expires_at, created_at)
        )

    def get_session(self: "DatabaseManager", token_hash: str, kind: str) -> Optional[SessionRecord]:
        """Get a session by token hash and kind."""
        row = self.fetchone(
            "SELECT * FROM sessions WHERE token_hash = ? AND kind = ?",
            (token_hash, kind)
        )
        return dict(row) if row else None

    def touch_session(self: "DatabaseManager", token_hash: str, now: float) -> None:
        """Update last_used_at of a session."""
        self.execute(
            "UPDATE sessions SET last_used_at = ? WHERE token_hash = ?",
            (now, token_hash)
        )

    def delete_session(self: "DatabaseManager", token_hash: str, kind: str) -> bool:
        """Delete a session. Returns True if it existed."""
        cursor = self.execute(
            "DELETE FROM sessions WHERE token_hash = ? AND kind = ?",
            (token_hash, kind)
        )
        return cursor.rowcount > 0

    def delete_expired_sessions(self: "DatabaseManager", now: float, kind: Optional[str] = None) -> int:
        """Delete expired sessions, optionally of one kind. Returns number removed."""
        if kind:
            cursor = self.execute(
                "DELETE FROM sessions WHERE expires_at <= ? AND kind = ?",
                (now, kind)
            )
        else:
            cursor = self.execute("DELETE FROM sessions WHERE expires_at <= ?", (now,))
        return cursor.rowcount


__all__ = ["AuthMixin"]

"""
Brotherhood KOS - Sessions & Auth Codes
=======================================

Bearer sessions and one-time API auth codes, persisted in SQLite.

DESIGN:
    Tokens are 64 hex characters from secrets.token_hex and are only
    ever stored as their sha256. Verification fails closed: a missing,
    unknown or expired token raises AuthError with one generic message,
    so callers cannot tell which check failed.

    Auth codes are 8 uppercase hex characters issued by /console and
    redeemed once through POST /api/auth/login.
"""

import hashlib
import secrets
import time
from typing import Callable, Dict, Optional, Tuple

from brotherhood_kos.core.config import get_config
from brotherhood_kos.core.constants import (
    AUTH_CODE_BYTES,
    AUTH_CODE_TTL,
    SECONDS_PER_HOUR,
    SECONDS_PER_MINUTE,
    SESSION_TOKEN_BYTES,
)
from brotherhood_kos.core.database import DatabaseManager, SessionRecord, get_db
from brotherhood_kos.core.errors import AuthError
from brotherhood_kos.core.logger import logger


Clock = Callable[[], float]

SESSION_KIND_API = "api"
SESSION_KIND_ADMIN = "admin"

INVALID_SESSION_MESSAGE = "Invalid or expired session"
INVALID_CODE_MESSAGE = "Invalid or expired auth code"


def hash_token(token: str) -> str:
    """Return the sha256 hex digest stored in place of a raw token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# =============================================================================
# Session Store
# =============================================================================

class SessionStore:
    """
    Persistent bearer sessions of one kind ("api" or "admin").

    Attributes:
        kind: Session kind stored with each row.
        ttl_seconds: Lifetime of a new session.
    """

    def __init__(
        self,
        kind: str,
        ttl_seconds: float,
        clock: Clock = time.time,
        db: Optional[DatabaseManager] = None,
    ) -> None:
        self.kind = kind
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._db = db

    @property
    def db(self) -> DatabaseManager:
        return self._db or get_db()

    def create(self, actor_id: str, actor_name: str) -> Tuple[str, float]:
        """
        Create a session for an actor.

        Returns:
            Tuple of (raw token, expires_at). The raw token is not stored.
        """
        now = self._clock()
        token = secrets.token_hex(SESSION_TOKEN_BYTES)
        expires_at = now + self.ttl_seconds

        self.db.insert_session(
            hash_token(token), self.kind, str(actor_id), actor_name, now, expires_at,
        )

        logger.tree("Session Created", [
            ("Kind", self.kind),
            ("Actor", f"{actor_name} ({actor_id})"),
            ("TTL", f"{int(self.ttl_seconds)}s"),
        ], emoji="🔑")

        return token, expires_at

    def verify(self, token: Optional[str]) -> SessionRecord:
        """
        Verify a token and refresh its last_used_at.

        Raises:
            AuthError: If the token is missing, unknown or expired.
        """
        if not token:
            raise AuthError(INVALID_SESSION_MESSAGE)

        token_hash = hash_token(token)
        record = self.db.get_session(token_hash, self.kind)
        if record is None:
            raise AuthError(INVALID_SESSION_MESSAGE)

        now = self._clock()
        if now >= record["expires_at"]:
            self.db.delete_session(token_hash, self.kind)
            logger.debug("Session Expired", [
                ("Kind", self.kind),
                ("Actor", record["actor_name"]),
            ])
            raise AuthError(INVALID_SESSION_MESSAGE)

        self.db.touch_session(token_hash, now)
        record["last_used_at"] = now
        return record

    def invalidate(self, token: Optional[str]) -> bool:
        """Delete a session. Returns True if it existed."""
        if not token:
            return False
        removed = self.db.delete_session(hash_token(token), self.kind)
        if removed:
            logger.info(f"Session Invalidated ({self.kind})")
        return removed

    def sweep_expired(self) -> int:
        """Delete expired sessions of this kind. Returns number removed."""
        return self.db.delete_expired_sessions(self._clock(), self.kind)


# =============================================================================
# Auth Code Service
# =============================================================================

class AuthCodeService:
    """One-time codes exchanged for API sessions."""

    def __init__(
        self,
        ttl_seconds: float = AUTH_CODE_TTL,
        clock: Clock = time.time,
        db: Optional[DatabaseManager] = None,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._db = db

    @property
    def db(self) -> DatabaseManager:
        return self._db or get_db()

    def create(self, discord_user_id: str, discord_username: str) -> Tuple[str, float]:
        """
        Issue a new auth code.

        Returns:
            Tuple of (code, expires_at).
        """
        now = self._clock()
        code = secrets.token_hex(AUTH_CODE_BYTES).upper()
        expires_at = now + self.ttl_seconds

        self.db.insert_auth_code(code, str(discord_user_id), discord_username, now, expires_at)

        logger.tree("Auth Code Generated", [
            ("User", f"{discord_username} ({discord_user_id})"),
            ("Valid For", f"{int(self.ttl_seconds // 60)} minutes"),
        ], emoji="🔐")

        return code, expires_at

    def redeem(self, code: Optional[str]) -> Dict[str, str]:
        """
        Consume a code exactly once.

        Returns:
            Dict with discord_user_id and discord_username of the issuer.

        Raises:
            AuthError: If the code is unknown, already used or expired.
        """
        if not code or not code.strip():
            raise AuthError(INVALID_CODE_MESSAGE, code="AUTH_INVALID_CODE")

        normalized = code.strip().upper()
        record = self.db.get_auth_code(normalized)
        if record is None:
            raise AuthError(INVALID_CODE_MESSAGE, code="AUTH_INVALID_CODE")

        if not self.db.consume_auth_code(normalized, self._clock()):
            raise AuthError(INVALID_CODE_MESSAGE, code="AUTH_INVALID_CODE")

        logger.tree("Auth Code Redeemed", [
            ("User", f"{record['discord_username']} ({record['discord_user_id']})"),
        ], emoji="🔓")

        return {
            "discord_user_id": record["discord_user_id"],
            "discord_username": record["discord_username"],
        }

    def sweep_expired(self) -> int:
        """Delete expired codes. Returns number removed."""
        return self.db.delete_expired_auth_codes(self._clock())


# =============================================================================
# Global Instances
# =============================================================================

_api_sessions: Optional[SessionStore] = None
_auth_codes: Optional[AuthCodeService] = None


def get_api_sessions() -> SessionStore:
    """Get the process-wide API session store."""
    global _api_sessions
    if _api_sessions is None:
        _api_sessions = SessionStore(
            SESSION_KIND_API, get_config().api_session_hours * SECONDS_PER_HOUR,
        )
    return _api_sessions


def get_auth_codes() -> AuthCodeService:
    """Get the process-wide auth code service."""
    global _auth_codes
    if _auth_codes is None:
        _auth_codes = AuthCodeService(get_config().auth_code_minutes * SECONDS_PER_MINUTE)
    return _auth_codes


def reset_auth_services() -> None:
    """Drop cached stores so they are rebuilt from current config."""
    global _api_sessions, _auth_codes
    _api_sessions = None
    _auth_codes = None


def cleanup_expired(now: Optional[float] = None) -> Dict[str, int]:
    """
    Remove expired auth codes and sessions of every kind.

    Returns:
        Dict with expired_codes and expired_sessions counts.
    """
    db = get_db()
    now = time.time() if now is None else now
    expired_codes = db.delete_expired_auth_codes(now)
    expired_sessions = db.delete_expired_sessions(now)

    if expired_codes or expired_sessions:
        logger.tree("Auth Cleanup", [
            ("Expired Codes", str(expired_codes)),
            ("Expired Sessions", str(expired_sessions)),
        ], emoji="🧹")

    return {"expired_codes": expired_codes, "expired_sessions": expired_sessions}


__all__ = [
    "SESSION_KIND_API",
    "SESSION_KIND_ADMIN",
    "SessionStore",
    "AuthCodeService",
    "hash_token",
    "get_api_sessions",
    "get_auth_codes",
    "reset_auth_services",
    "cleanup_expired",
]

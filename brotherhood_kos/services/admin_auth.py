"""
Brotherhood KOS - Admin Authentication
======================================

Admin password gate for the /manage panel.

DESIGN:
    The password is stored as a salted PBKDF2-HMAC-SHA256 hash under
    the admin_password config key, formatted as
    "pbkdf2_sha256$<iterations>$<base64(salt + key)>". A successful
    verify opens a short admin session that every panel button
    re-checks.
"""

import base64
import binascii
import hashlib
import secrets
import time
from typing import Optional, Tuple

from brotherhood_kos.core.config import get_config
from brotherhood_kos.core.constants import (
    ADMIN_SESSION_TTL,
    MIN_ADMIN_PASSWORD_LENGTH,
    PASSWORD_HASH_ITERATIONS,
    PASSWORD_SALT_BYTES,
)
from brotherhood_kos.core.database import DatabaseManager, SessionRecord, get_db
from brotherhood_kos.core.database.config_store import ADMIN_PASSWORD_KEY
from brotherhood_kos.core.errors import AuthError, ValidationError
from brotherhood_kos.core.logger import logger
from brotherhood_kos.services.sessions import SESSION_KIND_ADMIN, Clock, SessionStore


HASH_SCHEME = "pbkdf2_sha256"


# =============================================================================
# Hash Helpers
# =============================================================================

def hash_password(password: str, iterations: int = PASSWORD_HASH_ITERATIONS) -> str:
    """Hash a password with a fresh random salt."""
    salt = secrets.token_bytes(PASSWORD_SALT_BYTES)
    key = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    encoded = base64.b64encode(salt + key).decode("ascii")
    return f"{HASH_SCHEME}${iterations}${encoded}"


def check_password(password: str, stored: str) -> bool:
    """Compare a password against a stored hash in constant time."""
    try:
        scheme, iterations_str, encoded = stored.split("$", 2)
        iterations = int(iterations_str)
        raw = base64.b64decode(encoded.encode("ascii"), validate=True)
    except (ValueError, binascii.Error):
        logger.warning("Stored Admin Password Unreadable", [
            ("Expected", HASH_SCHEME),
        ])
        return False

    if scheme != HASH_SCHEME or len(raw) <= PASSWORD_SALT_BYTES:
        return False

    salt, stored_key = raw[:PASSWORD_SALT_BYTES], raw[PASSWORD_SALT_BYTES:]
    new_key = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return secrets.compare_digest(new_key, stored_key)


# =============================================================================
# Admin Auth Service
# =============================================================================

class AdminAuthService:
    """
    Password verification and admin sessions.

    Attributes:
        sessions: SessionStore of kind "admin".
    """

    def __init__(
        self,
        session_ttl: float = ADMIN_SESSION_TTL,
        clock: Clock = time.time,
        db: Optional[DatabaseManager] = None,
    ) -> None:
        self._db = db
        self.sessions = SessionStore(SESSION_KIND_ADMIN, session_ttl, clock=clock, db=db)

    @property
    def db(self) -> DatabaseManager:
        return self._db or get_db()

    # =========================================================================
    # Password
    # =========================================================================

    def has_password(self) -> bool:
        """Check if an admin password is configured."""
        return bool(self.db.get_config_value(ADMIN_PASSWORD_KEY))

    def set_password(self, password: str) -> None:
        """
        Store a new admin password.

        Raises:
            ValidationError: If the password is shorter than the minimum length.
        """
        if not password or len(password) < MIN_ADMIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_ADMIN_PASSWORD_LENGTH} characters long"
            )

        self.db.set_config_value(
            ADMIN_PASSWORD_KEY, hash_password(password), "Admin panel password hash",
        )
        self.db.add_log("info", "system", "Admin password updated")
        logger.success("Admin Password Updated")

    def verify(self, password: str) -> bool:
        """
        Check a password against the stored hash.

        Raises:
            AuthError: If no admin password has been configured.
        """
        stored = self.db.get_config_value(ADMIN_PASSWORD_KEY)
        if not stored:
            raise AuthError("Admin password not configured")
        return check_password(password or "", str(stored))

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, actor_id: str, actor_name: str) -> Tuple[str, float]:
        """Open an admin session. Returns (token, expires_at)."""
        return self.sessions.create(actor_id, actor_name)

    def verify_session(self, token: Optional[str]) -> SessionRecord:
        """Verify an admin session, raising AuthError if invalid."""
        return self.sessions.verify(token)

    def invalidate_session(self, token: Optional[str]) -> bool:
        """Close an admin session."""
        return self.sessions.invalidate(token)


# =============================================================================
# Global Instance
# =============================================================================

_admin_auth: Optional[AdminAuthService] = None


def get_admin_auth() -> AdminAuthService:
    """Get the process-wide admin auth service."""
    global _admin_auth
    if _admin_auth is None:
        _admin_auth = AdminAuthService(session_ttl=get_config().admin_session_minutes * 60)
    return _admin_auth


__all__ = [
    "AdminAuthService",
    "get_admin_auth",
    "hash_password",
    "check_password",
]

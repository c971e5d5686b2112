"""
Brotherhood KOS - API Dependencies
==================================

FastAPI dependency injection utilities.
"""

from typing import TYPE_CHECKING, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from brotherhood_kos.api.config import get_api_config
from brotherhood_kos.api.errors import APIError, ErrorCode
from brotherhood_kos.core.constants import DEFAULT_PAGE_SIZE
from brotherhood_kos.core.database import SessionRecord
from brotherhood_kos.core.errors import AuthError
from brotherhood_kos.services.sessions import get_api_sessions

if TYPE_CHECKING:
    from brotherhood_kos.bot import KosBot


# =============================================================================
# Security
# =============================================================================

security = HTTPBearer(auto_error=False)

BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


# =============================================================================
# Bot Reference
# =============================================================================

_bot_instance: Optional["KosBot"] = None


def set_bot(bot: Optional["KosBot"]) -> None:
    """Set the bot instance (None in API-only mode)."""
    global _bot_instance
    _bot_instance = bot


def get_bot() -> Optional["KosBot"]:
    """Get the bot instance, if the API runs alongside the bot."""
    return _bot_instance


# =============================================================================
# Authentication Dependencies
# =============================================================================

async def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> SessionRecord:
    """
    Require a valid bearer session token.
    Raises 401 if not authenticated.
    """
    if credentials is None or not credentials.credentials:
        raise APIError(ErrorCode.AUTH_MISSING_TOKEN, headers=BEARER_CHALLENGE)

    try:
        session = get_api_sessions().verify(credentials.credentials)
    except AuthError:
        raise APIError(ErrorCode.AUTH_INVALID_TOKEN, headers=BEARER_CHALLENGE)

    return session


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[str]:
    """Raw bearer token, if one was sent."""
    if credentials is None:
        return None
    return credentials.credentials


# =============================================================================
# Pagination Dependencies
# =============================================================================

class PaginationParams:
    """Standard pagination parameters."""

    def __init__(
        self,
        page: int = 1,
        per_page: int = DEFAULT_PAGE_SIZE,
    ):
        max_page_size = get_api_config().max_page_size

        if page < 1:
            page = 1
        if per_page < 1:
            per_page = 1
        if per_page > max_page_size:
            per_page = max_page_size

        self.page = page
        self.per_page = per_page
        self.offset = (page - 1) * per_page


def get_pagination(
    page: int = 1,
    per_page: int = DEFAULT_PAGE_SIZE,
) -> PaginationParams:
    """Get pagination parameters from query string."""
    return PaginationParams(page=page, per_page=per_page)


__all__ = [
    "security",
    "set_bot",
    "get_bot",
    "require_auth",
    "get_bearer_token",
    "PaginationParams",
    "get_pagination",
]

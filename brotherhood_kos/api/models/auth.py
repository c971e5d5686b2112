"""
Brotherhood KOS - Auth API Models
=================================

Auth code login and session models.
"""

from pydantic import BaseModel, Field


# =============================================================================
# Request Models
# =============================================================================

class LoginRequest(BaseModel):
    """Redeem a /console auth code for a session."""

    code: str = Field(min_length=1, max_length=32, description="Auth code from /console")


# =============================================================================
# Response Models
# =============================================================================

class SessionUser(BaseModel):
    """Discord user the session belongs to."""

    discord_user_id: str
    discord_username: str


class LoginResponse(BaseModel):
    """Bearer session issued on login."""

    token: str = Field(description="Bearer session token")
    token_type: str = "bearer"
    expires_at: float = Field(description="Expiry as UNIX seconds")
    user: SessionUser


__all__ = [
    "LoginRequest",
    "SessionUser",
    "LoginResponse",
]

"""
Brotherhood KOS - Auth Router
=============================

Exchange a /console auth code for a bearer session.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from brotherhood_kos.api.config import get_api_config
from brotherhood_kos.api.dependencies import get_bearer_token, require_auth
from brotherhood_kos.api.models.auth import LoginRequest, LoginResponse, SessionUser
from brotherhood_kos.api.models.base import APIResponse
from brotherhood_kos.api.middleware.rate_limit import client_address
from brotherhood_kos.core.database import SessionRecord, get_db
from brotherhood_kos.core.logger import logger
from brotherhood_kos.services.sessions import get_api_sessions, get_auth_codes


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=APIResponse[LoginResponse])
async def login(request_body: LoginRequest, request: Request) -> APIResponse[LoginResponse]:
    """
    Redeem an auth code from /console.

    The code is single use. Returns a bearer token valid for 24 hours.
    """
    client_ip = client_address(request, get_api_config().trust_proxy)

    # Raises AuthError(AUTH_INVALID_CODE) for unknown, used or expired codes
    user = get_auth_codes().redeem(request_body.code)

    token, expires_at = get_api_sessions().create(
        user["discord_user_id"], user["discord_username"],
    )

    get_db().add_log(
        "info", "api", "API session created",
        {"ip": client_ip}, user["discord_user_id"], user["discord_username"],
    )

    logger.tree("API Login", [
        ("User", f"{user['discord_username']} ({user['discord_user_id']})"),
        ("IP", client_ip),
    ], emoji="🔑")

    return APIResponse(
        success=True,
        message="Login successful",
        data=LoginResponse(
            token=token,
            expires_at=expires_at,
            user=SessionUser(**user),
        ),
    )


@router.post("/logout", response_model=APIResponse[dict])
async def logout(
    session: SessionRecord = Depends(require_auth),
    token: Optional[str] = Depends(get_bearer_token),
) -> APIResponse[dict]:
    """Invalidate the current session."""
    get_api_sessions().invalidate(token)

    logger.tree("API Logout", [
        ("User", f"{session['actor_name']} ({session['actor_id']})"),
    ], emoji="👋")

    return APIResponse(success=True, message="Logged out", data={"logged_out": True})


__all__ = ["router"]

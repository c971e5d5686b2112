"""
Brotherhood KOS - Health Router
===============================

Health check endpoints.
"""

import time

from fastapi import APIRouter

from brotherhood_kos.api.dependencies import get_bot
from brotherhood_kos.api.models.base import APIResponse, HealthStatus
from brotherhood_kos.core.database import get_db
from brotherhood_kos.core.logger import logger


router = APIRouter(prefix="/health", tags=["Health"])

# Track startup time
_start_time = time.time()


def build_health() -> HealthStatus:
    """Collect database connectivity, Discord state and uptime."""
    try:
        db_connected = get_db().ping()
    except Exception as e:
        logger.warning("Health Check Database Error", [
            ("Error Type", type(e).__name__),
            ("Error", str(e)[:100]),
        ])
        db_connected = False

    bot = get_bot()
    discord_connected = bot.is_ready() if bot is not None else None

    return HealthStatus(
        status="healthy" if db_connected and discord_connected is not False else "degraded",
        database=db_connected,
        discord_connected=discord_connected,
        uptime_seconds=int(time.time() - _start_time),
    )


@router.get("", response_model=APIResponse[HealthStatus])
async def health_check() -> APIResponse[HealthStatus]:
    """
    Health check endpoint.

    Reports database connectivity and uptime. Public, not rate limited.
    """
    return APIResponse(success=True, data=build_health())


__all__ = ["router", "build_health"]

"""
Brotherhood KOS - Stats Router
==============================

Entry counts and system status.
"""

from fastapi import APIRouter, Depends

from brotherhood_kos.api.dependencies import require_auth
from brotherhood_kos.api.models.base import APIResponse
from brotherhood_kos.api.models.kos import KosStats, KosStatus
from brotherhood_kos.core.database import SessionRecord
from brotherhood_kos.services.kos_service import get_kos_service


router = APIRouter(tags=["Stats"])


@router.get("/stats", response_model=APIResponse[KosStats])
async def get_stats(session: SessionRecord = Depends(require_auth)) -> APIResponse[KosStats]:
    """Active, permanent, expiring, archived and total counts."""
    return APIResponse(success=True, data=KosStats(**get_kos_service().stats()))


@router.get("/status", response_model=APIResponse[KosStatus])
async def get_status(session: SessionRecord = Depends(require_auth)) -> APIResponse[KosStatus]:
    """Counts plus additions in the last 7 days and the bot enabled flag."""
    return APIResponse(success=True, data=KosStatus(**get_kos_service().status()))


__all__ = ["router"]

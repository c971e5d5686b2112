"""
Brotherhood KOS - Logs Router
=============================

Operational log rows for admins.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from brotherhood_kos.api.dependencies import require_auth
from brotherhood_kos.api.models.base import APIResponse
from brotherhood_kos.api.models.kos import LogEntry
from brotherhood_kos.core.database import SessionRecord
from brotherhood_kos.services.kos_service import get_kos_service


router = APIRouter(prefix="/logs", tags=["Logs"])


@router.get("", response_model=APIResponse[List[LogEntry]])
async def list_logs(
    limit: int = Query(50, ge=1, le=500),
    category: Optional[str] = Query(None, description="bot, api, database, service, command or system"),
    session: SessionRecord = Depends(require_auth),
) -> APIResponse[List[LogEntry]]:
    """Most recent log rows, newest first."""
    rows = get_kos_service().logs(limit=limit, category=category)
    return APIResponse(success=True, data=[LogEntry(**row) for row in rows])


__all__ = ["router"]

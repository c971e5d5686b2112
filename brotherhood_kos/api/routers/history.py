"""
Brotherhood KOS - History Router
================================

Audit trail of KOS entry mutations.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from brotherhood_kos.api.dependencies import PaginationParams, get_pagination, require_auth
from brotherhood_kos.api.models.base import PaginatedResponse
from brotherhood_kos.api.models.kos import HistoryEntry
from brotherhood_kos.api.utils.pagination import create_paginated_response
from brotherhood_kos.core.database import SessionRecord
from brotherhood_kos.services.kos_service import get_kos_service


router = APIRouter(prefix="/history", tags=["History"])


@router.get("", response_model=PaginatedResponse[HistoryEntry])
async def list_history(
    roblox_user_id: Optional[str] = Query(None, description="Only this Roblox user"),
    pagination: PaginationParams = Depends(get_pagination),
    session: SessionRecord = Depends(require_auth),
) -> PaginatedResponse[HistoryEntry]:
    """History rows, newest first."""
    rows, total = get_kos_service().history(
        page=pagination.page,
        limit=pagination.per_page,
        roblox_user_id=roblox_user_id,
    )
    return create_paginated_response([HistoryEntry(**row) for row in rows], total, pagination)


__all__ = ["router"]

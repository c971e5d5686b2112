"""
Brotherhood KOS - KOS Router
============================

List, inspect, add and remove KOS entries.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from brotherhood_kos.api.dependencies import PaginationParams, get_pagination, require_auth
from brotherhood_kos.api.errors import APIError, ErrorCode
from brotherhood_kos.api.models.base import APIResponse, PaginatedResponse
from brotherhood_kos.api.models.kos import AddKosRequest, KosEntry, RemoveKosRequest
from brotherhood_kos.api.utils.pagination import create_paginated_response
from brotherhood_kos.core.constants import DEFAULT_REMOVE_REASON
from brotherhood_kos.core.database import Actor, SessionRecord
from brotherhood_kos.core.logger import logger
from brotherhood_kos.services.kos_service import get_kos_service
from brotherhood_kos.services.roblox import get_roblox_client
from brotherhood_kos.utils.duration import resolve_expiry


router = APIRouter(prefix="/kos", tags=["KOS"])


def _actor(session: SessionRecord) -> Actor:
    return Actor(id=session["actor_id"], name=session["actor_name"])


@router.get("", response_model=PaginatedResponse[KosEntry])
async def list_entries(
    filter: str = Query("active", description="active, expiring, permanent or archived"),
    search: Optional[str] = Query(None, max_length=64, description="Username substring"),
    pagination: PaginationParams = Depends(get_pagination),
    session: SessionRecord = Depends(require_auth),
) -> PaginatedResponse[KosEntry]:
    """List KOS entries, newest first."""
    entries, total = get_kos_service().list(
        filter=filter,
        page=pagination.page,
        limit=pagination.per_page,
        search=search,
    )
    return create_paginated_response(
        [KosEntry(**entry) for entry in entries], total, pagination,
    )


@router.get("/{roblox_user_id}", response_model=APIResponse[KosEntry])
async def get_entry(
    roblox_user_id: str,
    session: SessionRecord = Depends(require_auth),
) -> APIResponse[KosEntry]:
    """Get the entry of a Roblox user (active or archived)."""
    entry = get_kos_service().get(roblox_user_id)
    if entry is None:
        raise APIError(ErrorCode.KOS_ENTRY_NOT_FOUND, details={"roblox_user_id": roblox_user_id})
    return APIResponse(success=True, data=KosEntry(**entry))


@router.post("", response_model=APIResponse[KosEntry], status_code=201)
async def add_entry(
    request_body: AddKosRequest,
    session: SessionRecord = Depends(require_auth),
) -> APIResponse[KosEntry]:
    """
    Add a Roblox user to the KOS list.

    `username` may be a Roblox username or numeric user ID. "permanent"
    makes the entry permanent; an empty duration means no expiry.
    """
    expires_at, is_permanent = resolve_expiry(request_body.duration)

    roblox_user = await get_roblox_client().resolve(request_body.username)
    if roblox_user is None:
        raise APIError(ErrorCode.ROBLOX_USER_NOT_FOUND, details={"username": request_body.username})

    entry = get_kos_service().add(
        roblox_user_id=roblox_user.id,
        roblox_username=roblox_user.name,
        reason=request_body.reason,
        actor=_actor(session),
        expires_at=expires_at,
        is_permanent=is_permanent,
        thumbnail_url=roblox_user.thumbnail_url,
    )

    logger.tree("KOS Entry Added Via API", [
        ("Roblox", f"{roblox_user.name} ({roblox_user.id})"),
        ("By", session["actor_name"]),
    ], emoji="🌐")

    return APIResponse(success=True, message="User added to KOS list", data=KosEntry(**entry))


@router.delete("/{roblox_user_id}", response_model=APIResponse[KosEntry])
async def remove_entry(
    roblox_user_id: str,
    request_body: Optional[RemoveKosRequest] = Body(None),
    session: SessionRecord = Depends(require_auth),
) -> APIResponse[KosEntry]:
    """Archive the active entry of a Roblox user."""
    reason = (request_body.reason if request_body else None) or DEFAULT_REMOVE_REASON

    entry = get_kos_service().remove(roblox_user_id, reason=reason, actor=_actor(session))

    logger.tree("KOS Entry Removed Via API", [
        ("Roblox", f"{entry['roblox_username']} ({roblox_user_id})"),
        ("By", session["actor_name"]),
    ], emoji="🌐")

    return APIResponse(success=True, message="User removed from KOS list", data=KosEntry(**entry))


__all__ = ["router"]

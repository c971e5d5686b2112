"""
Brotherhood KOS - KOS API Models
================================

Request/response models for KOS entries, history, logs and stats.
"""

import json
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from brotherhood_kos.core.constants import REASON_MAX_LENGTH


# =============================================================================
# Request Models
# =============================================================================

class AddKosRequest(BaseModel):
    """Add a Roblox user to the KOS list."""

    username: str = Field(min_length=1, max_length=64, description="Roblox username or numeric user ID")
    reason: str = Field(min_length=1, max_length=REASON_MAX_LENGTH, description="Why the user is KOS")
    duration: Optional[str] = Field(None, max_length=32, description="e.g. 7d, 30d, 6mo, 1y, permanent; empty = no expiry")


class RemoveKosRequest(BaseModel):
    """Optional body for removing an entry."""

    reason: Optional[str] = Field(None, max_length=REASON_MAX_LENGTH)


# =============================================================================
# Response Models
# =============================================================================

class KosEntry(BaseModel):
    """A KOS entry (active or archived)."""

    id: int
    roblox_user_id: str
    roblox_username: str
    reason: str
    added_by_id: str
    added_by_name: str
    created_at: float
    updated_at: float
    expires_at: Optional[float] = None
    is_permanent: bool
    status: str
    thumbnail_url: Optional[str] = None
    archived_at: Optional[float] = None
    archived_by_id: Optional[str] = None
    archived_by_name: Optional[str] = None
    archive_reason: Optional[str] = None


class HistoryEntry(BaseModel):
    """An audit trail row."""

    id: int
    entry_id: int
    roblox_user_id: str
    roblox_username: str
    action: str
    reason: Optional[str] = None
    performed_by_id: str
    performed_by_name: str
    created_at: float


class LogEntry(BaseModel):
    """An operational log row."""

    id: int
    level: str
    category: str
    message: str
    details: Optional[Any] = None
    user_id: Optional[str] = None
    username: Optional[str] = None
    created_at: float

    @field_validator("details", mode="before")
    @classmethod
    def _decode_details(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                return value
        return value


class KosStats(BaseModel):
    """Entry counts."""

    active: int
    permanent: int
    expiring: int
    archived: int
    total: int


class KosStatus(KosStats):
    """Counts plus recent activity and the bot flag."""

    added_last_7_days: int
    bot_enabled: bool


__all__ = [
    "AddKosRequest",
    "RemoveKosRequest",
    "KosEntry",
    "HistoryEntry",
    "LogEntry",
    "KosStats",
    "KosStatus",
]

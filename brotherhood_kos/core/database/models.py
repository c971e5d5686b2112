"""
Brotherhood KOS - Database Type Definitions
===========================================

TypedDict definitions for database records.
"""

from dataclasses import dataclass
from typing import Optional, TypedDict


@dataclass(frozen=True)
class Actor:
    """Who performed an action (Discord user, API session user or system)."""
    id: str
    name: str


class KosEntryRecord(TypedDict, total=False):
    """Row of kos_entries."""
    id: int
    roblox_user_id: str
    roblox_username: str
    reason: str
    added_by_id: str
    added_by_name: str
    created_at: float
    updated_at: float
    expires_at: Optional[float]
    is_permanent: int
    status: str
    thumbnail_url: Optional[str]
    archived_at: Optional[float]
    archived_by_id: Optional[str]
    archived_by_name: Optional[str]
    archive_reason: Optional[str]


class HistoryRecord(TypedDict, total=False):
    """Row of kos_history."""
    id: int
    entry_id: int
    roblox_user_id: str
    roblox_username: str
    action: str
    reason: Optional[str]
    performed_by_id: str
    performed_by_name: str
    created_at: float


class LogRecord(TypedDict, total=False):
    """Row of kos_logs."""
    id: int
    level: str
    category: str
    message: str
    details: Optional[str]
    user_id: Optional[str]
    username: Optional[str]
    created_at: float


class AuthCodeRecord(TypedDict, total=False):
    """Row of auth_codes."""
    code: str
    discord_user_id: str
    discord_username: str
    created_at: float
    expires_at: float
    used: int
    used_at: Optional[float]


class SessionRecord(TypedDict, total=False):
    """Row of sessions. Only the sha256 of the token is stored."""
    token_hash: str
    kind: str
    actor_id: str
    actor_name: str
    created_at: float
    expires_at: float
    last_used_at: Optional[float]


__all__ = [
    "Actor",
    "KosEntryRecord",
    "HistoryRecord",
    "LogRecord",
    "AuthCodeRecord",
    "SessionRecord",
]

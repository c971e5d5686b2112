"""
Brotherhood KOS - Base API Models
=================================

Common response models and utilities.
"""

from datetime import datetime, timezone
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field


# =============================================================================
# Generic Type Variables
# =============================================================================

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Base Response Models
# =============================================================================

class APIResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class PaginationMeta(BaseModel):
    """Pagination metadata."""

    page: int = Field(ge=1, description="Current page number")
    per_page: int = Field(ge=1, le=100, description="Items per page")
    total: int = Field(ge=0, description="Total number of items")
    total_pages: int = Field(ge=0, description="Total number of pages")
    has_next: bool = Field(description="Whether there is a next page")
    has_prev: bool = Field(description="Whether there is a previous page")


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated list response."""

    success: bool = True
    message: Optional[str] = None
    data: List[T]
    pagination: PaginationMeta
    timestamp: datetime = Field(default_factory=_utcnow)


class HealthStatus(BaseModel):
    """Health check payload."""

    status: str = "healthy"
    service: str = "brotherhood-kos"
    database: bool
    discord_connected: Optional[bool] = None
    uptime_seconds: int
    timestamp: datetime = Field(default_factory=_utcnow)


__all__ = [
    "APIResponse",
    "PaginatedResponse",
    "PaginationMeta",
    "HealthStatus",
]

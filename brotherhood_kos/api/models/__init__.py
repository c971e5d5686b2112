"""
Brotherhood KOS - API Models
============================

Pydantic models for request/response validation.
"""

from .base import *
from .auth import *
from .kos import *


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    # base.py
    "APIResponse",
    "PaginatedResponse",
    "PaginationMeta",
    "HealthStatus",
    # auth.py
    "LoginRequest",
    "SessionUser",
    "LoginResponse",
    # kos.py
    "AddKosRequest",
    "RemoveKosRequest",
    "KosEntry",
    "HistoryEntry",
    "LogEntry",
    "KosStats",
    "KosStatus",
]

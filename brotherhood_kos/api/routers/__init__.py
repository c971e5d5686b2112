"""
Brotherhood KOS - API Routers
=============================

Route handlers for the API.
"""

from .health import router as health_router
from .auth import router as auth_router
from .kos import router as kos_router
from .history import router as history_router
from .stats import router as stats_router
from .logs import router as logs_router

__all__ = [
    "health_router",
    "auth_router",
    "kos_router",
    "history_router",
    "stats_router",
    "logs_router",
]

"""
Brotherhood KOS - Services Package
==================================

Service layer shared by the Discord bot and the REST API.

DESIGN:
    Services hold the KOS rules; cogs and routers only parse input,
    call one service operation and render the result. External calls
    (Roblox, Telegram) are async and handle their own failures.

Available Services:
    KosService: Add/remove/list/sweep KOS entries
    AdminAuthService: Admin password and admin sessions
    SessionStore / AuthCodeService: API bearer sessions and auth codes
    RobloxClient: Roblox username/ID resolution
    TelegramNotifier: Best-effort Telegram notifications
    ExpiryScheduler: Background expiry sweep
"""

# =============================================================================
# Service Imports
# =============================================================================

from .kos_service import KosService, SYSTEM_ACTOR, get_kos_service
from .admin_auth import AdminAuthService, get_admin_auth
from .sessions import SessionStore, AuthCodeService, get_api_sessions, get_auth_codes, cleanup_expired
from .roblox import RobloxClient, RobloxUser, get_roblox_client
from .telegram import TelegramNotifier, get_notifier
from .expiry_scheduler import ExpiryScheduler


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "KosService",
    "SYSTEM_ACTOR",
    "get_kos_service",
    "AdminAuthService",
    "get_admin_auth",
    "SessionStore",
    "AuthCodeService",
    "get_api_sessions",
    "get_auth_codes",
    "cleanup_expired",
    "RobloxClient",
    "RobloxUser",
    "get_roblox_client",
    "TelegramNotifier",
    "get_notifier",
    "ExpiryScheduler",
]

"""
Brotherhood KOS - Centralized Constants
=======================================

All magic numbers and constants are defined here.
Import from this module instead of hardcoding values.
"""

# =============================================================================
# Time Constants (in seconds)
# =============================================================================

SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400
SECONDS_PER_WEEK = 604800

# =============================================================================
# Network Constants
# =============================================================================

API_PORT = 8080

# =============================================================================
# Interval Constants (in seconds)
# =============================================================================

EXPIRY_CHECK_INTERVAL = 300           # Expiry sweep period
EXPIRING_SOON_DAYS = 7                # "Expiring soon" window

# =============================================================================
# Timeout Constants (in seconds)
# =============================================================================

API_TIMEOUT = 10                      # External API request timeout
CONFIRMATION_TIMEOUT = 60             # Confirm/cancel button lifetime
MANAGE_PANEL_TIMEOUT = 300            # Management panel lifetime
DB_CONNECTION_TIMEOUT = 30.0
SQLITE_BUSY_TIMEOUT = 5000            # milliseconds

# =============================================================================
# Auth Constants
# =============================================================================

ADMIN_SESSION_TTL = 30 * SECONDS_PER_MINUTE
AUTH_CODE_TTL = 60 * SECONDS_PER_MINUTE
AUTH_CODE_BYTES = 4                   # 8 hex characters
SESSION_TOKEN_BYTES = 32              # 64 hex characters
MIN_ADMIN_PASSWORD_LENGTH = 8
PASSWORD_HASH_ITERATIONS = 200_000
PASSWORD_SALT_BYTES = 16

# =============================================================================
# KOS Entry Constants
# =============================================================================

STATUS_ACTIVE = "active"
STATUS_ARCHIVED = "archived"

ACTION_ADDED = "added"
ACTION_REMOVED = "removed"
ACTION_ARCHIVED = "archived"
ACTION_EXPIRED = "expired"
ACTION_STATUS_CHANGED = "status_changed"

HISTORY_ACTIONS = (
    ACTION_ADDED,
    ACTION_REMOVED,
    ACTION_ARCHIVED,
    ACTION_EXPIRED,
    ACTION_STATUS_CHANGED,
)

LIST_FILTERS = ("active", "expiring", "permanent", "archived")

DEFAULT_REMOVE_REASON = "Removed from KOS"
EXPIRED_REASON = "Entry expired automatically"
SYSTEM_ACTOR_ID = "system"
SYSTEM_ACTOR_NAME = "System"

ROBLOX_ID_PATTERN = r"^\d{1,20}$"

# =============================================================================
# Log Record Constants
# =============================================================================

LOG_LEVELS = ("info", "warning", "error", "debug")
LOG_CATEGORIES = ("bot", "api", "database", "service", "command", "system")

# =============================================================================
# Discord Limits
# =============================================================================

EMBED_FIELD_VALUE_LIMIT = 1024
LIST_PAGE_SIZE = 10
LIST_MAX_PAGE_SIZE = 25
REASON_MAX_LENGTH = 500

# =============================================================================
# Pagination
# =============================================================================

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


__all__ = [
    "SECONDS_PER_MINUTE",
    "SECONDS_PER_HOUR",
    "SECONDS_PER_DAY",
    "SECONDS_PER_WEEK",
    "API_PORT",
    "EXPIRY_CHECK_INTERVAL",
    "EXPIRING_SOON_DAYS",
    "API_TIMEOUT",
    "CONFIRMATION_TIMEOUT",
    "MANAGE_PANEL_TIMEOUT",
    "DB_CONNECTION_TIMEOUT",
    "SQLITE_BUSY_TIMEOUT",
    "ADMIN_SESSION_TTL",
    "AUTH_CODE_TTL",
    "AUTH_CODE_BYTES",
    "SESSION_TOKEN_BYTES",
    "MIN_ADMIN_PASSWORD_LENGTH",
    "PASSWORD_HASH_ITERATIONS",
    "PASSWORD_SALT_BYTES",
    "STATUS_ACTIVE",
    "STATUS_ARCHIVED",
    "ACTION_ADDED",
    "ACTION_REMOVED",
    "ACTION_ARCHIVED",
    "ACTION_EXPIRED",
    "ACTION_STATUS_CHANGED",
    "HISTORY_ACTIONS",
    "LIST_FILTERS",
    "DEFAULT_REMOVE_REASON",
    "EXPIRED_REASON",
    "SYSTEM_ACTOR_ID",
    "SYSTEM_ACTOR_NAME",
    "ROBLOX_ID_PATTERN",
    "LOG_LEVELS",
    "LOG_CATEGORIES",
    "EMBED_FIELD_VALUE_LIMIT",
    "LIST_PAGE_SIZE",
    "LIST_MAX_PAGE_SIZE",
    "REASON_MAX_LENGTH",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
]

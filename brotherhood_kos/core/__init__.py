"""
Brotherhood KOS - Core Package
==============================

Configuration, logging, constants, errors and database access.

DESIGN:
    Core modules are singletons or global instances so state stays
    consistent across the bot and the API:
    - get_config() returns the same Config instance
    - get_db() returns the same DatabaseManager instance
    - logger is a global TreeLogger instance
"""

# =============================================================================
# Core Imports
# =============================================================================

from .config import (
    Config,
    ConfigValidationError,
    EmbedColors,
    NY_TZ,
    get_config,
    is_developer,
    has_kos_role,
)

from .database import DatabaseManager, get_db

from .errors import (
    KosError,
    ValidationError,
    NotFoundError,
    ConflictError,
    AuthError,
)

from .logger import logger, TreeLogger


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    # Config
    "Config",
    "ConfigValidationError",
    "EmbedColors",
    "NY_TZ",
    "get_config",
    "is_developer",
    "has_kos_role",
    # Database
    "DatabaseManager",
    "get_db",
    # Errors
    "KosError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "AuthError",
    # Logger
    "logger",
    "TreeLogger",
]

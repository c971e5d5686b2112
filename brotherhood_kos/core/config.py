"""
Brotherhood KOS - Configuration Module
======================================

Centralized configuration management with environment variable validation.

DESIGN:
    One Config dataclass is loaded from the environment at startup and
    reused everywhere through get_config(). Missing required variables
    are collected and reported together so a bad deploy fails fast with
    one readable error.

    Key patterns:
    - Singleton via get_config()
    - Validation once at load time
    - Permission helpers centralize who may run KOS commands
"""

import os
from dataclasses import dataclass
from typing import Optional

from brotherhood_kos.core.logger import logger, NY_TZ
from brotherhood_kos.core import constants


# =============================================================================
# Configuration Dataclass
# =============================================================================

@dataclass
class Config:
    """
    Bot and service configuration loaded from environment variables.

    Attributes:
        discord_token: Discord bot authentication token.
        discord_client_id: Application (client) ID of the bot.
        discord_guild_id: Guild for scoped command sync (global when unset).
        developer_id: User always allowed to run every command.
        kos_role_id: Role allowed to manage the KOS list.
        telegram_bot_token: Telegram Bot API token.
        telegram_chat_id: Telegram chat receiving notifications.
        api_secret_key: Shared secret for signed machine payloads.
    """

    # -------------------------------------------------------------------------
    # Required
    # -------------------------------------------------------------------------

    discord_token: str
    discord_client_id: int

    # -------------------------------------------------------------------------
    # Optional: Discord
    # -------------------------------------------------------------------------

    discord_guild_id: Optional[int] = None
    developer_id: Optional[int] = None
    kos_role_id: Optional[int] = None

    # -------------------------------------------------------------------------
    # Optional: Telegram
    # -------------------------------------------------------------------------

    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None

    # -------------------------------------------------------------------------
    # Optional: Signing
    # -------------------------------------------------------------------------

    api_secret_key: Optional[str] = None

    # -------------------------------------------------------------------------
    # Optional: Webhooks
    # -------------------------------------------------------------------------

    error_webhook_url: Optional[str] = None

    # -------------------------------------------------------------------------
    # Optional: Storage
    # -------------------------------------------------------------------------

    database_path: str = "data/kos.db"

    # -------------------------------------------------------------------------
    # Optional: Scheduling & Windows
    # -------------------------------------------------------------------------

    expiry_check_interval: int = constants.EXPIRY_CHECK_INTERVAL
    expiring_soon_days: int = constants.EXPIRING_SOON_DAYS

    # -------------------------------------------------------------------------
    # Optional: Auth Lifetimes
    # -------------------------------------------------------------------------

    admin_session_minutes: int = 30
    api_session_hours: int = 24
    auth_code_minutes: int = 60

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)


# =============================================================================
# Embed Colors
# =============================================================================

class EmbedColors:
    """Color palette for Discord embeds."""

    RED = 0xFF6B6B      # KOS add confirmation
    ORANGE = 0xFFAA00   # KOS removal confirmation
    GREEN = 0x4CAF50    # Success
    BLUE = 0x0099FF     # Listings and status
    BLURPLE = 0x5865F2  # Console and management panel
    GRAY = 0x95A5A6     # Cancelled / timed out

    SUCCESS = GREEN
    ERROR = RED
    INFO = BLUE


# =============================================================================
# Validation
# =============================================================================

class ConfigValidationError(Exception):
    """Raised when required configuration is missing or invalid."""

    pass


def _parse_int(value: Optional[str], name: str) -> int:
    """
    Parse string to integer with descriptive error handling.

    Raises:
        ConfigValidationError: If value is missing or not a valid integer.
    """
    if not value:
        raise ConfigValidationError(f"Missing required: {name}")
    try:
        return int(value)
    except ValueError:
        raise ConfigValidationError(f"Invalid integer for {name}: {value}")


def _parse_int_optional(value: Optional[str]) -> Optional[int]:
    """Parse optional string to integer, returning None on failure."""
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_int_with_default(
    value: Optional[str],
    default: int,
    name: str,
    min_val: Optional[int] = None,
    max_val: Optional[int] = None,
) -> int:
    """
    Parse optional integer with default and range clamping.

    Args:
        value: String value from environment variable.
        default: Default value if not set or invalid.
        name: Variable name for warning messages.
        min_val: Minimum allowed value (inclusive).
        max_val: Maximum allowed value (inclusive).

    Returns:
        Parsed integer within valid range, or default.
    """
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        logger.warning(f"Config {name}='{value}' invalid, using default {default}")
        return default
    if min_val is not None and parsed < min_val:
        logger.warning(f"Config {name}={parsed} below min {min_val}, using {min_val}")
        return min_val
    if max_val is not None and parsed > max_val:
        logger.warning(f"Config {name}={parsed} above max {max_val}, using {max_val}")
        return max_val
    return parsed


def _validate_url(value: Optional[str], name: str) -> Optional[str]:
    """Return the URL if it looks like http(s), otherwise None."""
    if not value:
        return None
    if not value.startswith(("https://", "http://")):
        logger.warning(f"Config {name} invalid URL format, ignoring")
        return None
    return value


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config() -> Config:
    """
    Load and validate configuration from environment variables.

    Returns:
        Validated Config object.

    Raises:
        ConfigValidationError: If any required variable is missing or invalid.
    """
    missing = []

    discord_token = os.getenv("DISCORD_TOKEN")
    if not discord_token:
        missing.append("DISCORD_TOKEN")

    client_id_str = os.getenv("DISCORD_CLIENT_ID")
    if not client_id_str:
        missing.append("DISCORD_CLIENT_ID")

    if missing:
        raise ConfigValidationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    return Config(
        discord_token=discord_token,
        discord_client_id=_parse_int(client_id_str, "DISCORD_CLIENT_ID"),
        discord_guild_id=_parse_int_optional(os.getenv("DISCORD_GUILD_ID")),
        developer_id=_parse_int_optional(os.getenv("DEVELOPER_ID")),
        kos_role_id=_parse_int_optional(os.getenv("KOS_ROLE_ID")),
        telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or None,
        telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID") or None,
        api_secret_key=os.getenv("API_SECRET_KEY") or None,
        error_webhook_url=_validate_url(os.getenv("ERROR_WEBHOOK_URL"), "ERROR_WEBHOOK_URL"),
        database_path=os.getenv("DATABASE_PATH", "data/kos.db"),
        expiry_check_interval=_parse_int_with_default(
            os.getenv("EXPIRY_CHECK_INTERVAL"), constants.EXPIRY_CHECK_INTERVAL,
            "EXPIRY_CHECK_INTERVAL", min_val=60, max_val=3600,
        ),
        expiring_soon_days=_parse_int_with_default(
            os.getenv("EXPIRING_SOON_DAYS"), constants.EXPIRING_SOON_DAYS,
            "EXPIRING_SOON_DAYS", min_val=1, max_val=90,
        ),
        admin_session_minutes=_parse_int_with_default(
            os.getenv("ADMIN_SESSION_MINUTES"), 30, "ADMIN_SESSION_MINUTES", min_val=1, max_val=1440,
        ),
        api_session_hours=_parse_int_with_default(
            os.getenv("API_SESSION_HOURS"), 24, "API_SESSION_HOURS", min_val=1, max_val=720,
        ),
        auth_code_minutes=_parse_int_with_default(
            os.getenv("AUTH_CODE_MINUTES"), 60, "AUTH_CODE_MINUTES", min_val=1, max_val=1440,
        ),
    )


# =============================================================================
# Global Config Instance
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance, loading if needed.

    Raises:
        ConfigValidationError: On first call if config is invalid.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached config so the next get_config() reloads it."""
    global _config
    _config = None


def validate_and_log_config() -> None:
    """
    Validate configuration and log a summary at startup.

    Raises:
        ConfigValidationError: If required configuration is missing.
    """
    config = get_config()

    optional_features = []
    if config.telegram_enabled:
        optional_features.append("Telegram")
    if config.error_webhook_url:
        optional_features.append("Error Webhook")
    if config.kos_role_id:
        optional_features.append("KOS Role")
    if config.api_secret_key:
        optional_features.append("Signing Secret")

    if not config.telegram_enabled:
        logger.info("Optional config not set: TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID")
    if not config.kos_role_id:
        logger.info("Optional config not set: KOS_ROLE_ID (administrators only)")

    logger.tree_nested("Configuration Validated", [
        ("Discord", [
            ("Required", "✅ All required variables set"),
            ("Command Sync", f"Guild {config.discord_guild_id}" if config.discord_guild_id else "Global"),
        ]),
        ("Features", [
            ("Optional", ", ".join(optional_features) if optional_features else "None"),
        ]),
        ("Storage", [
            ("Database", config.database_path),
            ("Expiry Sweep", f"every {config.expiry_check_interval}s"),
        ]),
    ], emoji="⚙️")


# =============================================================================
# Permission Helpers
# =============================================================================

def is_developer(user_id: int) -> bool:
    """Check if user is the configured developer."""
    developer_id = get_config().developer_id
    return developer_id is not None and user_id == developer_id


def has_kos_role(member) -> bool:
    """
    Check if a member may manage the KOS list.

    Args:
        member: Discord member object to check.

    Returns:
        True for the developer, administrators, and holders of KOS_ROLE_ID.
    """
    if member is None:
        return False

    if is_developer(member.id):
        return True

    permissions = getattr(member, "guild_permissions", None)
    if permissions is not None and permissions.administrator:
        return True

    role_id = get_config().kos_role_id
    if role_id:
        return any(role.id == role_id for role in getattr(member, "roles", []))

    return False


async def check_kos_permission(interaction) -> bool:
    """
    Check KOS permission and send an error if not authorized.

    Returns:
        True if authorized, False if not (error already sent).
    """
    if not has_kos_role(interaction.user):
        await interaction.response.send_message(
            "❌ You don't have permission to use this command.",
            ephemeral=True,
        )
        return False
    return True


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "Config",
    "ConfigValidationError",
    "EmbedColors",
    "NY_TZ",
    "get_config",
    "load_config",
    "reset_config",
    "validate_and_log_config",
    "is_developer",
    "has_kos_role",
    "check_kos_permission",
]

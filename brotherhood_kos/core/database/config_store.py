"""
Brotherhood KOS - Config Store Mixin
====================================

Key/value bot configuration persisted in bot_config.
"""

import json
import time
from typing import TYPE_CHECKING, Any, Optional

from brotherhood_kos.core.logger import logger

if TYPE_CHECKING:
    from brotherhood_kos.core.database.manager import DatabaseManager


BOT_ENABLED_KEY = "bot_enabled"
ADMIN_PASSWORD_KEY = "admin_password"


class ConfigStoreMixin:
    """Mixin for bot_config operations."""

    # =========================================================================
    # Generic Values
    # =========================================================================

    def get_config_value(self: "DatabaseManager", key: str, default: Any = None) -> Any:
        """
        Get a stored config value.

        Args:
            key: Config key to retrieve.
            default: Value returned when the key is missing.

        Returns:
            Decoded JSON value, the raw string if it is not JSON, or default.
        """
        row = self.fetchone("SELECT value FROM bot_config WHERE key = ?", (key,))
        if row:
            try:
                return json.loads(row["value"])
            except json.JSONDecodeError:
                return row["value"]
        return default

    def set_config_value(
        self: "DatabaseManager",
        key: str,
        value: Any,
        description: Optional[str] = None,
    ) -> None:
        """
        Store a config value (JSON encoded).

        Args:
            key: Config key to set.
            value: Any JSON-serializable value.
            description: Optional human-readable note kept with the key.
        """
        self.execute(
            """INSERT INTO bot_config (key, value, description, updated_at)
               VALUES (?, ?, ?, ?)
               ON CONFLICT(key) DO UPDATE SET
                 value = excluded.value,
                 description = COALESCE(excluded.description, bot_config.description),
                 updated_at = excluded.updated_at""",
            (key, json.dumps(value), description, time.time())
        )

    def delete_config_value(self: "DatabaseManager", key: str) -> bool:
        """Delete a config key. Returns True if it existed."""
        cursor = self.execute("DELETE FROM bot_config WHERE key = ?", (key,))
        return cursor.rowcount > 0

    # =========================================================================
    # Bot Enabled Flag
    # =========================================================================

    def is_bot_enabled(self: "DatabaseManager") -> bool:
        """Check if the bot is enabled (defaults to True)."""
        return bool(self.get_config_value(BOT_ENABLED_KEY, True))

    def set_bot_enabled(self: "DatabaseManager", enabled: bool) -> None:
        """
        Set the bot enabled flag.

        Args:
            enabled: True to enable, False to disable.
        """
        self.set_config_value(BOT_ENABLED_KEY, enabled, "Whether KOS commands are accepted")
        logger.tree("Bot State Changed", [
            ("Enabled", str(enabled)),
        ], emoji="⚙️")


__all__ = ["ConfigStoreMixin", "BOT_ENABLED_KEY", "ADMIN_PASSWORD_KEY"]

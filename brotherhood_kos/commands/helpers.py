"""
Brotherhood KOS - Command Helpers
=================================

Embed builders and checks shared by the KOS cogs.
"""

from datetime import datetime
from typing import Optional

import discord

from brotherhood_kos.core.config import EmbedColors, NY_TZ
from brotherhood_kos.core.constants import EMBED_FIELD_VALUE_LIMIT
from brotherhood_kos.core.database import Actor, KosEntryRecord
from brotherhood_kos.core.errors import KosError
from brotherhood_kos.core.logger import logger
from brotherhood_kos.services.kos_service import get_kos_service
from brotherhood_kos.utils.interaction import safe_respond


FOOTER_TEXT = "Brotherhood KOS System"
DISABLED_MESSAGE = "⛔ The KOS system is currently disabled."
GENERIC_ERROR_MESSAGE = "❌ An unexpected error occurred. Please try again later."


def actor_from_user(user: discord.abc.User) -> Actor:
    """Build a domain actor from a Discord user."""
    return Actor(id=str(user.id), name=str(user))


def set_footer(embed: discord.Embed, text: str = FOOTER_TEXT) -> discord.Embed:
    embed.set_footer(text=text)
    return embed


def relative_time(timestamp: Optional[float]) -> str:
    """Discord relative timestamp, e.g. 'in 3 days'."""
    if timestamp is None:
        return "Never"
    return discord.utils.format_dt(datetime.fromtimestamp(timestamp, NY_TZ), "R")


def short_date(timestamp: Optional[float]) -> str:
    if timestamp is None:
        return "Unknown"
    return discord.utils.format_dt(datetime.fromtimestamp(timestamp, NY_TZ), "d")


def expiry_text(entry: KosEntryRecord) -> str:
    if entry.get("is_permanent"):
        return "Permanent"
    if entry.get("expires_at") is None:
        return "No expiry"
    return f"Expires {relative_time(entry['expires_at'])}"


def truncate(text: Optional[str], limit: int = EMBED_FIELD_VALUE_LIMIT) -> str:
    text = text or "-"
    return text if len(text) <= limit else text[: limit - 3] + "..."


def build_entry_embed(
    entry: KosEntryRecord,
    title: str,
    color: int = EmbedColors.GREEN,
    description: Optional[str] = None,
) -> discord.Embed:
    """Embed with the core fields of a KOS entry."""
    embed = discord.Embed(
        title=title,
        description=description,
        color=color,
        timestamp=datetime.now(NY_TZ),
    )
    embed.add_field(name="Roblox Username", value=entry["roblox_username"], inline=True)
    embed.add_field(name="User ID", value=entry["roblox_user_id"], inline=True)
    embed.add_field(name="Reason", value=truncate(entry.get("reason")), inline=False)
    embed.add_field(name="Status", value=expiry_text(entry), inline=False)
    if entry.get("thumbnail_url"):
        embed.set_thumbnail(url=entry["thumbnail_url"])
    return set_footer(embed)


# =============================================================================
# Checks
# =============================================================================

async def ensure_enabled(interaction: discord.Interaction) -> bool:
    """
    Refuse the command while the bot is disabled.

    Returns:
        True if the command may run (refusal already sent otherwise).
    """
    if get_kos_service().is_enabled():
        return True
    await safe_respond(interaction, DISABLED_MESSAGE)
    return False


async def report_error(interaction: discord.Interaction, error: Exception, command: str) -> None:
    """Reply with a KOS error message, or log and send a generic reply."""
    if isinstance(error, KosError):
        await safe_respond(interaction, f"❌ {error.message}")
        return

    logger.error(f"/{command} Failed", [
        ("User", f"{interaction.user} ({interaction.user.id})"),
        ("Error Type", type(error).__name__),
        ("Error", str(error)[:100]),
    ])
    await safe_respond(interaction, GENERIC_ERROR_MESSAGE)


__all__ = [
    "FOOTER_TEXT",
    "DISABLED_MESSAGE",
    "GENERIC_ERROR_MESSAGE",
    "actor_from_user",
    "set_footer",
    "relative_time",
    "short_date",
    "expiry_text",
    "truncate",
    "build_entry_embed",
    "ensure_enabled",
    "report_error",
]

"""
Brotherhood KOS - Status Cog
============================

/status: KOS system statistics.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict

import discord
from discord import app_commands
from discord.ext import commands

from brotherhood_kos.core.config import EmbedColors, NY_TZ, check_kos_permission
from brotherhood_kos.core.logger import logger
from brotherhood_kos.services.kos_service import get_kos_service
from brotherhood_kos.utils.interaction import safe_respond

from .helpers import ensure_enabled, report_error, set_footer

if TYPE_CHECKING:
    from brotherhood_kos.bot import KosBot


def build_status_embed(status: Dict[str, Any]) -> discord.Embed:
    """Embed with the counts from KosService.status()."""
    embed = discord.Embed(
        title="📊 KOS System Status",
        color=EmbedColors.BLUE,
        timestamp=datetime.now(NY_TZ),
    )
    embed.add_field(name="Active Entries", value=str(status["active"]), inline=True)
    embed.add_field(name="Archived Entries", value=str(status["archived"]), inline=True)
    embed.add_field(name="Total Entries", value=str(status["total"]), inline=True)
    embed.add_field(name="Permanent", value=str(status["permanent"]), inline=True)
    embed.add_field(name="Expiring Soon", value=str(status["expiring"]), inline=True)
    embed.add_field(name="Added Last 7 Days", value=str(status["added_last_7_days"]), inline=True)
    return set_footer(embed)


class StatusCog(commands.Cog):
    """KOS status command."""

    def __init__(self, bot: "KosBot") -> None:
        self.bot = bot

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return await check_kos_permission(interaction)

    @app_commands.command(name="status", description="View KOS system statistics and status")
    async def status(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer(ephemeral=True)

        if not await ensure_enabled(interaction):
            return

        try:
            embed = build_status_embed(get_kos_service().status())
        except Exception as e:
            await report_error(interaction, e, "status")
            return

        await safe_respond(interaction, embed=embed)


async def setup(bot: "KosBot") -> None:
    """Load the StatusCog."""
    await bot.add_cog(StatusCog(bot))
    logger.tree("Status Cog Loaded", [("Commands", "/status")], emoji="📊")


__all__ = ["StatusCog", "build_status_embed"]

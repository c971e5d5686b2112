"""
Brotherhood KOS - Console Cog
=============================

/console: issue an API auth code, delivered by DM.
"""

from datetime import datetime
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from brotherhood_kos.core.config import EmbedColors, NY_TZ, check_kos_permission
from brotherhood_kos.core.database import get_db
from brotherhood_kos.core.logger import logger
from brotherhood_kos.services.sessions import get_auth_codes
from brotherhood_kos.utils.interaction import safe_respond

from .helpers import relative_time, report_error, set_footer

if TYPE_CHECKING:
    from brotherhood_kos.bot import KosBot


HOW_TO_USE = "\n".join([
    "1. Make a POST request to `/api/auth/login`",
    "2. Include the code in the request body: `{ \"code\": \"YOUR_CODE\" }`",
    "3. You will receive a session token to use for API requests",
    "4. Include the token in the Authorization header: `Bearer YOUR_TOKEN`",
])


def build_code_embed(code: str, expires_at: float) -> discord.Embed:
    embed = discord.Embed(
        title="🔐 API Authentication Code",
        description="Use this code to authenticate with the Brotherhood KOS API.",
        color=EmbedColors.BLURPLE,
        timestamp=datetime.now(NY_TZ),
    )
    embed.add_field(name="Your Code", value=f"```{code}```", inline=False)
    embed.add_field(name="Expires", value=relative_time(expires_at), inline=True)
    embed.add_field(name="How to Use", value=HOW_TO_USE, inline=False)
    return set_footer(embed, "⚠️ Keep this code private! Do not share it with anyone.")


class ConsoleCog(commands.Cog):
    """API auth code command. Works while the bot is disabled."""

    def __init__(self, bot: "KosBot") -> None:
        self.bot = bot

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return await check_kos_permission(interaction)

    @app_commands.command(name="console", description="Generate an authentication code for API access")
    async def console(self, interaction: discord.Interaction) -> None:
        await interaction.response.defer(ephemeral=True)

        try:
            code, expires_at = get_auth_codes().create(str(interaction.user.id), str(interaction.user))
        except Exception as e:
            await report_error(interaction, e, "console")
            return

        embed = build_code_embed(code, expires_at)
        delivered = "DM"

        try:
            await interaction.user.send(embed=embed)
            await safe_respond(interaction, "✅ Authentication code sent to your DMs!")
        except discord.Forbidden:
            delivered = "Ephemeral"
            await safe_respond(
                interaction,
                "⚠️ Could not send DM. Here is your code (only you can see this):",
                embed=embed,
            )

        get_db().add_log(
            "info", "command", "API auth code generated",
            {"delivery": delivered}, str(interaction.user.id), str(interaction.user),
        )

        logger.tree("API Auth Code Issued", [
            ("User", f"{interaction.user} ({interaction.user.id})"),
            ("Delivery", delivered),
        ], emoji="🔐")


async def setup(bot: "KosBot") -> None:
    """Load the ConsoleCog."""
    await bot.add_cog(ConsoleCog(bot))
    logger.tree("Console Cog Loaded", [("Commands", "/console")], emoji="🔐")


__all__ = ["ConsoleCog", "build_code_embed"]

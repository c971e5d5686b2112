"""
Brotherhood KOS - Manage Cog
============================

/manage: password-gated management panel.
"""

from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from brotherhood_kos.core.config import check_kos_permission
from brotherhood_kos.core.logger import logger
from brotherhood_kos.services.admin_auth import get_admin_auth

from .views import AdminPasswordModal

if TYPE_CHECKING:
    from brotherhood_kos.bot import KosBot


NO_PASSWORD_MESSAGE = (
    "⚠️ No admin password is configured.\n"
    "Run `python scripts/set_admin_password.py` on the host to set one."
)


class ManageCog(commands.Cog):
    """
    Management panel command. Works while the bot is disabled.

    DESIGN:
        The password goes through a modal so it never lands in a
        channel. A correct password opens a 30-minute admin session.
    """

    def __init__(self, bot: "KosBot") -> None:
        self.bot = bot

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return await check_kos_permission(interaction)

    @app_commands.command(name="manage", description="Manage bot settings (Admin only)")
    async def manage(self, interaction: discord.Interaction) -> None:
        if not get_admin_auth().has_password():
            await interaction.response.send_message(NO_PASSWORD_MESSAGE, ephemeral=True)
            return

        logger.debug("/manage Prompted", [
            ("User", f"{interaction.user} ({interaction.user.id})"),
        ])
        await interaction.response.send_modal(AdminPasswordModal(self.bot))


__all__ = ["ManageCog"]

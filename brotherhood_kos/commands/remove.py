"""
Brotherhood KOS - Remove Cog
============================

/remove: confirm, then archive a user's active KOS entry.
"""

import time
from datetime import datetime
from typing import TYPE_CHECKING, Optional

import discord
from discord import app_commands
from discord.ext import commands

from brotherhood_kos.core.config import EmbedColors, NY_TZ, check_kos_permission
from brotherhood_kos.core.constants import DEFAULT_REMOVE_REASON, REASON_MAX_LENGTH, SECONDS_PER_DAY
from brotherhood_kos.core.logger import logger
from brotherhood_kos.services.kos_service import KosService, get_kos_service
from brotherhood_kos.utils.interaction import safe_edit

from .confirm import ConfirmView
from .helpers import (
    actor_from_user,
    build_entry_embed,
    ensure_enabled,
    relative_time,
    report_error,
    set_footer,
    short_date,
    truncate,
)
from .pending import PendingAction, get_pending

if TYPE_CHECKING:
    from brotherhood_kos.bot import KosBot


class RemoveCog(commands.Cog):
    """KOS remove command."""

    def __init__(self, bot: "KosBot") -> None:
        self.bot = bot

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return await check_kos_permission(interaction)

    @app_commands.command(name="remove", description="Remove a user from the KOS list")
    @app_commands.describe(
        roblox_id="The Roblox user ID to remove",
        reason="Reason for removal",
    )
    async def remove(
        self,
        interaction: discord.Interaction,
        roblox_id: app_commands.Range[str, 1, 20],
        reason: Optional[app_commands.Range[str, 1, REASON_MAX_LENGTH]] = None,
    ) -> None:
        await interaction.response.defer(ephemeral=True)

        if not await ensure_enabled(interaction):
            return

        try:
            roblox_id = KosService.validate_roblox_id(roblox_id)
            reason = (reason or "").strip() or DEFAULT_REMOVE_REASON

            entry = get_kos_service().find(roblox_id)
            if entry is None:
                await safe_edit(interaction, content="❌ This user is not on the KOS list.")
                return

            action = get_pending().put("remove", interaction.user.id, {
                "roblox_user_id": roblox_id,
                "reason": reason,
            })

            embed = discord.Embed(
                title="⚠️ Confirm KOS Removal",
                color=EmbedColors.ORANGE,
                timestamp=datetime.now(NY_TZ),
            )
            embed.add_field(name="Roblox Username", value=entry["roblox_username"], inline=True)
            embed.add_field(name="Roblox User ID", value=entry["roblox_user_id"], inline=True)
            embed.add_field(name="Original Reason", value=truncate(entry["reason"]), inline=False)
            embed.add_field(name="Removal Reason", value=truncate(reason), inline=False)
            embed.add_field(
                name="Added By",
                value=f"{entry['added_by_name']} on {short_date(entry['created_at'])}",
                inline=False,
            )
            embed.add_field(name="Confirm Within", value=relative_time(action.expires_at), inline=True)
            if entry.get("thumbnail_url"):
                embed.set_thumbnail(url=entry["thumbnail_url"])
            set_footer(embed, "This action will archive the entry and notify all configured channels")

            view = ConfirmView(
                action=action,
                origin=interaction,
                on_confirm=self._confirm_remove,
                cancel_message="❌ KOS removal cancelled.",
                confirm_label="Confirm Removal",
            )
            await safe_edit(interaction, content=None, embed=embed, view=view)

        except Exception as e:
            await report_error(interaction, e, "remove")

    async def _confirm_remove(self, interaction: discord.Interaction, action: PendingAction) -> None:
        entry = get_kos_service().remove(
            action.payload["roblox_user_id"],
            reason=action.payload["reason"],
            actor=actor_from_user(interaction.user),
        )

        days_on_list = max(1, int((time.time() - entry["created_at"]) // SECONDS_PER_DAY) + 1)

        embed = build_entry_embed(entry, "✅ User Removed from KOS", color=EmbedColors.GREEN)
        embed.set_field_at(2, name="Removal Reason", value=truncate(action.payload["reason"]), inline=False)
        embed.set_field_at(3, name="Removed By", value=str(interaction.user), inline=True)
        embed.add_field(name="Was on KOS for", value=f"{days_on_list} days", inline=True)

        logger.tree("/remove Confirmed", [
            ("Roblox", f"{entry['roblox_username']} ({entry['roblox_user_id']})"),
            ("By", f"{interaction.user} ({interaction.user.id})"),
        ], emoji="✅")

        await safe_edit(interaction, content=None, embed=embed, view=None)


async def setup(bot: "KosBot") -> None:
    """Load the RemoveCog."""
    await bot.add_cog(RemoveCog(bot))
    logger.tree("Remove Cog Loaded", [("Commands", "/remove")], emoji="✅")


__all__ = ["RemoveCog"]

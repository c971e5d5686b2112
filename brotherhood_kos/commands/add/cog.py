"""
Brotherhood KOS - Add Cog
=========================

/add: resolve a Roblox user, confirm, then put them on the KOS list.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

import discord
from discord import app_commands
from discord.ext import commands

from brotherhood_kos.core.config import EmbedColors, NY_TZ, check_kos_permission
from brotherhood_kos.core.constants import REASON_MAX_LENGTH
from brotherhood_kos.core.logger import logger
from brotherhood_kos.services.kos_service import KosService, get_kos_service
from brotherhood_kos.services.roblox import get_roblox_client
from brotherhood_kos.utils.duration import DURATION_SUGGESTIONS, format_duration, parse_duration, resolve_expiry
from brotherhood_kos.utils.interaction import safe_edit

from ..confirm import ConfirmView
from ..helpers import (
    actor_from_user,
    build_entry_embed,
    ensure_enabled,
    expiry_text,
    relative_time,
    report_error,
    set_footer,
    truncate,
)
from ..pending import PendingAction, get_pending

if TYPE_CHECKING:
    from brotherhood_kos.bot import KosBot


class AddCog(commands.Cog):
    """
    KOS add command.

    DESIGN:
        Input shape is checked up front (reason, duration). The Roblox
        lookup and the confirmation both happen before anything is
        written; the entry is added only when the invoker confirms.
    """

    def __init__(self, bot: "KosBot") -> None:
        self.bot = bot

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return await check_kos_permission(interaction)

    # =========================================================================
    # Autocomplete
    # =========================================================================

    async def duration_autocomplete(
        self,
        interaction: discord.Interaction,
        current: str,
    ) -> List[app_commands.Choice[str]]:
        """Suggest durations, echoing a valid custom value first."""
        choices = []
        current_lower = current.lower().strip()

        if current:
            parsed = parse_duration(current)
            if parsed is not None:
                choices.append(app_commands.Choice(name=format_duration(parsed), value=current))

        for label, value in DURATION_SUGGESTIONS:
            if current_lower == value.lower():
                continue
            if current_lower in label.lower() or current_lower in value.lower():
                choices.append(app_commands.Choice(name=label, value=value))

        return choices[:25]

    # =========================================================================
    # Add Command
    # =========================================================================

    @app_commands.command(name="add", description="Add a player to the KOS list")
    @app_commands.describe(
        username="Roblox username (or numeric user ID) of the player",
        reason="Reason for adding to KOS",
        duration="Duration (e.g., 7d, 30d, 1y, permanent) - leave empty for no expiry",
    )
    @app_commands.autocomplete(duration=duration_autocomplete)
    async def add(
        self,
        interaction: discord.Interaction,
        username: app_commands.Range[str, 1, 64],
        reason: app_commands.Range[str, 1, REASON_MAX_LENGTH],
        duration: Optional[str] = None,
    ) -> None:
        await interaction.response.defer(ephemeral=True)

        if not await ensure_enabled(interaction):
            return

        try:
            reason = KosService.validate_reason(reason)
            expires_at, is_permanent = resolve_expiry(duration)

            await safe_edit(interaction, content="🔍 Looking up Roblox user...")

            roblox_user = await get_roblox_client().resolve(username)
            if roblox_user is None:
                await safe_edit(
                    interaction,
                    content=f"❌ Could not find Roblox user: **{discord.utils.escape_markdown(username)}**\n"
                            "Please check the username and try again.",
                )
                return

            if get_kos_service().find(roblox_user.id) is not None:
                await safe_edit(interaction, content=f"❌ **{roblox_user.name}** is already on the KOS list.")
                return

            action = get_pending().put("add", interaction.user.id, {
                "roblox_user_id": roblox_user.id,
                "roblox_username": roblox_user.name,
                "reason": reason,
                "expires_at": expires_at,
                "is_permanent": is_permanent,
                "thumbnail_url": roblox_user.thumbnail_url,
            })

            embed = discord.Embed(
                title="⚠️ Confirm KOS Entry",
                description="Please review the details below and confirm:",
                color=EmbedColors.RED,
                timestamp=datetime.now(NY_TZ),
            )
            embed.add_field(name="Roblox Username", value=roblox_user.name, inline=True)
            embed.add_field(name="User ID", value=roblox_user.id, inline=True)
            embed.add_field(name="Reason", value=truncate(reason), inline=False)
            embed.add_field(
                name="Duration",
                value=expiry_text({"is_permanent": is_permanent, "expires_at": expires_at}),
                inline=False,
            )
            embed.add_field(name="Added By", value=str(interaction.user), inline=True)
            embed.add_field(name="Confirm Within", value=relative_time(action.expires_at), inline=True)
            if roblox_user.thumbnail_url:
                embed.set_thumbnail(url=roblox_user.thumbnail_url)
            set_footer(embed)

            view = ConfirmView(
                action=action,
                origin=interaction,
                on_confirm=self._confirm_add,
                cancel_message="❌ KOS entry cancelled.",
            )
            await safe_edit(interaction, content=None, embed=embed, view=view)

        except Exception as e:
            await report_error(interaction, e, "add")

    async def _confirm_add(self, interaction: discord.Interaction, action: PendingAction) -> None:
        payload = action.payload
        entry = get_kos_service().add(
            roblox_user_id=payload["roblox_user_id"],
            roblox_username=payload["roblox_username"],
            reason=payload["reason"],
            actor=actor_from_user(interaction.user),
            expires_at=payload["expires_at"],
            is_permanent=payload["is_permanent"],
            thumbnail_url=payload["thumbnail_url"],
        )

        logger.tree("/add Confirmed", [
            ("Roblox", f"{entry['roblox_username']} ({entry['roblox_user_id']})"),
            ("By", f"{interaction.user} ({interaction.user.id})"),
        ], emoji="🚨")

        await safe_edit(
            interaction,
            content=None,
            embed=build_entry_embed(entry, "✅ KOS Entry Added"),
            view=None,
        )


__all__ = ["AddCog"]

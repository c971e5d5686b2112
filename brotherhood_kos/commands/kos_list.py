"""
Brotherhood KOS - List Cog
==========================

/list: browse KOS entries by filter, page and username search.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

import discord
from discord import app_commands
from discord.ext import commands

from brotherhood_kos.core.config import EmbedColors, NY_TZ, check_kos_permission
from brotherhood_kos.core.constants import EMBED_FIELD_VALUE_LIMIT, LIST_MAX_PAGE_SIZE, LIST_PAGE_SIZE
from brotherhood_kos.core.database import KosEntryRecord
from brotherhood_kos.core.logger import logger
from brotherhood_kos.services.kos_service import get_kos_service
from brotherhood_kos.utils.interaction import safe_respond

from .helpers import ensure_enabled, expiry_text, report_error, set_footer, short_date, truncate

if TYPE_CHECKING:
    from brotherhood_kos.bot import KosBot


FILTER_CHOICES = [
    app_commands.Choice(name="Active Only", value="active"),
    app_commands.Choice(name="Expiring Soon", value="expiring"),
    app_commands.Choice(name="Permanent Only", value="permanent"),
    app_commands.Choice(name="Archived Only", value="archived"),
]


def format_entry_field(index: int, entry: KosEntryRecord) -> tuple:
    """(name, value) for one entry in the list embed."""
    status = "🟢 Active" if entry["status"] == "active" else "🔴 Archived"
    lines = [
        status,
        f"Reason: {truncate(entry['reason'], 200)}",
        f"Added: {short_date(entry['created_at'])} by {entry['added_by_name']}",
    ]
    if entry["status"] == "active":
        lines.append(expiry_text(entry))
    elif entry.get("archive_reason"):
        lines.append(f"Archived: {truncate(entry['archive_reason'], 100)}")
    return f"{index}. {entry['roblox_username']} ({entry['roblox_user_id']})", "\n".join(lines)


class ListCog(commands.Cog):
    """KOS list command."""

    def __init__(self, bot: "KosBot") -> None:
        self.bot = bot

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return await check_kos_permission(interaction)

    @app_commands.command(name="list", description="List KOS entries")
    @app_commands.describe(
        filter="Filter entries",
        search="Search by username",
        page="Page number",
        limit=f"Number of entries to show (default: {LIST_PAGE_SIZE}, max: {LIST_MAX_PAGE_SIZE})",
    )
    @app_commands.choices(filter=FILTER_CHOICES)
    async def list_entries(
        self,
        interaction: discord.Interaction,
        filter: Optional[app_commands.Choice[str]] = None,
        search: Optional[app_commands.Range[str, 1, 64]] = None,
        page: app_commands.Range[int, 1, 10_000] = 1,
        limit: app_commands.Range[int, 1, LIST_MAX_PAGE_SIZE] = LIST_PAGE_SIZE,
    ) -> None:
        await interaction.response.defer(ephemeral=True)

        if not await ensure_enabled(interaction):
            return

        filter_name = filter.value if filter else "active"

        try:
            entries, total = get_kos_service().list(
                filter=filter_name, page=page, limit=limit, search=search,
            )
        except Exception as e:
            await report_error(interaction, e, "list")
            return

        if not entries:
            await safe_respond(interaction, "📋 No entries found matching your criteria.")
            return

        total_pages = max(1, (total + limit - 1) // limit)
        embed = discord.Embed(
            title=f"📋 KOS Entries ({total})",
            description=f"Search results for: \"{search}\"" if search else f"Filter: {filter_name}",
            color=EmbedColors.BLUE,
            timestamp=datetime.now(NY_TZ),
        )

        offset = (page - 1) * limit
        for i, entry in enumerate(entries, start=offset + 1):
            name, value = format_entry_field(i, entry)
            embed.add_field(name=name[:256], value=value[:EMBED_FIELD_VALUE_LIMIT], inline=False)

        set_footer(embed, f"Page {page}/{total_pages} • Brotherhood KOS System")

        logger.debug("/list Served", [
            ("User", f"{interaction.user} ({interaction.user.id})"),
            ("Filter", filter_name),
            ("Results", f"{len(entries)}/{total}"),
        ])

        await safe_respond(interaction, embed=embed)


async def setup(bot: "KosBot") -> None:
    """Load the ListCog."""
    await bot.add_cog(ListCog(bot))
    logger.tree("List Cog Loaded", [("Commands", "/list")], emoji="📋")


__all__ = ["ListCog", "format_entry_field"]

"""
Brotherhood KOS - Manage Views
==============================

Admin password modal and the management panel.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

import discord

from brotherhood_kos.core.config import EmbedColors, NY_TZ
from brotherhood_kos.core.constants import MANAGE_PANEL_TIMEOUT
from brotherhood_kos.core.database import get_db
from brotherhood_kos.core.errors import AuthError
from brotherhood_kos.core.logger import logger
from brotherhood_kos.services.admin_auth import get_admin_auth
from brotherhood_kos.services.kos_service import get_kos_service
from brotherhood_kos.services.telegram import get_notifier
from brotherhood_kos.utils.interaction import safe_edit

from ..helpers import actor_from_user, set_footer

if TYPE_CHECKING:
    from brotherhood_kos.bot import KosBot


SESSION_EXPIRED_MESSAGE = "⏱️ Your session has expired. Please authenticate again."


def build_panel_embed(notice: Optional[str] = None) -> discord.Embed:
    """Management panel embed with fresh counts."""
    service = get_kos_service()
    status = service.status()

    embed = discord.Embed(
        title="🛠️ Bot Management Panel",
        description=notice or "Select an action below:",
        color=EmbedColors.BLURPLE,
        timestamp=datetime.now(NY_TZ),
    )
    embed.add_field(
        name="Bot Status",
        value="🟢 Enabled" if status["bot_enabled"] else "🔴 Disabled",
        inline=True,
    )
    embed.add_field(name="Active Entries", value=str(status["active"]), inline=True)
    embed.add_field(name="Historical Entries", value=str(status["archived"]), inline=True)
    embed.add_field(name="Expiring Soon", value=f"{status['expiring']} entries", inline=True)
    embed.add_field(
        name="Telegram",
        value="Configured" if get_notifier().enabled else "Not configured",
        inline=True,
    )
    return set_footer(embed)


# =============================================================================
# Password Modal
# =============================================================================

class AdminPasswordModal(discord.ui.Modal, title="Admin Authentication"):
    """Collects the admin password for /manage."""

    password_input = discord.ui.TextInput(
        label="Admin Password",
        placeholder="Enter the admin password",
        required=True,
        max_length=128,
    )

    def __init__(self, bot: "KosBot") -> None:
        super().__init__()
        self.bot = bot

    async def on_submit(self, interaction: discord.Interaction) -> None:
        admin_auth = get_admin_auth()
        user = interaction.user

        try:
            valid = admin_auth.verify(self.password_input.value)
        except AuthError:
            valid = False

        if not valid:
            get_db().add_log(
                "warning", "bot", "Failed admin authentication",
                None, str(user.id), str(user),
            )
            logger.warning("Admin Auth Failed", [
                ("User", f"{user} ({user.id})"),
            ])
            await interaction.response.send_message("❌ Invalid password. Access denied.", ephemeral=True)
            return

        token, _ = admin_auth.create_session(str(user.id), str(user))

        get_db().add_log("info", "bot", "Admin panel opened", None, str(user.id), str(user))
        logger.tree("Admin Panel Opened", [
            ("User", f"{user} ({user.id})"),
        ], emoji="🛠️")

        view = ManagePanelView(owner_id=user.id, session_token=token)
        await interaction.response.send_message(
            embed=build_panel_embed(), view=view, ephemeral=True,
        )
        view.origin = interaction


# =============================================================================
# Management Panel
# =============================================================================

class ManagePanelView(discord.ui.View):
    """
    Management panel buttons.

    Every press re-verifies the admin session; an expired session
    closes the panel.
    """

    def __init__(self, owner_id: int, session_token: str, timeout: float = MANAGE_PANEL_TIMEOUT) -> None:
        super().__init__(timeout=timeout)
        self.owner_id = owner_id
        self.session_token = session_token
        self.origin: Optional[discord.Interaction] = None
        self._sync_toggle_label(get_kos_service().is_enabled())

    def _sync_toggle_label(self, enabled: bool) -> None:
        self.toggle_button.label = "Disable Bot" if enabled else "Enable Bot"
        self.toggle_button.style = discord.ButtonStyle.danger if enabled else discord.ButtonStyle.success

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id != self.owner_id:
            await interaction.response.send_message("This panel belongs to someone else.", ephemeral=True)
            return False

        try:
            get_admin_auth().verify_session(self.session_token)
        except AuthError:
            self.stop()
            await interaction.response.edit_message(content=SESSION_EXPIRED_MESSAGE, embed=None, view=None)
            return False

        return True

    @discord.ui.button(label="Disable Bot", style=discord.ButtonStyle.danger, row=0)
    async def toggle_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        service = get_kos_service()
        enabled = service.set_enabled(not service.is_enabled(), actor_from_user(interaction.user))
        self._sync_toggle_label(enabled)

        logger.tree("Bot Status Toggled", [
            ("By", f"{interaction.user} ({interaction.user.id})"),
            ("Enabled", str(enabled)),
        ], emoji="🟢" if enabled else "🔴")

        await interaction.response.edit_message(
            embed=build_panel_embed(f"✅ Bot has been {'enabled' if enabled else 'disabled'}."),
            view=self,
        )

    @discord.ui.button(label="Refresh Stats", style=discord.ButtonStyle.primary, row=0)
    async def refresh_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        self._sync_toggle_label(get_kos_service().is_enabled())
        await interaction.response.edit_message(embed=build_panel_embed(), view=self)

    @discord.ui.button(label="Archive Expired", style=discord.ButtonStyle.secondary, row=0)
    async def archive_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        count = get_kos_service().archive_expired()
        await interaction.response.edit_message(
            embed=build_panel_embed(f"⏰ Archived {count} expired entr{'y' if count == 1 else 'ies'}."),
            view=self,
        )

    @discord.ui.button(label="Test Telegram", style=discord.ButtonStyle.secondary, row=1)
    async def telegram_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        notifier = get_notifier()
        if not notifier.enabled:
            notice = "⚠️ Telegram is not configured."
        else:
            await interaction.response.defer()
            sent = await notifier.send_test_message()
            notice = "✅ Telegram test message sent." if sent else "❌ Telegram test message failed."
            await safe_edit(interaction, embed=build_panel_embed(notice), view=self)
            return

        await interaction.response.edit_message(embed=build_panel_embed(notice), view=self)

    @discord.ui.button(label="Close", style=discord.ButtonStyle.secondary, row=1)
    async def close_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        get_admin_auth().invalidate_session(self.session_token)
        self.stop()
        await interaction.response.edit_message(content="✅ Management panel closed.", embed=None, view=None)

    async def on_timeout(self) -> None:
        get_admin_auth().invalidate_session(self.session_token)
        if self.origin is not None:
            await safe_edit(self.origin, content="⏱️ Management panel timed out.", embed=None, view=None)


__all__ = [
    "AdminPasswordModal",
    "ManagePanelView",
    "build_panel_embed",
    "SESSION_EXPIRED_MESSAGE",
]

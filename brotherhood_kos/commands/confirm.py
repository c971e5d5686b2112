"""
Brotherhood KOS - Confirmation View
===================================

Confirm/cancel buttons backed by the pending confirmation store.
"""

from typing import Awaitable, Callable, Optional

import discord

from brotherhood_kos.core.errors import KosError
from brotherhood_kos.core.logger import logger
from brotherhood_kos.utils.interaction import safe_edit

from .helpers import GENERIC_ERROR_MESSAGE
from .pending import PendingAction, PendingConfirmations, get_pending


ConfirmCallback = Callable[[discord.Interaction, PendingAction], Awaitable[None]]

EXPIRED_MESSAGE = "This confirmation has expired or is invalid."
NOT_INVOKER_MESSAGE = "Only the user who invoked this command can confirm/cancel it."
TIMEOUT_MESSAGE = "⏱️ Confirmation timed out. Please try again."


class ConfirmView(discord.ui.View):
    """
    Confirm/cancel view for one pending action.

    Confirm, cancel and timeout all go through PendingConfirmations.take,
    so only the first of them acts.
    """

    def __init__(
        self,
        action: PendingAction,
        origin: discord.Interaction,
        on_confirm: ConfirmCallback,
        cancel_message: str,
        confirm_label: str = "Confirm",
        pending: Optional[PendingConfirmations] = None,
    ) -> None:
        self.pending = pending or get_pending()
        super().__init__(timeout=self.pending.timeout)
        self.action = action
        self.origin = origin
        self.on_confirm = on_confirm
        self.cancel_message = cancel_message
        self.confirm_button.label = confirm_label

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id != self.action.invoker_id:
            await interaction.response.send_message(NOT_INVOKER_MESSAGE, ephemeral=True)
            return False
        return True

    @discord.ui.button(label="Confirm", style=discord.ButtonStyle.danger)
    async def confirm_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        action = self.pending.take(self.action.token)
        self.stop()

        if action is None:
            await interaction.response.edit_message(content=EXPIRED_MESSAGE, embed=None, view=None)
            return

        await interaction.response.edit_message(content="⏳ Working...", embed=None, view=None)

        try:
            await self.on_confirm(interaction, action)
        except KosError as e:
            await safe_edit(interaction, content=f"❌ {e.message}", embed=None, view=None)
        except Exception as e:
            logger.error("Confirmation Action Failed", [
                ("Kind", action.kind),
                ("User", f"{interaction.user} ({interaction.user.id})"),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            await safe_edit(interaction, content=GENERIC_ERROR_MESSAGE, embed=None, view=None)

    @discord.ui.button(label="Cancel", style=discord.ButtonStyle.secondary)
    async def cancel_button(self, interaction: discord.Interaction, button: discord.ui.Button) -> None:
        action = self.pending.take(self.action.token)
        self.stop()

        content = self.cancel_message if action is not None else EXPIRED_MESSAGE
        await interaction.response.edit_message(content=content, embed=None, view=None)

        if action is not None:
            logger.debug("Confirmation Cancelled", [
                ("Kind", action.kind),
                ("User", f"{interaction.user} ({interaction.user.id})"),
            ])

    async def on_timeout(self) -> None:
        if self.pending.take(self.action.token) is None:
            return
        await safe_edit(self.origin, content=TIMEOUT_MESSAGE, embed=None, view=None)


__all__ = ["ConfirmView", "EXPIRED_MESSAGE", "NOT_INVOKER_MESSAGE", "TIMEOUT_MESSAGE"]

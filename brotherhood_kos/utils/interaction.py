"""
Brotherhood KOS - Interaction Utilities
=======================================

Shared helpers for Discord interaction handling.

safe_respond() picks response.send_message or followup.send depending
on whether the interaction was already acknowledged.
"""

from typing import Any, Optional, Union

import discord

from brotherhood_kos.core.logger import logger


async def safe_respond(
    interaction: discord.Interaction,
    content: Optional[str] = None,
    *,
    embed: Optional[discord.Embed] = None,
    view: Optional[discord.ui.View] = None,
    ephemeral: bool = True,
) -> Optional[Union[discord.InteractionMessage, discord.WebhookMessage]]:
    """
    Safely respond to an interaction, handling is_done() checks.

    Args:
        interaction: The Discord interaction to respond to.
        content: The message content.
        embed: A single embed to send.
        view: A view to attach.
        ephemeral: Whether the response is ephemeral (default True).

    Returns:
        The sent message if successful, None if failed.
    """
    kwargs: dict[str, Any] = {"ephemeral": ephemeral}
    if content is not None:
        kwargs["content"] = content
    if embed is not None:
        kwargs["embed"] = embed
    if view is not None:
        kwargs["view"] = view

    try:
        response_done = interaction.response.is_done()
    except discord.HTTPException:
        response_done = True

    try:
        if not response_done:
            await interaction.response.send_message(**kwargs)
            try:
                return await interaction.original_response()
            except discord.HTTPException:
                return None
        return await interaction.followup.send(**kwargs)

    except discord.HTTPException as e:
        # Expected for expired interactions
        logger.debug(f"safe_respond failed: {e.status} - {str(e)[:50]}")
        return None


async def safe_edit(
    interaction: discord.Interaction,
    *,
    content: Optional[str] = discord.utils.MISSING,
    embed: Optional[discord.Embed] = discord.utils.MISSING,
    view: Optional[discord.ui.View] = discord.utils.MISSING,
) -> bool:
    """
    Safely edit the original interaction response.

    Returns:
        True if edited successfully, False if failed.
    """
    kwargs: dict[str, Any] = {}
    if content is not discord.utils.MISSING:
        kwargs["content"] = content
    if embed is not discord.utils.MISSING:
        kwargs["embed"] = embed
    if view is not discord.utils.MISSING:
        kwargs["view"] = view

    try:
        await interaction.edit_original_response(**kwargs)
        return True
    except discord.HTTPException as e:
        logger.debug(f"safe_edit failed: {e.status} - {str(e)[:50]}")
        return False


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["safe_respond", "safe_edit"]

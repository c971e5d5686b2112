"""
Brotherhood KOS - Add Package
=============================

/add command with Roblox lookup and confirm/cancel buttons.

Structure:
    - cog.py: AddCog with the command, autocomplete and confirm handler
"""

from typing import TYPE_CHECKING

from brotherhood_kos.core.logger import logger

from .cog import AddCog

if TYPE_CHECKING:
    from brotherhood_kos.bot import KosBot

__all__ = ["AddCog"]


async def setup(bot: "KosBot") -> None:
    """Load the AddCog."""
    await bot.add_cog(AddCog(bot))
    logger.tree("Add Cog Loaded", [
        ("Commands", "/add"),
        ("Features", "Roblox lookup, 60s confirmation"),
    ], emoji="🚨")

"""
Brotherhood KOS - Manage Package
================================

Password-gated bot management panel.

Structure:
    - views.py: AdminPasswordModal and ManagePanelView
    - cog.py: ManageCog with the /manage command
"""

from typing import TYPE_CHECKING

from brotherhood_kos.core.logger import logger

from .views import AdminPasswordModal, ManagePanelView
from .cog import ManageCog

if TYPE_CHECKING:
    from brotherhood_kos.bot import KosBot

__all__ = [
    "AdminPasswordModal",
    "ManagePanelView",
    "ManageCog",
]


async def setup(bot: "KosBot") -> None:
    """Load the ManageCog."""
    await bot.add_cog(ManageCog(bot))
    logger.tree("Manage Cog Loaded", [
        ("Commands", "/manage"),
        ("Features", "toggle, refresh, archive, Telegram test"),
    ], emoji="🛠️")

"""
Brotherhood KOS - Main Bot Class
================================

Discord client for the Brotherhood KOS list of flagged Roblox accounts.

Features:
- /add, /remove, /list, /status slash commands with confirmations
- Password-gated /manage panel
- /console auth codes for the REST API
- Periodic expiry sweep
"""

from datetime import datetime
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from brotherhood_kos.core.logger import logger
from brotherhood_kos.core.config import get_config, NY_TZ
from brotherhood_kos.core.database import get_db
from brotherhood_kos.services.expiry_scheduler import ExpiryScheduler
from brotherhood_kos.services.roblox import get_roblox_client
from brotherhood_kos.services.telegram import get_notifier
from brotherhood_kos.utils.async_utils import gather_with_logging


# =============================================================================
# KosBot Class
# =============================================================================

class KosBot(commands.Bot):
    """
    Main Discord bot class for the KOS system.

    DESIGN: Thin orchestrator that:
    - Loads command cogs and syncs the command tree
    - Starts the expiry scheduler once connected
    - Closes outbound sessions and the database on shutdown

    SERVICE INITIALIZATION ORDER:
    1. setup_hook (before on_ready):
       - Command cog loading
       - Command tree syncing (guild when DISCORD_GUILD_ID is set)

    2. on_ready:
       - Presence
       - Error webhook
       - Expiry Scheduler
    """

    # =========================================================================
    # Initialization
    # =========================================================================

    def __init__(self) -> None:
        """Initialize the bot with default intents."""
        self.config = get_config()

        super().__init__(
            command_prefix="!",
            intents=discord.Intents.default(),
            help_command=None,
            application_id=self.config.discord_client_id,
        )

        self.db = get_db()
        self.start_time: datetime = datetime.now(NY_TZ)
        self.expiry_scheduler: Optional[ExpiryScheduler] = None

        # Ready state guard
        self._ready_initialized: bool = False

        self.tree.on_error = self.on_app_command_error

        logger.info("Bot Instance Created")

    # =========================================================================
    # Setup Hook
    # =========================================================================

    async def setup_hook(self) -> None:
        """Load cogs and sync commands before on_ready."""
        from brotherhood_kos.commands import COMMAND_COGS
        for cog in COMMAND_COGS:
            try:
                await self.load_extension(cog)
                logger.info(f"Cog Loaded: {cog.split('.')[-1]}")
            except Exception as e:
                logger.error("Failed to Load Cog", [("Cog", cog), ("Error", str(e))])

        try:
            if self.config.discord_guild_id:
                guild = discord.Object(id=self.config.discord_guild_id)
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
                scope = f"Guild {self.config.discord_guild_id}"
            else:
                synced = await self.tree.sync()
                scope = "Global"
            logger.tree("Commands Synced", [
                ("Count", str(len(synced))),
                ("Scope", scope),
            ], emoji="✅")
        except Exception as e:
            logger.error("Command Sync Failed", [("Error", str(e))])

    # =========================================================================
    # On Ready
    # =========================================================================

    async def on_ready(self) -> None:
        """Initialize services when bot is ready."""
        if self._ready_initialized:
            logger.info("Bot Reconnected (skipping re-initialization)")
            return

        self._ready_initialized = True

        if not self.user:
            return

        logger.tree("BOT ONLINE", [
            ("Name", self.user.name),
            ("ID", str(self.user.id)),
            ("Guilds", str(len(self.guilds))),
        ], emoji="🚀")

        await self.change_presence(
            activity=discord.Activity(type=discord.ActivityType.watching, name="KOS System"),
        )

        if self.config.error_webhook_url:
            logger.set_webhook(self.config.error_webhook_url)

        self.expiry_scheduler = ExpiryScheduler(self, interval=self.config.expiry_check_interval)
        await self.expiry_scheduler.start()

        enabled = self.db.is_bot_enabled()
        logger.tree("KOS READY", [
            ("Bot Enabled", str(enabled)),
            ("Expiry Scheduler", "Running" if self.expiry_scheduler.running else "Stopped"),
            ("Telegram", "Enabled" if get_notifier().enabled else "Disabled"),
        ], emoji="🔥")

    # =========================================================================
    # Command Errors
    # =========================================================================

    async def on_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ) -> None:
        """Log uncaught command errors; permission refusals are already answered."""
        if isinstance(error, app_commands.CheckFailure):
            return

        command = interaction.command.qualified_name if interaction.command else "unknown"
        original = getattr(error, "original", error)
        logger.error("Command Error", [
            ("Command", f"/{command}"),
            ("User", f"{interaction.user} ({interaction.user.id})"),
            ("Error Type", type(original).__name__),
            ("Error", str(original)[:100]),
        ])

        message = "❌ An unexpected error occurred. Please try again."
        try:
            if interaction.response.is_done():
                await interaction.followup.send(message, ephemeral=True)
            else:
                await interaction.response.send_message(message, ephemeral=True)
        except discord.HTTPException:
            pass

    # =========================================================================
    # Shutdown
    # =========================================================================

    async def shutdown(self) -> None:
        """Graceful shutdown with proper cleanup."""
        logger.info("Initiating Graceful Shutdown")

        if self.expiry_scheduler:
            await self.expiry_scheduler.stop()

        await gather_with_logging(
            ("Roblox Client", get_roblox_client().close()),
            ("Telegram Notifier", get_notifier().close()),
            context="Shutdown",
        )

        self.db.close()
        await super().close()

        logger.tree("SHUTDOWN COMPLETE", [
            ("Uptime", str(datetime.now(NY_TZ) - self.start_time)),
        ], emoji="🛑")

    async def close(self) -> None:
        """Override close to ensure proper shutdown."""
        await self.shutdown()


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["KosBot"]

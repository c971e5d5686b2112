"""
Brotherhood KOS - Expiry Scheduler Service
==========================================

Background service that archives expired KOS entries.

DESIGN:
    Runs as a background task sweeping every EXPIRY_CHECK_INTERVAL
    seconds (5 minutes by default). Each tick archives expired entries
    and deletes expired auth codes and sessions. A failed tick is logged
    and the loop keeps going; nothing is retried until the next tick.

    The bot starts it from on_ready; an API-only process starts it from
    the FastAPI lifespan instead.
"""

import asyncio
from typing import TYPE_CHECKING, Callable, Dict, Optional

from brotherhood_kos.core.constants import EXPIRY_CHECK_INTERVAL
from brotherhood_kos.core.logger import logger
from brotherhood_kos.services.kos_service import KosService, get_kos_service
from brotherhood_kos.services.sessions import cleanup_expired

if TYPE_CHECKING:
    from brotherhood_kos.bot import KosBot


# =============================================================================
# Expiry Scheduler Service
# =============================================================================

class ExpiryScheduler:
    """
    Periodic expiry sweep.

    Attributes:
        bot: Bot to wait for before the first tick (None in API-only mode).
        interval: Seconds between ticks.
        task: Background task reference.
        running: Whether the scheduler is active.
    """

    def __init__(
        self,
        bot: Optional["KosBot"] = None,
        interval: int = EXPIRY_CHECK_INTERVAL,
        service: Optional[KosService] = None,
        cleanup: Callable[[], Dict[str, int]] = cleanup_expired,
    ) -> None:
        self.bot = bot
        self.interval = interval
        self._service = service
        self._cleanup = cleanup
        self.task: Optional[asyncio.Task] = None
        self.running: bool = False
        self.last_run_archived: int = 0

    @property
    def service(self) -> KosService:
        return self._service or get_kos_service()

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def start(self) -> None:
        """Start the sweep loop, replacing any previous task."""
        if self.task and not self.task.done():
            self.task.cancel()

        self.running = True
        self.task = asyncio.create_task(self._scheduler_loop())

        logger.tree("Expiry Scheduler Started", [
            ("Check Interval", f"{self.interval} seconds"),
            ("Status", "Running"),
        ], emoji="⏰")

    async def stop(self) -> None:
        """Stop the sweep loop."""
        self.running = False

        if self.task and not self.task.done():
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass

        logger.info("Expiry Scheduler Stopped")

    # =========================================================================
    # Scheduler Loop
    # =========================================================================

    async def _scheduler_loop(self) -> None:
        if self.bot is not None:
            await self.bot.wait_until_ready()

        while self.running:
            try:
                await self.run_once()
                await asyncio.sleep(self.interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Expiry Scheduler Error", [
                    ("Error Type", type(e).__name__),
                    ("Error", str(e)[:100]),
                ])
                await asyncio.sleep(self.interval)

    async def run_once(self) -> int:
        """
        Run a single sweep tick.

        Returns:
            Number of entries archived.
        """
        archived = self.service.archive_expired()
        self._cleanup()
        self.last_run_archived = archived
        return archived


__all__ = ["ExpiryScheduler"]

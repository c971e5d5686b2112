"""
Brotherhood KOS - API Package
=============================

FastAPI REST API over the KOS list.

Features:
- Bearer sessions issued from /console auth codes
- KOS list, history, stats, status and logs endpoints
- Rate limiting with a stricter login limit

Usage with bot:
    from brotherhood_kos.api import APIService

    api_service = APIService(bot)
    await api_service.start()

    # On shutdown
    await api_service.stop()

Standalone (API-only, runs its own expiry scheduler):
    uvicorn brotherhood_kos.api.app:app
"""

import asyncio
from typing import TYPE_CHECKING, Optional

import uvicorn

if TYPE_CHECKING:
    from brotherhood_kos.bot import KosBot

from brotherhood_kos.core.logger import logger
from brotherhood_kos.utils.async_utils import create_safe_task
from brotherhood_kos.api.config import get_api_config, APIConfig
from brotherhood_kos.api.app import create_app
from brotherhood_kos.api.dependencies import set_bot


# =============================================================================
# API Service
# =============================================================================

class APIService:
    """
    Manages the FastAPI server lifecycle.

    With a bot, the server runs as a background task next to the
    gateway connection. Without one, `serve()` blocks until shutdown.
    """

    def __init__(self, bot: Optional["KosBot"] = None) -> None:
        self._bot = bot
        self._config = get_api_config()
        set_bot(bot)
        self._app = create_app(bot)
        self._server: Optional[uvicorn.Server] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        """Check if the API server is running."""
        return self._task is not None and not self._task.done()

    def _build_server(self) -> uvicorn.Server:
        config = uvicorn.Config(
            app=self._app,
            host=self._config.host,
            port=self._config.port,
            log_level="warning",
            access_log=False,
        )
        return uvicorn.Server(config)

    async def start(self) -> None:
        """Start the API server in a background task."""
        if self.is_running:
            logger.warning("API Already Running", [])
            return

        self._server = self._build_server()
        self._task = create_safe_task(self._run_server(), "API Server")

        logger.tree("API Service Started", [
            ("Host", self._config.host),
            ("Port", str(self._config.port)),
            ("Debug", str(self._config.debug)),
        ], emoji="🌐")

    async def serve(self) -> None:
        """Run the API server in the foreground (API-only mode)."""
        self._server = self._build_server()

        logger.tree("API Service Started", [
            ("Host", self._config.host),
            ("Port", str(self._config.port)),
            ("Mode", "API only"),
        ], emoji="🌐")

        await self._server.serve()

    async def _run_server(self) -> None:
        try:
            await self._server.serve()
        except asyncio.CancelledError:
            logger.debug("API Server Cancelled", [])
        except Exception as e:
            logger.error("API Server Error", [
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])

    async def stop(self) -> None:
        """Stop the API server gracefully."""
        if not self.is_running:
            return

        logger.tree("API Service Stopping", [], emoji="🛑")

        if self._server:
            self._server.should_exit = True

        if self._task:
            try:
                await asyncio.wait_for(self._task, timeout=5.0)
            except asyncio.TimeoutError:
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass

        self._server = None
        self._task = None

        logger.tree("API Service Stopped", [], emoji="✅")


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    "APIService",
    "get_api_config",
    "APIConfig",
    "create_app",
    "set_bot",
]

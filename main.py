#!/usr/bin/env python3
"""
Brotherhood KOS - Entry Point
=============================

Runs the Discord bot together with the REST API, or the REST API alone.

Usage:
    python main.py              # bot + API
    python main.py --api-only   # API only (runs its own expiry sweep)

KOS_API_ONLY=true has the same effect as --api-only.
"""

import argparse
import asyncio
import os
import sys

from dotenv import load_dotenv

load_dotenv()

from brotherhood_kos.core.logger import logger
from brotherhood_kos.core.config import ConfigValidationError, get_config, validate_and_log_config
from brotherhood_kos.api import APIService


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Brotherhood KOS bot and API")
    parser.add_argument(
        "--api-only",
        action="store_true",
        default=os.getenv("KOS_API_ONLY", "false").lower() == "true",
        help="Run the REST API without connecting to Discord",
    )
    return parser.parse_args(argv)


async def run_api_only() -> None:
    """Serve the API in the foreground with no Discord connection."""
    api_service = APIService()
    await api_service.serve()


async def run_bot() -> None:
    """
    Run the Discord bot with the API as a background task.

    Handles the complete bot lifecycle:
    1. Creates the bot instance
    2. Starts the API service
    3. Connects to Discord
    4. Stops the API and closes the bot on exit
    """
    from brotherhood_kos.bot import KosBot

    bot = KosBot()
    api_service = APIService(bot)

    try:
        await api_service.start()
        logger.info("🤖 Bot instance created successfully")
        await bot.start(get_config().discord_token)
    finally:
        await api_service.stop()
        if not bot.is_closed():
            await bot.close()


async def main(api_only: bool) -> None:
    logger.tree("BROTHERHOOD KOS STARTING", [
        ("Mode", "API only" if api_only else "Bot + API"),
        ("Commands", "/add, /remove, /list, /status, /manage, /console"),
    ], emoji="🔥")

    if api_only:
        await run_api_only()
    else:
        await run_bot()


if __name__ == "__main__":
    args = parse_args()

    try:
        validate_and_log_config()
    except ConfigValidationError as e:
        logger.error("Invalid Configuration", [("Error", str(e))])
        sys.exit(1)

    try:
        asyncio.run(main(args.api_only))
    except KeyboardInterrupt:
        logger.info("🛑 Stopped by user (Ctrl+C)")
    except Exception as e:
        logger.error("Fatal Error", [
            ("Error Type", type(e).__name__),
            ("Error", str(e)[:200]),
        ])
        sys.exit(1)

"""
Brotherhood KOS - Source Package
================================

Discord bot and REST API for the Brotherhood's KOS list of flagged
Roblox accounts.

Package Structure:
- bot.py: Discord bot class and lifecycle events
- commands/: Slash commands (/add, /remove, /list, /status, /manage, /console)
- core/: Config, constants, logging, errors and the SQLite database
- services/: KOS rules, sessions, Roblox lookup, Telegram, expiry sweep
- api/: FastAPI application, routers and middleware
- utils/: Duration parsing, request signing, interaction helpers

Version: v1.0.0
"""

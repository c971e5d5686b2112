"""
Brotherhood KOS - Commands Package
==================================

Slash command implementations for the KOS bot.
Commands are implemented as discord.py Cogs for modularity.

DESIGN:
    Each command file contains a Cog class with related commands.
    Cogs are loaded dynamically by the bot using load_extension().
    Cogs only parse input, call one service operation and render the
    result; KOS rules live in brotherhood_kos.services.

Available Commands:
    /add: Add a Roblox user to the KOS list (confirmation)
    /remove: Archive a user's KOS entry (confirmation)
    /list: Browse entries by filter, page and search
    /status: KOS statistics
    /manage: Password-gated management panel
    /console: API auth code by DM
"""

# =============================================================================
# Command Cog Registry
# =============================================================================

COMMAND_COGS = [
    "brotherhood_kos.commands.add",
    "brotherhood_kos.commands.remove",
    "brotherhood_kos.commands.kos_list",
    "brotherhood_kos.commands.status",
    "brotherhood_kos.commands.manage",
    "brotherhood_kos.commands.console",
]
"""
List of command cog module paths for dynamic loading.

DESIGN:
    Bot iterates this list and calls load_extension() for each.
"""


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "COMMAND_COGS",
]

"""
Brotherhood KOS - Logger Module
===============================

Tree-style logging with Eastern timestamps and daily log folders.

DESIGN:
    Every service call that matters (entry added, sweep finished, session
    created) is logged as a small tree so the console stays scannable.
    Errors carrying details can also be forwarded to a Discord webhook.

    Key features:
    - Tree-style formatting for structured data
    - America/New_York timestamps (EST/EDT handled by zoneinfo)
    - Daily log folders with 7-day retention
    - Per-run session id for correlating restarts
"""

import os
import uuid
import asyncio
from datetime import datetime
from pathlib import Path
from typing import List, Tuple, Optional

import aiohttp
from zoneinfo import ZoneInfo


# =============================================================================
# Constants
# =============================================================================

LOGS_DIR = Path("logs")
"""Directory for all log files, organized by date."""

LOG_RETENTION_DAYS = 7
"""Number of days to retain log directories before cleanup."""

NY_TZ = ZoneInfo("America/New_York")

Details = Optional[List[Tuple[str, str]]]


# =============================================================================
# Tree Logger Class
# =============================================================================

class TreeLogger:
    """
    Logger with tree-style formatting and Eastern timestamps.

    Attributes:
        run_id: Unique identifier for this process run.
        log_file: Path to the main log file.
        error_file: Path to the error-only log file.
    """

    # =========================================================================
    # Initialization
    # =========================================================================

    def __init__(self) -> None:
        self.run_id: str = str(uuid.uuid4())[:8]
        self._webhook_url: Optional[str] = None

        today = datetime.now(NY_TZ).strftime("%Y-%m-%d")
        self.log_dir = LOGS_DIR / today
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.log_file = self.log_dir / f"KOS-{today}.log"
        self.error_file = self.log_dir / f"KOS-Errors-{today}.log"

        self._cleanup_old_logs()
        self._write_session_header()

    def set_webhook(self, url: Optional[str]) -> None:
        """
        Set webhook URL for error notifications.

        Args:
            url: Discord webhook URL for error alerts.
        """
        self._webhook_url = url

    # =========================================================================
    # Log Cleanup
    # =========================================================================

    def _cleanup_old_logs(self) -> None:
        """Remove dated log directories older than the retention period."""
        if not LOGS_DIR.exists():
            return

        now = datetime.now()
        deleted = 0

        for item in LOGS_DIR.iterdir():
            if not item.is_dir():
                continue
            try:
                dir_date = datetime.strptime(item.name, "%Y-%m-%d")
            except ValueError:
                continue  # not a dated folder
            if (now - dir_date).days > LOG_RETENTION_DAYS:
                for f in item.iterdir():
                    f.unlink()
                item.rmdir()
                deleted += 1

        if deleted > 0:
            print(f"[LOG CLEANUP] Removed {deleted} old log directories")

    def _write_session_header(self) -> None:
        """Write a session start marker to the log file."""
        header = f"""
============================================================
NEW SESSION - RUN ID: {self.run_id}
[{datetime.now(NY_TZ).strftime("%I:%M:%S %p %Z")}]
============================================================
"""
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(header)

    # =========================================================================
    # Core Logging
    # =========================================================================

    def _get_timestamp(self) -> str:
        """Return the current time like "[02:30:45 PM EST]"."""
        return datetime.now(NY_TZ).strftime("[%I:%M:%S %p %Z]")

    def _write(
        self,
        message: str,
        emoji: str = "",
        include_timestamp: bool = True,
        is_error: bool = False,
    ) -> None:
        """
        Write a log line to console and file.

        Args:
            message: Log message content.
            emoji: Optional emoji prefix.
            include_timestamp: Whether to prepend timestamp.
            is_error: Whether to also write to the error log.
        """
        if include_timestamp:
            timestamp = self._get_timestamp()
            full_message = f"{timestamp} {emoji} {message}" if emoji else f"{timestamp} {message}"
        else:
            full_message = f"{emoji} {message}" if emoji else message

        print(full_message)

        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(f"{full_message}\n")

        if is_error:
            with open(self.error_file, "a", encoding="utf-8") as f:
                f.write(f"{full_message}\n")

    def _write_items(self, items: List[Tuple[str, str]], is_error: bool = False) -> None:
        """Write (key, value) pairs with tree connectors."""
        for i, (key, value) in enumerate(items):
            prefix = "└─" if i == len(items) - 1 else "├─"
            self._write(f"  {prefix} {key}: {value}", include_timestamp=False, is_error=is_error)

    # =========================================================================
    # Tree Formatting
    # =========================================================================

    def tree(
        self,
        title: str,
        items: List[Tuple[str, str]],
        emoji: str = "📦",
    ) -> None:
        """
        Log structured data in tree format.

        Args:
            title: Main heading for the tree.
            items: List of (key, value) tuples to display.
            emoji: Emoji prefix for the title.

        Example output:
            [02:30:45 PM EST] 🚨 KOS Entry Added
              ├─ Roblox ID: 123
              ├─ Username: Builderman
              └─ Expires: Permanent
        """
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write("\n")

        self._write(title, emoji=emoji)
        self._write_items(items)

        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write("\n")

    def tree_nested(
        self,
        title: str,
        sections: List[Tuple[str, List[Tuple[str, str]]]],
        emoji: str = "📦",
    ) -> None:
        """
        Log a two-level tree.

        Args:
            title: Main heading for the tree.
            sections: List of (section_name, items) tuples.
            emoji: Emoji prefix for the title.
        """
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write("\n")

        self._write(title, emoji=emoji)

        for i, (section_name, items) in enumerate(sections):
            is_last_section = i == len(sections) - 1
            section_prefix = "└─" if is_last_section else "├─"
            self._write(f"  {section_prefix} {section_name}", include_timestamp=False)

            connector = "   " if is_last_section else "│  "
            for j, (key, value) in enumerate(items):
                item_prefix = "└─" if j == len(items) - 1 else "├─"
                self._write(
                    f"  {connector} {item_prefix} {key}: {value}",
                    include_timestamp=False,
                )

        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write("\n")

    # =========================================================================
    # Log Levels
    # =========================================================================

    def debug(self, msg: str, details: Details = None) -> None:
        """Log debug message (only if DEBUG env var set)."""
        if not os.getenv("DEBUG"):
            return
        self._write(msg, "🔍")
        if details:
            self._write_items(details)

    def info(self, msg: str) -> None:
        """Log informational message."""
        self._write(msg, "ℹ️")

    def success(self, msg: str) -> None:
        """Log success message."""
        self._write(msg, "✅")

    def warning(self, msg: str, details: Details = None) -> None:
        """
        Log warning message with optional structured details.

        Args:
            msg: Warning message or title.
            details: Optional list of (key, value) detail tuples.
        """
        self._write(msg, "⚠️")
        if details:
            self._write_items(details)

    def error(self, msg: str, details: Details = None) -> None:
        """
        Log error message with optional structured details.

        DESIGN:
            Errors with details use tree format and are sent to the
            webhook if one is configured and an event loop is running.

        Args:
            msg: Error message or title.
            details: Optional list of (key, value) detail tuples.
        """
        if not details:
            self._write(msg, "❌", is_error=True)
            return

        self._write("", is_error=True)
        self._write(msg, "❌", is_error=True)
        self._write_items(details, is_error=True)
        self._write("", include_timestamp=False, is_error=True)

        if self._webhook_url:
            try:
                asyncio.get_running_loop().create_task(self._send_webhook_error(msg, details))
            except RuntimeError:
                pass  # no running loop (CLI scripts)

    # =========================================================================
    # Webhook Integration
    # =========================================================================

    async def _send_webhook_error(
        self,
        title: str,
        details: List[Tuple[str, str]],
    ) -> None:
        """
        Send an error embed to the configured Discord webhook.

        Args:
            title: Error title for the embed.
            details: List of (key, value) detail tuples.
        """
        if not self._webhook_url:
            return

        description = "\n".join(f"**{k}:** {v}" for k, v in details)
        payload = {
            "embeds": [{
                "title": f"❌ {title}",
                "description": description[:4000],
                "color": 0xDC3545,
                "timestamp": datetime.now(NY_TZ).isoformat(),
                "footer": {"text": f"Run ID: {self.run_id}"},
            }]
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self._webhook_url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=10),
                ) as resp:
                    if resp.status != 204:
                        print(f"Webhook error: {resp.status}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            print(f"Failed to send webhook: {e}")


# =============================================================================
# Global Instance
# =============================================================================

logger = TreeLogger()
"""Process-wide logger instance shared by every module."""


__all__ = [
    "logger",
    "TreeLogger",
    "NY_TZ",
]

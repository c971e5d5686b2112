"""
Brotherhood KOS - Telegram Notifier
===================================

Best-effort Telegram notifications for KOS list changes.

DESIGN:
    notify() returns True/False and never raises: a Telegram outage must
    not fail an add or a removal. dispatch() wraps notify() in a safe
    background task so command handlers do not wait on Telegram at all.
    The notifier stays disabled unless both the bot token and chat id
    are configured.
"""

import asyncio
from datetime import datetime
from typing import Optional

import aiohttp

from brotherhood_kos.core.config import NY_TZ, get_config
from brotherhood_kos.core.constants import API_TIMEOUT
from brotherhood_kos.core.database import Actor, KosEntryRecord
from brotherhood_kos.core.logger import logger
from brotherhood_kos.utils.async_utils import create_safe_task


# =============================================================================
# Constants
# =============================================================================

TELEGRAM_API = "https://api.telegram.org"

EVENT_ADDED = "added"
EVENT_REMOVED = "removed"
EVENT_EXPIRED = "expired"

_MARKDOWN_SPECIALS = ("\\", "_", "*", "`", "[")


# =============================================================================
# Formatting
# =============================================================================

def escape_markdown(text: object) -> str:
    """Escape Telegram legacy Markdown control characters."""
    result = str(text)
    for char in _MARKDOWN_SPECIALS:
        result = result.replace(char, f"\\{char}")
    return result


def _format_timestamp(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, NY_TZ).strftime("%b %d, %Y %I:%M %p %Z")


def format_message(event_kind: str, entry: KosEntryRecord, actor: Optional[Actor] = None) -> Optional[str]:
    """
    Build the Markdown text for a KOS event.

    Returns:
        Message text, or None for an unknown event kind.
    """
    user_line = f"User: {escape_markdown(entry['roblox_username'])} ({entry['roblox_user_id']})"
    actor_name = escape_markdown(actor.name) if actor else "Unknown"

    if event_kind == EVENT_ADDED:
        if entry.get("is_permanent"):
            expiry = "⏰ Permanent"
        elif not entry.get("expires_at"):
            expiry = "⏰ No expiry"
        else:
            expiry = f"⏰ Expires: {_format_timestamp(entry['expires_at'])}"
        return (
            "🚨 *KOS ENTRY ADDED*\n\n"
            f"{user_line}\n"
            f"Reason: {escape_markdown(entry.get('reason', ''))}\n"
            f"Added by: {actor_name}\n"
            f"{expiry}"
        )

    if event_kind == EVENT_REMOVED:
        reason = entry.get("archive_reason")
        text = (
            "✅ *KOS ENTRY REMOVED*\n\n"
            f"{user_line}\n"
            f"Removed by: {actor_name}"
        )
        if reason:
            text += f"\nReason: {escape_markdown(reason)}"
        return text

    if event_kind == EVENT_EXPIRED:
        return (
            "⏰ *KOS ENTRY EXPIRED*\n\n"
            f"{user_line}\n"
            "Automatically archived"
        )

    return None


# =============================================================================
# Telegram Notifier
# =============================================================================

class TelegramNotifier:
    """Sends KOS notifications through the Telegram Bot API."""

    def __init__(
        self,
        bot_token: Optional[str] = None,
        chat_id: Optional[str] = None,
        timeout: float = API_TIMEOUT,
    ) -> None:
        self.bot_token = bot_token
        self.chat_id = chat_id
        self._timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create persistent HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        """Close HTTP session on shutdown."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    # =========================================================================
    # Sending
    # =========================================================================

    async def send_message(self, text: str) -> bool:
        """
        Post a Markdown message to the configured chat.

        Returns:
            True if Telegram accepted the message.
        """
        if not self.enabled:
            return False

        url = f"{TELEGRAM_API}/bot{self.bot_token}/sendMessage"
        payload = {"chat_id": self.chat_id, "text": text, "parse_mode": "Markdown"}

        try:
            session = await self._get_session()
            async with session.post(
                url,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    logger.warning("Telegram Send Failed", [
                        ("Status", str(resp.status)),
                        ("Response", body[:100]),
                    ])
                    return False
                return True
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("Telegram Request Failed", [
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            return False

    async def notify(self, event_kind: str, entry: KosEntryRecord, actor: Optional[Actor] = None) -> bool:
        """
        Send a formatted KOS event notification.

        Args:
            event_kind: "added", "removed" or "expired".
            entry: Entry row after the change.
            actor: Who performed the change.

        Returns:
            True if delivered, False if disabled or failed. Never raises.
        """
        if not self.enabled:
            return False

        try:
            text = format_message(event_kind, entry, actor)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Telegram Message Format Failed", [
                ("Event", event_kind),
                ("Error", str(e)[:100]),
            ])
            return False

        if text is None:
            logger.warning(f"Unknown Telegram event kind: {event_kind}")
            return False

        delivered = await self.send_message(text)
        if delivered:
            logger.debug("Telegram Notification Sent", [
                ("Event", event_kind),
                ("User", str(entry.get("roblox_username"))),
            ])
        return delivered

    def dispatch(self, event_kind: str, entry: KosEntryRecord, actor: Optional[Actor] = None) -> None:
        """Fire-and-forget notify() on the running event loop."""
        if not self.enabled:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No running loop (CLI scripts, sync callers)
            logger.debug("Telegram Dispatch Skipped", [("Event", event_kind)])
            return
        create_safe_task(self.notify(event_kind, entry, actor), f"Telegram {event_kind}")

    async def send_test_message(self) -> bool:
        """Send a connectivity test message."""
        if not self.enabled:
            return False
        return await self.send_message("🔧 *Test Message*\n\nTelegram connection is working!")


# =============================================================================
# Global Instance
# =============================================================================

_notifier: Optional[TelegramNotifier] = None


def get_notifier() -> TelegramNotifier:
    """Get the process-wide notifier built from config."""
    global _notifier
    if _notifier is None:
        config = get_config()
        _notifier = TelegramNotifier(config.telegram_bot_token, config.telegram_chat_id)
    return _notifier


def reset_notifier() -> None:
    """Drop the cached notifier (used when config changes)."""
    global _notifier
    _notifier = None


__all__ = [
    "EVENT_ADDED",
    "EVENT_REMOVED",
    "EVENT_EXPIRED",
    "TelegramNotifier",
    "escape_markdown",
    "format_message",
    "get_notifier",
    "reset_notifier",
]

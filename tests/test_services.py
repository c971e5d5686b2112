"""
Brotherhood KOS - External Service Tests
========================================

Tests for the Roblox client, Telegram notifier and expiry scheduler,
with aiohttp sessions replaced by mocks.
"""

import asyncio
import aiohttp
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from brotherhood_kos.core.database import Actor
from brotherhood_kos.services.expiry_scheduler import ExpiryScheduler
from brotherhood_kos.services.roblox import RobloxClient, RobloxUser
from brotherhood_kos.services.telegram import (
    EVENT_ADDED,
    EVENT_EXPIRED,
    EVENT_REMOVED,
    TelegramNotifier,
    escape_markdown,
    format_message,
)


def _fake_session(method: str, status: int = 200, json_data=None, text: str = ""):
    """aiohttp-like session whose request context yields one response."""
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=json_data)
    response.text = AsyncMock(return_value=text)

    session = MagicMock()
    session.closed = False
    getattr(session, method).return_value.__aenter__.return_value = response
    return session


ENTRY = {
    "id": 1,
    "roblox_user_id": "1001",
    "roblox_username": "Bad_Guy",
    "reason": "Spawn *camping*",
    "is_permanent": 1,
    "expires_at": None,
    "archive_reason": "Appeal accepted",
}


# =============================================================================
# Roblox Client
# =============================================================================

class TestRobloxClient:
    """Tests for RobloxClient."""

    @pytest.mark.asyncio
    async def test_resolve_username(self):
        """Test a username goes through the usernames endpoint."""
        client = RobloxClient()
        responses = [
            {"data": [{"id": 1001, "name": "Target", "displayName": "The Target"}]},
            {"data": [{"imageUrl": "https://tr.rbxcdn.com/abc.png"}]},
        ]
        with patch.object(client, "_request", AsyncMock(side_effect=responses)) as request:
            user = await client.resolve("Target")

        assert user == RobloxUser(
            id="1001",
            name="Target",
            display_name="The Target",
            thumbnail_url="https://tr.rbxcdn.com/abc.png",
        )
        assert request.call_args_list[0].args[0] == "POST"

    @pytest.mark.asyncio
    async def test_resolve_numeric_id(self):
        """Test a numeric query is looked up by ID."""
        client = RobloxClient()
        responses = [{"id": 42, "name": "Numbers", "displayName": ""}, None]
        with patch.object(client, "_request", AsyncMock(side_effect=responses)) as request:
            user = await client.resolve(" 42 ")

        assert user.id == "42"
        assert user.display_name == "Numbers"
        assert user.thumbnail_url is None
        assert request.call_args_list[0].args == ("GET", "https://users.roblox.com/v1/users/42")

    @pytest.mark.asyncio
    async def test_resolve_not_found(self):
        """Test an empty result resolves to None."""
        client = RobloxClient()
        with patch.object(client, "_request", AsyncMock(return_value={"data": []})):
            assert await client.resolve("nobody") is None

    @pytest.mark.asyncio
    async def test_resolve_blank(self):
        """Test a blank query never hits the network."""
        client = RobloxClient()
        with patch.object(client, "_request", AsyncMock()) as request:
            assert await client.resolve("  ") is None
        request.assert_not_called()

    @pytest.mark.asyncio
    async def test_request_http_error_returns_none(self):
        """Test a 5xx response is swallowed into None."""
        client = RobloxClient()
        client._session = _fake_session("request", status=503)
        assert await client._request("GET", "https://users.roblox.com/v1/users/1") is None

    @pytest.mark.asyncio
    async def test_request_network_error_returns_none(self):
        """Test aiohttp errors are swallowed into None."""
        client = RobloxClient()
        client._session = MagicMock(closed=False)
        client._session.request.side_effect = aiohttp.ClientError("boom")
        assert await client._request("GET", "https://users.roblox.com/v1/users/1") is None

    @pytest.mark.asyncio
    async def test_request_success(self):
        """Test JSON is returned on 200."""
        client = RobloxClient()
        client._session = _fake_session("request", json_data={"id": 1})
        assert await client._request("GET", "https://users.roblox.com/v1/users/1") == {"id": 1}

    def test_profile_url(self):
        """Test the profile link."""
        user = RobloxUser(id="7", name="a", display_name="a")
        assert user.profile_url == "https://www.roblox.com/users/7/profile"


# =============================================================================
# Telegram Notifier
# =============================================================================

class TestTelegramFormatting:
    """Tests for Telegram message text."""

    def test_escape_markdown(self):
        """Test Markdown control characters are escaped."""
        assert escape_markdown("a_b*c`d[e") == "a\\_b\\*c\\`d\\[e"

    def test_added_message(self):
        """Test the added message escapes user input."""
        text = format_message(EVENT_ADDED, ENTRY, Actor(id="1", name="mod_one"))

        assert text.startswith("🚨 *KOS ENTRY ADDED*")
        assert "Bad\\_Guy (1001)" in text
        assert "Spawn \\*camping\\*" in text
        assert "Added by: mod\\_one" in text
        assert "⏰ Permanent" in text

    def test_added_message_without_expiry(self):
        """Test a non-permanent entry with no expiry is not reported as permanent."""
        entry = dict(ENTRY, is_permanent=0, expires_at=None)
        text = format_message(EVENT_ADDED, entry, Actor(id="1", name="mod"))

        assert "⏰ No expiry" in text
        assert "Permanent" not in text

    def test_removed_message(self):
        """Test the removed message includes the archive reason."""
        text = format_message(EVENT_REMOVED, ENTRY, Actor(id="1", name="mod"))
        assert text.startswith("✅ *KOS ENTRY REMOVED*")
        assert "Reason: Appeal accepted" in text

    def test_expired_message(self):
        """Test the expired message."""
        text = format_message(EVENT_EXPIRED, ENTRY)
        assert "Automatically archived" in text

    def test_unknown_event(self):
        """Test unknown kinds produce no message."""
        assert format_message("renamed", ENTRY) is None


class TestTelegramNotifier:
    """Tests for TelegramNotifier delivery."""

    def test_disabled_without_config(self):
        """Test the notifier needs both token and chat id."""
        assert TelegramNotifier(None, None).enabled is False
        assert TelegramNotifier("token", None).enabled is False
        assert TelegramNotifier("token", "chat").enabled is True

    @pytest.mark.asyncio
    async def test_disabled_notify_returns_false(self):
        """Test a disabled notifier reports not delivered."""
        assert await TelegramNotifier(None, None).notify(EVENT_ADDED, ENTRY) is False

    @pytest.mark.asyncio
    async def test_send_success(self):
        """Test a 200 from Telegram counts as delivered."""
        notifier = TelegramNotifier("token", "chat")
        notifier._session = _fake_session("post", status=200)

        assert await notifier.notify(EVENT_ADDED, ENTRY, Actor(id="1", name="mod")) is True

        kwargs = notifier._session.post.call_args.kwargs
        assert kwargs["json"]["chat_id"] == "chat"
        assert kwargs["json"]["parse_mode"] == "Markdown"

    @pytest.mark.asyncio
    async def test_send_rejected(self):
        """Test a non-200 response is reported, not raised."""
        notifier = TelegramNotifier("token", "chat")
        notifier._session = _fake_session("post", status=400, text="Bad Request")
        assert await notifier.send_message("hi") is False

    @pytest.mark.asyncio
    async def test_send_network_error(self):
        """Test network failures never raise."""
        notifier = TelegramNotifier("token", "chat")
        notifier._session = MagicMock(closed=False)
        notifier._session.post.side_effect = aiohttp.ClientError("down")
        assert await notifier.send_message("hi") is False

    @pytest.mark.asyncio
    async def test_dispatch_runs_in_background(self):
        """Test dispatch schedules notify without awaiting it."""
        notifier = TelegramNotifier("token", "chat")
        with patch.object(notifier, "notify", AsyncMock(return_value=True)) as notify:
            notifier.dispatch(EVENT_REMOVED, ENTRY)
            await asyncio.sleep(0.01)
        notify.assert_awaited_once()

    def test_dispatch_without_loop_is_skipped(self):
        """Test dispatch outside an event loop does nothing."""
        notifier = TelegramNotifier("token", "chat")
        with patch.object(notifier, "notify") as notify:
            notifier.dispatch(EVENT_REMOVED, ENTRY)
        notify.assert_not_called()

    @pytest.mark.asyncio
    async def test_send_test_message_disabled(self):
        """Test the connectivity check on an unconfigured notifier."""
        assert await TelegramNotifier(None, None).send_test_message() is False


# =============================================================================
# Expiry Scheduler
# =============================================================================

class TestExpiryScheduler:
    """Tests for ExpiryScheduler."""

    @pytest.mark.asyncio
    async def test_run_once(self):
        """Test one tick archives entries and cleans up auth rows."""
        service = MagicMock()
        service.archive_expired.return_value = 3
        cleanup = MagicMock(return_value={})

        scheduler = ExpiryScheduler(service=service, cleanup=cleanup)
        assert await scheduler.run_once() == 3
        assert scheduler.last_run_archived == 3
        cleanup.assert_called_once()

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        """Test the loop ticks immediately and stops cleanly."""
        service = MagicMock()
        service.archive_expired.return_value = 0

        scheduler = ExpiryScheduler(interval=3600, service=service, cleanup=MagicMock(return_value={}))
        await scheduler.start()
        await asyncio.sleep(0.01)

        assert scheduler.running is True
        service.archive_expired.assert_called_once()

        await scheduler.stop()
        assert scheduler.running is False
        assert scheduler.task.done()

    @pytest.mark.asyncio
    async def test_loop_survives_errors(self):
        """Test an exception in a tick does not kill the loop."""
        calls = []

        def archive_expired():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("db locked")
            return 0

        service = MagicMock()
        service.archive_expired.side_effect = archive_expired

        scheduler = ExpiryScheduler(interval=0, service=service, cleanup=MagicMock(return_value={}))
        await scheduler.start()
        await asyncio.sleep(0.01)
        await scheduler.stop()

        assert service.archive_expired.call_count >= 2

    @pytest.mark.asyncio
    async def test_waits_for_bot(self):
        """Test the loop waits for the bot before the first tick."""
        bot = MagicMock()
        bot.wait_until_ready = AsyncMock()
        service = MagicMock()
        service.archive_expired.return_value = 0

        scheduler = ExpiryScheduler(bot, interval=3600, service=service, cleanup=MagicMock(return_value={}))
        await scheduler.start()
        await asyncio.sleep(0.01)
        await scheduler.stop()

        bot.wait_until_ready.assert_awaited_once()

"""
Brotherhood KOS - Test Fixtures
===============================

Shared fixtures for all tests.
"""

import os
import pytest
from unittest.mock import MagicMock, AsyncMock

# Required config before any module reads it
os.environ.setdefault("DISCORD_TOKEN", "test-token")
os.environ.setdefault("DISCORD_CLIENT_ID", "123456789012345678")
os.environ.pop("TELEGRAM_BOT_TOKEN", None)
os.environ.pop("TELEGRAM_CHAT_ID", None)


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """A fake clock starting at a fixed timestamp."""
    return FakeClock()


@pytest.fixture
def test_db(tmp_path, monkeypatch):
    """Create a fresh test database and reset every cached singleton."""
    from brotherhood_kos.core.config import reset_config
    from brotherhood_kos.core.database import get_db, reset_db
    from brotherhood_kos.core.database import manager as db_manager
    from brotherhood_kos.services.kos_service import reset_kos_service
    from brotherhood_kos.services.sessions import reset_auth_services
    from brotherhood_kos.services.telegram import reset_notifier
    from brotherhood_kos.api.middleware.rate_limit import reset_rate_limiter

    reset_db()
    monkeypatch.setattr(db_manager, "DB_PATH", tmp_path / "test_kos.db")

    reset_config()
    reset_kos_service()
    reset_auth_services()
    reset_notifier()
    reset_rate_limiter()

    db = get_db()

    yield db

    reset_db()
    reset_kos_service()
    reset_auth_services()
    reset_rate_limiter()


@pytest.fixture
def actor():
    """A Discord actor for service calls."""
    from brotherhood_kos.core.database import Actor
    return Actor(id="111222333", name="moduser")


@pytest.fixture
def kos_service(test_db, clock):
    """KOS service on the test database with a fake clock and no Telegram."""
    from brotherhood_kos.services.kos_service import KosService
    from brotherhood_kos.services.telegram import TelegramNotifier

    notifier = TelegramNotifier(None, None)
    return KosService(db=test_db, notifier=notifier, clock=clock)


@pytest.fixture
def mock_discord_member():
    """Create a mock Discord member."""
    member = MagicMock()
    member.id = 123456789
    member.name = "testuser"
    member.display_name = "Test User"
    member.__str__.return_value = "testuser"
    member.guild_permissions.administrator = False
    member.roles = []
    member.mention = "<@123456789>"
    member.send = AsyncMock()
    return member


@pytest.fixture
def mock_discord_interaction(mock_discord_member):
    """Create a mock Discord interaction."""
    interaction = MagicMock()
    interaction.user = mock_discord_member
    interaction.guild = MagicMock()
    interaction.guild.id = 987654321
    interaction.response = MagicMock()
    interaction.response.defer = AsyncMock()
    interaction.response.send_message = AsyncMock()
    interaction.response.send_modal = AsyncMock()
    interaction.response.edit_message = AsyncMock()
    interaction.response.is_done = MagicMock(return_value=False)
    interaction.followup = MagicMock()
    interaction.followup.send = AsyncMock()
    interaction.edit_original_response = AsyncMock()
    interaction.original_response = AsyncMock()
    return interaction

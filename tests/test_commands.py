"""
Brotherhood KOS - Command Tests
===============================

Tests for the slash command cogs, confirmation view and management panel.
Views are built inside async tests since discord.ui.View needs a running loop.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import discord

from brotherhood_kos.services.roblox import RobloxUser


@pytest.fixture
def fresh_config(monkeypatch):
    """Reset cached config around env changes."""
    from brotherhood_kos.core.config import reset_config

    reset_config()
    yield monkeypatch
    reset_config()


@pytest.fixture
def mock_bot():
    return MagicMock()


def _last_edit_kwargs(interaction):
    return interaction.edit_original_response.call_args.kwargs


def _fake_roblox(user):
    client = MagicMock()
    client.resolve = AsyncMock(return_value=user)
    return client


TARGET = RobloxUser(
    id="1001",
    name="TargetPlayer",
    display_name="Target",
    thumbnail_url="https://tr.rbxcdn.com/1001.png",
)


# =============================================================================
# Permission Tests
# =============================================================================

class TestKosPermission:
    """Tests for has_kos_role and check_kos_permission."""

    def test_plain_member_denied(self, fresh_config, mock_discord_member):
        from brotherhood_kos.core.config import has_kos_role

        fresh_config.delenv("KOS_ROLE_ID", raising=False)
        fresh_config.delenv("DEVELOPER_ID", raising=False)

        assert has_kos_role(mock_discord_member) is False

    def test_none_member_denied(self, fresh_config):
        from brotherhood_kos.core.config import has_kos_role

        assert has_kos_role(None) is False

    def test_developer_allowed(self, fresh_config, mock_discord_member):
        from brotherhood_kos.core.config import has_kos_role

        fresh_config.setenv("DEVELOPER_ID", str(mock_discord_member.id))

        assert has_kos_role(mock_discord_member) is True

    def test_administrator_allowed(self, fresh_config, mock_discord_member):
        from brotherhood_kos.core.config import has_kos_role

        mock_discord_member.guild_permissions.administrator = True

        assert has_kos_role(mock_discord_member) is True

    def test_role_holder_allowed(self, fresh_config, mock_discord_member):
        from brotherhood_kos.core.config import has_kos_role

        fresh_config.setenv("KOS_ROLE_ID", "555000555")
        role = MagicMock()
        role.id = 555000555
        mock_discord_member.roles = [role]

        assert has_kos_role(mock_discord_member) is True

    def test_other_role_denied(self, fresh_config, mock_discord_member):
        from brotherhood_kos.core.config import has_kos_role

        fresh_config.setenv("KOS_ROLE_ID", "555000555")
        role = MagicMock()
        role.id = 1
        mock_discord_member.roles = [role]

        assert has_kos_role(mock_discord_member) is False

    @pytest.mark.asyncio
    async def test_check_sends_denial(self, fresh_config, mock_discord_interaction):
        from brotherhood_kos.core.config import check_kos_permission

        fresh_config.delenv("KOS_ROLE_ID", raising=False)
        fresh_config.delenv("DEVELOPER_ID", raising=False)

        assert await check_kos_permission(mock_discord_interaction) is False
        args = mock_discord_interaction.response.send_message.call_args
        assert "permission" in args.args[0]
        assert args.kwargs["ephemeral"] is True


# =============================================================================
# Helper Tests
# =============================================================================

class TestHelpers:
    """Tests for the shared command helpers."""

    @pytest.mark.asyncio
    async def test_ensure_enabled_passes(self, test_db, mock_discord_interaction):
        from brotherhood_kos.commands.helpers import ensure_enabled

        assert await ensure_enabled(mock_discord_interaction) is True
        mock_discord_interaction.response.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_ensure_enabled_refuses_when_disabled(self, test_db, actor, mock_discord_interaction):
        from brotherhood_kos.commands.helpers import DISABLED_MESSAGE, ensure_enabled
        from brotherhood_kos.services.kos_service import get_kos_service

        get_kos_service().set_enabled(False, actor)

        assert await ensure_enabled(mock_discord_interaction) is False
        sent = mock_discord_interaction.response.send_message.call_args.kwargs
        assert sent["content"] == DISABLED_MESSAGE

    @pytest.mark.asyncio
    async def test_report_error_shows_domain_message(self, mock_discord_interaction):
        from brotherhood_kos.commands.helpers import report_error
        from brotherhood_kos.core.errors import ValidationError

        await report_error(mock_discord_interaction, ValidationError("Reason is required"), "add")

        sent = mock_discord_interaction.response.send_message.call_args.kwargs
        assert sent["content"] == "❌ Reason is required"

    @pytest.mark.asyncio
    async def test_report_error_hides_unexpected(self, mock_discord_interaction):
        from brotherhood_kos.commands.helpers import GENERIC_ERROR_MESSAGE, report_error

        await report_error(mock_discord_interaction, RuntimeError("db exploded"), "add")

        sent = mock_discord_interaction.response.send_message.call_args.kwargs
        assert sent["content"] == GENERIC_ERROR_MESSAGE

    def test_truncate(self):
        from brotherhood_kos.commands.helpers import truncate

        assert truncate(None) == "-"
        assert truncate("short") == "short"
        long = truncate("x" * 50, limit=10)
        assert len(long) == 10
        assert long.endswith("...")

    def test_build_entry_embed(self):
        from brotherhood_kos.commands.helpers import build_entry_embed

        entry = {
            "roblox_user_id": "1001",
            "roblox_username": "TargetPlayer",
            "reason": "Teamkilling",
            "is_permanent": True,
            "expires_at": None,
            "thumbnail_url": None,
        }
        embed = build_entry_embed(entry, "✅ KOS Entry Added")

        fields = {f.name: f.value for f in embed.fields}
        assert fields["Roblox Username"] == "TargetPlayer"
        assert fields["User ID"] == "1001"
        assert fields["Status"] == "Permanent"
        assert embed.footer.text == "Brotherhood KOS System"

    def test_expiry_text_distinguishes_permanent_and_open(self):
        from brotherhood_kos.commands.helpers import expiry_text

        assert expiry_text({"is_permanent": True, "expires_at": None}) == "Permanent"
        assert expiry_text({"is_permanent": False, "expires_at": None}) == "No expiry"
        assert expiry_text({"is_permanent": 0, "expires_at": 2_000_000_000}).startswith("Expires ")


# =============================================================================
# Confirm View Tests
# =============================================================================

class TestConfirmView:
    """Tests for the confirm/cancel view."""

    def _pending(self):
        from brotherhood_kos.commands.pending import PendingConfirmations
        return PendingConfirmations(timeout=300)

    @pytest.mark.asyncio
    async def test_confirm_runs_action_once(self, mock_discord_interaction):
        from brotherhood_kos.commands.confirm import EXPIRED_MESSAGE, ConfirmView

        pending = self._pending()
        action = pending.put("add", mock_discord_interaction.user.id, {"roblox_user_id": "1"})
        on_confirm = AsyncMock()
        view = ConfirmView(action, mock_discord_interaction, on_confirm, "cancelled", pending=pending)

        await view.confirm_button.callback(mock_discord_interaction)
        await view.confirm_button.callback(mock_discord_interaction)

        on_confirm.assert_awaited_once()
        last = mock_discord_interaction.response.edit_message.call_args.kwargs
        assert last["content"] == EXPIRED_MESSAGE

    @pytest.mark.asyncio
    async def test_cancel_then_confirm_is_expired(self, mock_discord_interaction):
        from brotherhood_kos.commands.confirm import EXPIRED_MESSAGE, ConfirmView

        pending = self._pending()
        action = pending.put("remove", mock_discord_interaction.user.id, {})
        on_confirm = AsyncMock()
        view = ConfirmView(action, mock_discord_interaction, on_confirm, "❌ KOS removal cancelled.", pending=pending)

        await view.cancel_button.callback(mock_discord_interaction)
        first = mock_discord_interaction.response.edit_message.call_args.kwargs
        assert first["content"] == "❌ KOS removal cancelled."

        await view.confirm_button.callback(mock_discord_interaction)
        second = mock_discord_interaction.response.edit_message.call_args.kwargs
        assert second["content"] == EXPIRED_MESSAGE
        on_confirm.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_user_rejected(self, mock_discord_interaction):
        from brotherhood_kos.commands.confirm import NOT_INVOKER_MESSAGE, ConfirmView

        pending = self._pending()
        action = pending.put("add", 42, {})
        view = ConfirmView(action, mock_discord_interaction, AsyncMock(), "cancelled", pending=pending)

        assert await view.interaction_check(mock_discord_interaction) is False
        args = mock_discord_interaction.response.send_message.call_args
        assert args.args[0] == NOT_INVOKER_MESSAGE
        assert len(pending) == 1

    @pytest.mark.asyncio
    async def test_timeout_edits_origin(self, mock_discord_interaction):
        from brotherhood_kos.commands.confirm import TIMEOUT_MESSAGE, ConfirmView

        pending = self._pending()
        action = pending.put("add", mock_discord_interaction.user.id, {})
        view = ConfirmView(action, mock_discord_interaction, AsyncMock(), "cancelled", pending=pending)

        await view.on_timeout()

        assert _last_edit_kwargs(mock_discord_interaction)["content"] == TIMEOUT_MESSAGE
        assert pending.get(action.token) is None

    @pytest.mark.asyncio
    async def test_timeout_after_confirm_does_nothing(self, mock_discord_interaction):
        from brotherhood_kos.commands.confirm import ConfirmView

        pending = self._pending()
        action = pending.put("add", mock_discord_interaction.user.id, {})
        view = ConfirmView(action, mock_discord_interaction, AsyncMock(), "cancelled", pending=pending)

        await view.confirm_button.callback(mock_discord_interaction)
        mock_discord_interaction.edit_original_response.reset_mock()
        await view.on_timeout()

        mock_discord_interaction.edit_original_response.assert_not_called()

    @pytest.mark.asyncio
    async def test_domain_error_is_shown(self, mock_discord_interaction):
        from brotherhood_kos.commands.confirm import ConfirmView
        from brotherhood_kos.core.errors import ConflictError

        pending = self._pending()
        action = pending.put("add", mock_discord_interaction.user.id, {})
        on_confirm = AsyncMock(side_effect=ConflictError("User is already on the KOS list"))
        view = ConfirmView(action, mock_discord_interaction, on_confirm, "cancelled", pending=pending)

        await view.confirm_button.callback(mock_discord_interaction)

        assert _last_edit_kwargs(mock_discord_interaction)["content"] == "❌ User is already on the KOS list"


# =============================================================================
# Add Command Tests
# =============================================================================

class TestAddCommand:
    """Tests for /add."""

    @pytest.mark.asyncio
    async def test_unknown_roblox_user(self, test_db, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.add import AddCog

        cog = AddCog(mock_bot)
        with patch("brotherhood_kos.commands.add.cog.get_roblox_client", return_value=_fake_roblox(None)):
            await cog.add.callback(cog, mock_discord_interaction, "NobodyHere", "Spawn camping", None)

        content = _last_edit_kwargs(mock_discord_interaction)["content"]
        assert "Could not find Roblox user" in content
        assert "NobodyHere" in content

    @pytest.mark.asyncio
    async def test_invalid_duration_rejected_before_lookup(self, test_db, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.add import AddCog

        cog = AddCog(mock_bot)
        client = _fake_roblox(TARGET)
        with patch("brotherhood_kos.commands.add.cog.get_roblox_client", return_value=client):
            await cog.add.callback(cog, mock_discord_interaction, "TargetPlayer", "Spawn camping", "soon")

        client.resolve.assert_not_awaited()
        sent = mock_discord_interaction.response.send_message.call_args.kwargs
        assert sent["content"].startswith("❌")

    @pytest.mark.asyncio
    async def test_already_listed(self, test_db, actor, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.add import AddCog
        from brotherhood_kos.services.kos_service import get_kos_service

        get_kos_service().add("1001", "TargetPlayer", "Old reason", actor, is_permanent=True)

        cog = AddCog(mock_bot)
        with patch("brotherhood_kos.commands.add.cog.get_roblox_client", return_value=_fake_roblox(TARGET)):
            await cog.add.callback(cog, mock_discord_interaction, "TargetPlayer", "Spawn camping", None)

        content = _last_edit_kwargs(mock_discord_interaction)["content"]
        assert "already on the KOS list" in content

    @pytest.mark.asyncio
    async def test_disabled_bot_refuses(self, test_db, actor, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.add import AddCog
        from brotherhood_kos.commands.helpers import DISABLED_MESSAGE
        from brotherhood_kos.services.kos_service import get_kos_service

        get_kos_service().set_enabled(False, actor)

        cog = AddCog(mock_bot)
        client = _fake_roblox(TARGET)
        with patch("brotherhood_kos.commands.add.cog.get_roblox_client", return_value=client):
            await cog.add.callback(cog, mock_discord_interaction, "TargetPlayer", "Spawn camping", None)

        client.resolve.assert_not_awaited()
        sent = mock_discord_interaction.response.send_message.call_args.kwargs
        assert sent["content"] == DISABLED_MESSAGE

    @pytest.mark.asyncio
    async def test_confirm_adds_entry(self, test_db, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.add import AddCog
        from brotherhood_kos.commands.confirm import ConfirmView
        from brotherhood_kos.services.kos_service import get_kos_service

        cog = AddCog(mock_bot)
        with patch("brotherhood_kos.commands.add.cog.get_roblox_client", return_value=_fake_roblox(TARGET)):
            await cog.add.callback(cog, mock_discord_interaction, "TargetPlayer", "Spawn camping", "7d")

        # Nothing is written until confirmed
        assert get_kos_service().find("1001") is None

        prompt = _last_edit_kwargs(mock_discord_interaction)
        assert prompt["embed"].title == "⚠️ Confirm KOS Entry"
        view = prompt["view"]
        assert isinstance(view, ConfirmView)

        await view.confirm_button.callback(mock_discord_interaction)

        entry = get_kos_service().find("1001")
        assert entry is not None
        assert entry["roblox_username"] == "TargetPlayer"
        assert entry["reason"] == "Spawn camping"
        assert entry["is_permanent"] in (0, False)
        assert entry["added_by_id"] == str(mock_discord_interaction.user.id)
        assert _last_edit_kwargs(mock_discord_interaction)["embed"].title == "✅ KOS Entry Added"

    @pytest.mark.asyncio
    async def test_cancel_writes_nothing(self, test_db, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.add import AddCog
        from brotherhood_kos.services.kos_service import get_kos_service

        cog = AddCog(mock_bot)
        with patch("brotherhood_kos.commands.add.cog.get_roblox_client", return_value=_fake_roblox(TARGET)):
            await cog.add.callback(cog, mock_discord_interaction, "TargetPlayer", "Spawn camping", None)

        view = _last_edit_kwargs(mock_discord_interaction)["view"]
        await view.cancel_button.callback(mock_discord_interaction)

        assert get_kos_service().find("1001") is None
        edited = mock_discord_interaction.response.edit_message.call_args.kwargs
        assert edited["content"] == "❌ KOS entry cancelled."

    @pytest.mark.asyncio
    async def test_duration_autocomplete_echoes_custom_value(self, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.add import AddCog

        cog = AddCog(mock_bot)
        choices = await cog.duration_autocomplete(mock_discord_interaction, "7d")

        assert choices[0].value == "7d"
        assert [c.value for c in choices].count("7d") == 1

    @pytest.mark.asyncio
    async def test_duration_autocomplete_empty_lists_suggestions(self, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.add import AddCog
        from brotherhood_kos.utils.duration import DURATION_SUGGESTIONS

        cog = AddCog(mock_bot)
        choices = await cog.duration_autocomplete(mock_discord_interaction, "")

        assert [c.value for c in choices] == [value for _, value in DURATION_SUGGESTIONS]


# =============================================================================
# Remove Command Tests
# =============================================================================

class TestRemoveCommand:
    """Tests for /remove."""

    @pytest.mark.asyncio
    async def test_not_listed(self, test_db, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.remove import RemoveCog

        cog = RemoveCog(mock_bot)
        await cog.remove.callback(cog, mock_discord_interaction, "1001", None)

        assert _last_edit_kwargs(mock_discord_interaction)["content"] == "❌ This user is not on the KOS list."

    @pytest.mark.asyncio
    async def test_non_numeric_id(self, test_db, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.remove import RemoveCog

        cog = RemoveCog(mock_bot)
        await cog.remove.callback(cog, mock_discord_interaction, "abc", None)

        sent = mock_discord_interaction.response.send_message.call_args.kwargs
        assert sent["content"].startswith("❌")

    @pytest.mark.asyncio
    async def test_confirm_archives_entry(self, test_db, actor, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.remove import RemoveCog
        from brotherhood_kos.services.kos_service import get_kos_service

        service = get_kos_service()
        service.add("1001", "TargetPlayer", "Spawn camping", actor, is_permanent=True)

        cog = RemoveCog(mock_bot)
        await cog.remove.callback(cog, mock_discord_interaction, "1001", "Apologised")

        prompt = _last_edit_kwargs(mock_discord_interaction)
        assert prompt["embed"].title == "⚠️ Confirm KOS Removal"
        assert service.find("1001") is not None

        await prompt["view"].confirm_button.callback(mock_discord_interaction)

        assert service.find("1001") is None
        result = _last_edit_kwargs(mock_discord_interaction)["embed"]
        assert result.title == "✅ User Removed from KOS"
        fields = {f.name: f.value for f in result.fields}
        assert fields["Removal Reason"] == "Apologised"
        assert fields["Was on KOS for"] == "1 days"


# =============================================================================
# List / Status Tests
# =============================================================================

class TestListAndStatus:
    """Tests for the /list and /status embed builders."""

    def test_format_active_entry(self):
        from brotherhood_kos.commands.kos_list import format_entry_field

        entry = {
            "roblox_user_id": "1001",
            "roblox_username": "TargetPlayer",
            "reason": "Spawn camping",
            "status": "active",
            "created_at": 1_700_000_000.0,
            "added_by_name": "moduser",
            "is_permanent": True,
            "expires_at": None,
        }
        name, value = format_entry_field(3, entry)

        assert name == "3. TargetPlayer (1001)"
        assert "🟢 Active" in value
        assert "Reason: Spawn camping" in value
        assert "Permanent" in value

    def test_format_archived_entry(self):
        from brotherhood_kos.commands.kos_list import format_entry_field

        entry = {
            "roblox_user_id": "1001",
            "roblox_username": "TargetPlayer",
            "reason": "Spawn camping",
            "status": "archived",
            "created_at": 1_700_000_000.0,
            "added_by_name": "moduser",
            "archive_reason": "Expired",
        }
        _, value = format_entry_field(1, entry)

        assert "🔴 Archived" in value
        assert "Archived: Expired" in value

    def test_status_embed_fields(self):
        from brotherhood_kos.commands.status import build_status_embed

        embed = build_status_embed({
            "active": 4,
            "archived": 2,
            "total": 6,
            "permanent": 1,
            "expiring": 3,
            "added_last_7_days": 5,
            "bot_enabled": True,
        })

        fields = {f.name: f.value for f in embed.fields}
        assert fields == {
            "Active Entries": "4",
            "Archived Entries": "2",
            "Total Entries": "6",
            "Permanent": "1",
            "Expiring Soon": "3",
            "Added Last 7 Days": "5",
        }


# =============================================================================
# Console Tests
# =============================================================================

class TestConsoleCommand:
    """Tests for /console."""

    @pytest.mark.asyncio
    async def test_code_sent_by_dm(self, test_db, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.console import ConsoleCog

        cog = ConsoleCog(mock_bot)
        await cog.console.callback(cog, mock_discord_interaction)

        mock_discord_interaction.user.send.assert_awaited_once()
        sent = mock_discord_interaction.response.send_message.call_args.kwargs
        assert "DMs" in sent["content"]

    @pytest.mark.asyncio
    async def test_closed_dms_fall_back_to_ephemeral(self, test_db, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.console import ConsoleCog
        from brotherhood_kos.services.kos_service import get_kos_service

        response = MagicMock()
        response.status = 403
        response.reason = "Forbidden"
        mock_discord_interaction.user.send.side_effect = discord.Forbidden(response, "Cannot send messages to this user")

        cog = ConsoleCog(mock_bot)
        await cog.console.callback(cog, mock_discord_interaction)

        sent = mock_discord_interaction.response.send_message.call_args.kwargs
        assert sent["ephemeral"] is True
        assert isinstance(sent["embed"], discord.Embed)

        logs = get_kos_service().logs(category="command")
        assert logs[0]["message"] == "API auth code generated"


# =============================================================================
# Manage Tests
# =============================================================================

class TestManage:
    """Tests for /manage and the management panel."""

    @pytest.mark.asyncio
    async def test_no_password_configured(self, test_db, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.manage import ManageCog
        from brotherhood_kos.commands.manage.cog import NO_PASSWORD_MESSAGE

        cog = ManageCog(mock_bot)
        await cog.manage.callback(cog, mock_discord_interaction)

        args = mock_discord_interaction.response.send_message.call_args
        assert args.args[0] == NO_PASSWORD_MESSAGE
        mock_discord_interaction.response.send_modal.assert_not_called()

    @pytest.mark.asyncio
    async def test_password_prompts_modal(self, test_db, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.manage import AdminPasswordModal, ManageCog
        from brotherhood_kos.services.admin_auth import get_admin_auth

        get_admin_auth().set_password("correct-horse-battery")

        cog = ManageCog(mock_bot)
        await cog.manage.callback(cog, mock_discord_interaction)

        modal = mock_discord_interaction.response.send_modal.call_args.args[0]
        assert isinstance(modal, AdminPasswordModal)

    @pytest.mark.asyncio
    async def test_wrong_password_denied(self, test_db, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.manage import AdminPasswordModal

        auth = MagicMock()
        auth.verify.return_value = False
        modal = AdminPasswordModal(mock_bot)

        with patch("brotherhood_kos.commands.manage.views.get_admin_auth", return_value=auth):
            await modal.on_submit(mock_discord_interaction)

        args = mock_discord_interaction.response.send_message.call_args
        assert args.args[0] == "❌ Invalid password. Access denied."
        auth.create_session.assert_not_called()

    @pytest.mark.asyncio
    async def test_correct_password_opens_panel(self, test_db, mock_bot, mock_discord_interaction):
        from brotherhood_kos.commands.manage import AdminPasswordModal, ManagePanelView

        auth = MagicMock()
        auth.verify.return_value = True
        auth.create_session.return_value = ("session-token", 0.0)
        modal = AdminPasswordModal(mock_bot)

        with patch("brotherhood_kos.commands.manage.views.get_admin_auth", return_value=auth):
            await modal.on_submit(mock_discord_interaction)

        sent = mock_discord_interaction.response.send_message.call_args.kwargs
        assert sent["embed"].title == "🛠️ Bot Management Panel"
        view = sent["view"]
        assert isinstance(view, ManagePanelView)
        assert view.session_token == "session-token"
        assert view.origin is mock_discord_interaction

    @pytest.mark.asyncio
    async def test_panel_rejects_other_user(self, test_db, mock_discord_interaction):
        from brotherhood_kos.commands.manage import ManagePanelView

        view = ManagePanelView(owner_id=42, session_token="unused")

        assert await view.interaction_check(mock_discord_interaction) is False
        args = mock_discord_interaction.response.send_message.call_args
        assert args.args[0] == "This panel belongs to someone else."

    @pytest.mark.asyncio
    async def test_expired_session_closes_panel(self, test_db, mock_discord_interaction):
        from brotherhood_kos.commands.manage import ManagePanelView
        from brotherhood_kos.commands.manage.views import SESSION_EXPIRED_MESSAGE
        from brotherhood_kos.services.admin_auth import get_admin_auth

        auth = get_admin_auth()
        token, _ = auth.create_session(str(mock_discord_interaction.user.id), "testuser")
        auth.invalidate_session(token)

        view = ManagePanelView(owner_id=mock_discord_interaction.user.id, session_token=token)

        assert await view.interaction_check(mock_discord_interaction) is False
        edited = mock_discord_interaction.response.edit_message.call_args.kwargs
        assert edited["content"] == SESSION_EXPIRED_MESSAGE
        assert view.is_finished()

    @pytest.mark.asyncio
    async def test_toggle_disables_bot(self, test_db, mock_discord_interaction):
        from brotherhood_kos.commands.manage import ManagePanelView
        from brotherhood_kos.services.admin_auth import get_admin_auth
        from brotherhood_kos.services.kos_service import get_kos_service

        token, _ = get_admin_auth().create_session(str(mock_discord_interaction.user.id), "testuser")
        view = ManagePanelView(owner_id=mock_discord_interaction.user.id, session_token=token)
        assert view.toggle_button.label == "Disable Bot"

        assert await view.interaction_check(mock_discord_interaction) is True
        await view.toggle_button.callback(mock_discord_interaction)

        assert get_kos_service().is_enabled() is False
        assert view.toggle_button.label == "Enable Bot"
        edited = mock_discord_interaction.response.edit_message.call_args.kwargs
        assert edited["embed"].description == "✅ Bot has been disabled."

    @pytest.mark.asyncio
    async def test_telegram_not_configured(self, test_db, mock_discord_interaction):
        from brotherhood_kos.commands.manage import ManagePanelView

        view = ManagePanelView(owner_id=mock_discord_interaction.user.id, session_token="unused")
        await view.telegram_button.callback(mock_discord_interaction)

        edited = mock_discord_interaction.response.edit_message.call_args.kwargs
        assert edited["embed"].description == "⚠️ Telegram is not configured."

    @pytest.mark.asyncio
    async def test_close_invalidates_session(self, test_db, mock_discord_interaction):
        from brotherhood_kos.commands.manage import ManagePanelView
        from brotherhood_kos.core.errors import AuthError
        from brotherhood_kos.services.admin_auth import get_admin_auth

        auth = get_admin_auth()
        token, _ = auth.create_session(str(mock_discord_interaction.user.id), "testuser")
        view = ManagePanelView(owner_id=mock_discord_interaction.user.id, session_token=token)

        await view.close_button.callback(mock_discord_interaction)

        with pytest.raises(AuthError):
            auth.verify_session(token)
        edited = mock_discord_interaction.response.edit_message.call_args.kwargs
        assert edited["content"] == "✅ Management panel closed."

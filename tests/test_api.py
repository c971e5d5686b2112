"""
Brotherhood KOS - REST API Tests
================================

End-to-end tests of the FastAPI app through TestClient.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from fastapi.testclient import TestClient

from brotherhood_kos.core.database import Actor
from brotherhood_kos.services.roblox import RobloxUser


@pytest.fixture
def client(test_db):
    """API client on a fresh app without a bot."""
    from brotherhood_kos.api.app import create_app
    from brotherhood_kos.api.dependencies import set_bot

    set_bot(None)
    return TestClient(create_app(), raise_server_exceptions=False)


@pytest.fixture
def auth_headers(test_db):
    """Bearer header for a fresh API session."""
    from brotherhood_kos.services.sessions import get_api_sessions

    token, _ = get_api_sessions().create("42", "tester")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def roblox_user():
    """Patch the Roblox client used by the KOS router."""
    user = RobloxUser(
        id="1001",
        name="Target",
        display_name="Target",
        thumbnail_url="https://tr.rbxcdn.com/t.png",
    )
    fake_client = MagicMock()
    fake_client.resolve = AsyncMock(return_value=user)
    with patch("brotherhood_kos.api.routers.kos.get_roblox_client", return_value=fake_client):
        yield fake_client


def _seed(roblox_user_id="1001", username="Target", expires_at=None):
    from brotherhood_kos.services.kos_service import get_kos_service

    return get_kos_service().add(
        roblox_user_id=roblox_user_id,
        roblox_username=username,
        reason="Teamkilling",
        actor=Actor(id="1", name="mod"),
        expires_at=expires_at,
    )


# =============================================================================
# Health
# =============================================================================

class TestHealth:
    """Tests for the public health endpoints."""

    def test_api_health(self, client):
        """Test /api/health reports the database without auth."""
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["database"] is True
        assert data["status"] == "healthy"
        assert data["discord_connected"] is None

    def test_root_health(self, client):
        """Test the load balancer health check."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_health_degraded_when_bot_offline(self, client):
        """Test a disconnected bot degrades the status."""
        from brotherhood_kos.api.dependencies import set_bot

        bot = MagicMock()
        bot.is_ready.return_value = False
        set_bot(bot)
        try:
            data = client.get("/api/health").json()["data"]
        finally:
            set_bot(None)

        assert data["status"] == "degraded"
        assert data["discord_connected"] is False


# =============================================================================
# Authentication
# =============================================================================

class TestAuth:
    """Tests for login, logout and bearer checks."""

    def test_missing_token(self, client):
        """Test protected routes need a bearer token."""
        response = client.get("/api/kos")

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "AUTH_MISSING_TOKEN"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token(self, client):
        """Test unknown tokens are rejected."""
        response = client.get("/api/kos", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.json()["error_code"] == "AUTH_INVALID_TOKEN"

    def test_login_with_code(self, client):
        """Test an auth code is exchanged for a working session exactly once."""
        from brotherhood_kos.services.sessions import get_auth_codes

        code, _ = get_auth_codes().create("42", "tester")

        response = client.post("/api/auth/login", json={"code": code})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["token_type"] == "bearer"
        assert data["user"] == {"discord_user_id": "42", "discord_username": "tester"}

        headers = {"Authorization": f"Bearer {data['token']}"}
        assert client.get("/api/stats", headers=headers).status_code == 200

        again = client.post("/api/auth/login", json={"code": code})
        assert again.status_code == 401
        assert again.json()["error_code"] == "AUTH_INVALID_CODE"

    def test_login_bad_code(self, client):
        """Test an unknown code is rejected."""
        response = client.post("/api/auth/login", json={"code": "DEADBEEF"})
        assert response.status_code == 401
        assert response.json()["error_code"] == "AUTH_INVALID_CODE"

    def test_logout_invalidates_token(self, client, auth_headers):
        """Test a logged out token stops working."""
        assert client.post("/api/auth/logout", headers=auth_headers).status_code == 200
        assert client.get("/api/stats", headers=auth_headers).status_code == 401

    def test_login_rate_limited(self, client):
        """Test the stricter limit on code redemption."""
        codes = [
            client.post("/api/auth/login", json={"code": "DEADBEEF"}).status_code
            for _ in range(6)
        ]

        assert codes[:5] == [401] * 5
        assert codes[5] == 429

    def test_login_limit_ignores_rotating_headers(self, client):
        """Test fresh bearer tokens and forwarding headers do not buy new login attempts."""
        codes = [
            client.post(
                "/api/auth/login",
                json={"code": "DEADBEEF"},
                headers={
                    "Authorization": f"Bearer forged-token-{i}",
                    "X-Forwarded-For": f"10.0.0.{i}",
                    "X-Real-IP": f"10.0.1.{i}",
                },
            ).status_code
            for i in range(20)
        ]

        assert codes[:5] == [401] * 5
        assert set(codes[5:]) == {429}


# =============================================================================
# KOS Entries
# =============================================================================

class TestKosEndpoints:
    """Tests for /api/kos."""

    def test_add_entry(self, client, auth_headers, roblox_user):
        """Test adding resolves the user and records the session actor."""
        response = client.post(
            "/api/kos",
            json={"username": "Target", "reason": "Teamkilling", "duration": "7d"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["roblox_user_id"] == "1001"
        assert data["is_permanent"] is False
        assert data["expires_at"] is not None
        assert data["added_by_name"] == "tester"
        assert data["thumbnail_url"] == "https://tr.rbxcdn.com/t.png"
        roblox_user.resolve.assert_awaited_once_with("Target")

    def test_add_without_duration_is_not_permanent(self, client, auth_headers, roblox_user):
        """Test an add with no duration has no expiry and is not permanent."""
        response = client.post(
            "/api/kos",
            json={"username": "Target", "reason": "griefing"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["is_permanent"] is False
        assert data["expires_at"] is None
        stats = client.get("/api/stats", headers=auth_headers).json()["data"]
        assert stats["permanent"] == 0

    def test_add_permanent_keyword(self, client, auth_headers, roblox_user):
        """Test the permanent keyword marks the entry permanent."""
        response = client.post(
            "/api/kos",
            json={"username": "Target", "reason": "griefing", "duration": "permanent"},
            headers=auth_headers,
        )

        data = response.json()["data"]
        assert data["is_permanent"] is True
        assert data["expires_at"] is None

    def test_add_duplicate(self, client, auth_headers, roblox_user):
        """Test adding an active user conflicts."""
        _seed()
        response = client.post(
            "/api/kos",
            json={"username": "Target", "reason": "Again"},
            headers=auth_headers,
        )
        assert response.status_code == 409
        assert response.json()["error_code"] == "KOS_ENTRY_EXISTS"

    def test_add_unknown_roblox_user(self, client, auth_headers, roblox_user):
        """Test an unresolvable username."""
        roblox_user.resolve.return_value = None
        response = client.post(
            "/api/kos",
            json={"username": "ghost", "reason": "x"},
            headers=auth_headers,
        )
        assert response.status_code == 404
        assert response.json()["error_code"] == "ROBLOX_USER_NOT_FOUND"

    def test_add_bad_duration(self, client, auth_headers, roblox_user):
        """Test an invalid duration is rejected before any lookup."""
        response = client.post(
            "/api/kos",
            json={"username": "Target", "reason": "x", "duration": "soon"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_INVALID_DURATION"
        roblox_user.resolve.assert_not_awaited()

    def test_add_missing_reason(self, client, auth_headers):
        """Test body validation failures use the error envelope."""
        response = client.post("/api/kos", json={"username": "Target"}, headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_FAILED"

    def test_list_entries(self, client, auth_headers):
        """Test listing with pagination metadata."""
        _seed("1", "One")
        _seed("2", "Two")
        _seed("3", "Three")

        response = client.get("/api/kos?per_page=2", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 2
        assert body["pagination"]["total"] == 3
        assert body["pagination"]["total_pages"] == 2
        assert body["pagination"]["has_next"] is True

    def test_list_unknown_filter(self, client, auth_headers):
        """Test an unknown filter name."""
        response = client.get("/api/kos?filter=banned", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_INVALID_FILTER"

    def test_get_entry(self, client, auth_headers):
        """Test fetching one entry."""
        _seed()
        response = client.get("/api/kos/1001", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["roblox_username"] == "Target"

    def test_get_missing_entry(self, client, auth_headers):
        """Test a user who was never listed."""
        response = client.get("/api/kos/999", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error_code"] == "KOS_ENTRY_NOT_FOUND"

    def test_get_bad_id(self, client, auth_headers):
        """Test a non-numeric ID."""
        response = client.get("/api/kos/abc", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_INVALID_ID"

    def test_remove_entry(self, client, auth_headers):
        """Test removal archives with the given reason."""
        _seed()
        response = client.request(
            "DELETE", "/api/kos/1001", json={"reason": "Appeal accepted"}, headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "archived"
        assert data["archive_reason"] == "Appeal accepted"
        assert data["archived_by_name"] == "tester"

    def test_remove_without_body(self, client, auth_headers):
        """Test removal without a body uses the default reason."""
        _seed()
        response = client.delete("/api/kos/1001", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"]["archive_reason"] == "Removed from KOS"

    def test_remove_missing(self, client, auth_headers):
        """Test removing a user who is not listed."""
        response = client.delete("/api/kos/1001", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error_code"] == "KOS_ENTRY_NOT_FOUND"


# =============================================================================
# Stats, History, Logs
# =============================================================================

class TestReadEndpoints:
    """Tests for stats, status, history and logs."""

    def test_stats(self, client, auth_headers):
        """Test counts after an add and a removal."""
        _seed("1", "One")
        _seed("2", "Two")
        client.delete("/api/kos/2", headers=auth_headers)

        data = client.get("/api/stats", headers=auth_headers).json()["data"]
        assert data == {"active": 1, "permanent": 0, "expiring": 0, "archived": 1, "total": 2}

    def test_status(self, client, auth_headers):
        """Test status includes the enabled flag."""
        data = client.get("/api/status", headers=auth_headers).json()["data"]
        assert data["bot_enabled"] is True
        assert data["added_last_7_days"] == 0

    def test_history(self, client, auth_headers):
        """Test history for one user, newest first."""
        _seed()
        client.delete("/api/kos/1001", headers=auth_headers)

        body = client.get("/api/history?roblox_user_id=1001", headers=auth_headers).json()
        assert [row["action"] for row in body["data"]] == ["removed", "added"]
        assert body["pagination"]["total"] == 2

    def test_logs_decode_details(self, client, auth_headers, test_db):
        """Test log details come back as JSON objects."""
        test_db.add_log("info", "system", "hello", {"a": 1})

        data = client.get("/api/logs?category=system", headers=auth_headers).json()["data"]
        assert data[0]["message"] == "hello"
        assert data[0]["details"] == {"a": 1}

    def test_logs_limit_bounds(self, client, auth_headers):
        """Test the limit query bounds."""
        response = client.get("/api/logs?limit=0", headers=auth_headers)
        assert response.status_code == 422


# =============================================================================
# Error Envelope
# =============================================================================

class TestErrorEnvelope:
    """Tests for the shared error format."""

    def test_unknown_route(self, client):
        """Test unknown paths return NOT_FOUND in the envelope."""
        response = client.get("/api/nothing-here")
        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_unhandled_exception(self, client, auth_headers):
        """Test unexpected errors become SERVER_ERROR without leaking details."""
        with patch(
            "brotherhood_kos.api.routers.stats.get_kos_service",
            side_effect=RuntimeError("secret internals"),
        ):
            response = client.get("/api/stats", headers=auth_headers)

        assert response.status_code == 500
        body = response.json()
        assert body["error_code"] == "SERVER_ERROR"
        assert "secret internals" not in response.text

    def test_domain_error_mapping(self):
        """Test every domain error type has its own code and a bare one is a server error."""
        from brotherhood_kos.api.errors import DOMAIN_ERROR_CODES, ErrorCode, from_domain_error
        from brotherhood_kos.core.errors import (
            AuthError, ConflictError, KosError, NotFoundError, ValidationError,
        )

        assert set(DOMAIN_ERROR_CODES) == {ValidationError, NotFoundError, ConflictError, AuthError}
        assert from_domain_error(ConflictError("dup")).status_code == 409

        error = from_domain_error(KosError("odd"))
        assert error.status_code == 500
        assert error.error_code == ErrorCode.SERVER_ERROR

    def test_rate_limit_headers(self, client, auth_headers):
        """Test successful responses carry rate limit headers."""
        response = client.get("/api/stats", headers=auth_headers)
        assert response.headers["X-RateLimit-Limit"] == "60"


# =============================================================================
# Rate Limiter
# =============================================================================

class TestRateLimiter:
    """Tests for RateLimiter and client_address."""

    def _request(self, headers=None, host="203.0.113.9"):
        request = MagicMock()
        request.headers = headers or {}
        request.client.host = host
        return request

    def test_login_bucket_is_separate(self):
        """Test login attempts use their own tighter bucket."""
        from brotherhood_kos.api.middleware.rate_limit import RateLimiter

        limiter = RateLimiter(requests=60, window=60, login_requests=2, clock=lambda: 100.0)

        assert limiter.check("1.1.1.1", login=True)[0] is True
        assert limiter.check("1.1.1.1", login=True)[0] is True
        allowed, retry_after, remaining, limit = limiter.check("1.1.1.1", login=True)
        assert allowed is False
        assert retry_after > 0
        assert (remaining, limit) == (0, 2)
        assert limiter.check("1.1.1.1")[0] is True

    def test_bucket_refills(self):
        """Test a spent bucket refills over its window."""
        from brotherhood_kos.api.middleware.rate_limit import RateLimiter

        now = [0.0]
        limiter = RateLimiter(requests=1, window=60, clock=lambda: now[0])

        assert limiter.check("1.1.1.1")[0] is True
        assert limiter.check("1.1.1.1")[0] is False
        now[0] = 61.0
        assert limiter.check("1.1.1.1")[0] is True

    def test_address_ignores_headers_by_default(self):
        """Test forwarding headers are ignored unless the proxy is trusted."""
        from brotherhood_kos.api.middleware.rate_limit import client_address

        request = self._request({"X-Forwarded-For": "10.0.0.1", "X-Real-IP": "10.0.0.2"})
        assert client_address(request) == "203.0.113.9"

    def test_address_behind_trusted_proxy(self):
        """Test the first forwarded address wins behind a trusted proxy."""
        from brotherhood_kos.api.middleware.rate_limit import client_address

        forwarded = self._request({"X-Forwarded-For": "10.0.0.1, 172.16.0.1"})
        real_ip = self._request({"X-Real-IP": "10.0.0.2"})

        assert client_address(forwarded, trust_proxy=True) == "10.0.0.1"
        assert client_address(real_ip, trust_proxy=True) == "10.0.0.2"
        assert client_address(self._request(), trust_proxy=True) == "203.0.113.9"

    def test_trust_proxy_from_environment(self, monkeypatch):
        """Test KOS_API_TRUST_PROXY turns header trust on."""
        from brotherhood_kos.api.config import load_api_config

        assert load_api_config().trust_proxy is False
        monkeypatch.setenv("KOS_API_TRUST_PROXY", "true")
        assert load_api_config().trust_proxy is True

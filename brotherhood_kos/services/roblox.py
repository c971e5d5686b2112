"""
Brotherhood KOS - Roblox Lookup Service
=======================================

Resolves Roblox usernames or numeric IDs to user records.

DESIGN:
    resolve() never raises for upstream trouble. Network errors, timeouts
    and non-2xx responses are logged and turn into None, which callers
    report as "user not found". A failed thumbnail lookup only drops the
    thumbnail.
"""

import asyncio
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from brotherhood_kos.core.constants import API_TIMEOUT, ROBLOX_ID_PATTERN
from brotherhood_kos.core.logger import logger


# =============================================================================
# Constants
# =============================================================================

USERS_API = "https://users.roblox.com/v1"
THUMBNAILS_API = "https://thumbnails.roblox.com/v1"

_ID_RE = re.compile(ROBLOX_ID_PATTERN)


# =============================================================================
# Data Model
# =============================================================================

@dataclass
class RobloxUser:
    """Resolved Roblox account."""

    id: str
    name: str
    display_name: str
    thumbnail_url: Optional[str] = None

    @property
    def profile_url(self) -> str:
        return f"https://www.roblox.com/users/{self.id}/profile"


# =============================================================================
# Roblox Client
# =============================================================================

class RobloxClient:
    """Thin aiohttp client over the public Roblox users/thumbnails APIs."""

    def __init__(self, timeout: float = API_TIMEOUT) -> None:
        self._timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create persistent HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(limit=10, ttl_dns_cache=300),
                headers={"Accept": "application/json"},
            )
        return self._session

    async def close(self) -> None:
        """Close HTTP session on shutdown."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    # =========================================================================
    # Public API
    # =========================================================================

    async def resolve(self, username_or_id: str) -> Optional[RobloxUser]:
        """
        Resolve a Roblox username or numeric ID.

        Args:
            username_or_id: Roblox username, or a numeric user ID.

        Returns:
            RobloxUser with thumbnail (when available), or None.
        """
        query = (username_or_id or "").strip()
        if not query:
            return None

        if _ID_RE.match(query):
            user = await self._get_user_by_id(query)
        else:
            user = await self._get_user_by_username(query)

        if user is None:
            logger.debug("Roblox User Not Resolved", [("Query", query[:50])])
            return None

        user.thumbnail_url = await self.get_thumbnail(user.id)

        logger.debug("Roblox User Resolved", [
            ("Query", query[:50]),
            ("User", f"{user.name} ({user.id})"),
        ])
        return user

    async def get_thumbnail(self, user_id: str) -> Optional[str]:
        """Get the 150x150 avatar headshot URL for a user."""
        data = await self._request(
            "GET",
            f"{THUMBNAILS_API}/users/avatar-headshot",
            params={"userIds": user_id, "size": "150x150", "format": "Png"},
        )
        if not data:
            return None
        items = data.get("data") or []
        if items and items[0].get("imageUrl"):
            return items[0]["imageUrl"]
        return None

    # =========================================================================
    # Lookups
    # =========================================================================

    async def _get_user_by_id(self, user_id: str) -> Optional[RobloxUser]:
        data = await self._request("GET", f"{USERS_API}/users/{user_id}")
        if not data or "id" not in data:
            return None
        return RobloxUser(
            id=str(data["id"]),
            name=data.get("name", ""),
            display_name=data.get("displayName") or data.get("name", ""),
        )

    async def _get_user_by_username(self, username: str) -> Optional[RobloxUser]:
        data = await self._request(
            "POST",
            f"{USERS_API}/usernames/users",
            json={"usernames": [username], "excludeBannedUsers": False},
        )
        items = (data or {}).get("data") or []
        if not items:
            return None
        match = items[0]
        return RobloxUser(
            id=str(match["id"]),
            name=match.get("name", username),
            display_name=match.get("displayName") or match.get("name", username),
        )

    async def _request(self, method: str, url: str, **kwargs: Any) -> Optional[Dict[str, Any]]:
        """Send a request and return decoded JSON, or None on any failure."""
        try:
            session = await self._get_session()
            async with session.request(
                method,
                url,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                **kwargs,
            ) as resp:
                if resp.status == 404:
                    return None
                if resp.status >= 400:
                    logger.warning("Roblox API Error", [
                        ("URL", url),
                        ("Status", str(resp.status)),
                    ])
                    return None
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("Roblox API Request Failed", [
                ("URL", url),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            return None


# =============================================================================
# Global Instance
# =============================================================================

_client: Optional[RobloxClient] = None


def get_roblox_client() -> RobloxClient:
    """Get the process-wide Roblox client."""
    global _client
    if _client is None:
        _client = RobloxClient()
    return _client


__all__ = ["RobloxUser", "RobloxClient", "get_roblox_client"]

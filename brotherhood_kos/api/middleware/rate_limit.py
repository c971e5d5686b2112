"""
Brotherhood KOS - Rate Limiting Middleware
==========================================

Per-client token buckets for the REST API.

Every client address gets one bucket for the API as a whole and a
separate, tighter one for auth code redemption. The address is the
socket peer; forwarding headers are only read when the API runs behind
a proxy that is trusted to set them (KOS_API_TRUST_PROXY).
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from brotherhood_kos.api.config import get_api_config
from brotherhood_kos.api.errors import ErrorCode, error_response
from brotherhood_kos.core.logger import logger


LOGIN_PATH = "/api/auth/login"
UNLIMITED_PATHS = ("/health", "/api/health")

# Buckets idle this long are dropped
STALE_AFTER = 600
CLEANUP_INTERVAL = 300


# =============================================================================
# Token Bucket
# =============================================================================

@dataclass
class TokenBucket:
    """Refills `capacity` tokens every `window` seconds."""

    capacity: int
    window: int
    tokens: float
    updated_at: float

    def take(self, now: float) -> bool:
        refill = (now - self.updated_at) * self.capacity / self.window
        self.tokens = min(float(self.capacity), self.tokens + max(0.0, refill))
        self.updated_at = now
        if self.tokens < 1:
            return False
        self.tokens -= 1
        return True

    def seconds_until_token(self) -> float:
        return max(0.0, (1 - self.tokens) * self.window / self.capacity)


# =============================================================================
# Rate Limiter
# =============================================================================

class RateLimiter:
    """Buckets keyed by client address, one general and one for login."""

    def __init__(
        self,
        requests: int = 60,
        window: int = 60,
        login_requests: int = 5,
        clock: Callable[[], float] = time.time,
    ):
        self._limits = {"api": requests, "login": login_requests}
        self._window = window
        self._clock = clock
        self._buckets: Dict[Tuple[str, str], TokenBucket] = {}
        self._last_cleanup = clock()

    def check(self, address: str, login: bool = False) -> Tuple[bool, float, int, int]:
        """
        Spend one token for a client.

        Returns:
            (allowed, retry_after, remaining, limit)
        """
        now = self._clock()
        self._drop_stale(now)

        kind = "login" if login else "api"
        limit = self._limits[kind]
        bucket = self._buckets.get((kind, address))
        if bucket is None:
            bucket = TokenBucket(limit, self._window, float(limit), now)
            self._buckets[(kind, address)] = bucket

        allowed = bucket.take(now)
        retry_after = 0.0 if allowed else bucket.seconds_until_token()
        return allowed, retry_after, int(bucket.tokens), limit

    def _drop_stale(self, now: float) -> None:
        if now - self._last_cleanup < CLEANUP_INTERVAL:
            return
        self._last_cleanup = now

        stale = [key for key, b in self._buckets.items() if now - b.updated_at > STALE_AFTER]
        for key in stale:
            del self._buckets[key]

        if stale:
            logger.debug("Rate Limit Cleanup", [
                ("Removed", str(len(stale))),
                ("Remaining", str(len(self._buckets))),
            ])

    def reset(self) -> None:
        """Drop every bucket."""
        self._buckets.clear()


def client_address(request: Request, trust_proxy: bool = False) -> str:
    """Address a request is limited under. Headers count only behind a trusted proxy."""
    if trust_proxy:
        forwarded = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
        if forwarded:
            return forwarded
        real_ip = request.headers.get("X-Real-IP", "").strip()
        if real_ip:
            return real_ip
    return request.client.host if request.client else "unknown"


# =============================================================================
# Middleware
# =============================================================================

class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rejects over-budget requests with a 429 envelope.

    Responses carry X-RateLimit-Limit and X-RateLimit-Remaining; a 429
    also carries Retry-After.
    """

    def __init__(
        self,
        app,
        rate_limiter: Optional[RateLimiter] = None,
        trust_proxy: Optional[bool] = None,
    ):
        super().__init__(app)
        self._limiter = rate_limiter or get_rate_limiter()
        self._trust_proxy = get_api_config().trust_proxy if trust_proxy is None else trust_proxy

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path.rstrip("/") or "/"
        if path in UNLIMITED_PATHS:
            return await call_next(request)

        address = client_address(request, self._trust_proxy)
        allowed, retry_after, remaining, limit = self._limiter.check(
            address, login=path == LOGIN_PATH
        )

        if not allowed:
            wait = max(1, int(retry_after + 0.999))
            logger.debug("Rate Limit Exceeded", [
                ("Client", address),
                ("Path", path),
                ("Retry After", f"{wait}s"),
            ])
            return error_response(
                ErrorCode.RATE_LIMIT_EXCEEDED,
                details={"retry_after": wait},
                headers={
                    "Retry-After": str(wait),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response


# =============================================================================
# Singleton
# =============================================================================

rate_limiter_instance: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    """Get or create the rate limiter singleton."""
    global rate_limiter_instance
    if rate_limiter_instance is None:
        config = get_api_config()
        rate_limiter_instance = RateLimiter(
            requests=config.rate_limit_requests,
            window=config.rate_limit_window,
            login_requests=config.login_rate_limit_requests,
        )
    return rate_limiter_instance


def reset_rate_limiter() -> None:
    """Forget the singleton (tests)."""
    global rate_limiter_instance
    rate_limiter_instance = None


__all__ = [
    "LOGIN_PATH",
    "RateLimitMiddleware",
    "RateLimiter",
    "TokenBucket",
    "client_address",
    "get_rate_limiter",
    "reset_rate_limiter",
]

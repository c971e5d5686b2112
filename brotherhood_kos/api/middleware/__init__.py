"""
Brotherhood KOS - API Middleware
================================

Middleware components for the FastAPI application.
"""

from .rate_limit import RateLimitMiddleware, RateLimiter, get_rate_limiter, reset_rate_limiter

__all__ = [
    "RateLimitMiddleware",
    "RateLimiter",
    "get_rate_limiter",
    "reset_rate_limiter",
]

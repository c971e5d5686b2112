"""
Brotherhood KOS - Utils Package
===============================

Stateless helpers usable anywhere in the codebase.

Available Utilities:
    async_utils: Background tasks with error logging
    duration: Duration parsing/formatting for KOS expiry
    interaction: Safe Discord interaction responses
    signing: HMAC-SHA256 request signatures
"""

from .async_utils import create_safe_task, gather_with_logging
from .duration import parse_duration, format_duration, resolve_expiry
from .signing import sign, verify


__all__ = [
    "create_safe_task",
    "gather_with_logging",
    "parse_duration",
    "format_duration",
    "resolve_expiry",
    "sign",
    "verify",
]

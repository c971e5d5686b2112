"""
Brotherhood KOS - Domain Errors
===============================

Exception taxonomy shared by the service layer and both transports.

The Discord cogs turn these into ephemeral replies; the API maps them to
status codes and error codes in api/errors.py.
"""

from typing import Any, Dict, Optional


class KosError(Exception):
    """
    Base class for every expected failure of a KOS operation.

    Attributes:
        message: Human readable message, safe to show to users.
        code: Optional API error code overriding the default mapping.
        details: Optional structured context for API responses.
    """

    default_message = "KOS operation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message or self.default_message
        self.code = code
        self.details = details
        super().__init__(self.message)


class ValidationError(KosError):
    """Input failed a shape or business rule check."""

    default_message = "Invalid input"


class NotFoundError(KosError):
    """The requested entry or user does not exist."""

    default_message = "Not found"


class ConflictError(KosError):
    """An active KOS entry already exists for the user."""

    default_message = "User is already on the KOS list"


class AuthError(KosError):
    """Credentials, codes or sessions were rejected."""

    default_message = "Authentication failed"


__all__ = [
    "KosError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "AuthError",
]

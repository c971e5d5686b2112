"""
Brotherhood KOS - API Error System
==================================

Centralized error codes and exception handling for consistent API responses.
"""

from enum import Enum
from typing import Any, Dict, Optional

from fastapi import HTTPException
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_429_TOO_MANY_REQUESTS,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from brotherhood_kos.core.errors import (
    AuthError,
    ConflictError,
    KosError,
    NotFoundError,
    ValidationError,
)


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCode(str, Enum):
    """
    Centralized error codes for the API.

    Format: CATEGORY_SPECIFIC_ERROR

    Categories:
    - AUTH: Authentication errors
    - KOS: KOS entry errors
    - ROBLOX: Roblox lookup errors
    - VALIDATION: Input validation errors
    - RATE_LIMIT: Rate limiting errors
    - SERVER: Server-side errors
    """

    # Authentication errors (401)
    AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"
    AUTH_MISSING_TOKEN = "AUTH_MISSING_TOKEN"
    AUTH_INVALID_CODE = "AUTH_INVALID_CODE"

    # KOS errors (404, 409)
    KOS_ENTRY_NOT_FOUND = "KOS_ENTRY_NOT_FOUND"
    KOS_ENTRY_EXISTS = "KOS_ENTRY_EXISTS"

    # Roblox errors (404)
    ROBLOX_USER_NOT_FOUND = "ROBLOX_USER_NOT_FOUND"

    # Validation errors (400, 422)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    VALIDATION_INVALID_DURATION = "VALIDATION_INVALID_DURATION"
    VALIDATION_INVALID_ID = "VALIDATION_INVALID_ID"
    VALIDATION_INVALID_FILTER = "VALIDATION_INVALID_FILTER"

    # Rate limit errors (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # General errors (404)
    NOT_FOUND = "NOT_FOUND"

    # Server errors (500)
    SERVER_ERROR = "SERVER_ERROR"
    SERVER_DATABASE_ERROR = "SERVER_DATABASE_ERROR"


# =============================================================================
# Error Messages
# =============================================================================

ERROR_MESSAGES: Dict[ErrorCode, str] = {
    # Auth
    ErrorCode.AUTH_INVALID_TOKEN: "Invalid or expired session",
    ErrorCode.AUTH_MISSING_TOKEN: "Authentication token is required",
    ErrorCode.AUTH_INVALID_CODE: "Invalid or expired auth code",

    # KOS
    ErrorCode.KOS_ENTRY_NOT_FOUND: "User is not on the KOS list",
    ErrorCode.KOS_ENTRY_EXISTS: "User is already on the KOS list",

    # Roblox
    ErrorCode.ROBLOX_USER_NOT_FOUND: "Roblox user not found",

    # Validation
    ErrorCode.VALIDATION_ERROR: "Invalid input",
    ErrorCode.VALIDATION_FAILED: "Request validation failed",
    ErrorCode.VALIDATION_INVALID_DURATION: "Invalid duration format. Use formats like: 7d, 30d, 1y, 6mo",
    ErrorCode.VALIDATION_INVALID_ID: "Roblox user ID must be numeric",
    ErrorCode.VALIDATION_INVALID_FILTER: "Unknown list filter",

    # Rate Limit
    ErrorCode.RATE_LIMIT_EXCEEDED: "Too many requests, please slow down",

    # General
    ErrorCode.NOT_FOUND: "Resource not found",

    # Server
    ErrorCode.SERVER_ERROR: "An internal server error occurred",
    ErrorCode.SERVER_DATABASE_ERROR: "Database operation failed",
}


# =============================================================================
# Status Codes
# =============================================================================

ERROR_STATUS_CODES: Dict[ErrorCode, int] = {
    # Auth - 401
    ErrorCode.AUTH_INVALID_TOKEN: HTTP_401_UNAUTHORIZED,
    ErrorCode.AUTH_MISSING_TOKEN: HTTP_401_UNAUTHORIZED,
    ErrorCode.AUTH_INVALID_CODE: HTTP_401_UNAUTHORIZED,

    # KOS - 404/409
    ErrorCode.KOS_ENTRY_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.KOS_ENTRY_EXISTS: HTTP_409_CONFLICT,

    # Roblox - 404
    ErrorCode.ROBLOX_USER_NOT_FOUND: HTTP_404_NOT_FOUND,

    # Validation - 400/422
    ErrorCode.VALIDATION_ERROR: HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION_FAILED: HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.VALIDATION_INVALID_DURATION: HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION_INVALID_ID: HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION_INVALID_FILTER: HTTP_400_BAD_REQUEST,

    # Rate Limit - 429
    ErrorCode.RATE_LIMIT_EXCEEDED: HTTP_429_TOO_MANY_REQUESTS,

    # General - 404
    ErrorCode.NOT_FOUND: HTTP_404_NOT_FOUND,

    # Server - 500
    ErrorCode.SERVER_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.SERVER_DATABASE_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
}


# Default code per domain exception type
DOMAIN_ERROR_CODES: Dict[type, ErrorCode] = {
    ValidationError: ErrorCode.VALIDATION_ERROR,
    NotFoundError: ErrorCode.KOS_ENTRY_NOT_FOUND,
    ConflictError: ErrorCode.KOS_ENTRY_EXISTS,
    AuthError: ErrorCode.AUTH_INVALID_TOKEN,
}


# =============================================================================
# API Error Exception
# =============================================================================

class APIError(HTTPException):
    """
    Custom API exception with error codes.

    Usage:
        raise APIError(ErrorCode.KOS_ENTRY_NOT_FOUND)
        raise APIError(ErrorCode.VALIDATION_ERROR, details={"field": "reason"})
        raise APIError(ErrorCode.AUTH_MISSING_TOKEN, headers={"WWW-Authenticate": "Bearer"})
    """

    def __init__(
        self,
        code: ErrorCode,
        status_code: Optional[int] = None,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.error_code = code
        self.error_message = message or ERROR_MESSAGES.get(code, "An error occurred")
        self.error_details = details

        if status_code is None:
            status_code = ERROR_STATUS_CODES.get(code, HTTP_400_BAD_REQUEST)

        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "error_code": code.value,
                "message": self.error_message,
                "details": details,
            },
            headers=headers,
        )


# =============================================================================
# Helper Functions
# =============================================================================

def error_response(
    code: ErrorCode,
    status_code: Optional[int] = None,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """
    Create a JSON error response without raising an exception.

    Useful for returning errors in exception handlers.
    """
    if status_code is None:
        status_code = ERROR_STATUS_CODES.get(code, HTTP_400_BAD_REQUEST)

    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error_code": code.value,
            "message": message or ERROR_MESSAGES.get(code, "An error occurred"),
            "details": details,
        },
        headers=headers,
    )


def from_domain_error(exc: KosError) -> APIError:
    """
    Map a domain exception to an APIError.

    A specific code carried by the exception (e.g. ROBLOX_USER_NOT_FOUND)
    wins over the default for its type.
    """
    code: Optional[ErrorCode] = None
    if exc.code:
        try:
            code = ErrorCode(exc.code)
        except ValueError:
            code = None

    if code is None:
        for exc_type, default_code in DOMAIN_ERROR_CODES.items():
            if isinstance(exc, exc_type):
                code = default_code
                break
        else:
            code = ErrorCode.SERVER_ERROR

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return APIError(code, message=exc.message, details=exc.details, headers=headers)


__all__ = [
    "ErrorCode",
    "ERROR_MESSAGES",
    "ERROR_STATUS_CODES",
    "APIError",
    "error_response",
    "from_domain_error",
]

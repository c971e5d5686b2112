"""
Brotherhood KOS - Request Signing
=================================

HMAC-SHA256 helpers for machine clients that post signed payloads.

Signatures have the form "v1=<hex digest>" and travel in the
X-Signature header. The REST API itself authenticates with bearer
sessions only and does not check these.
"""

import hashlib
import hmac
from typing import Union

SIGNATURE_HEADER = "X-Signature"
SIGNATURE_VERSION = "v1"

Body = Union[bytes, str]


def _to_bytes(value: Body) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def sign(body: Body, secret: str) -> str:
    """
    Sign a raw request body.

    Args:
        body: Exact bytes (or text) that will be sent.
        secret: Shared secret (API_SECRET_KEY).

    Returns:
        Signature string like "v1=3f1c...".
    """
    digest = hmac.new(_to_bytes(secret), _to_bytes(body), hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def verify(body: Body, signature: str, secret: str) -> bool:
    """
    Verify a signature in constant time.

    Returns:
        True only if the signature matches the body exactly.
    """
    if not signature or not secret:
        return False
    expected = sign(body, secret)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


__all__ = ["SIGNATURE_HEADER", "SIGNATURE_VERSION", "sign", "verify"]

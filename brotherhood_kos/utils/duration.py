"""
Brotherhood KOS - Duration Utilities
====================================

Parsing and formatting of KOS entry durations.

Usage:
    from brotherhood_kos.utils.duration import parse_duration, resolve_expiry

    seconds = parse_duration("1w3d")       # 864000
    seconds = parse_duration("permanent")  # None

    expires_at, is_permanent = resolve_expiry("30d")
"""

import re
import time
from typing import Optional, Tuple

from brotherhood_kos.core.errors import ValidationError


# =============================================================================
# Time Constants
# =============================================================================

SECONDS_PER_YEAR = 31536000
SECONDS_PER_MONTH = 2592000  # 30 days
SECONDS_PER_WEEK = 604800
SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600
SECONDS_PER_MINUTE = 60

PERMANENT_KEYWORDS = frozenset({"permanent", "perm", "forever", "indefinite", "inf"})

TIME_MULTIPLIERS = {
    "y": SECONDS_PER_YEAR,
    "mo": SECONDS_PER_MONTH,
    "w": SECONDS_PER_WEEK,
    "d": SECONDS_PER_DAY,
    "h": SECONDS_PER_HOUR,
    "m": SECONDS_PER_MINUTE,
    "s": 1,
}

TIME_UNIT_ALIASES = {
    "year": "y", "years": "y", "yr": "y", "yrs": "y",
    "month": "mo", "months": "mo", "mon": "mo",
    "week": "w", "weeks": "w", "wk": "w", "wks": "w",
    "day": "d", "days": "d",
    "hour": "h", "hours": "h", "hr": "h", "hrs": "h",
    "minute": "m", "minutes": "m", "min": "m", "mins": "m",
    "second": "s", "seconds": "s", "sec": "s", "secs": "s",
}

INVALID_DURATION_MESSAGE = "Invalid duration format. Use formats like: 7d, 30d, 1y, 6mo"


# =============================================================================
# Duration Suggestions for Autocomplete
# =============================================================================

DURATION_SUGGESTIONS = [
    ("1 Day", "1d"),
    ("3 Days", "3d"),
    ("1 Week", "7d"),
    ("2 Weeks", "14d"),
    ("30 Days", "30d"),
    ("3 Months", "3mo"),
    ("6 Months", "6mo"),
    ("1 Year", "1y"),
    ("Permanent", "permanent"),
]


# =============================================================================
# Parsing Functions
# =============================================================================

def _normalize_duration_string(duration_str: str) -> str:
    """
    Normalize a duration string by converting full words to short forms.

    Examples:
        "1 day" -> "1d"
        "1 week 2 days" -> "1w2d"
        "1 monday" -> "1monday" (fails validation)
    """
    result = duration_str.lower().strip()
    result = re.sub(r"(\d+)\s+", r"\1", result)

    for word, short in sorted(TIME_UNIT_ALIASES.items(), key=lambda x: -len(x[0])):
        result = re.sub(rf"(?<=\d){word}\b|(?<!\w){word}\b", short, result)

    return result.replace(" ", "")


def parse_duration(duration_str: str) -> Optional[int]:
    """
    Parse a duration string into seconds.

    Supports:
        - "30m", "6h", "7d", "2w", "6mo", "1y"
        - Combined: "1w3d", "1d12h"
        - Full words: "7 days", "1 year"
        - Plain number: "30" -> 30 days
        - "permanent", "perm", "forever" -> None

    Returns:
        Duration in seconds, or None for permanent/invalid.

    Examples:
        >>> parse_duration("7d")
        604800
        >>> parse_duration("1w3d")
        864000
        >>> parse_duration("permanent")
        None
    """
    if not duration_str:
        return None

    duration_str = duration_str.lower().strip()

    if duration_str in PERMANENT_KEYWORDS:
        return None

    normalized = _normalize_duration_string(duration_str)

    pattern = r"(?:(\d+)y)?(?:(\d+)mo)?(?:(\d+)w)?(?:(\d+)d)?(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s)?"
    match = re.fullmatch(pattern, normalized)

    if match and any(match.groups()):
        years, months, weeks, days, hours, minutes, seconds = (
            int(group or 0) for group in match.groups()
        )
        total = (
            years * SECONDS_PER_YEAR +
            months * SECONDS_PER_MONTH +
            weeks * SECONDS_PER_WEEK +
            days * SECONDS_PER_DAY +
            hours * SECONDS_PER_HOUR +
            minutes * SECONDS_PER_MINUTE +
            seconds
        )
        return total if total > 0 else None

    # Bare number means days
    if re.fullmatch(r"\d+", normalized):
        value = int(normalized)
        return value * SECONDS_PER_DAY if value > 0 else None

    return None


def is_permanent_keyword(duration_str: Optional[str]) -> bool:
    """Check if a duration string explicitly asks for a permanent entry."""
    return bool(duration_str) and duration_str.lower().strip() in PERMANENT_KEYWORDS


def resolve_expiry(
    duration_str: Optional[str],
    now: Optional[float] = None,
) -> Tuple[Optional[float], bool]:
    """
    Turn an optional duration into (expires_at, is_permanent).

    A permanent keyword gives a permanent entry. An empty duration gives
    a non-permanent entry with no expiry.

    Raises:
        ValidationError: If a duration was given but cannot be parsed.
    """
    if not duration_str or not duration_str.strip():
        return None, False
    if is_permanent_keyword(duration_str):
        return None, True

    seconds = parse_duration(duration_str)
    if seconds is None:
        raise ValidationError(
            INVALID_DURATION_MESSAGE,
            code="VALIDATION_INVALID_DURATION",
            details={"duration": duration_str},
        )

    now = time.time() if now is None else now
    return now + seconds, False


# =============================================================================
# Formatting Functions
# =============================================================================

def format_duration(
    seconds: Optional[float],
    max_units: int = 3,
) -> str:
    """
    Format seconds into a human-readable duration string.

    Examples:
        >>> format_duration(None)
        "Permanent"
        >>> format_duration(90061)
        "1d 1h 1m"
        >>> format_duration(45)
        "< 1m"
    """
    if seconds is None:
        return "Permanent"

    seconds = int(seconds)
    if seconds <= 0:
        return "0m"
    if seconds < SECONDS_PER_MINUTE:
        return "< 1m"

    parts = []
    for suffix, size in (
        ("y", SECONDS_PER_YEAR),
        ("mo", SECONDS_PER_MONTH),
        ("w", SECONDS_PER_WEEK),
        ("d", SECONDS_PER_DAY),
        ("h", SECONDS_PER_HOUR),
        ("m", SECONDS_PER_MINUTE),
    ):
        if seconds >= size and len(parts) < max_units:
            value, seconds = divmod(seconds, size)
            parts.append(f"{value}{suffix}")

    return " ".join(parts) if parts else "< 1m"


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "SECONDS_PER_YEAR",
    "SECONDS_PER_MONTH",
    "SECONDS_PER_WEEK",
    "SECONDS_PER_DAY",
    "SECONDS_PER_HOUR",
    "SECONDS_PER_MINUTE",
    "PERMANENT_KEYWORDS",
    "DURATION_SUGGESTIONS",
    "INVALID_DURATION_MESSAGE",
    "parse_duration",
    "is_permanent_keyword",
    "resolve_expiry",
    "format_duration",
]

"""
Brotherhood KOS - API Configuration
===================================

Centralized configuration for the FastAPI service.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import os

from brotherhood_kos.core.constants import API_PORT, MAX_PAGE_SIZE


@dataclass(frozen=True)
class APIConfig:
    """API configuration settings."""

    # Server
    host: str = "0.0.0.0"
    port: int = API_PORT
    debug: bool = False

    # CORS
    cors_origins: Tuple[str, ...] = ("*",)

    # Rate Limiting
    rate_limit_requests: int = 60
    rate_limit_window: int = 60  # seconds
    login_rate_limit_requests: int = 5
    trust_proxy: bool = False  # read X-Forwarded-For / X-Real-IP

    # Pagination
    max_page_size: int = MAX_PAGE_SIZE


def _parse_origins(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ("*",)
    origins = tuple(o.strip() for o in value.split(",") if o.strip())
    return origins or ("*",)


def load_api_config() -> APIConfig:
    """Load API configuration from environment."""
    return APIConfig(
        host=os.getenv("KOS_API_HOST", "0.0.0.0"),
        port=int(os.getenv("KOS_API_PORT", str(API_PORT))),
        debug=os.getenv("KOS_API_DEBUG", "false").lower() == "true",
        cors_origins=_parse_origins(os.getenv("KOS_API_CORS_ORIGINS")),
        trust_proxy=os.getenv("KOS_API_TRUST_PROXY", "false").lower() == "true",
    )


# Singleton instance
_config: Optional[APIConfig] = None


def get_api_config() -> APIConfig:
    """Get the API configuration singleton."""
    global _config
    if _config is None:
        _config = load_api_config()
    return _config


__all__ = ["APIConfig", "get_api_config", "load_api_config"]

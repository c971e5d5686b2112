"""
Brotherhood KOS - FastAPI Application
=====================================

FastAPI application factory and configuration.
"""

from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from brotherhood_kos.api.config import get_api_config
from brotherhood_kos.api.dependencies import get_bot, set_bot
from brotherhood_kos.api.errors import APIError, ErrorCode, error_response, from_domain_error
from brotherhood_kos.api.middleware.rate_limit import RateLimitMiddleware, get_rate_limiter
from brotherhood_kos.api.routers import (
    auth_router,
    health_router,
    history_router,
    kos_router,
    logs_router,
    stats_router,
)
from brotherhood_kos.api.routers.health import build_health
from brotherhood_kos.core.errors import KosError
from brotherhood_kos.core.logger import logger
from brotherhood_kos.services.expiry_scheduler import ExpiryScheduler
from brotherhood_kos.services.roblox import get_roblox_client
from brotherhood_kos.services.telegram import get_notifier
from brotherhood_kos.utils.async_utils import gather_with_logging


API_VERSION = "1.0.0"


# =============================================================================
# OpenAPI Documentation
# =============================================================================

API_DESCRIPTION = """
## Brotherhood KOS API

REST API over the KOS list of flagged Roblox accounts.

### Authentication

All endpoints except `/health` and `/api/health` require a bearer session.

**Getting a Token:**
1. Run `/console` in Discord to receive an 8-character auth code
2. `POST /api/auth/login` with `{"code": "<code>"}`
3. Use the returned token in the `Authorization` header

**Token Format:**
```
Authorization: Bearer <token>
```

### Rate Limits

| Endpoint Type | Limit | Window |
|--------------|-------|--------|
| Default | 60 requests | 1 minute |
| `/api/auth/login` | 5 requests | 1 minute |

Limits apply per client address. `X-Forwarded-For` and `X-Real-IP` are only
read when `KOS_API_TRUST_PROXY=true`.

Rate limit headers are included in all responses:
- `X-RateLimit-Limit`: Maximum requests allowed
- `X-RateLimit-Remaining`: Requests remaining
- `Retry-After`: Seconds to wait (on 429)

### Error Responses

All errors follow a consistent format:
```json
{
    "success": false,
    "error_code": "KOS_ENTRY_NOT_FOUND",
    "message": "User is not on the KOS list",
    "details": null
}
```
"""

OPENAPI_TAGS = [
    {
        "name": "Health",
        "description": "Health check endpoints",
    },
    {
        "name": "Authentication",
        "description": "Auth code login and logout",
    },
    {
        "name": "KOS",
        "description": "KOS list management",
    },
    {
        "name": "History",
        "description": "Audit trail of entry changes",
    },
    {
        "name": "Stats",
        "description": "Entry counts and system status",
    },
    {
        "name": "Logs",
        "description": "Operational log rows",
    },
]


# =============================================================================
# Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Without a bot (API-only mode) the API owns the expiry scheduler
    and the outbound HTTP sessions.
    """
    api_only = get_bot() is None
    scheduler: Optional[ExpiryScheduler] = None

    logger.tree("API Starting", [
        ("Version", API_VERSION),
        ("Mode", "API only" if api_only else "With bot"),
    ], emoji="🚀")

    if api_only:
        scheduler = ExpiryScheduler()
        await scheduler.start()

    yield

    logger.tree("API Stopping", [], emoji="🛑")

    if scheduler is not None:
        await scheduler.stop()
        await gather_with_logging(
            ("Roblox Client", get_roblox_client().close()),
            ("Telegram Notifier", get_notifier().close()),
            context="API Shutdown",
        )


# =============================================================================
# Application Factory
# =============================================================================

def create_app(bot: Optional[Any] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        bot: Optional Discord bot instance for dependency injection

    Returns:
        Configured FastAPI application
    """
    config = get_api_config()

    app = FastAPI(
        title="Brotherhood KOS API",
        description=API_DESCRIPTION,
        version=API_VERSION,
        docs_url="/api/docs" if config.debug else None,
        redoc_url="/api/redoc" if config.debug else None,
        openapi_url="/api/openapi.json" if config.debug else None,
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )

    if bot:
        set_bot(bot)

    # ==========================================================================
    # Middleware (order matters - last added = first executed)
    # ==========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(
        RateLimitMiddleware,
        rate_limiter=get_rate_limiter(),
        trust_proxy=config.trust_proxy,
    )

    # ==========================================================================
    # Exception Handlers
    # ==========================================================================

    @app.exception_handler(KosError)
    async def domain_exception_handler(request: Request, exc: KosError):
        """Map domain errors to status codes and error codes."""
        api_error = from_domain_error(exc)
        if api_error.status_code >= 500:
            logger.warning("Unmapped Domain Error", [
                ("Path", str(request.url.path)[:50]),
                ("Error", exc.message[:100]),
            ])
        return error_response(
            api_error.error_code,
            status_code=api_error.status_code,
            message=api_error.error_message,
            details=api_error.error_details,
            headers=api_error.headers,
        )

    @app.exception_handler(APIError)
    async def api_exception_handler(request: Request, exc: APIError):
        """Return the error envelope instead of {"detail": ...}."""
        return error_response(
            exc.error_code,
            status_code=exc.status_code,
            message=exc.error_message,
            details=exc.error_details,
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Unknown routes and methods use the same envelope."""
        code = ErrorCode.NOT_FOUND if exc.status_code == 404 else ErrorCode.VALIDATION_ERROR
        return error_response(
            code,
            status_code=exc.status_code,
            message=str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Pydantic body/query validation failures."""
        return error_response(
            ErrorCode.VALIDATION_FAILED,
            details={
                "errors": [
                    {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions with consistent error format."""
        logger.error("Unhandled API Error", [
            ("Path", str(request.url.path)[:50]),
            ("Method", request.method),
            ("Error Type", type(exc).__name__),
            ("Error", str(exc)[:100]),
        ])

        return error_response(
            ErrorCode.SERVER_ERROR,
            details={"path": str(request.url.path)} if config.debug else None,
        )

    # ==========================================================================
    # Routers
    # ==========================================================================

    app.include_router(health_router, prefix="/api")
    app.include_router(auth_router, prefix="/api")
    app.include_router(kos_router, prefix="/api")
    app.include_router(history_router, prefix="/api")
    app.include_router(stats_router, prefix="/api")
    app.include_router(logs_router, prefix="/api")

    # Root health check (for load balancers)
    @app.get("/health", tags=["Health"])
    async def root_health():
        return {"success": True, "data": build_health().model_dump(mode="json")}

    return app


# =============================================================================
# Module-level app for uvicorn
# =============================================================================

# uvicorn brotherhood_kos.api.app:app
app = create_app()


__all__ = ["create_app", "app", "API_VERSION"]

"""Instagram Feed Sync - FastAPI Entry Point."""
import sys

# asyncpg is incompatible with Windows ProactorEventLoop (default on Windows).
# Must be set before any asyncio usage.
if sys.platform == "win32":
    import asyncio
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import httpx
import structlog
from fastapi import FastAPI

from instafeed.config import Settings, get_settings
from instafeed.database import Database
from instafeed.logging_config import configure_logging
from instafeed.middleware.cors import setup_cors, setup_public_cors
from instafeed.middleware.error_handler import setup_error_handlers
from instafeed.middleware.logging_middleware import LoggingMiddleware
from instafeed.middleware.rate_limiter import RateLimitMiddleware
from instafeed.api import oauth as oauth_router
from instafeed.api import tracking as tracking_router
from instafeed.api import webhooks as webhooks_router
from instafeed.api.v1 import analytics as analytics_router
from instafeed.api.v1 import instagram as instagram_router
from instafeed.api.v1 import posts as posts_router
from instafeed.api.v1 import settings as settings_router
from instafeed.api.v1 import widgets as widgets_router
from instafeed.utils.locks import TenantLockRegistry
from instafeed.utils.redis_client import close_redis, create_redis

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    logger.info("startup", env=settings.APP_ENV)
    # Sentry init
    if settings.SENTRY_DSN:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration

        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            integrations=[FastApiIntegration()],
            traces_sample_rate=0.1 if settings.APP_ENV == "production" else 1.0,
            environment=settings.APP_ENV,
        )

    # One database handle, HTTP client and Redis connection per process
    app.state.database = Database.from_settings(settings)
    app.state.http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
    app.state.redis = await create_redis(settings)
    app.state.locks = TenantLockRegistry(app.state.redis, timeout=settings.SYNC_LOCK_TIMEOUT_SECONDS)

    yield

    # Shutdown: close HTTP client, close Redis, dispose DB engine
    await app.state.http_client.aclose()
    await close_redis(app.state.redis)
    await app.state.database.dispose()
    logger.info("shutdown")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    application = FastAPI(
        title="Instagram Feed Sync API",
        description="Instagram feed integration and synchronization service for Shopify storefronts",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    application.state.settings = settings

    # Middleware (order matters: last added = first executed)
    setup_cors(application, settings)
    setup_error_handlers(application)
    application.add_middleware(RateLimitMiddleware)
    # Wraps the rate limiter so 429s on tracking routes still carry CORS headers
    setup_public_cors(application)
    application.add_middleware(LoggingMiddleware)

    # API Routers
    application.include_router(instagram_router.router, prefix="/api/v1/instagram", tags=["Instagram"])
    application.include_router(posts_router.router, prefix="/api/v1/posts", tags=["Posts"])
    application.include_router(settings_router.router, prefix="/api/v1/settings", tags=["Settings"])
    application.include_router(widgets_router.router, prefix="/api/v1/widgets", tags=["Widgets"])
    application.include_router(analytics_router.router, prefix="/api/v1/analytics", tags=["Analytics"])
    application.include_router(oauth_router.router, tags=["OAuth"])
    application.include_router(tracking_router.router, tags=["Tracking"])
    application.include_router(webhooks_router.router, prefix="/webhooks", tags=["Webhooks"])

    # Health check
    @application.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()

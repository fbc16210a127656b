"""Feed sync tasks, routed to the feeds queue.

Handles periodic feed republishing and long-lived token refresh.
"""
import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

import httpx

from instafeed.config import Settings, get_settings
from instafeed.database import Database
from instafeed.exceptions import FeedError
from instafeed.integrations.instagram.oauth import TokenExchanger
from instafeed.repositories import account_repository
from instafeed.services.sync_service import FeedSyncService
from instafeed.tasks.celery_app import celery_app
from instafeed.utils.encryption import TokenEncryptor
from instafeed.utils.helpers import utc_now
from instafeed.utils.locks import TenantLockRegistry
from instafeed.utils.redis_client import close_redis, create_redis

logger = logging.getLogger(__name__)

# Long-lived tokens last 60 days; refresh those expiring within this window
REFRESH_WINDOW = timedelta(days=10)


@asynccontextmanager
async def worker_resources(settings: Settings) -> AsyncIterator[tuple[Database, httpx.AsyncClient, TenantLockRegistry]]:
    """Per-task database handle, HTTP client and lock registry."""
    database = Database.from_settings(settings)
    http = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
    redis = await create_redis(settings)
    try:
        yield database, http, TenantLockRegistry(redis, timeout=settings.SYNC_LOCK_TIMEOUT_SECONDS)
    finally:
        await http.aclose()
        await close_redis(redis)
        await database.dispose()


async def sync_shop(
    database: Database,
    http: httpx.AsyncClient,
    settings: Settings,
    locks: TenantLockRegistry,
    shop: str,
) -> dict:
    async with database.session() as db:
        result = await FeedSyncService(db, http, settings, locks).sync(shop)
    return result.model_dump()


async def list_connected_shops(database: Database) -> list[str]:
    async with database.session() as db:
        return await account_repository.list_shops(db)


async def refresh_tokens(database: Database, http: httpx.AsyncClient, settings: Settings) -> int:
    """Refresh long-lived tokens close to expiry; returns how many were renewed.

    Degraded (short-lived) tokens cannot be refreshed and are left until the
    merchant reconnects.
    """
    encryptor = TokenEncryptor.from_settings(settings)
    exchanger = TokenExchanger(http, settings)
    threshold = utc_now() + REFRESH_WINDOW
    refreshed = 0

    async with database.session() as db:
        for account in await account_repository.list_all(db):
            if account.token_degraded:
                continue
            expires_at = account.token_expires_at
            if expires_at is not None and expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=threshold.tzinfo)
            if expires_at is not None and expires_at > threshold:
                continue

            result = await exchanger.refresh(encryptor.decrypt(account.access_token, account.shop))
            if result.degraded:
                logger.warning("Token refresh failed for %s, keeping current token", account.shop)
                continue
            account.access_token = encryptor.encrypt(result.credential, account.shop)
            if result.expires_in:
                account.token_expires_at = utc_now() + timedelta(seconds=result.expires_in)
            refreshed += 1

    logger.info("Refreshed %d Instagram tokens", refreshed)
    return refreshed


@celery_app.task(
    name="instafeed.tasks.sync_tasks.sync_shop_feed",
    bind=True,
    max_retries=3,
    default_retry_delay=60,
)
def sync_shop_feed(self, shop: str):
    """Fetch, merge and publish one shop's feed.

    Provider and storefront failures are retried; the previously published
    feed stays live meanwhile.
    """
    settings = get_settings()

    async def _run() -> dict:
        async with worker_resources(settings) as (database, http, locks):
            return await sync_shop(database, http, settings, locks, shop)

    try:
        return asyncio.run(_run())
    except (FeedError, TimeoutError) as exc:
        logger.warning("Feed sync for %s failed: %s", shop, exc)
        raise self.retry(exc=exc)


@celery_app.task(name="instafeed.tasks.sync_tasks.sync_all_feeds")
def sync_all_feeds():
    """Periodic task (every 1 hour): queue a sync for every connected shop."""
    settings = get_settings()

    async def _list() -> list[str]:
        database = Database.from_settings(settings)
        try:
            return await list_connected_shops(database)
        finally:
            await database.dispose()

    shops = asyncio.run(_list())
    for shop in shops:
        sync_shop_feed.delay(shop)
    logger.info("Queued feed sync for %d shops", len(shops))
    return {"queued": len(shops)}


@celery_app.task(name="instafeed.tasks.sync_tasks.refresh_instagram_tokens")
def refresh_instagram_tokens():
    """Periodic task (daily): extend long-lived Instagram tokens before they expire."""
    settings = get_settings()

    async def _refresh() -> int:
        async with worker_resources(settings) as (database, http, _locks):
            return await refresh_tokens(database, http, settings)

    return {"refreshed": asyncio.run(_refresh())}

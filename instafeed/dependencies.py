"""FastAPI dependency injection utilities."""
from collections.abc import AsyncGenerator

import httpx
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.config import Settings
from instafeed.database import Database
from instafeed.exceptions import Unauthorized
from instafeed.integrations.instagram.client import InstagramGraphClient
from instafeed.integrations.shopify.admin import ShopifyAdminClient
from instafeed.integrations.shopify.publisher import FeedPublisher
from instafeed.integrations.shopify.verification import decode_session_token
from instafeed.services.premium import is_premium_shop
from instafeed.services.sync_service import FeedSyncService
from instafeed.utils.locks import TenantLockRegistry

security = HTTPBearer()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_locks(request: Request) -> TenantLockRegistry:
    return request.app.state.locks


async def get_db(database: Database = Depends(get_database)) -> AsyncGenerator[AsyncSession, None]:
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_graph_client(
    http: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> InstagramGraphClient:
    return InstagramGraphClient(http, settings)


def get_publisher(
    http: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> FeedPublisher:
    return FeedPublisher(ShopifyAdminClient(http, settings))


def get_sync_service(
    db: AsyncSession = Depends(get_db),
    http: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
    locks: TenantLockRegistry = Depends(get_locks),
) -> FeedSyncService:
    return FeedSyncService(db, http, settings, locks)


async def get_current_shop(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    """Extract the shop domain from the App Bridge session token."""
    settings.require("SHOPIFY_API_KEY", "SHOPIFY_API_SECRET")
    try:
        return decode_session_token(
            credentials.credentials,
            api_key=settings.SHOPIFY_API_KEY,
            api_secret=settings.SHOPIFY_API_SECRET,
        )
    except Unauthorized as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)


def require_premium():
    """Plan gate for post curation features."""
    async def dependency(
        shop: str = Depends(get_current_shop),
        settings: Settings = Depends(get_settings),
    ) -> str:
        if not is_premium_shop(settings, shop):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Premium plan required")
        return shop
    return Depends(dependency)

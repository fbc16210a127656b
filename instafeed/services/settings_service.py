"""Feed display settings: read, partial update and publish."""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.config import Settings
from instafeed.integrations.shopify.publisher import FeedPublisher
from instafeed.repositories import settings_repository
from instafeed.schemas.settings import (
    SETTINGS_VERSION,
    FeedDisplaySettings,
    FeedSettingsUpdate,
    normalize_feed_settings,
)
from instafeed.services.tenant_service import admin_token

logger = logging.getLogger(__name__)


async def get_settings(db: AsyncSession, shop: str) -> FeedDisplaySettings:
    row = await settings_repository.get_by_shop(db, shop)
    return normalize_feed_settings(row.config if row else None)


async def update_settings(db: AsyncSession, shop: str, update: FeedSettingsUpdate) -> FeedDisplaySettings:
    """Merge the fields present in ``update`` over the stored settings and save."""
    current = await get_settings(db, shop)
    merged = normalize_feed_settings(
        {**current.model_dump(), **update.model_dump(exclude_unset=True, exclude_none=True)}
    )
    await settings_repository.upsert(db, shop, merged.model_dump(mode="json"), SETTINGS_VERSION)
    return merged


async def publish_settings(
    db: AsyncSession,
    settings: Settings,
    publisher: FeedPublisher,
    shop: str,
    display: FeedDisplaySettings,
) -> None:
    token = await admin_token(db, settings, shop)
    await publisher.publish_settings(shop, token, display)

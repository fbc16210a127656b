"""Feed display settings API - 2 endpoints."""
import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.config import Settings
from instafeed.dependencies import get_current_shop, get_db, get_publisher, get_settings
from instafeed.integrations.shopify.publisher import FeedPublisher
from instafeed.schemas.common import APIResponse
from instafeed.schemas.settings import FeedSettingsUpdate
from instafeed.services import settings_service

logger = structlog.get_logger()

router = APIRouter()


# GET /settings
@router.get("", response_model=APIResponse)
async def get_feed_settings(
    shop: str = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db),
):
    display = await settings_service.get_settings(db, shop)
    return APIResponse(status="success", data=display.model_dump(mode="json", by_alias=True))


# PUT /settings
@router.put("", response_model=APIResponse)
async def update_feed_settings(
    body: FeedSettingsUpdate,
    shop: str = Depends(get_current_shop),
    settings: Settings = Depends(get_settings),
    publisher: FeedPublisher = Depends(get_publisher),
    db: AsyncSession = Depends(get_db),
):
    display = await settings_service.update_settings(db, shop, body)
    await db.commit()
    await settings_service.publish_settings(db, settings, publisher, shop, display)
    logger.info("feed_settings_updated", shop=shop, fields=sorted(body.model_fields_set))
    return APIResponse(status="success", data=display.model_dump(mode="json", by_alias=True))

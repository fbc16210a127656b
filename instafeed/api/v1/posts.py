"""Post curation API - 4 endpoints."""
import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.config import Settings
from instafeed.dependencies import (
    get_current_shop,
    get_db,
    get_graph_client,
    get_settings,
    get_sync_service,
    require_premium,
)
from instafeed.integrations.instagram.client import InstagramGraphClient
from instafeed.models.post_meta import PostMeta
from instafeed.schemas.common import APIResponse
from instafeed.schemas.feed import PostMetaResponse, ProductsUpdate
from instafeed.services import post_service
from instafeed.services.sync_service import FeedSyncService

logger = structlog.get_logger()

router = APIRouter()


async def _commit_and_sync(db: AsyncSession, service: FeedSyncService, meta: PostMeta) -> APIResponse:
    """Persist the metadata change first so a failed publish cannot roll it back."""
    await db.commit()
    result = await service.sync(meta.shop)
    data = PostMetaResponse.model_validate(meta).model_dump()
    data["sync"] = result.model_dump()
    return APIResponse(status="success", data=data)


# GET /posts
@router.get("", response_model=APIResponse)
async def list_posts(
    limit: int = Query(post_service.MANAGEMENT_PAGE_LIMIT, ge=1, le=100),
    shop: str = Depends(get_current_shop),
    settings: Settings = Depends(get_settings),
    graph: InstagramGraphClient = Depends(get_graph_client),
    db: AsyncSession = Depends(get_db),
):
    items = await post_service.list_posts(db, graph, settings, shop, limit)
    return APIResponse(
        status="success",
        data=[item.model_dump(mode="json", by_alias=True) for item in items],
    )


# POST /posts/{media_id}/pin (premium)
@router.post("/{media_id}/pin", response_model=APIResponse)
async def toggle_pin(
    media_id: str,
    shop: str = require_premium(),
    db: AsyncSession = Depends(get_db),
    service: FeedSyncService = Depends(get_sync_service),
):
    meta = await post_service.toggle_pin(db, shop, media_id)
    logger.info("post_pin_toggled", shop=shop, media_id=media_id, pinned=meta.is_pinned)
    return await _commit_and_sync(db, service, meta)


# POST /posts/{media_id}/hide (premium)
@router.post("/{media_id}/hide", response_model=APIResponse)
async def toggle_hide(
    media_id: str,
    shop: str = require_premium(),
    db: AsyncSession = Depends(get_db),
    service: FeedSyncService = Depends(get_sync_service),
):
    meta = await post_service.toggle_hide(db, shop, media_id)
    logger.info("post_hide_toggled", shop=shop, media_id=media_id, hidden=meta.is_hidden)
    return await _commit_and_sync(db, service, meta)


# PUT /posts/{media_id}/products (premium)
@router.put("/{media_id}/products", response_model=APIResponse)
async def update_products(
    media_id: str,
    body: ProductsUpdate,
    shop: str = require_premium(),
    db: AsyncSession = Depends(get_db),
    service: FeedSyncService = Depends(get_sync_service),
):
    meta = await post_service.update_products(db, shop, media_id, body.products)
    logger.info("post_products_updated", shop=shop, media_id=media_id, count=len(body.products))
    return await _commit_and_sync(db, service, meta)

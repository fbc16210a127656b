"""Widgets API - 6 endpoints."""
import uuid

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.config import Settings
from instafeed.dependencies import get_current_shop, get_db, get_publisher, get_settings
from instafeed.integrations.shopify.publisher import FeedPublisher
from instafeed.repositories import widget_repository
from instafeed.schemas.common import APIResponse, PaginationMeta
from instafeed.schemas.widget import WidgetCreate, WidgetUpdate
from instafeed.services import widget_service

logger = structlog.get_logger()

router = APIRouter()


# GET /widgets
@router.get("", response_model=APIResponse)
async def list_widgets(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    shop: str = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db),
):
    skip = (page - 1) * per_page
    widgets, total = await widget_repository.list_widgets(db, shop, skip=skip, limit=per_page)
    return APIResponse(
        status="success",
        data=[widget_service.to_response(w).model_dump(mode="json", by_alias=True) for w in widgets],
        pagination=PaginationMeta(total=total, page=page, per_page=per_page, has_next=skip + per_page < total),
    )


# POST /widgets
@router.post("", response_model=APIResponse, status_code=201)
async def create_widget(
    body: WidgetCreate,
    shop: str = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db),
):
    widget = await widget_service.create_widget(db, shop, body)
    return APIResponse(status="success", data=widget_service.to_response(widget).model_dump(mode="json", by_alias=True))


# GET /widgets/{id}
@router.get("/{widget_id}", response_model=APIResponse)
async def get_widget(
    widget_id: uuid.UUID,
    shop: str = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db),
):
    widget = await widget_service.get_widget(db, shop, widget_id)
    return APIResponse(status="success", data=widget_service.to_response(widget).model_dump(mode="json", by_alias=True))


# PUT /widgets/{id}
@router.put("/{widget_id}", response_model=APIResponse)
async def update_widget(
    widget_id: uuid.UUID,
    body: WidgetUpdate,
    shop: str = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db),
):
    widget = await widget_service.update_widget(db, shop, widget_id, body)
    return APIResponse(status="success", data=widget_service.to_response(widget).model_dump(mode="json", by_alias=True))


# DELETE /widgets/{id}
@router.delete("/{widget_id}", response_model=APIResponse)
async def delete_widget(
    widget_id: uuid.UUID,
    shop: str = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db),
):
    await widget_service.delete_widget(db, shop, widget_id)
    return APIResponse(status="success", message="Widget deleted")


# POST /widgets/{id}/publish
@router.post("/{widget_id}/publish", response_model=APIResponse)
async def publish_widget(
    widget_id: uuid.UUID,
    shop: str = Depends(get_current_shop),
    settings: Settings = Depends(get_settings),
    publisher: FeedPublisher = Depends(get_publisher),
    db: AsyncSession = Depends(get_db),
):
    widget = await widget_service.publish_widget(db, settings, publisher, shop, widget_id)
    logger.info("widget_published", shop=shop, widget_id=str(widget_id))
    return APIResponse(status="success", data=widget_service.to_response(widget).model_dump(mode="json", by_alias=True))

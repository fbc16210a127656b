"""Widget business logic."""
import uuid

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.config import Settings
from instafeed.integrations.shopify.publisher import FeedPublisher
from instafeed.models.widget import Widget, WidgetStatus
from instafeed.repositories import widget_repository
from instafeed.schemas.settings import normalize_widget_config
from instafeed.schemas.widget import WidgetCreate, WidgetResponse, WidgetUpdate
from instafeed.services.tenant_service import admin_token


def to_response(widget: Widget) -> WidgetResponse:
    return WidgetResponse(
        id=widget.id,
        title=widget.title,
        status=widget.status,
        configuration=normalize_widget_config(widget.configuration),
        created_at=widget.created_at,
        updated_at=widget.updated_at,
    )


async def get_widget(db: AsyncSession, shop: str, widget_id: uuid.UUID) -> Widget:
    widget = await widget_repository.get(db, shop, widget_id)
    if not widget:
        raise HTTPException(status_code=404, detail="Widget not found")
    return widget


async def create_widget(db: AsyncSession, shop: str, data: WidgetCreate) -> Widget:
    widget = Widget(
        shop=shop,
        title=data.title,
        status=WidgetStatus.DRAFT,
        configuration=normalize_widget_config(None).model_dump(mode="json"),
    )
    return await widget_repository.create(db, widget)


async def update_widget(db: AsyncSession, shop: str, widget_id: uuid.UUID, data: WidgetUpdate) -> Widget:
    widget = await get_widget(db, shop, widget_id)
    if data.title is not None:
        widget.title = data.title
    if data.configuration is not None:
        widget.configuration = data.configuration.model_dump(mode="json")
    if data.status is not None:
        widget.status = data.status
    return await widget_repository.update(db, widget)


async def delete_widget(db: AsyncSession, shop: str, widget_id: uuid.UUID) -> None:
    widget = await get_widget(db, shop, widget_id)
    await widget_repository.remove(db, widget)


async def publish_widget(
    db: AsyncSession,
    settings: Settings,
    publisher: FeedPublisher,
    shop: str,
    widget_id: uuid.UUID,
) -> Widget:
    """Write the widget's configuration to the storefront and mark it active."""
    widget = await get_widget(db, shop, widget_id)
    token = await admin_token(db, settings, shop)
    await publisher.publish_widget(shop, token, normalize_widget_config(widget.configuration))
    widget.status = WidgetStatus.ACTIVE
    return await widget_repository.update(db, widget)

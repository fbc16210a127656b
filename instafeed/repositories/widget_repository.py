"""Widget data access layer."""
import uuid as _uuid

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.models.widget import Widget


async def get(db: AsyncSession, shop: str, widget_id: _uuid.UUID) -> Widget | None:
    return (
        await db.execute(select(Widget).where(Widget.shop == shop, Widget.id == widget_id))
    ).scalar_one_or_none()


async def list_widgets(db: AsyncSession, shop: str, *, skip: int = 0, limit: int = 50) -> tuple[list[Widget], int]:
    total = (
        await db.execute(select(func.count()).select_from(Widget).where(Widget.shop == shop))
    ).scalar() or 0
    rows = (
        await db.execute(
            select(Widget).where(Widget.shop == shop).order_by(Widget.created_at.desc()).offset(skip).limit(limit)
        )
    ).scalars().all()
    return list(rows), total


async def create(db: AsyncSession, widget: Widget) -> Widget:
    db.add(widget)
    await db.flush()
    await db.refresh(widget)
    return widget


async def update(db: AsyncSession, widget: Widget) -> Widget:
    await db.flush()
    await db.refresh(widget)
    return widget


async def remove(db: AsyncSession, widget: Widget) -> None:
    await db.delete(widget)
    await db.flush()


async def delete_for_shop(db: AsyncSession, shop: str) -> int:
    result = await db.execute(delete(Widget).where(Widget.shop == shop))
    return result.rowcount or 0

"""Feed display settings data access layer."""
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.models.feed_settings import FeedSettings


async def get_by_shop(db: AsyncSession, shop: str) -> FeedSettings | None:
    return (await db.execute(select(FeedSettings).where(FeedSettings.shop == shop))).scalar_one_or_none()


async def upsert(db: AsyncSession, shop: str, config: dict, version: int) -> FeedSettings:
    row = await get_by_shop(db, shop)
    if row is None:
        row = FeedSettings(shop=shop, config=config, version=version)
        db.add(row)
    else:
        row.config = config
        row.version = version
    await db.flush()
    return row


async def delete_for_shop(db: AsyncSession, shop: str) -> int:
    result = await db.execute(delete(FeedSettings).where(FeedSettings.shop == shop))
    return result.rowcount or 0

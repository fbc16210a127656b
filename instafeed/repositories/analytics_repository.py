"""Analytics counter data access layer."""
import uuid as _uuid
from datetime import date

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.models.analytics import DailyCounter, PostCounter


def _insert_for(db: AsyncSession):
    """Dialect ``insert`` construct that supports ON CONFLICT DO UPDATE."""
    if db.bind.dialect.name == "sqlite":
        return sqlite.insert
    return postgresql.insert


def _increments(column: str) -> tuple[int, int]:
    return (1, 0) if column == "views" else (0, 1)


async def increment_daily(db: AsyncSession, shop: str, day: date, column: str) -> None:
    """``views``/``clicks`` + 1 for (shop, day) as a single upsert statement."""
    table = DailyCounter.__table__
    views, clicks = _increments(column)
    stmt = _insert_for(db)(table).values(
        id=_uuid.uuid4(), shop=shop, date=day, views=views, clicks=clicks,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.shop, table.c.date],
        set_={column: table.c[column] + 1, "updated_at": func.now()},
    )
    await db.execute(stmt)


async def increment_post(
    db: AsyncSession,
    shop: str,
    media_id: str,
    column: str,
    *,
    media_url: str | None = None,
    permalink: str | None = None,
) -> None:
    """Per-post mirror of ``increment_daily``; cached fields change only when given."""
    table = PostCounter.__table__
    views, clicks = _increments(column)
    stmt = _insert_for(db)(table).values(
        id=_uuid.uuid4(), shop=shop, media_id=media_id,
        media_url=media_url, permalink=permalink, views=views, clicks=clicks,
    )
    updates = {column: table.c[column] + 1, "updated_at": func.now()}
    if media_url:
        updates["media_url"] = media_url
    if permalink:
        updates["permalink"] = permalink
    stmt = stmt.on_conflict_do_update(index_elements=[table.c.shop, table.c.media_id], set_=updates)
    await db.execute(stmt)


async def daily_since(db: AsyncSession, shop: str, start: date) -> list[DailyCounter]:
    rows = (
        await db.execute(
            select(DailyCounter)
            .where(DailyCounter.shop == shop, DailyCounter.date >= start)
            .order_by(DailyCounter.date.asc())
        )
    ).scalars().all()
    return list(rows)


async def top_posts(db: AsyncSession, shop: str, limit: int = 5) -> list[PostCounter]:
    rows = (
        await db.execute(
            select(PostCounter)
            .where(PostCounter.shop == shop)
            .order_by(PostCounter.clicks.desc(), PostCounter.views.desc())
            .limit(limit)
        )
    ).scalars().all()
    return list(rows)


async def get_post(db: AsyncSession, shop: str, media_id: str) -> PostCounter | None:
    return (
        await db.execute(
            select(PostCounter).where(PostCounter.shop == shop, PostCounter.media_id == media_id)
        )
    ).scalar_one_or_none()


async def delete_for_shop(db: AsyncSession, shop: str) -> int:
    daily = await db.execute(delete(DailyCounter).where(DailyCounter.shop == shop))
    posts = await db.execute(delete(PostCounter).where(PostCounter.shop == shop))
    return (daily.rowcount or 0) + (posts.rowcount or 0)

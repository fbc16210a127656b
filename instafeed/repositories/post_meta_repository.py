"""Per-post metadata data access layer."""
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.models.post_meta import PostMeta


async def get(db: AsyncSession, shop: str, media_id: str) -> PostMeta | None:
    return (
        await db.execute(
            select(PostMeta).where(PostMeta.shop == shop, PostMeta.media_id == media_id)
        )
    ).scalar_one_or_none()


async def get_or_create(db: AsyncSession, shop: str, media_id: str) -> PostMeta:
    """Rows are created lazily on the first mutation of a post."""
    meta = await get(db, shop, media_id)
    if meta is None:
        meta = PostMeta(shop=shop, media_id=media_id, is_pinned=False, is_hidden=False, products=[])
        db.add(meta)
        await db.flush()
    return meta


async def map_for_shop(db: AsyncSession, shop: str) -> dict[str, PostMeta]:
    rows = (await db.execute(select(PostMeta).where(PostMeta.shop == shop))).scalars().all()
    return {row.media_id: row for row in rows}


async def delete_for_shop(db: AsyncSession, shop: str) -> int:
    result = await db.execute(delete(PostMeta).where(PostMeta.shop == shop))
    return result.rowcount or 0

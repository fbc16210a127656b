"""Instagram account data access layer."""
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.models.account import InstagramAccount


async def get_by_shop(db: AsyncSession, shop: str) -> InstagramAccount | None:
    return (
        await db.execute(select(InstagramAccount).where(InstagramAccount.shop == shop))
    ).scalar_one_or_none()


async def list_all(db: AsyncSession) -> list[InstagramAccount]:
    rows = (await db.execute(select(InstagramAccount).order_by(InstagramAccount.shop))).scalars().all()
    return list(rows)


async def list_shops(db: AsyncSession) -> list[str]:
    rows = (await db.execute(select(InstagramAccount.shop).order_by(InstagramAccount.shop))).scalars().all()
    return list(rows)


async def save(db: AsyncSession, account: InstagramAccount) -> InstagramAccount:
    db.add(account)
    await db.flush()
    return account


async def delete_by_shop(db: AsyncSession, shop: str) -> int:
    result = await db.execute(delete(InstagramAccount).where(InstagramAccount.shop == shop))
    return result.rowcount or 0

"""Shop installation data access layer."""
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.models.installation import ShopInstallation


async def get_by_shop(db: AsyncSession, shop: str) -> ShopInstallation | None:
    return (
        await db.execute(select(ShopInstallation).where(ShopInstallation.shop == shop))
    ).scalar_one_or_none()


async def upsert(db: AsyncSession, shop: str, encrypted_token: str, scope: str = "") -> ShopInstallation:
    installation = await get_by_shop(db, shop)
    if installation is None:
        installation = ShopInstallation(shop=shop, access_token=encrypted_token, scope=scope)
        db.add(installation)
    else:
        installation.access_token = encrypted_token
        installation.scope = scope
    await db.flush()
    return installation


async def update_scope(db: AsyncSession, shop: str, scope: str) -> bool:
    installation = await get_by_shop(db, shop)
    if installation is None:
        return False
    installation.scope = scope
    await db.flush()
    return True


async def delete_by_shop(db: AsyncSession, shop: str) -> int:
    result = await db.execute(delete(ShopInstallation).where(ShopInstallation.shop == shop))
    return result.rowcount or 0

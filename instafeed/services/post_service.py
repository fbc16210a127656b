"""Post curation: pin, hide and product tagging of remote media."""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.config import Settings
from instafeed.exceptions import NotConnected
from instafeed.integrations.instagram.client import InstagramGraphClient
from instafeed.models.post_meta import PostMeta
from instafeed.repositories import account_repository, post_meta_repository
from instafeed.schemas.feed import MergedFeedItem, ProductRef
from instafeed.services.merge import annotate
from instafeed.utils.encryption import TokenEncryptor

logger = logging.getLogger(__name__)

MANAGEMENT_PAGE_LIMIT = 50


async def list_posts(
    db: AsyncSession,
    graph: InstagramGraphClient,
    settings: Settings,
    shop: str,
    limit: int = MANAGEMENT_PAGE_LIMIT,
) -> list[MergedFeedItem]:
    """Recent remote media with pin/hide/products attached, hidden posts included."""
    account = await account_repository.get_by_shop(db, shop)
    if account is None:
        raise NotConnected("No Instagram account connected", stage="posts")
    access_token = TokenEncryptor.from_settings(settings).decrypt(account.access_token, shop)
    raw_items = await graph.fetch_media(account.user_id, access_token, limit=limit)
    metas = await post_meta_repository.map_for_shop(db, shop)
    return annotate(raw_items, metas, account.username)


async def toggle_pin(db: AsyncSession, shop: str, media_id: str) -> PostMeta:
    meta = await post_meta_repository.get_or_create(db, shop, media_id)
    meta.is_pinned = not meta.is_pinned
    await db.flush()
    logger.info("Post %s of %s pinned=%s", media_id, shop, meta.is_pinned)
    return meta


async def toggle_hide(db: AsyncSession, shop: str, media_id: str) -> PostMeta:
    meta = await post_meta_repository.get_or_create(db, shop, media_id)
    meta.is_hidden = not meta.is_hidden
    await db.flush()
    logger.info("Post %s of %s hidden=%s", media_id, shop, meta.is_hidden)
    return meta


async def update_products(db: AsyncSession, shop: str, media_id: str, products: list[ProductRef]) -> PostMeta:
    """Replace the ordered product list of a post."""
    meta = await post_meta_repository.get_or_create(db, shop, media_id)
    meta.products = [product.model_dump(mode="json") for product in products]
    await db.flush()
    return meta

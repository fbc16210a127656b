"""Feed synchronization: fetch remote media, merge local metadata, publish."""
import logging

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.config import Settings
from instafeed.exceptions import NotConnected
from instafeed.integrations.instagram.client import InstagramGraphClient
from instafeed.integrations.shopify.admin import ShopifyAdminClient
from instafeed.integrations.shopify.publisher import FeedPublisher
from instafeed.repositories import account_repository, post_meta_repository, settings_repository
from instafeed.schemas.instagram import SyncResult
from instafeed.schemas.settings import normalize_feed_settings
from instafeed.services.merge import merge
from instafeed.services.tenant_service import admin_token
from instafeed.utils.encryption import TokenEncryptor
from instafeed.utils.locks import TenantLockRegistry

logger = logging.getLogger(__name__)


class FeedSyncService:
    """Runs one end-to-end sync for a shop.

    Syncs of the same shop are serialized through the lock registry; state is
    read after the lock is taken, so the last sync to run publishes the latest
    metadata.
    """

    def __init__(
        self,
        db: AsyncSession,
        http: httpx.AsyncClient,
        settings: Settings,
        locks: TenantLockRegistry,
    ):
        self.db = db
        self.settings = settings
        self.locks = locks
        self.graph = InstagramGraphClient(http, settings)
        self.publisher = FeedPublisher(ShopifyAdminClient(http, settings))

    async def sync(self, shop: str) -> SyncResult:
        async with self.locks.hold(shop):
            return await self._sync_locked(shop)

    async def _sync_locked(self, shop: str) -> SyncResult:
        self.settings.require("APP_URL", "ENCRYPTION_KEY")
        account = await account_repository.get_by_shop(self.db, shop)
        if account is None:
            raise NotConnected("No Instagram account connected", stage="sync")
        shop_token = await admin_token(self.db, self.settings, shop)

        encryptor = TokenEncryptor.from_settings(self.settings)
        stored = await settings_repository.get_by_shop(self.db, shop)
        display = normalize_feed_settings(stored.config if stored else None)
        metas = await post_meta_repository.map_for_shop(self.db, shop)

        # Over-fetch by the hidden count so hiding posts does not shrink the feed
        hidden = sum(1 for meta in metas.values() if meta.is_hidden)
        raw_items = await self.graph.fetch_media(
            account.user_id,
            encryptor.decrypt(account.access_token, shop),
            limit=display.media_limit + hidden,
        )
        items = merge(
            raw_items, metas, account.username, pinned_only=display.show_pinned_reels,
        )[: display.media_limit]

        await self.publisher.publish(
            shop,
            shop_token,
            items,
            profile_picture_url=account.profile_picture_url,
            tracking_url=self.settings.tracking_url,
        )
        logger.info("Sync for %s published %d of %d fetched items", shop, len(items), len(raw_items))
        return SyncResult(shop=shop, published=len(items), fetched=len(raw_items))

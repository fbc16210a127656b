"""Storefront publisher: writes the feed payload into shop metafields."""
import json
import logging
from typing import Any

from instafeed.integrations.shopify.admin import ShopifyAdminClient
from instafeed.schemas.feed import MergedFeedItem
from instafeed.schemas.settings import FeedDisplaySettings, WidgetConfig

logger = logging.getLogger(__name__)

NAMESPACE = "instagram_feed"


def _metafield(owner_id: str, key: str, value: Any, type_: str = "json") -> dict[str, str]:
    return {
        "namespace": NAMESPACE,
        "key": key,
        "type": type_,
        "value": value if isinstance(value, str) else json.dumps(value),
        "ownerId": owner_id,
    }


class FeedPublisher:
    """High-level publisher for the ``instagram_feed`` metafield namespace.

    Each call is one ``metafieldsSet`` mutation: either every key in it is
    replaced or none is.
    """

    def __init__(self, admin: ShopifyAdminClient):
        self.admin = admin

    async def publish(
        self,
        shop: str,
        access_token: str,
        items: list[MergedFeedItem],
        *,
        profile_picture_url: str | None,
        tracking_url: str,
    ) -> None:
        """Replace ``media``, ``profile_picture_url`` and ``tracking_url``."""
        owner_id = await self.admin.get_shop_id(shop, access_token)
        metafields = [
            _metafield(owner_id, "media", [item.model_dump(mode="json", by_alias=True) for item in items]),
        ]
        if profile_picture_url:
            metafields.append(_metafield(owner_id, "profile_picture_url", profile_picture_url, "url"))
        metafields.append(_metafield(owner_id, "tracking_url", tracking_url, "url"))

        await self.admin.set_metafields(shop, access_token, metafields)
        logger.info("Published %d feed items for %s", len(items), shop)

    async def publish_settings(self, shop: str, access_token: str, settings: FeedDisplaySettings) -> None:
        owner_id = await self.admin.get_shop_id(shop, access_token)
        await self.admin.set_metafields(
            shop, access_token,
            [_metafield(owner_id, "settings", settings.model_dump(mode="json", by_alias=True))],
        )
        logger.info("Published display settings for %s", shop)

    async def publish_widget(self, shop: str, access_token: str, config: WidgetConfig) -> None:
        owner_id = await self.admin.get_shop_id(shop, access_token)
        await self.admin.set_metafields(
            shop, access_token,
            [_metafield(owner_id, "widget_config", config.model_dump(mode="json", by_alias=True))],
        )
        logger.info("Published widget configuration for %s", shop)

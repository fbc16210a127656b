"""Tenant lifecycle: uninstall, scope changes and data erasure."""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.config import Settings
from instafeed.exceptions import NotConnected
from instafeed.repositories import (
    account_repository,
    analytics_repository,
    installation_repository,
    post_meta_repository,
    settings_repository,
    widget_repository,
)
from instafeed.utils.encryption import TokenEncryptor

logger = logging.getLogger(__name__)


async def admin_token(db: AsyncSession, settings: Settings, shop: str) -> str:
    """Decrypted Admin API token of an installed shop."""
    installation = await installation_repository.get_by_shop(db, shop)
    if installation is None:
        raise NotConnected("Shop installation has no Admin API token", stage="publish")
    return TokenEncryptor.from_settings(settings).decrypt(installation.access_token, shop)


async def handle_uninstall(db: AsyncSession, shop: str) -> None:
    """Drop the shop's credentials; repeated deliveries are no-ops."""
    removed = await installation_repository.delete_by_shop(db, shop)
    removed += await account_repository.delete_by_shop(db, shop)
    logger.info("Uninstall cleanup for %s removed %d credential rows", shop, removed)


async def update_scope(db: AsyncSession, shop: str, scope: str) -> None:
    if not scope:
        return
    if not await installation_repository.update_scope(db, shop, scope):
        logger.info("Scope update for %s ignored, shop not installed", shop)


async def erase_shop(db: AsyncSession, shop: str) -> int:
    """Delete every row the service holds for ``shop``."""
    removed = 0
    removed += await analytics_repository.delete_for_shop(db, shop)
    removed += await post_meta_repository.delete_for_shop(db, shop)
    removed += await widget_repository.delete_for_shop(db, shop)
    removed += await settings_repository.delete_for_shop(db, shop)
    removed += await account_repository.delete_by_shop(db, shop)
    removed += await installation_repository.delete_by_shop(db, shop)
    logger.info("Erased %d rows for %s", removed, shop)
    return removed

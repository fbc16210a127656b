"""Instagram connect handshake: authorize URL and callback completion."""
import logging
from datetime import timedelta
from urllib.parse import urlencode

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.config import Settings
from instafeed.exceptions import InvalidState
from instafeed.integrations.instagram.client import InstagramGraphClient
from instafeed.integrations.instagram.oauth import TokenExchanger, build_authorize_url
from instafeed.integrations.instagram.state import StateTokenCodec
from instafeed.models.account import DEFAULT_USERNAME, InstagramAccount
from instafeed.repositories import account_repository
from instafeed.services.analytics_service import AnalyticsRecorder
from instafeed.utils.encryption import TokenEncryptor
from instafeed.utils.helpers import store_handle, truncate, utc_now

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 240


def state_codec(settings: Settings) -> StateTokenCodec:
    """The handshake state is signed with the Instagram app secret."""
    return StateTokenCodec(settings.INSTAGRAM_APP_SECRET)


def authorize_url_for(settings: Settings, shop: str) -> str:
    settings.require("INSTAGRAM_APP_ID", "INSTAGRAM_APP_SECRET", "APP_URL")
    return build_authorize_url(settings, state_codec(settings).encode(shop))


def verify_state(settings: Settings, state: str | None) -> str:
    """Return the shop a handshake state token was issued for."""
    payload = state_codec(settings).decode(state) if settings.INSTAGRAM_APP_SECRET else None
    if payload is None:
        raise InvalidState("invalid_state", stage="state")
    return payload.shop


def embedded_app_url(settings: Settings, shop: str, **params: str) -> str:
    """Admin URL of the embedded app for ``shop``, with ``params`` as the query string."""
    url = f"https://admin.shopify.com/store/{store_handle(shop)}/apps/{settings.SHOPIFY_API_KEY}"
    return f"{url}?{urlencode(params)}" if params else url


def error_redirect(settings: Settings, shop: str | None, reason: str) -> str:
    reason = str(reason)[:MAX_ERROR_LENGTH] or "oauth_failed"
    if not shop:
        return "/app?" + urlencode({"ig_connect": "error", "ig_error": reason})
    return embedded_app_url(settings, shop, ig_connect="error", ig_error=reason)


class ConnectService:
    """Completes a verified handshake and stores the resulting account."""

    def __init__(self, db: AsyncSession, http: httpx.AsyncClient, settings: Settings):
        self.db = db
        self.settings = settings
        self.exchanger = TokenExchanger(http, settings)
        self.graph = InstagramGraphClient(http, settings)

    async def connect(self, shop: str, code: str) -> InstagramAccount:
        """Code -> short-lived token -> profile -> long-lived token -> stored account.

        When the shop was connected to a different Instagram user, its
        analytics are deleted before the new account is written.
        """
        self.settings.require("ENCRYPTION_KEY")
        short = await self.exchanger.exchange_code(code)

        # The profile is read with the short-lived token so it is canonical
        # even when the upgrade below degrades.
        profile = await self.graph.get_profile(short.access_token)
        user_id = profile.id or short.user_id

        token = await self.exchanger.upgrade(short.access_token)
        if token.degraded:
            logger.warning("Storing short-lived Instagram token for %s", shop)

        account = await account_repository.get_by_shop(self.db, shop)
        if account is not None and account.user_id and account.user_id != user_id:
            logger.info("Instagram account for %s changed, resetting analytics", shop)
            await AnalyticsRecorder(self.db).reset(shop)

        if account is None:
            account = InstagramAccount(shop=shop)
        account.access_token = TokenEncryptor.from_settings(self.settings).encrypt(token.credential, shop)
        account.user_id = user_id
        account.username = profile.username or DEFAULT_USERNAME
        account.profile_picture_url = profile.profile_picture_url
        account.token_degraded = token.degraded
        account.token_expires_at = (
            utc_now() + timedelta(seconds=token.expires_in) if token.expires_in else None
        )
        account = await account_repository.save(self.db, account)
        logger.info("Connected Instagram user %s to %s", truncate(user_id, 32), shop)
        return account

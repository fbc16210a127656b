"""Tests for the connect handshake: authorize URL, callback and account storage."""
from datetime import timedelta
from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import pytest

from instafeed.exceptions import InvalidState
from instafeed.integrations.instagram.state import StateTokenCodec
from instafeed.repositories import account_repository, analytics_repository
from instafeed.services import connect_service
from instafeed.services.analytics_service import AnalyticsRecorder
from instafeed.services.sync_service import FeedSyncService
from instafeed.utils.encryption import TokenEncryptor
from instafeed.utils.helpers import utc_today

from tests.conftest import IG_TOKEN, IG_USER_ID, SHOP, connect_account, install_shop, media_item

APP_HOME = "https://admin.shopify.com/store/demo/apps/shopify-api-key"


def _query(location: str) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(urlparse(location).query).items()}


def _state(settings, shop: str = SHOP) -> str:
    return StateTokenCodec(settings.INSTAGRAM_APP_SECRET).encode(shop)


async def test_connect_endpoint_returns_signed_authorize_url(client, settings, auth_headers):
    resp = await client.post("/api/v1/instagram/connect", headers=auth_headers)

    assert resp.status_code == 200
    auth_url = resp.json()["data"]["auth_url"]
    state = _query(auth_url)["state"]
    assert connect_service.verify_state(settings, state) == SHOP


def test_verify_state_rejects_tampered_token(settings):
    with pytest.raises(InvalidState):
        connect_service.verify_state(settings, _state(settings) + "0")
    with pytest.raises(InvalidState):
        connect_service.verify_state(settings, None)


async def test_connect_requires_instagram_config(client, settings, auth_headers):
    settings.INSTAGRAM_APP_SECRET = ""
    resp = await client.post("/api/v1/instagram/connect", headers=auth_headers)

    assert resp.status_code == 500
    assert resp.json()["title"] == "Configuration Missing"
    assert "INSTAGRAM_APP_SECRET" in resp.json()["detail"]


async def test_callback_success_stores_account_and_syncs(client, settings, database, upstream):
    await install_shop(database, settings)
    upstream.media = [media_item(1), media_item(2)]

    resp = await client.get("/instagram/callback", params={"code": "auth-code", "state": _state(settings)})

    assert resp.status_code == 302
    assert resp.headers["location"] == f"{APP_HOME}?ig_connect=success"

    async with database.session() as db:
        account = await account_repository.get_by_shop(db, SHOP)
    assert account.user_id == IG_USER_ID
    assert account.username == "demo_store"
    assert account.profile_picture_url == "https://cdn.example.com/avatar.jpg"
    assert account.token_degraded is False
    assert account.token_expires_at is not None
    assert account.access_token != IG_TOKEN
    assert TokenEncryptor.from_settings(settings).decrypt(account.access_token, SHOP) == IG_TOKEN

    # The initial sync published the feed
    assert [item["id"] for item in upstream.last_published()["media"]] == ["m1", "m2"]


async def test_callback_degraded_upgrade_stores_short_lived_token(client, settings, database, upstream):
    upstream.upgrade_status = 400

    resp = await client.get("/instagram/callback", params={"code": "auth-code", "state": _state(settings)})

    assert _query(resp.headers["location"])["ig_connect"] == "success"
    async with database.session() as db:
        account = await account_repository.get_by_shop(db, SHOP)
    assert account.token_degraded is True
    assert TokenEncryptor.from_settings(settings).decrypt(account.access_token, SHOP) == "short-lived-token"


async def test_callback_without_installation_still_succeeds(client, settings, database, upstream):
    """A failed first sync is logged; the account is kept."""
    resp = await client.get("/instagram/callback", params={"code": "auth-code", "state": _state(settings)})

    assert _query(resp.headers["location"])["ig_connect"] == "success"
    assert upstream.published == []
    async with database.session() as db:
        assert await account_repository.get_by_shop(db, SHOP) is not None


async def test_callback_unreadable_media_still_redirects(client, settings, database, upstream):
    await install_shop(database, settings)
    upstream.media_body = "<html>maintenance</html>"

    resp = await client.get("/instagram/callback", params={"code": "auth-code", "state": _state(settings)})

    assert resp.status_code == 302
    assert resp.headers["location"] == f"{APP_HOME}?ig_connect=success"
    assert upstream.published == []
    async with database.session() as db:
        assert await account_repository.get_by_shop(db, SHOP) is not None


async def test_callback_unexpected_sync_error_still_redirects(client, settings, database):
    await install_shop(database, settings)

    with patch.object(FeedSyncService, "sync", AsyncMock(side_effect=RuntimeError("boom"))):
        resp = await client.get("/instagram/callback", params={"code": "auth-code", "state": _state(settings)})

    assert resp.status_code == 302
    assert _query(resp.headers["location"])["ig_connect"] == "success"


async def test_callback_invalid_state(client):
    resp = await client.get("/instagram/callback", params={"code": "auth-code", "state": "forged.state"})

    assert resp.status_code == 302
    location = resp.headers["location"]
    assert location.startswith("/app?")
    assert _query(location) == {"ig_connect": "error", "ig_error": "invalid_state"}


async def test_callback_missing_code(client, settings):
    resp = await client.get("/instagram/callback", params={"state": _state(settings)})

    assert resp.headers["location"].startswith(APP_HOME)
    assert _query(resp.headers["location"]) == {"ig_connect": "error", "ig_error": "missing_code"}


async def test_callback_provider_error_reported(client, settings, database):
    resp = await client.get(
        "/instagram/callback",
        params={
            "error": "access_denied",
            "error_reason": "user_denied",
            "error_description": "The user denied your request.",
            "state": _state(settings),
        },
    )

    query = _query(resp.headers["location"])
    assert query["ig_connect"] == "error"
    assert query["ig_error"] == "The user denied your request."
    async with database.session() as db:
        assert await account_repository.get_by_shop(db, SHOP) is None


async def test_callback_error_message_truncated(client, settings):
    resp = await client.get(
        "/instagram/callback",
        params={"error": "x" * 1000, "state": _state(settings)},
    )
    assert len(_query(resp.headers["location"])["ig_error"]) == connect_service.MAX_ERROR_LENGTH


async def test_callback_exchange_failure(client, settings, database, upstream):
    upstream.short_token = {"error_type": "OAuthException", "error_message": "Code has expired"}

    resp = await client.get("/instagram/callback", params={"code": "old", "state": _state(settings)})

    query = _query(resp.headers["location"])
    assert query["ig_connect"] == "error"
    assert "Code has expired" in query["ig_error"]
    async with database.session() as db:
        assert await account_repository.get_by_shop(db, SHOP) is None


async def test_account_swap_resets_analytics(client, settings, database, upstream):
    await connect_account(database, settings, user_id="old-user")
    async with database.session() as db:
        await AnalyticsRecorder(db).record(SHOP, "click", media_id="old-post")

    resp = await client.get("/instagram/callback", params={"code": "auth-code", "state": _state(settings)})

    assert _query(resp.headers["location"])["ig_connect"] == "success"
    async with database.session() as db:
        account = await account_repository.get_by_shop(db, SHOP)
        daily = await analytics_repository.daily_since(db, SHOP, utc_today() - timedelta(days=1))
        post = await analytics_repository.get_post(db, SHOP, "old-post")
    assert account.user_id == IG_USER_ID
    assert daily == []
    assert post is None


async def test_reconnect_same_user_keeps_analytics(client, settings, database):
    await connect_account(database, settings)
    async with database.session() as db:
        await AnalyticsRecorder(db).record(SHOP, "view", media_id="m1")

    await client.get("/instagram/callback", params={"code": "auth-code", "state": _state(settings)})

    async with database.session() as db:
        post = await analytics_repository.get_post(db, SHOP, "m1")
    assert post.views == 1


def test_error_redirect_without_shop(settings):
    assert connect_service.error_redirect(settings, None, "") == "/app?ig_connect=error&ig_error=oauth_failed"


def test_embedded_app_url(settings):
    assert connect_service.embedded_app_url(settings, "my-store.myshopify.com") == (
        "https://admin.shopify.com/store/my-store/apps/shopify-api-key"
    )

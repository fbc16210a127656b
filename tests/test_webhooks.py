"""Tests for Shopify lifecycle webhooks."""
import base64
import hashlib
import hmac
import json

from instafeed.models.widget import Widget
from instafeed.repositories import (
    account_repository,
    analytics_repository,
    installation_repository,
    post_meta_repository,
    settings_repository,
    widget_repository,
)
from instafeed.services.analytics_service import AnalyticsRecorder

from tests.conftest import OTHER_SHOP, SHOP, connect_account, install_shop


def _headers(settings, body: bytes, shop: str | None = SHOP, topic: str = "app/uninstalled") -> dict:
    digest = hmac.new(settings.SHOPIFY_API_SECRET.encode(), body, hashlib.sha256).digest()
    headers = {
        "Content-Type": "application/json",
        "X-Shopify-Hmac-Sha256": base64.b64encode(digest).decode(),
        "X-Shopify-Topic": topic,
    }
    if shop:
        headers["X-Shopify-Shop-Domain"] = shop
    return headers


async def test_uninstall_removes_credentials(client, database, settings, connected_shop):
    body = json.dumps({"id": 1, "myshopify_domain": SHOP}).encode()

    resp = await client.post("/webhooks/app/uninstalled", content=body, headers=_headers(settings, body))

    assert resp.status_code == 200
    async with database.session() as db:
        assert await installation_repository.get_by_shop(db, SHOP) is None
        assert await account_repository.get_by_shop(db, SHOP) is None


async def test_uninstall_is_idempotent(client, settings):
    body = b"{}"
    for _ in range(2):
        resp = await client.post("/webhooks/app/uninstalled", content=body, headers=_headers(settings, body))
        assert resp.status_code == 200


async def test_invalid_hmac_rejected(client, database, settings, connected_shop):
    body = b"{}"
    headers = _headers(settings, body)
    headers["X-Shopify-Hmac-Sha256"] = base64.b64encode(b"0" * 32).decode()

    resp = await client.post("/webhooks/app/uninstalled", content=body, headers=headers)

    assert resp.status_code == 401
    async with database.session() as db:
        assert await installation_repository.get_by_shop(db, SHOP) is not None


async def test_missing_hmac_rejected(client):
    resp = await client.post("/webhooks/app/uninstalled", content=b"{}", headers={"X-Shopify-Shop-Domain": SHOP})
    assert resp.status_code == 401


async def test_shop_taken_from_payload(client, database, settings):
    await install_shop(database, settings)
    body = json.dumps({"shop_domain": SHOP}).encode()

    resp = await client.post(
        "/webhooks/shop/redact", content=body, headers=_headers(settings, body, shop=None, topic="shop/redact")
    )

    assert resp.status_code == 200
    async with database.session() as db:
        assert await installation_repository.get_by_shop(db, SHOP) is None


async def test_unknown_shop_rejected(client, settings):
    body = b"{}"
    resp = await client.post("/webhooks/app/uninstalled", content=body, headers=_headers(settings, body, shop=None))
    assert resp.status_code == 401


async def test_scopes_update(client, database, settings):
    await install_shop(database, settings)
    body = json.dumps({"id": 1, "previous": ["write_metafields"], "current": ["write_metafields", "read_products"]}).encode()

    resp = await client.post(
        "/webhooks/app/scopes_update", content=body, headers=_headers(settings, body, topic="app/scopes_update")
    )

    assert resp.status_code == 200
    async with database.session() as db:
        installation = await installation_repository.get_by_shop(db, SHOP)
    assert installation.scope == "write_metafields,read_products"


async def test_scopes_update_for_unknown_shop_is_noop(client, settings):
    body = json.dumps({"current": ["read_products"]}).encode()
    resp = await client.post(
        "/webhooks/app/scopes_update", content=body, headers=_headers(settings, body, topic="app/scopes_update")
    )
    assert resp.status_code == 200


async def test_shop_redact_erases_all_tenant_rows(client, database, settings):
    for shop in (SHOP, OTHER_SHOP):
        await install_shop(database, settings, shop)
        await connect_account(database, settings, shop)
        async with database.session() as db:
            await AnalyticsRecorder(db).record(shop, "view", media_id="m1")
            await post_meta_repository.get_or_create(db, shop, "m1")
            await settings_repository.upsert(db, shop, {"title": "t"}, 1)
            await widget_repository.create(db, Widget(shop=shop, title="w", configuration={}))

    body = json.dumps({"shop_id": 1, "shop_domain": SHOP}).encode()
    resp = await client.post(
        "/webhooks/shop/redact", content=body, headers=_headers(settings, body, topic="shop/redact")
    )

    assert resp.status_code == 200
    async with database.session() as db:
        assert await account_repository.get_by_shop(db, SHOP) is None
        assert await analytics_repository.get_post(db, SHOP, "m1") is None
        assert await post_meta_repository.get(db, SHOP, "m1") is None
        assert await settings_repository.get_by_shop(db, SHOP) is None
        assert (await widget_repository.list_widgets(db, SHOP))[1] == 0
        # Other tenants untouched
        assert await account_repository.get_by_shop(db, OTHER_SHOP) is not None
        assert await analytics_repository.get_post(db, OTHER_SHOP, "m1") is not None
        assert (await widget_repository.list_widgets(db, OTHER_SHOP))[1] == 1

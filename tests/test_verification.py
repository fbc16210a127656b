"""Tests for Shopify request authentication."""
import base64
import hashlib
import hmac
import time

import pytest

from instafeed.exceptions import Unauthorized
from instafeed.integrations.shopify.verification import (
    decode_session_token,
    verify_app_proxy_signature,
    verify_webhook_hmac,
)

from tests.conftest import SHOP, session_token

SECRET = "shopify-api-secret"


def test_webhook_hmac():
    body = b'{"id":1}'
    header = base64.b64encode(hmac.new(SECRET.encode(), body, hashlib.sha256).digest()).decode()

    assert verify_webhook_hmac(body, header, SECRET)
    assert not verify_webhook_hmac(body + b" ", header, SECRET)
    assert not verify_webhook_hmac(body, header, "other")
    assert not verify_webhook_hmac(body, None, SECRET)
    assert not verify_webhook_hmac(body, header, "")


def test_app_proxy_signature():
    message = "extra=1,2path_prefix=/apps/feedshop=demo.myshopify.comtimestamp=1760000000"
    signature = hmac.new(SECRET.encode(), message.encode(), hashlib.sha256).hexdigest()
    query = [
        ("shop", SHOP),
        ("path_prefix", "/apps/feed"),
        ("timestamp", "1760000000"),
        ("extra", "1"),
        ("extra", "2"),
        ("signature", signature),
    ]

    assert verify_app_proxy_signature(query, SECRET)
    assert not verify_app_proxy_signature(query[:-1], SECRET)
    assert not verify_app_proxy_signature(query, "other")
    tampered = [(k, "evil.myshopify.com" if k == "shop" else v) for k, v in query]
    assert not verify_app_proxy_signature(tampered, SECRET)


def test_session_token_returns_shop(settings):
    token = session_token(settings)
    assert decode_session_token(token, api_key=settings.SHOPIFY_API_KEY, api_secret=settings.SHOPIFY_API_SECRET) == SHOP


def test_session_token_expired(settings):
    now = int(time.time())
    token = session_token(settings, exp=now - 120, nbf=now - 600, iat=now - 600)
    with pytest.raises(Unauthorized, match="expired"):
        decode_session_token(token, api_key=settings.SHOPIFY_API_KEY, api_secret=settings.SHOPIFY_API_SECRET)


def test_session_token_wrong_audience(settings):
    token = session_token(settings, aud="another-app")
    with pytest.raises(Unauthorized, match="Invalid session token"):
        decode_session_token(token, api_key=settings.SHOPIFY_API_KEY, api_secret=settings.SHOPIFY_API_SECRET)


def test_session_token_wrong_secret(settings):
    token = session_token(settings)
    with pytest.raises(Unauthorized):
        decode_session_token(token, api_key=settings.SHOPIFY_API_KEY, api_secret="not-the-secret")


def test_session_token_bad_dest(settings):
    token = session_token(settings, dest="https://example.com")
    with pytest.raises(Unauthorized, match="no shop"):
        decode_session_token(token, api_key=settings.SHOPIFY_API_KEY, api_secret=settings.SHOPIFY_API_SECRET)


async def test_admin_api_rejects_bad_token(client):
    resp = await client.get("/api/v1/settings", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid session token"

"""Tests for the signed OAuth handshake state."""
import base64
import hashlib
import hmac
import json

from instafeed.integrations.instagram.state import STATE_MAX_AGE_MS, StateTokenCodec

SECRET = "ig-app-secret"


class Clock:
    def __init__(self, now: int = 1_760_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now


def _forge(payload: dict, secret: str = SECRET) -> str:
    encoded = base64.urlsafe_b64encode(json.dumps(payload).encode()).rstrip(b"=").decode()
    signature = hmac.new(secret.encode(), encoded.encode(), hashlib.sha256).hexdigest()
    return f"{encoded}.{signature}"


def test_round_trip_returns_shop():
    clock = Clock()
    codec = StateTokenCodec(SECRET, clock=clock)
    state = codec.decode(codec.encode("demo.myshopify.com"))
    assert state is not None
    assert state.shop == "demo.myshopify.com"
    assert state.issued_at == clock.now
    assert len(state.nonce) == 16


def test_tokens_are_unique_per_call():
    codec = StateTokenCodec(SECRET)
    assert codec.encode("demo.myshopify.com") != codec.encode("demo.myshopify.com")


def test_expired_token_rejected():
    clock = Clock()
    codec = StateTokenCodec(SECRET, clock=clock)
    token = codec.encode("demo.myshopify.com")
    clock.now += STATE_MAX_AGE_MS + 1
    assert codec.decode(token) is None


def test_token_at_max_age_still_valid():
    clock = Clock()
    codec = StateTokenCodec(SECRET, clock=clock)
    token = codec.encode("demo.myshopify.com")
    clock.now += STATE_MAX_AGE_MS
    assert codec.decode(token) is not None


def test_tampered_payload_rejected():
    codec = StateTokenCodec(SECRET)
    encoded, signature = codec.encode("demo.myshopify.com").split(".")
    other = base64.urlsafe_b64encode(b'{"shop":"evil.myshopify.com","ts":1}').rstrip(b"=").decode()
    assert codec.decode(f"{other}.{signature}") is None
    assert codec.decode(f"{encoded}.{'0' * 64}") is None


def test_wrong_secret_rejected():
    token = StateTokenCodec("another-secret").encode("demo.myshopify.com")
    assert StateTokenCodec(SECRET).decode(token) is None


def test_malformed_tokens_rejected():
    codec = StateTokenCodec(SECRET)
    for token in (None, "", "no-dot", ".sig", "payload.", "ü.ü", "a.b.c"):
        assert codec.decode(token) is None


def test_payload_shape_checked():
    clock = Clock()
    codec = StateTokenCodec(SECRET, clock=clock)
    assert codec.decode(_forge({"ts": clock.now})) is None
    assert codec.decode(_forge({"shop": "", "ts": clock.now})) is None
    assert codec.decode(_forge({"shop": "demo.myshopify.com", "ts": "123"})) is None
    assert codec.decode(_forge({"shop": "demo.myshopify.com", "ts": True})) is None
    assert codec.decode(_forge(["demo.myshopify.com"])) is None
    assert codec.decode(_forge({"shop": "demo.myshopify.com", "ts": clock.now})).shop == "demo.myshopify.com"


def test_empty_secret_never_verifies():
    codec = StateTokenCodec("")
    assert codec.decode(codec.encode("demo.myshopify.com")) is None

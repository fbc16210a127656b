"""Signed, time-boxed OAuth ``state`` tokens.

The shop travels through the Instagram redirect inside the token itself, so
no server-side session is needed to finish the handshake:

    base64url(JSON{shop, ts, nonce}) + "." + hex(HMAC-SHA256(secret, base64url part))
"""
import base64
import binascii
import hashlib
import hmac
import json
import secrets
import time
from dataclasses import dataclass
from typing import Callable

STATE_MAX_AGE_MS = 10 * 60 * 1000


@dataclass(frozen=True)
class HandshakeState:
    shop: str
    issued_at: int  # epoch milliseconds
    nonce: str = ""


def _now_ms() -> int:
    return int(time.time() * 1000)


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


class StateTokenCodec:
    def __init__(self, secret: str, *, max_age_ms: int = STATE_MAX_AGE_MS, clock: Callable[[], int] = _now_ms):
        self._secret = secret.encode()
        self._max_age_ms = max_age_ms
        self._clock = clock

    def _sign(self, value: str) -> str:
        return hmac.new(self._secret, value.encode("ascii"), hashlib.sha256).hexdigest()

    def encode(self, shop: str) -> str:
        payload = {"shop": shop, "ts": self._clock(), "nonce": secrets.token_hex(8)}
        encoded = _b64url_encode(json.dumps(payload, separators=(",", ":")).encode())
        return f"{encoded}.{self._sign(encoded)}"

    def decode(self, token: str | None) -> HandshakeState | None:
        """Return the verified state, or None for anything invalid."""
        if not token or not self._secret:
            return None

        encoded, sep, signature = str(token).partition(".")
        if not sep or not encoded or not signature:
            return None

        expected = self._sign(encoded) if encoded.isascii() else ""
        if len(signature) != len(expected):
            return None
        if not hmac.compare_digest(signature.encode(), expected.encode()):
            return None

        try:
            payload = json.loads(_b64url_decode(encoded))
        except (binascii.Error, ValueError):
            return None
        if not isinstance(payload, dict):
            return None

        shop = payload.get("shop")
        issued_at = payload.get("ts")
        if not shop or not isinstance(shop, str):
            return None
        if not isinstance(issued_at, int) or isinstance(issued_at, bool) or not issued_at:
            return None
        if self._clock() - issued_at > self._max_age_ms:
            return None

        return HandshakeState(shop=shop, issued_at=issued_at, nonce=str(payload.get("nonce", "")))

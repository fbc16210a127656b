"""Shopify request authentication: webhooks, app proxy and App Bridge session tokens."""
import base64
import hashlib
import hmac
from collections.abc import Iterable

from jose import JWTError, jwt

from instafeed.exceptions import Unauthorized
from instafeed.utils.helpers import is_valid_shop_domain

SESSION_TOKEN_ALGORITHM = "HS256"


def verify_webhook_hmac(body: bytes, header_hmac: str | None, secret: str) -> bool:
    """Check ``X-Shopify-Hmac-Sha256``: base64 HMAC-SHA256 of the raw body."""
    if not header_hmac or not secret:
        return False
    digest = hmac.new(secret.encode(), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode()
    return hmac.compare_digest(expected.encode(), header_hmac.encode())


def verify_app_proxy_signature(query: Iterable[tuple[str, str]], secret: str) -> bool:
    """Check the ``signature`` Shopify appends to app-proxy requests.

    The signed message is every other query parameter as ``key=value`` (repeated
    keys joined with commas), sorted and concatenated without separators.
    """
    if not secret:
        return False
    params: dict[str, list[str]] = {}
    signature = None
    for key, value in query:
        if key == "signature":
            signature = value
            continue
        params.setdefault(key, []).append(value)
    if not signature:
        return False

    message = "".join(sorted(f"{key}={','.join(values)}" for key, values in params.items()))
    expected = hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected.encode(), signature.encode())


def decode_session_token(token: str, *, api_key: str, api_secret: str) -> str:
    """Validate an App Bridge session token and return the shop domain it was issued for."""
    try:
        payload = jwt.decode(
            token,
            api_secret,
            algorithms=[SESSION_TOKEN_ALGORITHM],
            audience=api_key,
        )
    except JWTError as exc:
        detail = "Session token expired" if "expired" in str(exc).lower() else "Invalid session token"
        raise Unauthorized(detail, stage="auth") from exc

    dest = str(payload.get("dest") or "")
    shop = dest.removeprefix("https://").removeprefix("http://").rstrip("/")
    if not is_valid_shop_domain(shop):
        raise Unauthorized("Session token has no shop", stage="auth")
    return shop

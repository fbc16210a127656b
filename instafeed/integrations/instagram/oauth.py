"""Instagram Business Login: authorize URL and token exchange chain."""
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx

from instafeed.config import Settings
from instafeed.exceptions import ExchangeFailed

logger = logging.getLogger(__name__)

SHORT_LIVED_TTL_SECONDS = 3600


@dataclass(frozen=True)
class ShortLivedToken:
    access_token: str
    user_id: str


@dataclass(frozen=True)
class TokenResult:
    """Outcome of a long-lived upgrade or refresh.

    ``degraded`` is True when the provider call failed and ``credential`` is
    the token that was passed in.
    """

    credential: str
    expires_in: int | None = None
    degraded: bool = False


def build_authorize_url(settings: Settings, state: str) -> str:
    """Instagram authorize URL for the Business Login handshake."""
    settings.require("INSTAGRAM_APP_ID", "INSTAGRAM_APP_SECRET", "APP_URL")
    params = {
        "client_id": settings.instagram_client_id,
        # Business Login apps validate app_id / platform_app_id explicitly
        "app_id": settings.INSTAGRAM_APP_ID,
        "platform_app_id": settings.INSTAGRAM_APP_ID,
        "redirect_uri": settings.instagram_redirect_uri,
        "scope": settings.INSTAGRAM_SCOPES,
        "response_type": "code",
        "state": state,
        "enable_fb_login": settings.INSTAGRAM_ENABLE_FB_LOGIN,
        "force_authentication": settings.INSTAGRAM_FORCE_AUTHENTICATION,
    }
    return f"{settings.INSTAGRAM_AUTH_URL}?{urlencode(params)}"


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.reason_phrase or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        error = data.get("error")
        if data.get("error_message"):
            return str(data["error_message"])
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return response.reason_phrase or f"HTTP {response.status_code}"


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class TokenExchanger:
    """Authorization code -> short-lived token -> long-lived token."""

    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        self._http = http
        self._settings = settings

    async def exchange_code(self, code: str) -> ShortLivedToken:
        """POST the authorization code to the token endpoint.

        Raises ExchangeFailed with the provider's message on any rejection.
        """
        self._settings.require("INSTAGRAM_APP_ID", "INSTAGRAM_APP_SECRET", "APP_URL")
        try:
            resp = await self._http.post(
                self._settings.INSTAGRAM_TOKEN_URL,
                data={
                    "client_id": self._settings.INSTAGRAM_APP_ID,
                    "client_secret": self._settings.INSTAGRAM_APP_SECRET,
                    "grant_type": "authorization_code",
                    "redirect_uri": self._settings.instagram_redirect_uri,
                    "code": code,
                },
            )
        except httpx.HTTPError as exc:
            raise ExchangeFailed(f"Instagram token exchange failed: {exc}", stage="exchange") from exc

        data = _json_or_empty(resp)
        # Business Login wraps the payload in data[0] for some app types
        if isinstance(data.get("data"), list) and data["data"] and isinstance(data["data"][0], dict):
            data = data["data"][0]
        if not resp.is_success or not data.get("access_token"):
            raise ExchangeFailed(
                f"Instagram token exchange failed: {_error_message(resp)}", stage="exchange"
            )

        return ShortLivedToken(access_token=data["access_token"], user_id=str(data.get("user_id") or ""))

    async def _token_call(self, path: str, params: dict[str, str], fallback: str, action: str) -> TokenResult:
        try:
            resp = await self._http.get(f"{self._settings.INSTAGRAM_GRAPH_URL.rstrip('/')}/{path}", params=params)
        except httpx.HTTPError as exc:
            logger.warning("Instagram %s failed, keeping current token: %s", action, exc)
            return TokenResult(credential=fallback, degraded=True)

        data = _json_or_empty(resp)
        if not resp.is_success or not data.get("access_token"):
            logger.warning(
                "Instagram %s failed (HTTP %d), keeping current token: %s",
                action, resp.status_code, _error_message(resp),
            )
            return TokenResult(credential=fallback, degraded=True)

        expires_in = data.get("expires_in")
        return TokenResult(
            credential=data["access_token"],
            expires_in=int(expires_in) if expires_in is not None else None,
        )

    async def upgrade(self, short_lived: str) -> TokenResult:
        """Swap a short-lived token for a 60-day one; never raises on provider failure."""
        self._settings.require("INSTAGRAM_APP_SECRET")
        result = await self._token_call(
            "access_token",
            {
                "grant_type": "ig_exchange_token",
                "client_secret": self._settings.INSTAGRAM_APP_SECRET,
                "access_token": short_lived,
            },
            fallback=short_lived,
            action="long-lived token exchange",
        )
        if result.degraded:
            return TokenResult(credential=short_lived, expires_in=SHORT_LIVED_TTL_SECONDS, degraded=True)
        return result

    async def refresh(self, long_lived: str) -> TokenResult:
        """Extend a long-lived token; the current token is kept if refresh fails."""
        return await self._token_call(
            "refresh_access_token",
            {"grant_type": "ig_refresh_token", "access_token": long_lived},
            fallback=long_lived,
            action="token refresh",
        )

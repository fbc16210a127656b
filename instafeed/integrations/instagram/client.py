"""Instagram Graph API client: profile lookup and paginated media retrieval."""
import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from instafeed.config import Settings
from instafeed.exceptions import FetchFailed
from instafeed.integrations.resilience import retry_with_backoff
from instafeed.schemas.feed import InstagramProfile, MediaChild, RawMediaItem
from instafeed.utils.helpers import truncate

logger = logging.getLogger(__name__)

MEDIA_FIELDS = "id,caption,media_type,media_url,permalink,thumbnail_url,timestamp,username"
CHILD_FIELDS = "id,media_type,media_url,thumbnail_url"
PROFILE_FIELDS = "id,user_id,username,profile_picture_url"

MAX_PAGE_SIZE = 100
MAX_PAGES = 50


class InstagramGraphClient:
    """Async client for graph.instagram.com.

    Uses the process-wide httpx.AsyncClient it is given; every method takes
    the (decrypted) access token of the account it acts for.
    """

    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        self._http = http
        self._base_url = settings.graph_base_url
        self._max_retries = settings.MEDIA_FETCH_MAX_RETRIES
        self._backoff = settings.MEDIA_FETCH_BACKOFF_SECONDS
        self._child_concurrency = max(1, settings.CHILD_FETCH_CONCURRENCY)

    # ── Profile ──

    async def get_profile(self, access_token: str) -> InstagramProfile:
        """Fetch the connected account's canonical id, username and avatar."""
        try:
            resp = await self._http.get(
                f"{self._base_url}/me",
                params={"fields": PROFILE_FIELDS, "access_token": access_token},
            )
        except httpx.HTTPError as exc:
            raise FetchFailed(f"Failed to fetch user profile: {exc}", stage="profile") from exc

        if not resp.is_success:
            raise FetchFailed(
                f"Failed to fetch user profile (HTTP {resp.status_code})",
                stage="profile", status=resp.status_code, body=truncate(resp.text, 1000),
            )
        try:
            data = _json_object(resp)
            # Business Login returns the app-scoped id in "id" and the IG user id in "user_id"
            return InstagramProfile.model_validate({**data, "id": data.get("user_id") or data.get("id")})
        except ValueError as exc:
            raise FetchFailed(
                "Instagram returned an unreadable profile",
                stage="profile", status=resp.status_code, body=truncate(resp.text, 1000),
            ) from exc

    # ── Media ──

    async def _get_json(self, url: str, params: dict[str, Any] | None) -> dict[str, Any]:
        resp = await self._http.get(url, params=params)
        resp.raise_for_status()
        return _json_object(resp)

    async def _get_page(self, url: str, params: dict[str, Any] | None) -> dict[str, Any]:
        try:
            return await retry_with_backoff(
                self._get_json, url, params,
                max_retries=self._max_retries,
                backoff_base=self._backoff,
                label="instagram media page",
            )
        except httpx.HTTPStatusError as exc:
            raise FetchFailed(
                f"Failed to fetch media from Instagram (HTTP {exc.response.status_code})",
                stage="media", status=exc.response.status_code, body=truncate(exc.response.text, 1000),
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchFailed(f"Failed to fetch media from Instagram: {exc}", stage="media") from exc
        except ValueError as exc:
            raise FetchFailed(f"Instagram returned an unreadable media page: {exc}", stage="media") from exc

    async def get_children(self, media_id: str, access_token: str) -> list[MediaChild]:
        resp = await self._http.get(
            f"{self._base_url}/{media_id}/children",
            params={"fields": CHILD_FIELDS, "access_token": access_token},
        )
        resp.raise_for_status()
        return [MediaChild.model_validate(child) for child in _json_object(resp).get("data") or []]

    async def _expand_children(self, items: list[RawMediaItem], access_token: str) -> None:
        semaphore = asyncio.Semaphore(self._child_concurrency)

        async def _expand(item: RawMediaItem) -> None:
            async with semaphore:
                try:
                    item.children = await self.get_children(item.id, access_token)
                except (httpx.HTTPError, ValueError) as exc:
                    logger.warning("Child fetch failed for media %s, publishing without children: %s", item.id, exc)
                    item.children = []

        await asyncio.gather(*(_expand(item) for item in items if item.is_album))

    async def iter_media(
        self, user_id: str, access_token: str, limit: int | None = None
    ) -> AsyncIterator[RawMediaItem]:
        """Yield the account's media, newest first.

        Stops after ``limit`` items, when the provider has no next page, or
        after MAX_PAGES pages. Pages are requested one after another since
        each cursor comes from the previous response.
        """
        page_size = min(limit, MAX_PAGE_SIZE) if limit else MAX_PAGE_SIZE
        url: str | None = f"{self._base_url}/{user_id}/media"
        params: dict[str, Any] | None = {
            "fields": MEDIA_FIELDS,
            "limit": page_size,
            "access_token": access_token,
        }
        yielded = 0

        for _ in range(MAX_PAGES):
            if url is None:
                break
            page = await self._get_page(url, params)
            try:
                items = [RawMediaItem.model_validate(raw) for raw in page.get("data") or []]
            except ValueError as exc:
                raise FetchFailed(f"Instagram returned a malformed media item: {exc}", stage="media") from exc
            if limit:
                items = items[: limit - yielded]

            await self._expand_children(items, access_token)
            for item in items:
                yield item
            yielded += len(items)

            if limit and yielded >= limit:
                break

            paging = page.get("paging") or {}
            after = (paging.get("cursors") or {}).get("after")
            if not paging.get("next") or not after:
                break
            url = f"{self._base_url}/{user_id}/media"
            params = {**params, "after": after}

    async def fetch_media(self, user_id: str, access_token: str, limit: int | None = None) -> list[RawMediaItem]:
        """Collect ``iter_media``; a failed page raises FetchFailed and nothing is returned."""
        return [item async for item in self.iter_media(user_id, access_token, limit)]


def _json_object(resp: httpx.Response) -> dict[str, Any]:
    """Decode a JSON object body; anything else raises ValueError."""
    data = resp.json()
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data

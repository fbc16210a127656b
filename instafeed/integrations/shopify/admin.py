"""Shopify Admin GraphQL client."""
import logging
from typing import Any

import httpx

from instafeed.config import Settings
from instafeed.exceptions import PublishFailed

logger = logging.getLogger(__name__)

SHOP_ID_QUERY = "query { shop { id } }"

METAFIELDS_SET_MUTATION = """
mutation MetafieldsSet($metafields: [MetafieldsSetInput!]!) {
  metafieldsSet(metafields: $metafields) {
    metafields { id key namespace }
    userErrors { field message }
  }
}
"""


class ShopifyAdminClient:
    """Async client for the Admin GraphQL API of one shop.

    All methods expect the shop's decrypted Admin API access token.
    """

    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        self._http = http
        self._api_version = settings.SHOPIFY_API_VERSION

    def _endpoint(self, shop: str) -> str:
        return f"https://{shop}/admin/api/{self._api_version}/graphql.json"

    async def graphql(
        self, shop: str, access_token: str, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Run a GraphQL document and return its ``data`` object."""
        try:
            resp = await self._http.post(
                self._endpoint(shop),
                json={"query": query, "variables": variables or {}},
                headers={"X-Shopify-Access-Token": access_token},
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise PublishFailed(
                f"Shopify Admin API returned HTTP {exc.response.status_code}", stage="publish"
            ) from exc
        except httpx.HTTPError as exc:
            raise PublishFailed(f"Shopify Admin API unreachable: {exc}", stage="publish") from exc

        try:
            body = resp.json()
        except ValueError as exc:
            raise PublishFailed("Shopify Admin API returned a non-JSON body", stage="publish") from exc
        if not isinstance(body, dict):
            raise PublishFailed("Shopify Admin API returned an unexpected body", stage="publish")
        if body.get("errors"):
            errors = body["errors"]
            message = errors[0].get("message") if isinstance(errors, list) and errors else str(errors)
            raise PublishFailed(message or "GraphQL error", stage="publish")
        return body.get("data") or {}

    async def get_shop_id(self, shop: str, access_token: str) -> str:
        data = await self.graphql(shop, access_token, SHOP_ID_QUERY)
        shop_id = (data.get("shop") or {}).get("id")
        if not shop_id:
            raise PublishFailed("Shop id missing from Admin API response", stage="publish")
        return shop_id

    async def set_metafields(self, shop: str, access_token: str, metafields: list[dict[str, Any]]) -> list[dict]:
        """Write all ``metafields`` in a single atomic ``metafieldsSet`` mutation.

        The first user error aborts the whole write with PublishFailed.
        """
        data = await self.graphql(shop, access_token, METAFIELDS_SET_MUTATION, {"metafields": metafields})
        result = data.get("metafieldsSet") or {}
        user_errors = result.get("userErrors") or []
        if user_errors:
            raise PublishFailed(user_errors[0].get("message") or "Metafield write rejected", stage="publish")
        return result.get("metafields") or []

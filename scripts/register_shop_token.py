"""Encrypt a Shopify Admin API access token and store it as the shop's installation.

Usage (from the repository root):
    SHOPIFY_ADMIN_TOKEN=shpat_... python scripts/register_shop_token.py --shop demo.myshopify.com

The script:
  1. Reads the token from SHOPIFY_ADMIN_TOKEN env var (or --token CLI arg).
  2. Calls the Admin GraphQL API ``query { shop { id } }`` to validate the token.
  3. Encrypts the token with AES-256-GCM using settings.ENCRYPTION_KEY.
  4. Upserts the shop_installations row for the shop.

Prerequisites:
    - Database migrated (alembic upgrade head).
    - ENCRYPTION_KEY is set in .env.
"""
import argparse
import asyncio
import os
import sys
from pathlib import Path

# Windows: asyncpg requires SelectorEventLoop
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx

from instafeed.config import Settings, get_settings
from instafeed.database import Database
from instafeed.exceptions import PublishFailed
from instafeed.integrations.shopify.admin import ShopifyAdminClient
from instafeed.repositories import installation_repository
from instafeed.utils.encryption import TokenEncryptor
from instafeed.utils.helpers import is_valid_shop_domain


async def register(settings: Settings, shop: str, token: str, scope: str) -> bool:
    # 1. Validate token with the Admin API
    print(f"Validating token against {shop}…")
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as http:
        try:
            shop_id = await ShopifyAdminClient(http, settings).get_shop_id(shop, token)
        except PublishFailed as exc:
            print(f"ERROR: Admin API rejected the token: {exc}")
            return False
    print(f"Token valid. shop_id={shop_id}")

    # 2. Encrypt token
    if not settings.ENCRYPTION_KEY:
        print("ERROR: ENCRYPTION_KEY is not set in .env. Cannot encrypt token.")
        return False
    encrypted_token = TokenEncryptor.from_settings(settings).encrypt(token, shop)

    # 3. Upsert installation row
    database = Database.from_settings(settings)
    try:
        async with database.session() as db:
            installation = await installation_repository.upsert(db, shop, encrypted_token, scope)
            installation_id = installation.id
    finally:
        await database.dispose()

    print()
    print("─" * 60)
    print("Token registered successfully!")
    print(f"  installation_id = {installation_id}")
    print(f"  shop            = {shop}")
    print(f"  shop_gid        = {shop_id}")
    print()
    print("Next step: connect Instagram from the embedded app, then")
    print("  POST /api/v1/instagram/sync")
    print("─" * 60)
    return True


async def main() -> None:
    parser = argparse.ArgumentParser(description="Register a Shopify Admin API token for a shop.")
    parser.add_argument("--shop", required=True, help="Shop domain, e.g. demo.myshopify.com")
    parser.add_argument(
        "--token",
        default=None,
        help="Admin API access token (overrides SHOPIFY_ADMIN_TOKEN env var)",
    )
    parser.add_argument("--scope", default="", help="Granted scopes, comma separated")
    args = parser.parse_args()

    token = args.token or os.environ.get("SHOPIFY_ADMIN_TOKEN", "")
    if not token:
        print("ERROR: Provide the token via SHOPIFY_ADMIN_TOKEN env var or --token CLI argument.")
        sys.exit(1)

    if not is_valid_shop_domain(args.shop):
        print(f"ERROR: Invalid shop domain: {args.shop!r}")
        sys.exit(1)

    if not await register(get_settings(), args.shop, token, args.scope):
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())

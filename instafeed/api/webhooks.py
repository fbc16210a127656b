"""Shopify lifecycle webhooks - 3 endpoints.

Every delivery is HMAC-verified; handlers are idempotent because Shopify
retries deliveries.
"""
import json

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.config import Settings
from instafeed.dependencies import get_db, get_settings
from instafeed.integrations.shopify.verification import verify_webhook_hmac
from instafeed.services import tenant_service
from instafeed.utils.helpers import is_valid_shop_domain

logger = structlog.get_logger()

router = APIRouter()


async def verified_webhook(request: Request, settings: Settings = Depends(get_settings)) -> tuple[str, dict]:
    """Return (shop, payload) of an authentic delivery, else 401."""
    body = await request.body()
    if not verify_webhook_hmac(body, request.headers.get("x-shopify-hmac-sha256"), settings.SHOPIFY_API_SECRET):
        logger.warning("webhook_hmac_invalid", path=request.url.path)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    shop = request.headers.get("x-shopify-shop-domain", "")
    try:
        payload = json.loads(body) if body else {}
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    shop = shop or str(payload.get("shop_domain") or payload.get("myshopify_domain") or "")
    if not is_valid_shop_domain(shop):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return shop, payload


# POST /webhooks/app/uninstalled
@router.post("/app/uninstalled")
async def app_uninstalled(
    delivery: tuple[str, dict] = Depends(verified_webhook),
    db: AsyncSession = Depends(get_db),
):
    shop, _ = delivery
    await tenant_service.handle_uninstall(db, shop)
    logger.info("webhook_app_uninstalled", shop=shop)
    return Response(status_code=200)


# POST /webhooks/app/scopes_update
@router.post("/app/scopes_update")
async def app_scopes_update(
    delivery: tuple[str, dict] = Depends(verified_webhook),
    db: AsyncSession = Depends(get_db),
):
    shop, payload = delivery
    current = payload.get("current")
    scope = ",".join(str(s) for s in current) if isinstance(current, list) else str(current or "")
    await tenant_service.update_scope(db, shop, scope)
    logger.info("webhook_scopes_update", shop=shop, scope=scope)
    return Response(status_code=200)


# POST /webhooks/shop/redact
@router.post("/shop/redact")
async def shop_redact(
    delivery: tuple[str, dict] = Depends(verified_webhook),
    db: AsyncSession = Depends(get_db),
):
    shop, _ = delivery
    removed = await tenant_service.erase_shop(db, shop)
    logger.info("webhook_shop_redact", shop=shop, removed=removed)
    return Response(status_code=200)

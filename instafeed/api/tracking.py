"""Storefront tracking beacons.

``/api/event`` is called directly from the storefront and names the shop in
the payload. ``/api/track`` is reached through the Shopify app proxy, which
signs the query string and appends ``shop``.
"""
import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.config import Settings
from instafeed.dependencies import get_db, get_settings
from instafeed.integrations.shopify.verification import verify_app_proxy_signature
from instafeed.middleware.cors import PUBLIC_CORS_HEADERS
from instafeed.schemas.tracking import EVENT_TYPES, TrackEvent
from instafeed.services.analytics_service import AnalyticsRecorder
from instafeed.utils.helpers import is_valid_shop_domain

logger = structlog.get_logger()

router = APIRouter()

_FIELDS = {"shop": "shop", "type": "type", "mediaId": "media_id", "mediaUrl": "media_url", "permalink": "permalink"}


def _pick(source) -> dict[str, str]:
    picked = {}
    for key, field in _FIELDS.items():
        value = source.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str) and value:
            picked[field] = value
    return picked


async def parse_event(request: Request) -> TrackEvent:
    """Query parameters, overridden by a JSON or form body when one is sent."""
    data = _pick(request.query_params)
    if request.method == "GET":
        return TrackEvent(**data)

    content_type = request.headers.get("content-type", "")
    try:
        if "application/json" in content_type:
            body = await request.json()
            if isinstance(body, dict):
                data.update(_pick(body))
        elif "form" in content_type:
            form = await request.form()
            data.update(_pick(form))
    except ValueError:
        logger.debug("tracking_body_unparseable", content_type=content_type)
    return TrackEvent(**data)


def _reply(content: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content, status_code=status_code, headers=PUBLIC_CORS_HEADERS)


async def _record(db: AsyncSession, shop: str, event: TrackEvent, source: str) -> JSONResponse:
    if event.type not in EVENT_TYPES:
        return _reply({"error": "Invalid type"}, 400)

    await AnalyticsRecorder(db).record(
        shop,
        event.type,
        media_id=event.media_id,
        media_url=event.media_url,
        permalink=event.permalink,
    )
    logger.info("tracking_event", source=source, shop=shop, type=event.type, media_id=event.media_id)
    return _reply({"success": True})


# GET/POST /api/event
@router.api_route("/api/event", methods=["GET", "POST"])
async def track_event(request: Request, db: AsyncSession = Depends(get_db)):
    event = await parse_event(request)
    if not is_valid_shop_domain(event.shop):
        return _reply({"error": "Invalid shop"}, 400)
    return await _record(db, event.shop, event, "direct")


# GET/POST /api/track (app proxy)
@router.api_route("/api/track", methods=["GET", "POST"])
async def track_proxy(
    request: Request,
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
):
    shop = request.query_params.get("shop")
    signed = verify_app_proxy_signature(request.query_params.multi_items(), settings.SHOPIFY_API_SECRET)
    if not signed or not is_valid_shop_domain(shop):
        logger.warning("tracking_proxy_unauthorized", shop=shop, signed=signed)
        return _reply({"error": "Unauthorized"}, 401)

    event = await parse_event(request)
    return await _record(db, shop, event, "proxy")

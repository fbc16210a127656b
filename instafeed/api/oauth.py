"""Instagram OAuth callback.

Always answers with a redirect back into the embedded admin app; failures are
reported through the ``ig_connect`` / ``ig_error`` query parameters.
"""
import httpx
import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from instafeed.config import Settings
from instafeed.database import Database
from instafeed.dependencies import get_database, get_http_client, get_locks, get_settings
from instafeed.exceptions import FeedError, InvalidState
from instafeed.services import connect_service
from instafeed.services.connect_service import ConnectService
from instafeed.services.sync_service import FeedSyncService
from instafeed.utils.locks import TenantLockRegistry

logger = structlog.get_logger()

router = APIRouter()


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=302)


# GET /instagram/callback
@router.get("/instagram/callback")
async def instagram_callback(
    request: Request,
    settings: Settings = Depends(get_settings),
    database: Database = Depends(get_database),
    http: httpx.AsyncClient = Depends(get_http_client),
    locks: TenantLockRegistry = Depends(get_locks),
):
    params = request.query_params
    code = params.get("code")
    oauth_error = params.get("error_description") or params.get("error_reason") or params.get("error")
    try:
        shop = connect_service.verify_state(settings, params.get("state"))
    except InvalidState:
        shop = None

    if oauth_error:
        logger.warning("instagram_callback_denied", shop=shop, error=oauth_error[:240])
        return _redirect(connect_service.error_redirect(settings, shop, oauth_error))
    if not shop:
        logger.warning("instagram_callback_invalid_state")
        return _redirect(connect_service.error_redirect(settings, None, "invalid_state"))
    if not code:
        return _redirect(connect_service.error_redirect(settings, shop, "missing_code"))

    try:
        async with database.session() as db:
            account = await ConnectService(db, http, settings).connect(shop, code)
    except FeedError as e:
        logger.warning("instagram_callback_failed", shop=shop, stage=e.stage, error=e.message)
        return _redirect(connect_service.error_redirect(settings, shop, e.message))
    except Exception as e:
        logger.error("instagram_callback_failed", shop=shop, error=str(e), exc_info=True)
        return _redirect(connect_service.error_redirect(settings, shop, str(e) or "oauth_failed"))

    logger.info("instagram_connected", shop=shop, user_id=account.user_id, degraded=account.token_degraded)

    # The account is stored either way; a failed first sync is retried by the beat job
    try:
        async with database.session() as db:
            await FeedSyncService(db, http, settings, locks).sync(shop)
    except (FeedError, TimeoutError) as e:
        logger.warning("initial_sync_failed", shop=shop, error=str(e))
    except Exception as e:
        logger.error("initial_sync_failed", shop=shop, error=str(e), exc_info=True)

    return _redirect(connect_service.embedded_app_url(settings, shop, ig_connect="success"))

"""Instagram connection API - 4 endpoints."""
import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.config import Settings
from instafeed.dependencies import get_current_shop, get_db, get_settings, get_sync_service
from instafeed.repositories import account_repository
from instafeed.schemas.common import APIResponse
from instafeed.schemas.instagram import AccountStatus, ConnectResponse
from instafeed.services import connect_service
from instafeed.services.premium import plan_details
from instafeed.services.sync_service import FeedSyncService

logger = structlog.get_logger()

router = APIRouter()


# POST /instagram/connect
@router.post("/connect", response_model=APIResponse)
async def connect(
    shop: str = Depends(get_current_shop),
    settings: Settings = Depends(get_settings),
):
    auth_url = connect_service.authorize_url_for(settings, shop)
    logger.info("instagram_connect_started", shop=shop)
    return APIResponse(status="success", data=ConnectResponse(auth_url=auth_url).model_dump())


# GET /instagram/account
@router.get("/account", response_model=APIResponse)
async def get_account(
    shop: str = Depends(get_current_shop),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
):
    account = await account_repository.get_by_shop(db, shop)
    plan = plan_details(settings, shop)
    if account is None:
        return APIResponse(status="success", data=AccountStatus(connected=False, plan=plan).model_dump())
    data = AccountStatus(
        connected=True,
        username=account.username,
        user_id=account.user_id,
        profile_picture_url=account.profile_picture_url,
        token_degraded=account.token_degraded,
        updated_at=account.updated_at,
        plan=plan,
    )
    return APIResponse(status="success", data=data.model_dump())


# DELETE /instagram/account
@router.delete("/account", response_model=APIResponse)
async def disconnect(
    shop: str = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db),
):
    removed = await account_repository.delete_by_shop(db, shop)
    logger.info("instagram_disconnected", shop=shop, removed=bool(removed))
    return APIResponse(status="success", message="Instagram account disconnected" if removed else "No account connected")


# POST /instagram/sync
@router.post("/sync", response_model=APIResponse)
async def sync(
    shop: str = Depends(get_current_shop),
    service: FeedSyncService = Depends(get_sync_service),
):
    result = await service.sync(shop)
    return APIResponse(status="success", data=result.model_dump())

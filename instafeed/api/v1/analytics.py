"""Analytics API - 2 endpoints."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.dependencies import get_current_shop, get_db
from instafeed.schemas.analytics import PostCounterResponse
from instafeed.schemas.common import APIResponse
from instafeed.services.analytics_service import AnalyticsAggregator, AnalyticsRecorder

router = APIRouter()


# GET /analytics/summary
@router.get("/summary", response_model=APIResponse)
async def get_summary(
    days: int = Query(30, ge=1, le=365),
    shop: str = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db),
):
    summary = await AnalyticsAggregator(db).summarize(shop, days)
    return APIResponse(status="success", data=summary.model_dump(mode="json"))


# GET /analytics/top-posts
@router.get("/top-posts", response_model=APIResponse)
async def get_top_posts(
    limit: int = Query(5, ge=1, le=50),
    shop: str = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db),
):
    posts = await AnalyticsRecorder(db).top_posts(shop, limit)
    return APIResponse(
        status="success",
        data=[PostCounterResponse.model_validate(p).model_dump() for p in posts],
    )

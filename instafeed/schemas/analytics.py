"""Analytics request/response schemas."""
from datetime import date

from pydantic import BaseModel


class DailyPoint(BaseModel):
    date: date
    views: int = 0
    clicks: int = 0


class AnalyticsTotals(BaseModel):
    views: int = 0
    clicks: int = 0
    ctr: float = 0.0


class WeekOverWeek(BaseModel):
    views: float = 0.0
    clicks: float = 0.0
    ctr: float = 0.0
    engagement: float = 0.0


class AnalyticsSummary(BaseModel):
    window_days: int
    daily_series: list[DailyPoint] = []
    totals: AnalyticsTotals
    week_over_week: WeekOverWeek


class PostCounterResponse(BaseModel):
    media_id: str
    media_url: str | None = None
    permalink: str | None = None
    views: int = 0
    clicks: int = 0

    model_config = {"from_attributes": True}

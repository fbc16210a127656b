"""Storefront engagement analytics: counter recording and windowed summaries."""
import logging
from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from instafeed.models.analytics import DailyCounter, PostCounter
from instafeed.repositories import analytics_repository
from instafeed.schemas.analytics import (
    AnalyticsSummary,
    AnalyticsTotals,
    DailyPoint,
    WeekOverWeek,
)
from instafeed.schemas.tracking import EVENT_TYPES, EventType
from instafeed.utils.helpers import utc_today

logger = logging.getLogger(__name__)

WEEK_OVER_WEEK_DAYS = 14

_COLUMNS: dict[EventType, str] = {"view": "views", "click": "clicks"}


def percent_change(current: float, previous: float) -> float:
    """Relative change in percent; from a zero baseline any growth counts as 100%."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def click_through_rate(views: int, clicks: int) -> float:
    return clicks / views * 100 if views > 0 else 0.0


class AnalyticsRecorder:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        shop: str,
        event_type: EventType,
        *,
        media_id: str | None = None,
        media_url: str | None = None,
        permalink: str | None = None,
        day: date | None = None,
    ) -> None:
        """Count one ``view`` or ``click`` for the shop and, when given, the post.

        Each counter moves with one upsert statement, so concurrent events
        never lose increments.
        """
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event_type}")
        column = _COLUMNS[event_type]
        await analytics_repository.increment_daily(self.db, shop, day or utc_today(), column)
        if media_id:
            await analytics_repository.increment_post(
                self.db, shop, media_id, column, media_url=media_url, permalink=permalink,
            )

    async def reset(self, shop: str) -> int:
        removed = await analytics_repository.delete_for_shop(self.db, shop)
        logger.info("Analytics reset for %s (%d rows)", shop, removed)
        return removed

    async def top_posts(self, shop: str, limit: int = 5) -> list[PostCounter]:
        return await analytics_repository.top_posts(self.db, shop, limit)


def _sum(rows: list[DailyCounter], start: date, end: date) -> tuple[int, int]:
    views = clicks = 0
    for row in rows:
        if start <= row.date <= end:
            views += row.views
            clicks += row.clicks
    return views, clicks


class AnalyticsAggregator:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def summarize(self, shop: str, window_days: int = 30, today: date | None = None) -> AnalyticsSummary:
        """Daily series and totals over ``window_days`` plus week-over-week change.

        At least 14 days are always read so the previous week is available
        even for short windows.
        """
        today = today or utc_today()
        window_days = max(1, window_days)
        read_start = today - timedelta(days=max(window_days, WEEK_OVER_WEEK_DAYS) - 1)
        rows = await analytics_repository.daily_since(self.db, shop, read_start)

        window_start = today - timedelta(days=window_days - 1)
        by_day = {row.date: row for row in rows}
        series = []
        for offset in range(window_days):
            day = window_start + timedelta(days=offset)
            row = by_day.get(day)
            series.append(DailyPoint(date=day, views=row.views if row else 0, clicks=row.clicks if row else 0))

        views, clicks = _sum(rows, window_start, today)
        totals = AnalyticsTotals(views=views, clicks=clicks, ctr=round(click_through_rate(views, clicks), 2))

        cur_views, cur_clicks = _sum(rows, today - timedelta(days=6), today)
        prev_views, prev_clicks = _sum(rows, today - timedelta(days=13), today - timedelta(days=7))
        week_over_week = WeekOverWeek(
            views=percent_change(cur_views, prev_views),
            clicks=percent_change(cur_clicks, prev_clicks),
            ctr=percent_change(
                click_through_rate(cur_views, cur_clicks), click_through_rate(prev_views, prev_clicks)
            ),
            engagement=percent_change(cur_views + cur_clicks, prev_views + prev_clicks),
        )

        return AnalyticsSummary(
            window_days=window_days,
            daily_series=series,
            totals=totals,
            week_over_week=week_over_week,
        )

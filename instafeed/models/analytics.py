"""Engagement counter ORM models."""
import datetime

from sqlalchemy import Date, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from instafeed.models.base import Base, TimestampMixin, UUIDMixin, shop_column


class DailyCounter(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "analytics_daily"
    __table_args__ = (
        UniqueConstraint("shop", "date", name="uq_analytics_daily_shop_date"),
    )

    shop: Mapped[str] = shop_column()
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class PostCounter(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "analytics_posts"
    __table_args__ = (
        UniqueConstraint("shop", "media_id", name="uq_analytics_posts_shop_media"),
    )

    shop: Mapped[str] = shop_column()
    media_id: Mapped[str] = mapped_column(String(64), nullable=False)
    media_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    permalink: Mapped[str | None] = mapped_column(Text, nullable=True)
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

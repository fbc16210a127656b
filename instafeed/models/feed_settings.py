"""Per-shop feed display settings."""
from sqlalchemy import Integer
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from instafeed.models.base import Base, TimestampMixin, UUIDMixin, shop_column


class FeedSettings(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "feed_settings"

    shop: Mapped[str] = shop_column(unique=True)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    config: Mapped[dict] = mapped_column(JSONB, default=dict, nullable=False)

"""Connected Instagram account ORM model."""
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from instafeed.models.base import Base, TimestampMixin, UUIDMixin, shop_column

DEFAULT_USERNAME = "Instagram User"


class InstagramAccount(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "instagram_accounts"

    shop: Mapped[str] = shop_column(unique=True)
    access_token: Mapped[str] = mapped_column(Text, nullable=False)  # AES-GCM encrypted
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    username: Mapped[str] = mapped_column(String(255), nullable=False, default=DEFAULT_USERNAME)
    profile_picture_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    token_degraded: Mapped[bool] = mapped_column(Boolean, default=False)
    token_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

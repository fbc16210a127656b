"""Shop installation ORM model (Admin API credential of a tenant)."""
from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from instafeed.models.base import Base, TimestampMixin, UUIDMixin, shop_column


class ShopInstallation(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "shop_installations"

    shop: Mapped[str] = shop_column(unique=True)
    access_token: Mapped[str] = mapped_column(Text, nullable=False)  # AES-GCM encrypted
    scope: Mapped[str] = mapped_column(Text, nullable=False, default="")

"""Locally owned per-post metadata (pin / hide / attached products)."""
from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from instafeed.models.base import Base, TimestampMixin, UUIDMixin, shop_column


class PostMeta(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "post_meta"
    __table_args__ = (
        UniqueConstraint("shop", "media_id", name="uq_post_meta_shop_media"),
    )

    shop: Mapped[str] = shop_column()
    media_id: Mapped[str] = mapped_column(String(64), nullable=False)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    products: Mapped[list] = mapped_column(JSONB, default=list, nullable=False)

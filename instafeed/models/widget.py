"""Feed widget ORM model."""
import enum

from sqlalchemy import String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from instafeed.models.base import Base, TimestampMixin, UUIDMixin, pg_enum, shop_column


class WidgetStatus(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"


class Widget(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "widgets"

    shop: Mapped[str] = shop_column()
    title: Mapped[str] = mapped_column(String(200), nullable=False, default="My Feed Widget")
    status: Mapped[WidgetStatus] = mapped_column(
        pg_enum(WidgetStatus, name="widget_status"), nullable=False, default=WidgetStatus.DRAFT
    )
    configuration: Mapped[dict] = mapped_column(JSONB, default=dict, nullable=False)

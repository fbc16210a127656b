"""SQLAlchemy ORM models."""
from instafeed.models.base import Base, TimestampMixin, UUIDMixin
from instafeed.models.account import InstagramAccount
from instafeed.models.installation import ShopInstallation
from instafeed.models.post_meta import PostMeta
from instafeed.models.analytics import DailyCounter, PostCounter
from instafeed.models.feed_settings import FeedSettings
from instafeed.models.widget import Widget, WidgetStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "InstagramAccount",
    "ShopInstallation",
    "PostMeta",
    "DailyCounter",
    "PostCounter",
    "FeedSettings",
    "Widget",
    "WidgetStatus",
]

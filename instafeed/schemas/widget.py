"""Widget request/response schemas."""
import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from instafeed.models.widget import WidgetStatus
from instafeed.schemas.settings import WidgetConfig


class WidgetCreate(BaseModel):
    title: str = Field(default="My Feed Widget", min_length=1, max_length=200)


class WidgetUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    configuration: WidgetConfig | None = None
    status: WidgetStatus | None = None


class WidgetResponse(BaseModel):
    id: uuid.UUID
    title: str
    status: WidgetStatus
    configuration: WidgetConfig
    created_at: datetime | None = None
    updated_at: datetime | None = None

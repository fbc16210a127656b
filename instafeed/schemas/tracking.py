"""Storefront tracking event payload."""
from typing import Literal, get_args

from pydantic import BaseModel

EventType = Literal["view", "click"]
EVENT_TYPES: tuple[EventType, ...] = get_args(EventType)


class TrackEvent(BaseModel):
    # type stays a plain string so an unknown value is a 400, not a 422
    shop: str | None = None
    type: str | None = None
    media_id: str | None = None
    media_url: str | None = None
    permalink: str | None = None

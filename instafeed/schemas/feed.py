"""Instagram media, profile and merged feed schemas."""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

CAROUSEL_ALBUM = "CAROUSEL_ALBUM"


class ProductRef(BaseModel):
    """A storefront product attached to a post."""

    id: str
    title: str = ""
    handle: str = ""
    image: str | None = None

    model_config = {"extra": "ignore"}

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class MediaChild(BaseModel):
    id: str
    media_type: str | None = None
    media_url: str | None = None
    thumbnail_url: str | None = None

    model_config = {"extra": "ignore"}


class RawMediaItem(BaseModel):
    """One media object as returned by ``/{user-id}/media``."""

    id: str
    caption: str | None = None
    media_type: str | None = None
    media_url: str | None = None
    permalink: str | None = None
    thumbnail_url: str | None = None
    timestamp: str | None = None
    username: str | None = None
    children: list[MediaChild] = []

    model_config = {"extra": "ignore"}

    @property
    def is_album(self) -> bool:
        return self.media_type == CAROUSEL_ALBUM


class InstagramProfile(BaseModel):
    id: str
    username: str | None = None
    profile_picture_url: str | None = None

    model_config = {"extra": "ignore"}

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class FeedChild(BaseModel):
    id: str
    type: str | None = None
    url: str | None = None
    thumbnail: str | None = None


class MergedFeedItem(BaseModel):
    """A remote media item combined with locally owned metadata.

    Serialized with camelCase keys into the ``media`` metafield read by the theme.
    """

    id: str
    url: str | None = None
    thumbnail: str | None = None
    permalink: str | None = None
    caption: str | None = None
    type: str | None = None
    username: str | None = None
    timestamp: str | None = None
    children: list[FeedChild] = []
    is_pinned: bool = Field(default=False, serialization_alias="isPinned")
    is_hidden: bool = Field(default=False, serialization_alias="isHidden")
    products: list[ProductRef] = []

    model_config = ConfigDict(populate_by_name=True)


class ProductsUpdate(BaseModel):
    products: list[ProductRef] = Field(default_factory=list, max_length=50)


class PostMetaResponse(BaseModel):
    media_id: str
    is_pinned: bool
    is_hidden: bool
    products: list[ProductRef] = []

    model_config = {"from_attributes": True}

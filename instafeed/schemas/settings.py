"""Feed display settings and widget configuration structs.

Both are stored as JSON and published to the storefront. Whatever shape is
found in the store (older camelCase payloads, missing keys, unknown keys) is
normalized once through ``normalize_feed_settings`` / ``normalize_widget_config``.
"""
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

SETTINGS_VERSION = 1

_camel = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _drop_invalid(data: dict[str, Any], exc: ValidationError) -> dict[str, Any]:
    """Remove the keys (snake_case or camelCase spelling) that failed validation."""
    bad = {str(err["loc"][0]) for err in exc.errors() if err["loc"]}
    bad |= {to_camel(key) for key in bad}
    return {k: v for k, v in data.items() if k not in bad and to_camel(k) not in bad}


class FeedDisplaySettings(BaseModel):
    model_config = _camel

    version: int = SETTINGS_VERSION
    title: str = "INSTAGRAM'DA BİZ"
    subheading: str = "Daha Fazlası İçin Bizi Takip Edebilirsiniz"
    feed_type: Literal["slider", "grid"] = "slider"
    show_pinned_reels: bool = False
    grid_desktop_columns: int = Field(default=4, ge=1, le=8)
    grid_mobile_columns: int = Field(default=2, ge=1, le=4)
    slider_desktop_columns: int = Field(default=4, ge=1, le=8)
    slider_mobile_columns: int = Field(default=2, ge=1, le=4)
    show_arrows: bool = True
    media_limit: int = Field(default=12, ge=1, le=100)
    on_click: Literal["popup", "instagram", "none"] = "popup"
    post_spacing: Literal["none", "small", "medium", "large"] = "medium"
    border_radius: Literal["none", "small", "medium", "large"] = "medium"
    play_video_on_hover: bool = False
    show_thumbnail: bool = False
    show_views_count: bool = False
    show_author_profile: bool = True
    show_attached_products: bool = True
    clean_display: bool = False
    title_color: str = "#000000"
    subheading_color: str = "#6d7175"
    arrow_color: str = "#000000"
    arrow_background_color: str = "#ffffff"
    card_user_name_color: str = "#ffffff"
    card_badge_background_color: str = "rgba(0,0,0,0.5)"
    card_badge_icon_color: str = "#ffffff"


class FeedSettingsUpdate(BaseModel):
    """Partial update; unset fields keep their stored value."""

    model_config = _camel

    title: str | None = None
    subheading: str | None = None
    feed_type: Literal["slider", "grid"] | None = None
    show_pinned_reels: bool | None = None
    grid_desktop_columns: int | None = Field(default=None, ge=1, le=8)
    grid_mobile_columns: int | None = Field(default=None, ge=1, le=4)
    slider_desktop_columns: int | None = Field(default=None, ge=1, le=8)
    slider_mobile_columns: int | None = Field(default=None, ge=1, le=4)
    show_arrows: bool | None = None
    media_limit: int | None = Field(default=None, ge=1, le=100)
    on_click: Literal["popup", "instagram", "none"] | None = None
    post_spacing: Literal["none", "small", "medium", "large"] | None = None
    border_radius: Literal["none", "small", "medium", "large"] | None = None
    play_video_on_hover: bool | None = None
    show_thumbnail: bool | None = None
    show_views_count: bool | None = None
    show_author_profile: bool | None = None
    show_attached_products: bool | None = None
    clean_display: bool | None = None
    title_color: str | None = None
    subheading_color: str | None = None
    arrow_color: str | None = None
    arrow_background_color: str | None = None
    card_user_name_color: str | None = None
    card_badge_background_color: str | None = None
    card_badge_icon_color: str | None = None


def normalize_feed_settings(raw: dict[str, Any] | None) -> FeedDisplaySettings:
    """Fill defaults and drop invalid values from a stored settings payload.

    Invalid individual values fall back to their default instead of
    discarding the whole payload.
    """
    data = dict(raw or {})
    try:
        settings = FeedDisplaySettings.model_validate(data)
    except ValidationError as exc:
        settings = FeedDisplaySettings.model_validate(_drop_invalid(data, exc))
    return settings.model_copy(update={"version": SETTINGS_VERSION})


class WidgetConfig(BaseModel):
    model_config = _camel

    layout: Literal["grid", "carousel"] = "grid"
    columns_desktop: int = Field(default=4, ge=1, le=8)
    columns_mobile: int = Field(default=2, ge=1, le=4)
    gap: int = Field(default=10, ge=0, le=64)
    limit: int = Field(default=8, ge=1, le=100)
    show_title: bool = True
    title: str = "Follow us on Instagram"
    description: str = "Join our community for daily inspiration"
    show_button: bool = True
    button_text: str = "Follow on Instagram"
    button_url: str = "https://instagram.com"
    overlay: bool = True


def normalize_widget_config(raw: dict[str, Any] | None) -> WidgetConfig:
    data = dict(raw or {})
    try:
        return WidgetConfig.model_validate(data)
    except ValidationError as exc:
        return WidgetConfig.model_validate(_drop_invalid(data, exc))

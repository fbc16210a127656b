"""Tests for feed display settings: normalization, partial update and publish."""
from instafeed.repositories import settings_repository
from instafeed.schemas.settings import (
    SETTINGS_VERSION,
    FeedDisplaySettings,
    normalize_feed_settings,
    normalize_widget_config,
)

from tests.conftest import SHOP, install_shop


def test_normalize_fills_defaults():
    settings = normalize_feed_settings(None)
    assert settings == FeedDisplaySettings()
    assert settings.media_limit == 12
    assert settings.feed_type == "slider"


def test_normalize_accepts_both_spellings():
    settings = normalize_feed_settings({"mediaLimit": 6, "show_pinned_reels": True, "feedType": "grid"})
    assert settings.media_limit == 6
    assert settings.show_pinned_reels is True
    assert settings.feed_type == "grid"


def test_normalize_drops_invalid_values_only():
    settings = normalize_feed_settings(
        {"mediaLimit": 0, "feedType": "carousel", "title": "Shop the look", "unknownKey": 1}
    )
    assert settings.media_limit == 12
    assert settings.feed_type == "slider"
    assert settings.title == "Shop the look"


def test_normalize_stamps_current_version():
    assert normalize_feed_settings({"version": 0}).version == SETTINGS_VERSION


def test_widget_config_normalized():
    config = normalize_widget_config({"layout": "masonry", "columnsDesktop": 6})
    assert config.layout == "grid"
    assert config.columns_desktop == 6


async def test_get_defaults(client, auth_headers):
    resp = await client.get("/api/v1/settings", headers=auth_headers)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["mediaLimit"] == 12
    assert data["showAuthorProfile"] is True


async def test_update_merges_stores_and_publishes(client, database, settings, auth_headers, upstream):
    await install_shop(database, settings)
    async with database.session() as db:
        await settings_repository.upsert(db, SHOP, {"title": "Old title", "mediaLimit": 9}, 1)

    resp = await client.put(
        "/api/v1/settings",
        json={"feedType": "grid", "gridDesktopColumns": 5},
        headers=auth_headers,
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["feedType"] == "grid"
    assert data["gridDesktopColumns"] == 5
    assert data["title"] == "Old title"
    assert data["mediaLimit"] == 9

    async with database.session() as db:
        stored = await settings_repository.get_by_shop(db, SHOP)
    assert stored.config["feed_type"] == "grid"
    assert stored.config["title"] == "Old title"

    published = upstream.last_published()["settings"]
    assert published["feedType"] == "grid"
    assert published["gridDesktopColumns"] == 5


async def test_update_rejects_out_of_range(client, auth_headers):
    resp = await client.put("/api/v1/settings", json={"mediaLimit": 500}, headers=auth_headers)
    assert resp.status_code == 422


async def test_update_saved_even_without_installation(client, database, auth_headers):
    resp = await client.put("/api/v1/settings", json={"title": "New"}, headers=auth_headers)

    assert resp.status_code == 404
    async with database.session() as db:
        stored = await settings_repository.get_by_shop(db, SHOP)
    assert stored.config["title"] == "New"

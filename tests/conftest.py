"""Shared test fixtures: file-backed SQLite, fake upstream APIs and an app wired to both."""
import json
import time

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.ext.compiler import compiles

from instafeed.config import Settings
from instafeed.database import Database
from instafeed.main import create_app
from instafeed.middleware import rate_limiter
from instafeed.models.account import InstagramAccount
from instafeed.repositories import account_repository, installation_repository
from instafeed.utils.encryption import TokenEncryptor
from instafeed.utils.locks import TenantLockRegistry

# --- SQLite compatibility: compile PostgreSQL types for SQLite ---

@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_, compiler, **kw):
    return "JSON"


@compiles(UUID, "sqlite")
def _compile_uuid_sqlite(type_, compiler, **kw):
    return "VARCHAR(36)"


SHOP = "demo.myshopify.com"
OTHER_SHOP = "other.myshopify.com"
SHOP_GID = "gid://shopify/Shop/1001"
IG_USER_ID = "17841400000000001"
ADMIN_TOKEN = "shpat_test_token"
IG_TOKEN = "long-lived-token"
ENCRYPTION_KEY = "0123456789abcdef" * 4


def media_item(index: int, **overrides) -> dict:
    item = {
        "id": f"m{index}",
        "caption": f"Post {index}",
        "media_type": "IMAGE",
        "media_url": f"https://cdn.example.com/m{index}.jpg",
        "permalink": f"https://www.instagram.com/p/m{index}/",
        "timestamp": f"2026-10-{index % 28 + 1:02d}T10:00:00+0000",
        "username": "demo_store",
    }
    item.update(overrides)
    return item


class FakeUpstream:
    """Instagram Graph, Instagram token endpoints and Shopify Admin GraphQL in one handler."""

    def __init__(self):
        self.media: list[dict] = []
        self.children: dict[str, list[dict]] = {}
        self.profile = {
            "id": "app-scoped-1",
            "user_id": IG_USER_ID,
            "username": "demo_store",
            "profile_picture_url": "https://cdn.example.com/avatar.jpg",
        }
        self.short_token = {"access_token": "short-lived-token", "user_id": IG_USER_ID}
        self.long_token = {"access_token": IG_TOKEN, "token_type": "bearer", "expires_in": 5183944}
        self.refreshed_token = {"access_token": "refreshed-token", "token_type": "bearer", "expires_in": 5183944}
        self.media_status = 200
        self.media_body: str | None = None
        self.upgrade_status = 200
        self.publish_errors: list[dict] = []
        self.published: list[list[dict]] = []
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith("/graphql.json"):
            body = json.loads(request.content)
            if "metafieldsSet" in body["query"]:
                if self.publish_errors:
                    return httpx.Response(
                        200, json={"data": {"metafieldsSet": {"metafields": [], "userErrors": self.publish_errors}}}
                    )
                self.published.append(body["variables"]["metafields"])
                return httpx.Response(200, json={"data": {"metafieldsSet": {"metafields": [], "userErrors": []}}})
            return httpx.Response(200, json={"data": {"shop": {"id": SHOP_GID}}})

        if request.url.host == "api.instagram.com":
            return httpx.Response(200, json=self.short_token)
        if path == "/access_token":
            if self.upgrade_status != 200:
                return httpx.Response(self.upgrade_status, json={"error": {"message": "Unsupported request"}})
            return httpx.Response(200, json=self.long_token)
        if path == "/refresh_access_token":
            return httpx.Response(200, json=self.refreshed_token)
        if path.endswith("/me"):
            return httpx.Response(200, json=self.profile)
        if path.endswith("/media"):
            if self.media_status != 200:
                return httpx.Response(self.media_status, json={"error": {"message": "Invalid OAuth access token"}})
            if self.media_body is not None:
                return httpx.Response(200, text=self.media_body)
            limit = int(request.url.params.get("limit", 100))
            return httpx.Response(200, json={"data": self.media[:limit]})
        if path.endswith("/children"):
            media_id = path.split("/")[-2]
            return httpx.Response(200, json={"data": self.children.get(media_id, [])})
        return httpx.Response(404, json={"error": {"message": "Unknown path"}})

    def last_published(self) -> dict[str, object]:
        """Key -> decoded value of the most recent metafieldsSet call."""
        values = {}
        for field in self.published[-1]:
            values[field["key"]] = json.loads(field["value"]) if field["type"] == "json" else field["value"]
        return values


def session_token(settings: Settings, shop: str = SHOP, **overrides) -> str:
    now = int(time.time())
    claims = {
        "iss": f"https://{shop}/admin",
        "dest": f"https://{shop}",
        "aud": settings.SHOPIFY_API_KEY,
        "sub": "42",
        "exp": now + 60,
        "nbf": now - 5,
        "iat": now - 5,
        "jti": "test-jti",
        "sid": "test-sid",
    }
    claims.update(overrides)
    return jwt.encode(claims, settings.SHOPIFY_API_SECRET, algorithm="HS256")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        REDIS_URL="",
        APP_URL="https://feed.example.com",
        INSTAGRAM_APP_ID="ig-app-id",
        INSTAGRAM_APP_SECRET="ig-app-secret",
        SHOPIFY_API_KEY="shopify-api-key",
        SHOPIFY_API_SECRET="shopify-api-secret",
        ENCRYPTION_KEY=ENCRYPTION_KEY,
        MEDIA_FETCH_BACKOFF_SECONDS=0.0,
        FORCE_PREMIUM_PLAN=False,
        PREMIUM_SHOPS="",
        APP_ENV="test",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
async def database(settings):
    db = Database(settings.DATABASE_URL)

    # Writers queue on the busy handler instead of failing on lock upgrade
    @event.listens_for(db.engine.sync_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(db.engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
async def http_client(upstream):
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as client:
        yield client


@pytest.fixture
def locks() -> TenantLockRegistry:
    return TenantLockRegistry(None)


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    rate_limiter._memory_store.clear()
    yield
    rate_limiter._memory_store.clear()


@pytest.fixture
def app(settings, database, http_client, locks):
    application = create_app(settings)
    application.state.database = database
    application.state.http_client = http_client
    application.state.redis = None
    application.state.locks = locks
    return application


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers(settings) -> dict[str, str]:
    return {"Authorization": f"Bearer {session_token(settings)}"}


async def install_shop(database: Database, settings: Settings, shop: str = SHOP) -> None:
    encryptor = TokenEncryptor.from_settings(settings)
    async with database.session() as db:
        await installation_repository.upsert(db, shop, encryptor.encrypt(ADMIN_TOKEN, shop), "write_metafields")


async def connect_account(
    database: Database,
    settings: Settings,
    shop: str = SHOP,
    *,
    user_id: str = IG_USER_ID,
    username: str = "demo_store",
    **fields,
) -> None:
    encryptor = TokenEncryptor.from_settings(settings)
    values = {
        "access_token": encryptor.encrypt(IG_TOKEN, shop),
        "profile_picture_url": "https://cdn.example.com/avatar.jpg",
        "token_degraded": False,
        **fields,
    }
    async with database.session() as db:
        await account_repository.save(
            db, InstagramAccount(shop=shop, user_id=user_id, username=username, **values)
        )


@pytest.fixture
async def connected_shop(database, settings) -> str:
    """An installed shop with a connected Instagram account."""
    await install_shop(database, settings)
    await connect_account(database, settings)
    return SHOP

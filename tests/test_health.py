"""Health check, middleware and basic app tests."""
from instafeed.middleware.rate_limiter import RateLimitMiddleware


async def test_health_check(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_openapi_docs(client):
    response = await client.get("/docs")
    assert response.status_code == 200


async def test_openapi_schema(client):
    response = await client.get("/openapi.json")
    assert response.status_code == 200
    schema = response.json()
    assert schema["info"]["title"] == "Instagram Feed Sync API"
    assert schema["info"]["version"] == "0.1.0"
    assert "/api/event" in schema["paths"]
    assert "/instagram/callback" in schema["paths"]


async def test_request_id_header(client):
    response = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["x-request-id"] == "req-123"

    response = await client.get("/health")
    assert len(response.headers["x-request-id"]) == 12


async def test_admin_cors_allows_embedded_origin(client):
    response = await client.options(
        "/api/v1/settings",
        headers={
            "Origin": "https://admin.shopify.com",
            "Access-Control-Request-Method": "PUT",
            "Access-Control-Request-Headers": "Authorization",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "https://admin.shopify.com"


async def test_admin_cors_rejects_storefront_origin(client):
    response = await client.options(
        "/api/v1/settings",
        headers={
            "Origin": "https://evil.example",
            "Access-Control-Request-Method": "PUT",
        },
    )
    assert response.status_code == 400


async def test_rate_limit_on_callback(client):
    limit, _ = RateLimitMiddleware.LIMITS["/instagram/callback"]
    for _ in range(limit):
        response = await client.get("/instagram/callback")
        assert response.status_code == 302

    response = await client.get("/instagram/callback")
    assert response.status_code == 429
    assert response.json()["title"] == "Too Many Requests"


async def test_rate_limit_headers(client):
    response = await client.get("/api/event?shop=demo.myshopify.com&type=view")
    assert response.headers["x-ratelimit-limit"] == "120"
    assert response.headers["x-ratelimit-window"] == "60s"

"""CORS configuration: embedded admin origins plus open storefront tracking routes."""
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from instafeed.config import Settings

PUBLIC_CORS_PATHS = ("/api/event", "/api/track")

PUBLIC_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Cache-Control": "no-store",
}


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Register CORS middleware with allowed origins from settings."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )


class PublicTrackingCorsMiddleware(BaseHTTPMiddleware):
    """Storefront pages on any domain may post tracking beacons.

    Must wrap CORSMiddleware so preflights for the tracking routes are
    answered here instead of being rejected for an unknown origin.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not request.url.path.startswith(PUBLIC_CORS_PATHS):
            return await call_next(request)

        if request.method == "OPTIONS":
            return Response(status_code=204, headers=PUBLIC_CORS_HEADERS)

        response = await call_next(request)
        # CORSMiddleware may have echoed the origin; the tracking routes are public
        for header in ("access-control-allow-credentials", "vary"):
            if header in response.headers:
                del response.headers[header]
        response.headers.update(PUBLIC_CORS_HEADERS)
        return response


def setup_public_cors(app: FastAPI) -> None:
    """Register after ``setup_cors`` and the rate limiter (last added runs first)."""
    app.add_middleware(PublicTrackingCorsMiddleware)

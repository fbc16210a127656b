"""Global error handler middleware."""
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from instafeed.exceptions import FeedError

logger = structlog.get_logger()


def setup_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(FeedError)
    async def feed_error_handler(request: Request, exc: FeedError) -> JSONResponse:
        logger.warning(
            "feed_error",
            error=exc.title,
            stage=exc.stage,
            detail=exc.message,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "type": "about:blank",
                "title": exc.title,
                "status": exc.status_code,
                "detail": exc.message,
                "stage": exc.stage,
            },
        )

    @app.exception_handler(TimeoutError)
    async def timeout_handler(_request: Request, exc: TimeoutError) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={
                "type": "about:blank",
                "title": "Conflict",
                "status": 409,
                "detail": str(exc) or "Another operation for this shop is in progress.",
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(_request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "type": "about:blank",
                "title": "Bad Request",
                "status": 400,
                "detail": str(exc),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_exception", error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "type": "about:blank",
                "title": "Internal Server Error",
                "status": 500,
                "detail": "An unexpected error occurred.",
            },
        )

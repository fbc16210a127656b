"""
Development server for the feed sync API.

Reload defaults to on when APP_ENV is "development"; the log level follows
LOG_LEVEL. On Windows the selector loop is forced because asyncpg cannot run
on the ProactorEventLoop uvicorn picks there.

Usage:
    python run.py                       # settings from .env
    python run.py --port 8080 --no-reload
"""
import sys

if sys.platform == "win32":
    import asyncio

    import uvicorn.loops.asyncio as _uvicorn_loops

    def _selector_loop_factory(use_subprocess: bool = False):
        return asyncio.SelectorEventLoop

    _uvicorn_loops.asyncio_loop_factory = _selector_loop_factory

import argparse

import uvicorn

from instafeed.config import get_settings


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Run the Instagram feed sync API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument(
        "--reload",
        action=argparse.BooleanOptionalAction,
        default=settings.APP_ENV == "development",
    )
    parser.add_argument("--log-level", default=settings.LOG_LEVEL.lower())
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()
    uvicorn.run(
        "instafeed.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
        loop="asyncio",
    )

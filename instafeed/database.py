"""Async SQLAlchemy engine and session factory."""
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from instafeed.config import Settings

logger = logging.getLogger(__name__)

SLOW_QUERY_THRESHOLD_MS = 500  # Log queries slower than 500ms


def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    conn.info["query_start_time"] = time.perf_counter()


def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    start = conn.info.pop("query_start_time", None)
    if start is None:
        return
    elapsed_ms = (time.perf_counter() - start) * 1000
    if elapsed_ms >= SLOW_QUERY_THRESHOLD_MS:
        logger.warning(
            "Slow query detected: %.1fms: %s",
            elapsed_ms,
            statement[:200],
        )


class Database:
    """Engine + session factory owned by the process entry point.

    Created once in the application lifespan (or by a Celery task) and handed
    to whoever needs a session; nothing imports a module-level engine.
    """

    def __init__(self, url: str, *, echo: bool = False, **engine_kwargs):
        self.engine = create_async_engine(url, echo=echo, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        event.listen(self.engine.sync_engine, "before_cursor_execute", _before_cursor_execute)
        event.listen(self.engine.sync_engine, "after_cursor_execute", _after_cursor_execute)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        kwargs: dict = {}
        if settings.DATABASE_URL.startswith("postgresql"):
            kwargs = {"pool_size": 20, "max_overflow": 10, "pool_pre_ping": True}
        return cls(settings.DATABASE_URL, echo=settings.APP_ENV == "development", **kwargs)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Unit of work: commit on success, roll back on error."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        from instafeed.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

"""Per-tenant mutual exclusion for feed synchronization.

With Redis configured the lock is a ``redis.asyncio`` lock shared by every
process (API workers and Celery workers). Without Redis, an ``asyncio.Lock``
per shop serializes syncs inside the current process only.
"""
import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

from redis.asyncio import Redis
from redis.asyncio.lock import Lock
from redis.exceptions import LockError, RedisError

logger = logging.getLogger(__name__)


class TenantLockRegistry:
    def __init__(self, redis: Redis | None = None, *, timeout: float = 120, prefix: str = "lock:feed-sync"):
        self._redis = redis
        self._timeout = timeout
        self._prefix = prefix
        self._local: dict[str, asyncio.Lock] = {}

    def _local_lock(self, shop: str) -> asyncio.Lock:
        lock = self._local.get(shop)
        if lock is None:
            lock = self._local[shop] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def hold(self, shop: str) -> AsyncIterator[None]:
        """Hold the sync lock for ``shop`` for the duration of the block.

        The Redis lock is renewed every third of its timeout while the block
        runs. If the lock is lost anyway the block is cancelled and
        TimeoutError is raised, so a stale sync never publishes.
        """
        if self._redis is None:
            async with self._local_lock(shop):
                yield
            return

        # timeout expires a lock left behind by a crashed holder;
        # blocking_timeout bounds how long a caller queues for it.
        lock = self._redis.lock(
            f"{self._prefix}:{shop}",
            timeout=self._timeout,
            blocking_timeout=self._timeout,
        )
        acquired = await lock.acquire()
        if not acquired:
            raise TimeoutError(f"Timed out waiting for sync lock of {shop}")

        holder = asyncio.current_task()
        lost = asyncio.Event()
        keeper = asyncio.create_task(self._keep_alive(lock, shop, holder, lost))
        try:
            yield
        except asyncio.CancelledError:
            if not lost.is_set():
                raise
            holder.uncancel()
            raise TimeoutError(f"Sync lock of {shop} was lost while syncing") from None
        finally:
            keeper.cancel()
            with suppress(asyncio.CancelledError):
                await keeper
            if not lost.is_set():
                try:
                    await lock.release()
                except LockError:
                    logger.error("Sync lock for %s expired before release", shop)

    async def _keep_alive(self, lock: Lock, shop: str, holder: asyncio.Task, lost: asyncio.Event) -> None:
        interval = self._timeout / 3
        while True:
            await asyncio.sleep(interval)
            try:
                await lock.reacquire()
            except LockError:
                logger.error("Sync lock for %s lost, aborting sync", shop)
                lost.set()
                holder.cancel()
                return
            except RedisError as exc:
                logger.warning("Could not renew sync lock for %s, retrying: %s", shop, exc)

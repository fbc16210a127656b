"""Redis client helper -- provides async Redis connection."""
import logging
from urllib.parse import urlsplit

from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from instafeed.config import Settings

logger = logging.getLogger(__name__)


def redis_location(url: str) -> str:
    """``host:port/db`` of a Redis URL, without credentials."""
    parts = urlsplit(url)
    location = parts.hostname or "localhost"
    if parts.port:
        location += f":{parts.port}"
    return location + (parts.path or "")


async def create_redis(settings: Settings) -> Redis | None:
    """Connect to Redis, or return None when it is disabled or unreachable.

    An unreachable server is logged as an error: syncs then serialize only
    inside this process, not against other API or worker processes.
    """
    if not settings.REDIS_URL:
        return None
    location = redis_location(settings.REDIS_URL)
    client = from_url(settings.REDIS_URL, decode_responses=True)
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.error(
            "Redis unreachable at %s (%s): sync locks and rate limits are per-process only",
            location, type(exc).__name__,
        )
        await client.aclose()
        return None
    logger.info("Redis connected: %s", location)
    return client


async def close_redis(client: Redis | None) -> None:
    """Close Redis connection."""
    if client is not None:
        await client.aclose()

"""Retry with exponential backoff for Instagram Graph requests."""
import asyncio
import logging
from typing import Any, Callable

import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
MAX_RETRY_AFTER_SECONDS = 30.0


def retry_after_seconds(response: httpx.Response) -> float | None:
    """Delay requested by a throttled response, capped at MAX_RETRY_AFTER_SECONDS."""
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return min(max(float(value), 0.0), MAX_RETRY_AFTER_SECONDS)
    except ValueError:
        return None


async def retry_with_backoff(
    func: Callable[..., Any],
    *args: Any,
    max_retries: int = 3,
    backoff_base: float = 1.0,
    backoff_factor: float = 2.0,
    retryable_exceptions: tuple = (httpx.HTTPStatusError, httpx.TransportError),
    label: str = "request",
    **kwargs: Any,
) -> Any:
    """Await ``func(*args, **kwargs)``, retrying transient failures.

    Transport errors and 429/5xx responses are retried; any other status is
    re-raised at once. The delay is ``backoff_base * backoff_factor ** attempt``
    unless a 429 carries ``Retry-After``, which then wins.
    """
    for attempt in range(max_retries + 1):
        try:
            return await func(*args, **kwargs)
        except retryable_exceptions as exc:
            delay = backoff_base * (backoff_factor ** attempt)
            if isinstance(exc, httpx.HTTPStatusError):
                status = exc.response.status_code
                if status not in RETRYABLE_STATUS_CODES:
                    raise
                if status == 429:
                    delay = retry_after_seconds(exc.response) or delay

            if attempt >= max_retries:
                logger.error("%s failed after %d retries: %s", label, max_retries, exc)
                raise
            logger.warning("%s retry %d/%d in %.1fs: %s", label, attempt + 1, max_retries, delay, exc)
            await asyncio.sleep(delay)

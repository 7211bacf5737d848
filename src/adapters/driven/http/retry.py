"""Retry logic for transient data-store errors."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

import aiohttp

__all__ = ["retry", "RETRYABLE_ERRORS"]

logger = logging.getLogger(__name__)

# Exceptions considered transient and eligible for retry
RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    aiohttp.ClientConnectorError,  # Connection refused, DNS failed
    aiohttp.ServerDisconnectedError,  # Keep-alive connection dropped
    aiohttp.ClientOSError,  # OS-level network error
    aiohttp.ServerTimeoutError,  # Server timeout
    aiohttp.ClientPayloadError,  # Truncated body
)

T = TypeVar("T")
AsyncFn = Callable[..., Awaitable[T]]


def retry(
    times: int = 2,
    delay_sec: tuple[float, ...] = (0.1, 0.3),
    retry_on: tuple[type[BaseException], ...] = RETRYABLE_ERRORS,
) -> Callable[[AsyncFn[T]], AsyncFn[T]]:
    """Decorate an async call with a short, bounded retry.

    Delays are kept well below the polling interval: the scheduler retries
    on its own cadence, this only smooths over dropped connections.

    Args:
        times: Number of attempts (1 = no retry).
        delay_sec: Delays between attempts in seconds; the last one repeats.
        retry_on: Exception types considered transient.

    Returns:
        Decorator function.

    Example:
        @retry(times=3, delay_sec=(0.1, 0.3))
        async def fetch_rows():
            return await session.get(url)
    """
    if times < 1:
        raise ValueError(f"times must be >= 1 (got: {times})")

    def decorator(func: AsyncFn[T]) -> AsyncFn[T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(1, times + 1):
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    if attempt == times:
                        logger.debug(f"Retry exhausted after {times} attempts: {e!r}")
                        raise
                    delay = delay_sec[min(attempt - 1, len(delay_sec) - 1)]
                    logger.debug(f"Attempt {attempt}/{times} failed ({e!r}), retrying in {delay}s")
                    await asyncio.sleep(delay)
            raise RuntimeError("Retry wrapper exhausted")  # unreachable, times >= 1

        return wrapper

    return decorator

"""Tests for the retry decorator."""

from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from src.adapters.driven.http.retry import RETRYABLE_ERRORS, retry

__all__ = []

TRANSIENT = [
    aiohttp.ServerDisconnectedError(),
    aiohttp.ClientOSError(104, "Connection reset by peer"),
    aiohttp.ClientPayloadError("truncated"),
]


@pytest.mark.asyncio
@pytest.mark.parametrize("exc", TRANSIENT, ids=lambda e: type(e).__name__)
async def test_retry_decorator_retries_on_transient_errors(exc: BaseException) -> None:
    """Retry decorator should retry on transient errors, then re-raise."""
    mock_fn = AsyncMock(side_effect=exc)
    wrapped = retry(times=3)(mock_fn)

    with (
        patch("src.adapters.driven.http.retry.asyncio.sleep", new=AsyncMock()),
        pytest.raises(type(exc)),
    ):
        await wrapped()

    assert isinstance(exc, RETRYABLE_ERRORS)
    assert mock_fn.call_count == 3


@pytest.mark.asyncio
async def test_retry_decorator_recovers_after_transient_error() -> None:
    """A transient error followed by success should return the result."""
    mock_fn = AsyncMock(side_effect=[aiohttp.ServerDisconnectedError(), [{"id": 1}]])
    wrapped = retry(times=2)(mock_fn)

    with patch("src.adapters.driven.http.retry.asyncio.sleep", new=AsyncMock()):
        result = await wrapped()

    assert result == [{"id": 1}]
    assert mock_fn.call_count == 2


@pytest.mark.asyncio
async def test_retry_decorator_does_not_retry_permanent_errors() -> None:
    """Retry decorator should not retry non-transient errors."""
    mock_fn = AsyncMock(side_effect=ValueError("Invalid request"))
    wrapped = retry(times=3)(mock_fn)

    with pytest.raises(ValueError):
        await wrapped()

    assert mock_fn.call_count == 1


@pytest.mark.asyncio
async def test_retry_decorator_delays_between_attempts() -> None:
    """Delays should follow delay_sec, repeating the last one."""
    mock_fn = AsyncMock(side_effect=aiohttp.ServerDisconnectedError())
    wrapped = retry(times=4, delay_sec=(0.1, 0.2))(mock_fn)

    mock_sleep = AsyncMock()
    with (
        patch("src.adapters.driven.http.retry.asyncio.sleep", mock_sleep),
        pytest.raises(aiohttp.ServerDisconnectedError),
    ):
        await wrapped()

    assert [c.args[0] for c in mock_sleep.call_args_list] == [0.1, 0.2, 0.2]


def test_retry_rejects_zero_attempts() -> None:
    """At least one attempt is required."""
    with pytest.raises(ValueError):
        retry(times=0)

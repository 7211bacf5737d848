"""Tests for HTTP health check probing."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.adapters.driven.http.client import HttpClient

__all__ = []


def make_client(status: int) -> HttpClient:
    client = HttpClient(base_url="https://project.supabase.co", api_key="anon-key")
    response = MagicMock()
    response.status = status
    client.session = MagicMock()
    client.session.get.return_value.__aenter__.return_value = response
    return client


@pytest.mark.asyncio
async def test_probe_success() -> None:
    """probe() should return True when GET succeeds with 200 <= status < 300."""
    client = make_client(200)

    result = await client.probe("https://project.supabase.co/auth/v1/health")

    assert result is True
    client.session.get.assert_called_once()
    assert client.session.get.call_args.kwargs["headers"] == {"apikey": "anon-key"}


@pytest.mark.asyncio
async def test_probe_failure() -> None:
    """probe() should return False for >=300 status codes."""
    client = make_client(503)

    result = await client.probe("https://project.supabase.co/auth/v1/health")

    assert result is False


@pytest.mark.asyncio
async def test__probe_once_raises_if_session_not_initialized() -> None:
    """_probe_once should raise if session is None."""
    client = HttpClient(base_url="https://project.supabase.co", api_key="anon-key")
    client.session = None  # force the error path

    with pytest.raises(RuntimeError, match="Session not initialized"):
        await client._probe_once("https://project.supabase.co/auth/v1/health")


@pytest.mark.asyncio
async def test_probe_returns_false_on_exception() -> None:
    """probe() should return False when _probe_once raises."""
    client = HttpClient(base_url="https://project.supabase.co", api_key="anon-key")
    client._probe_once = AsyncMock(side_effect=RuntimeError("boom"))

    result = await client.probe("https://project.supabase.co/auth/v1/health")

    client._probe_once.assert_awaited_once()
    assert result is False

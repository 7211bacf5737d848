"""Tests for HTTP client adapter."""

import json
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from src.adapters.driven.http.client import HttpClient
from src.core.errors import AuthError, FetchError
from src.ports.http import RestQuery
from src.ports.metrics import MetricsPort, QueryAttemptDto

__all__ = []

BASE_URL = "https://project.supabase.co"


class DummyMetrics(MetricsPort):
    """Metrics implementation for testing."""

    def __init__(self) -> None:
        self.attempts: list[QueryAttemptDto] = []

    def update(self, attempt: QueryAttemptDto) -> None:
        """Record attempt."""
        self.attempts.append(attempt)

    def __str__(self) -> str:
        """Return string representation."""
        return f"Recorded {len(self.attempts)} attempts"


def make_client(status: int = 200, body=None, metrics: MetricsPort | None = None) -> HttpClient:
    """Create a client whose session answers every GET with `status`/`body`."""
    client = HttpClient(base_url=BASE_URL + "/", api_key="anon-key", metrics=metrics)
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=body)
    response.text = AsyncMock(return_value=str(body))
    client.session = MagicMock()
    client.session.get.return_value.__aenter__.return_value = response
    return client


@pytest.mark.asyncio
async def test_http_client_context_manager() -> None:
    """HTTP client should initialize and close session."""
    client = HttpClient(base_url=BASE_URL, api_key="anon-key")
    assert client.session is None

    async with client as c:
        assert c.session is not None
        assert c is client

    assert client.session.closed


def test_headers_use_user_token_when_given() -> None:
    """The bearer should be the user token, falling back to the anon key."""
    client = HttpClient(base_url=BASE_URL, api_key="anon-key")

    assert client.headers("user-token")["Authorization"] == "Bearer user-token"
    assert client.headers()["Authorization"] == "Bearer anon-key"
    assert client.headers()["apikey"] == "anon-key"


@pytest.mark.asyncio
async def test_query_builds_rest_request() -> None:
    """query() should GET the table endpoint with select and filters."""
    client = make_client(body=[{"id": 1}, {"id": 2}])
    query = RestQuery(table="workouts", select="id", filters={"user_id": "eq.u1"})

    rows = await client.query(query, access_token="user-token")

    assert rows == [{"id": 1}, {"id": 2}]
    args, kwargs = client.session.get.call_args
    assert args[0] == f"{BASE_URL}/rest/v1/workouts"
    assert kwargs["params"] == {"select": "id", "user_id": "eq.u1"}
    assert kwargs["headers"]["Authorization"] == "Bearer user-token"


@pytest.mark.asyncio
async def test_query_records_metrics() -> None:
    """Successful queries should be recorded as not failed."""
    metrics = DummyMetrics()
    client = make_client(body=[], metrics=metrics)

    await client.query(RestQuery(table="meals"))

    assert len(metrics.attempts) == 1
    assert metrics.attempts[0].path == "/rest/v1/meals"
    assert metrics.attempts[0].status_code == 200
    assert metrics.attempts[0].is_failed is False


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403])
async def test_auth_failures_raise_auth_error(status: int) -> None:
    """401/403 should be reported as authentication errors."""
    metrics = DummyMetrics()
    client = make_client(status=status, body="JWT expired", metrics=metrics)

    with pytest.raises(AuthError):
        await client.query(RestQuery(table="goals"))

    assert metrics.attempts[0].is_failed is True


@pytest.mark.asyncio
async def test_server_errors_raise_fetch_error() -> None:
    """Other error statuses should raise FetchError."""
    client = make_client(status=500, body="boom")

    with pytest.raises(FetchError, match="status 500"):
        await client.query(RestQuery(table="goals"))


@pytest.mark.asyncio
async def test_non_list_response_raises_fetch_error() -> None:
    """A table query must return a JSON array."""
    client = make_client(body={"message": "unexpected"})

    with pytest.raises(FetchError, match="Unexpected response"):
        await client.query(RestQuery(table="goals"))


@pytest.mark.asyncio
async def test_undecodable_body_raises_fetch_error() -> None:
    """A 200 response whose body is not JSON should raise FetchError."""
    metrics = DummyMetrics()
    client = make_client(metrics=metrics)
    response = client.session.get.return_value.__aenter__.return_value
    response.json.side_effect = json.JSONDecodeError("Expecting value", "<html>", 0)

    with pytest.raises(FetchError, match="not JSON"):
        await client.query(RestQuery(table="workouts"))

    assert metrics.attempts[0].is_failed is True


@pytest.mark.asyncio
async def test_network_errors_raise_fetch_error() -> None:
    """Client errors should be wrapped into FetchError and recorded."""
    metrics = DummyMetrics()
    client = HttpClient(base_url=BASE_URL, api_key="anon-key", metrics=metrics)
    client._raw_get = AsyncMock(side_effect=aiohttp.ClientConnectionError("reset"))

    with pytest.raises(FetchError):
        await client.get_json("/rest/v1/workouts")

    assert metrics.attempts[0].status_code is None
    assert metrics.attempts[0].is_failed is True


@pytest.mark.asyncio
async def test_get_json_requires_session() -> None:
    """Using the client outside 'async with' should fail loudly."""
    client = HttpClient(base_url=BASE_URL, api_key="anon-key")

    with pytest.raises(RuntimeError, match="Session not initialized"):
        await client.get_json("/rest/v1/workouts")

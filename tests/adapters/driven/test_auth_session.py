"""Tests for identity resolution."""

from unittest.mock import AsyncMock

import pytest

from src.adapters.driven.auth.session import USER_PATH, resolve_identity
from src.core.errors import AuthError

__all__ = []


@pytest.mark.asyncio
async def test_resolve_identity_returns_user() -> None:
    """A valid token should resolve to the user's id."""
    http = AsyncMock()
    http.get_json = AsyncMock(return_value={"id": "user-1", "email": "ada@example.com"})

    identity = await resolve_identity(http, "user-token")

    assert identity.user_id == "user-1"
    assert identity.access_token == "user-token"
    assert identity.email == "ada@example.com"
    http.get_json.assert_awaited_once_with(USER_PATH, access_token="user-token")


@pytest.mark.asyncio
async def test_resolve_identity_without_token() -> None:
    """No token should raise AuthError without calling the service."""
    http = AsyncMock()

    with pytest.raises(AuthError, match="No access token"):
        await resolve_identity(http, None)

    http.get_json.assert_not_called()


@pytest.mark.asyncio
async def test_resolve_identity_without_user_id() -> None:
    """A response without an id should be treated as unauthenticated."""
    http = AsyncMock()
    http.get_json = AsyncMock(return_value={"message": "nope"})

    with pytest.raises(AuthError):
        await resolve_identity(http, "user-token")

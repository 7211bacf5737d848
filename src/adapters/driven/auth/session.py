"""Identity resolution against the backend's auth API."""

import logging

from src.adapters.driven.http.client import HttpClient
from src.core.errors import AuthError
from src.ports.identity import UserIdentity

__all__ = ["resolve_identity"]

logger = logging.getLogger(__name__)

USER_PATH = "/auth/v1/user"


async def resolve_identity(http: HttpClient, access_token: str | None) -> UserIdentity:
    """Exchange an access token for the signed-in user.

    Args:
        http: Open HTTP client.
        access_token: User session token.

    Returns:
        The authenticated identity.

    Raises:
        AuthError: If no token is given, or it is rejected or malformed.
        FetchError: If the auth service cannot be reached.
    """
    if not access_token:
        raise AuthError("No access token configured (set SUPABASE_ACCESS_TOKEN)")

    user = await http.get_json(USER_PATH, access_token=access_token)
    user_id = user.get("id") if isinstance(user, dict) else None
    if not user_id:
        raise AuthError("Auth service returned no user for the access token")

    identity = UserIdentity(user_id=str(user_id), access_token=access_token, email=user.get("email"))
    logger.info(f"Signed in as {identity.email or identity.user_id}")
    return identity

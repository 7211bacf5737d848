"""Identity port definition (DTO)."""

from dataclasses import dataclass

__all__ = ["UserIdentity"]


@dataclass(slots=True, frozen=True)
class UserIdentity:
    """Authenticated user as issued by the session provider.

    Attributes:
        user_id: Stable opaque user identifier.
        access_token: Bearer token used for data-store requests.
        email: Optional email, used only for log messages.
    """

    user_id: str
    access_token: str
    email: str | None = None

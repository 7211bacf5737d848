"""Data store port definitions (interfaces and DTOs)."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from src.ports.identity import UserIdentity

__all__ = [
    "ChangeEvent",
    "ChangeFeedPort",
    "DataStorePort",
    "GoalProgress",
    "Subscription",
    "WATCHED_TABLES",
]

WATCHED_TABLES: tuple[str, ...] = ("workouts", "meals", "goals")


@dataclass(slots=True, frozen=True)
class GoalProgress:
    """Progress values of one goal record.

    Attributes:
        current_value: Value reached so far.
        target_value: Value to reach.
    """

    current_value: float
    target_value: float

    @property
    def ratio(self) -> float:
        """Return current/target, 0 when the target is not positive."""
        if self.target_value <= 0:
            return 0.0
        return self.current_value / self.target_value


@dataclass(slots=True, frozen=True)
class ChangeEvent:
    """Out-of-band notification that a watched record changed.

    Attributes:
        table: Table the record belongs to.
        change_type: INSERT, UPDATE or DELETE.
    """

    table: str
    change_type: str


class DataStorePort(Protocol):
    """Read queries the metrics fetcher needs.

    Implementations raise FetchError on service failures and AuthError
    when the identity is rejected.
    """

    async def count_workouts(self, identity: UserIdentity, since: datetime) -> int:
        """Count workouts created at or after `since`."""
        ...

    async def sum_meal_calories(self, identity: UserIdentity, since: datetime) -> float:
        """Sum calories of meals consumed at or after `since`."""
        ...

    async def list_goals(self, identity: UserIdentity, status: str) -> list[GoalProgress]:
        """List goals with the given status."""
        ...


class Subscription(Protocol):
    """Handle on an active change-feed registration."""

    async def close(self) -> None:
        """Release the registration. Safe to call more than once."""
        ...


class ChangeFeedPort(Protocol):
    """Source of push notifications for record changes."""

    async def subscribe(
        self,
        identity: UserIdentity,
        tables: Sequence[str],
        on_change: Callable[[ChangeEvent], None],
    ) -> Subscription:
        """Watch `tables` for rows owned by `identity`.

        Args:
            identity: Owner of the watched rows.
            tables: Table names to watch.
            on_change: Called once per received change.

        Returns:
            Subscription to close on shutdown.
        """
        ...

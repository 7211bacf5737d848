"""Data store adapter over the backend's REST (PostgREST) API."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from src.adapters.driven.http.client import HttpClient
from src.core.errors import FetchError
from src.ports.data_store import DataStorePort, GoalProgress
from src.ports.http import RestQuery
from src.ports.identity import UserIdentity

__all__ = ["SupabaseDataStore"]

logger = logging.getLogger(__name__)


def _number(row: dict[str, Any], column: str) -> float:
    """Read a numeric column; NULL counts as 0."""
    value = row.get(column)
    if value is None:
        return 0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise FetchError(f"Column {column} is not numeric: {value!r}") from e


class SupabaseDataStore(DataStorePort):
    """Reads workouts, meals and goals rows owned by one user.

    Row-level filtering is done with PostgREST operators, e.g.
    `user_id=eq.<id>` and `created_at=gte.<iso timestamp>`.
    """

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    async def count_workouts(self, identity: UserIdentity, since: datetime) -> int:
        rows = await self._http.query(
            RestQuery(
                table="workouts",
                select="id,created_at",
                filters={
                    "user_id": f"eq.{identity.user_id}",
                    "created_at": f"gte.{since.isoformat()}",
                },
            ),
            identity.access_token,
        )
        return len(rows)

    async def sum_meal_calories(self, identity: UserIdentity, since: datetime) -> float:
        rows = await self._http.query(
            RestQuery(
                table="meals",
                select="calories,consumed_at",
                filters={
                    "user_id": f"eq.{identity.user_id}",
                    "consumed_at": f"gte.{since.isoformat()}",
                },
            ),
            identity.access_token,
        )
        return sum(_number(row, "calories") for row in rows)

    async def list_goals(self, identity: UserIdentity, status: str) -> list[GoalProgress]:
        rows = await self._http.query(
            RestQuery(
                table="goals",
                select="current_value,target_value,status",
                filters={
                    "user_id": f"eq.{identity.user_id}",
                    "status": f"eq.{status}",
                },
            ),
            identity.access_token,
        )
        goals = [
            GoalProgress(
                current_value=_number(row, "current_value"),
                target_value=_number(row, "target_value"),
            )
            for row in rows
        ]
        logger.debug(f"Loaded {len(goals)} {status} goals for user {identity.user_id}")
        return goals

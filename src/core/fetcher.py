"""Gathers today's workout, meal and goal metrics into one sample."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, time, timezone

import aiohttp

from src.core.errors import AuthError, FetchError
from src.ports.data_store import DataStorePort, GoalProgress
from src.ports.fetch import FailureReason, FetchFailure
from src.ports.identity import UserIdentity
from src.ports.samples import MetricName, MetricSample

__all__ = ["MetricsFetcher", "goals_progress_percent", "local_now", "start_of_day"]

logger = logging.getLogger(__name__)

IN_PROGRESS = "in_progress"


def local_now() -> datetime:
    """Return the current local time as an aware datetime."""
    return datetime.now().astimezone()


def start_of_day(now: datetime) -> datetime:
    """Return local midnight of the calendar day containing `now`.

    The offset is resolved for midnight itself, so on a daylight saving
    change day it can differ from the offset of `now`.
    """
    midnight = datetime.combine(now.date(), time.min)
    if now.tzinfo is None:
        return midnight
    if isinstance(now.tzinfo, timezone) and now.utcoffset() == now.astimezone().utcoffset():
        # fixed offset taken from the system zone; its rules live there
        return midnight.astimezone()
    return midnight.replace(tzinfo=now.tzinfo)


def goals_progress_percent(goals: list[GoalProgress]) -> int:
    """Average completion of goals as a rounded percentage.

    Args:
        goals: In-progress goals.

    Returns:
        round(mean(current/target) * 100), or 0 when there are no goals.
    """
    if not goals:
        return 0
    mean_ratio = sum(goal.ratio for goal in goals) / len(goals)
    return round(mean_ratio * 100)


class MetricsFetcher:
    """Queries the data store for today's counts and packages a sample.

    The three queries are independent and run concurrently; if any of them
    fails the whole fetch fails and no partial sample is produced.
    """

    def __init__(
        self,
        store: DataStorePort,
        *,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        """Initialize the fetcher.

        Args:
            store: Data store to query.
            clock: Returns the current aware local time.
        """
        self._store = store
        self._clock = clock

    async def fetch_latest(self, identity: UserIdentity | None) -> MetricSample | FetchFailure:
        """Fetch today's metrics for `identity`.

        Args:
            identity: Authenticated user, or None if nobody is signed in.

        Returns:
            A new sample, or a typed failure. Never raises; unexpected
            errors while querying or packaging are reported as fetch_error.
        """
        if identity is None:
            return FetchFailure(FailureReason.UNAUTHENTICATED, "no signed-in user")

        since = start_of_day(self._clock())
        try:
            workout_count, calories, goals = await asyncio.gather(
                self._store.count_workouts(identity, since),
                self._store.sum_meal_calories(identity, since),
                self._store.list_goals(identity, IN_PROGRESS),
            )
            return MetricSample(
                timestamp=self._clock(),
                fields={
                    MetricName.WORKOUT_COUNT.value: workout_count,
                    MetricName.CALORIES_CONSUMED.value: calories,
                    MetricName.GOALS_PROGRESS.value: goals_progress_percent(goals),
                },
            )
        except AuthError as e:
            logger.warning(f"Metrics fetch rejected for user {identity.user_id}: {e}")
            return FetchFailure(FailureReason.UNAUTHENTICATED, str(e) or None)
        except (FetchError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Metrics fetch failed: {e!r}")
            return FetchFailure(FailureReason.FETCH_ERROR, str(e) or type(e).__name__)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Unexpected data from the metrics store: {e!r}", exc_info=True)
            return FetchFailure(FailureReason.FETCH_ERROR, str(e) or type(e).__name__)

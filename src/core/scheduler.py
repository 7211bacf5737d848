"""Polling scheduler that drives the metrics fetcher."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from enum import Enum

from src.core.buffer import BoundedSampleBuffer
from src.core.connectivity import ConnectivityTracker
from src.core.errors import ConfigError, LiveMetricsError
from src.core.fetcher import MetricsFetcher, local_now
from src.ports.data_store import WATCHED_TABLES, ChangeEvent, ChangeFeedPort, Subscription
from src.ports.fetch import FailureReason, FetchFailure, FetchOutcome
from src.ports.identity import UserIdentity
from src.ports.samples import MetricSample

__all__ = ["PollingScheduler", "SchedulerState", "TriggerReason", "get_now_time"]

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    """Lifecycle of a scheduler instance."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class TriggerReason(str, Enum):
    """What asked for a fetch."""

    INITIAL = "initial"
    INTERVAL = "interval"
    PUSH = "push"
    MANUAL = "manual"
    RESUME = "resume"


Listener = Callable[["PollingScheduler"], None]
AuthErrorHandler = Callable[[FetchFailure], None]


def get_now_time() -> float:
    """Get current monotonic time in seconds.

    Uses event loop's monotonic clock for accurate scheduling
    without wall-clock drift.

    Returns:
        Current time in seconds (monotonic).
    """
    return asyncio.get_running_loop().time()


class PollingScheduler:
    """Fetches metrics every `interval_ms` and on push notifications.

    State machine: idle -> running <-> paused -> stopped (terminal).
    Paused means no fetch at all until resume().

    Every trigger (initial, periodic timer, push notification, manual
    refresh, resume) goes through request_fetch(), which feeds a queue of
    size one consumed by a single worker task. Fetches therefore never
    overlap, and a trigger arriving while a request is already pending is
    absorbed by it.

    Results are applied only if the scheduler has not been stopped since
    the fetch began; a late result after stop() is dropped.

    Not thread-safe; create one instance per chart on one event loop.
    """

    def __init__(
        self,
        fetcher: MetricsFetcher,
        buffer: BoundedSampleBuffer,
        tracker: ConnectivityTracker,
        *,
        interval_ms: int,
        fetch_timeout_ms: int | None = None,
        change_feed: ChangeFeedPort | None = None,
        on_auth_error: AuthErrorHandler | None = None,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        """Initialize the scheduler in the idle state.

        Args:
            fetcher: Produces samples.
            buffer: Receives successful samples.
            tracker: Updated after every applied outcome.
            interval_ms: Polling period in milliseconds.
            fetch_timeout_ms: Upper bound for one fetch; defaults to interval_ms.
            change_feed: Optional source of push notifications.
            on_auth_error: Called when a fetch fails as unauthenticated.
            clock: Wall clock used to stamp outcomes.

        Raises:
            ConfigError: If interval_ms or fetch_timeout_ms is not positive.
        """
        if isinstance(interval_ms, bool) or not isinstance(interval_ms, int) or interval_ms <= 0:
            raise ConfigError(f"interval_ms must be a positive integer (got: {interval_ms!r})")
        if fetch_timeout_ms is not None and fetch_timeout_ms <= 0:
            raise ConfigError(f"fetch_timeout_ms must be positive (got: {fetch_timeout_ms!r})")

        self._fetcher = fetcher
        self._buffer = buffer
        self._tracker = tracker
        self._interval_ms = interval_ms
        self._fetch_timeout_sec = (fetch_timeout_ms or interval_ms) / 1_000.0
        self._change_feed = change_feed
        self._on_auth_error = on_auth_error
        self._clock = clock

        self._state = SchedulerState.IDLE
        self._identity: UserIdentity | None = None
        self._generation = 0
        self._requests: asyncio.Queue[TriggerReason] = asyncio.Queue(maxsize=1)
        self._worker: asyncio.Task[None] | None = None
        self._timer: asyncio.Task[None] | None = None
        self._subscription: Subscription | None = None
        self._listeners: list[Listener] = []

        self.last_fetch_outcome: FetchOutcome | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def buffer(self) -> BoundedSampleBuffer:
        return self._buffer

    @property
    def tracker(self) -> ConnectivityTracker:
        return self._tracker

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def identity(self) -> UserIdentity | None:
        return self._identity

    def add_listener(self, listener: Listener) -> None:
        """Register a callback run after every buffer or status change."""
        self._listeners.append(listener)

    async def start(self, identity: UserIdentity | None) -> bool:
        """Leave the idle state and begin polling.

        Subscribes to push notifications (if a change feed is configured),
        requests one immediate fetch and arms the periodic timer.

        Args:
            identity: Signed-in user; with None the scheduler stays idle.

        Returns:
            True if the scheduler is now running.
        """
        if self._state is not SchedulerState.IDLE:
            logger.warning(f"start() ignored in state {self._state.value}")
            return False
        if identity is None:
            logger.info("No signed-in user, live metrics stay idle")
            return False

        self._identity = identity
        if self._change_feed is not None:
            try:
                self._subscription = await self._change_feed.subscribe(
                    identity, WATCHED_TABLES, self.notify_change
                )
            except LiveMetricsError as e:
                logger.warning(f"Push notifications unavailable, polling only: {e}")

        if self._state is SchedulerState.STOPPED:
            # stop() ran while the subscription was being set up
            await self._release_subscription()
            return False

        self._state = SchedulerState.RUNNING
        self._worker = asyncio.get_running_loop().create_task(self._run_worker())
        self.request_fetch(TriggerReason.INITIAL)
        self._arm_timer()
        logger.info(
            f"Live metrics started for user {identity.user_id} "
            f"(interval={self._interval_ms} ms, capacity={self._buffer.capacity})"
        )
        self._notify_listeners()
        return True

    def pause(self) -> None:
        """Suspend periodic polling; buffered samples are kept.

        Calling it again while paused does nothing.
        """
        if self._state is not SchedulerState.RUNNING:
            return
        self._cancel_timer()
        self._state = SchedulerState.PAUSED
        logger.info("Real-time updates paused")
        self._notify_listeners()

    def resume(self, fetch_now: bool = True) -> None:
        """Re-arm periodic polling after pause().

        Args:
            fetch_now: Also request one immediate fetch.
        """
        if self._state is not SchedulerState.PAUSED:
            return
        self._state = SchedulerState.RUNNING
        self._arm_timer()
        if fetch_now:
            self.request_fetch(TriggerReason.RESUME)
        logger.info("Real-time updates resumed")
        self._notify_listeners()

    def refresh(self) -> bool:
        """Request a manual out-of-cadence fetch."""
        return self.request_fetch(TriggerReason.MANUAL)

    def notify_change(self, event: ChangeEvent | None = None) -> None:
        """Push-notification entry point; requests an immediate fetch.

        The periodic timer keeps its phase.
        """
        if event is not None:
            logger.debug(f"Change notification: {event.change_type} on {event.table}")
        self.request_fetch(TriggerReason.PUSH)

    def request_fetch(self, reason: TriggerReason) -> bool:
        """Queue a fetch request for the worker.

        Args:
            reason: What triggered the request (for logging).

        Only a running scheduler accepts requests; while paused, push
        notifications and manual refreshes are dropped until resume().

        Returns:
            True if queued; False if absorbed by a pending request or the
            scheduler is not running.
        """
        if self._state is not SchedulerState.RUNNING:
            logger.debug(f"Ignoring {reason.value} fetch request in state {self._state.value}")
            return False
        try:
            self._requests.put_nowait(reason)
        except asyncio.QueueFull:
            logger.debug(f"Fetch already pending, {reason.value} request absorbed")
            return False
        return True

    def clear_samples(self) -> None:
        """Empty the buffer (reset/logout)."""
        self._buffer.clear()
        self._notify_listeners()

    async def wait_idle(self) -> None:
        """Wait until every queued fetch request has been processed."""
        if self._state in (SchedulerState.IDLE, SchedulerState.STOPPED):
            return
        await self._requests.join()

    async def stop(self) -> None:
        """Stop for good: cancel timer and worker, release the change feed.

        Any fetch still in flight is cancelled and its result, should it
        arrive anyway, is discarded.
        """
        if self._state is SchedulerState.STOPPED:
            return
        self._state = SchedulerState.STOPPED
        self._generation += 1

        tasks = [t for t in (self._timer, self._worker) if t is not None]
        self._timer = None
        self._worker = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        while not self._requests.empty():
            self._requests.get_nowait()
            self._requests.task_done()

        await self._release_subscription()
        logger.info("Live metrics stopped")

    def _arm_timer(self) -> None:
        self._timer = asyncio.get_running_loop().create_task(self._run_timer())

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _run_timer(self) -> None:
        """Request a fetch every interval, based on monotonic time."""
        period_sec = self._interval_ms / 1_000.0
        next_tick = get_now_time() + period_sec
        while True:
            sleep_duration = max(0, next_tick - get_now_time())
            await asyncio.sleep(sleep_duration)
            self.request_fetch(TriggerReason.INTERVAL)
            next_tick += period_sec

    async def _run_worker(self) -> None:
        """Consume fetch requests one at a time."""
        while True:
            reason = await self._requests.get()
            try:
                if self._state is not SchedulerState.RUNNING:
                    logger.debug(f"Dropping {reason.value} request queued before pause")
                    continue
                generation = self._generation
                logger.debug(f"Fetching metrics ({reason.value})")
                result = await self._fetch_bounded()
                self._apply(generation, result)
            except Exception as e:  # noqa: BLE001
                logger.error(f"Unexpected error in fetch worker: {e}", exc_info=True)
            finally:
                self._requests.task_done()

    async def _fetch_bounded(self) -> MetricSample | FetchFailure:
        try:
            return await asyncio.wait_for(
                self._fetcher.fetch_latest(self._identity),
                timeout=self._fetch_timeout_sec,
            )
        except asyncio.TimeoutError:
            return FetchFailure(
                FailureReason.FETCH_ERROR,
                f"fetch timed out after {self._fetch_timeout_sec:.1f}s",
            )
        except Exception as e:  # noqa: BLE001
            logger.error(f"Fetcher raised instead of reporting a failure: {e!r}", exc_info=True)
            return FetchFailure(FailureReason.FETCH_ERROR, str(e) or type(e).__name__)

    def _apply(self, generation: int, result: MetricSample | FetchFailure) -> bool:
        """Apply a fetch result unless it belongs to a stopped generation.

        Returns:
            True if the result mutated the buffer/tracker.
        """
        if self._state is SchedulerState.STOPPED or generation != self._generation:
            logger.debug("Discarding fetch result that arrived after stop")
            return False

        finished_at = self._clock()
        if isinstance(result, MetricSample):
            self._buffer.append(result)
            self._tracker.on_fetch_success(result.timestamp)
            self.last_fetch_outcome = FetchOutcome(succeeded=True, finished_at=finished_at)
            self._notify_listeners()
            return True

        self._tracker.on_fetch_failure()
        self.last_fetch_outcome = FetchOutcome(
            succeeded=False, finished_at=finished_at, failure=result
        )
        logger.warning(f"Connection lost ({result}), retrying on next tick")
        self._notify_listeners()
        if result.reason is FailureReason.UNAUTHENTICATED and self._on_auth_error is not None:
            self._on_auth_error(result)
        return True

    def _notify_listeners(self) -> None:
        for listener in self._listeners:
            try:
                listener(self)
            except Exception as e:  # noqa: BLE001
                logger.error(f"Listener failed: {e}", exc_info=True)

    async def _release_subscription(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is None:
            return
        try:
            await subscription.close()
        except LiveMetricsError as e:
            logger.warning(f"Failed to release change feed subscription: {e}")

"""Application entrypoint."""

import asyncio
import logging

from src.adapters.driven.auth.session import resolve_identity
from src.adapters.driven.chart.log_sink import LogChartSink
from src.adapters.driven.config.settings import Settings, load_settings
from src.adapters.driven.http.client import HttpClient
from src.adapters.driven.logging.logging_config import configure_logs
from src.adapters.driven.metrics.http_metrics import Metrics
from src.adapters.driven.store.realtime import RealtimeChangeFeed
from src.adapters.driven.store.supabase_store import SupabaseDataStore
from src.adapters.driving.signals import make_stop_event
from src.core.buffer import BoundedSampleBuffer
from src.core.connectivity import ConnectivityTracker
from src.core.errors import AuthError, FetchError
from src.core.fetcher import MetricsFetcher
from src.core.presenter import ChartPresenter
from src.core.scheduler import PollingScheduler
from src.ports.chart import SelectedPoint
from src.ports.fetch import FetchFailure
from src.ports.identity import UserIdentity

__all__ = ["main", "run", "optional_endpoint_health_check", "log_selected_point"]

logger = logging.getLogger(__name__)


async def main() -> None:
    """Start the live metrics feed.

    Startup sequence:
    1. Configure logging.
    2. Load and validate configuration.
    3. Optionally probe the backend's health endpoint.
    4. Resolve the signed-in user; without a token the feed stays idle.
    5. Poll metrics until SIGTERM/SIGINT or an authentication failure.
    6. Stop the scheduler and release the realtime subscription.
    """
    configure_logs()
    logger.info("Starting live metrics feed...")

    try:
        settings = load_settings()
    except (RuntimeError, ValueError) as exc:
        logger.error(
            "Configuration error: %s\n"
            "Hint: check SUPABASE_URL, SUPABASE_ANON_KEY, REFRESH_INTERVAL_MS "
            "and MAX_DATA_POINTS.",
            exc,
        )
        return

    core_settings = settings.to_port()
    metrics = Metrics()
    http_client = HttpClient(
        base_url=settings.supabase_url,
        api_key=settings.supabase_anon_key,
        metrics=metrics,
    )

    async with http_client as http:
        if not await optional_endpoint_health_check(settings, http):
            return

        identity: UserIdentity | None = None
        if settings.access_token:
            try:
                identity = await resolve_identity(http, settings.access_token)
            except (AuthError, FetchError) as exc:
                logger.error(f"Cannot sign in: {exc}. Re-authenticate and restart.")
                return
        else:
            logger.warning("SUPABASE_ACCESS_TOKEN not set, live metrics stay idle until stopped")

        stop_event = make_stop_event()

        def on_auth_error(failure: FetchFailure) -> None:
            logger.error(f"Session rejected ({failure}), re-authentication required")
            stop_event.set()

        change_feed = (
            RealtimeChangeFeed(http.session, settings.supabase_url, settings.supabase_anon_key)
            if settings.realtime_enabled and http.session is not None
            else None
        )
        scheduler = PollingScheduler(
            fetcher=MetricsFetcher(SupabaseDataStore(http)),
            buffer=BoundedSampleBuffer(core_settings.max_data_points),
            tracker=ConnectivityTracker(),
            interval_ms=core_settings.interval_ms,
            fetch_timeout_ms=core_settings.fetch_timeout_ms,
            change_feed=change_feed,
            on_auth_error=on_auth_error,
        )
        ChartPresenter(scheduler, LogChartSink(), on_select=log_selected_point)

        try:
            await scheduler.start(identity)
            await stop_event.wait()
        except Exception as e:
            logger.error(f"Unhandled exception in live metrics loop: {e}", exc_info=True)
        finally:
            await scheduler.stop()

        logger.info(f"Live metrics feed stopped. Query metrics: {metrics}")


async def optional_endpoint_health_check(settings: Settings, http: HttpClient) -> bool:
    """Perform optional health check before starting.

    Only runs if HEALTH_CHECK_ENABLED is true.

    Args:
        settings: Runtime settings.
        http: HTTP client for probing.

    Returns:
        True if healthy or check disabled, False if check failed.
    """
    if settings.health_check_enabled:
        url = settings.health_check_url
        logger.info(f"Performing health check on {url}...")
        if not await http.probe(url=url):
            logger.error(f"Health check failed for {url}, aborting startup")
            return False

        logger.info("Health check passed, starting live metrics...")
    return True


def log_selected_point(point: SelectedPoint) -> None:
    """Show the details of a clicked chart point."""
    sample = point.sample
    others = ", ".join(
        f"{name}={value}" for name, value in sample.fields.items() if name != point.metric
    )
    logger.info(
        f"{point.meta.label} at {sample.timestamp.strftime('%b %d, %Y %H:%M:%S')}: "
        f"{point.value} {point.meta.unit} ({others})"
    )


def run() -> None:
    """Console script entrypoint."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user (Ctrl+C).")


if __name__ == "__main__":
    run()

"""Healthcheck validator for container orchestration."""

import logging

from src.adapters.driven.config.settings import load_settings
from src.adapters.driven.logging.logging_config import configure_logs
from src.core.buffer import BoundedSampleBuffer

__all__ = ["main"]

logger = logging.getLogger(__name__)


def main() -> int:
    """Run health check for container orchestration.

    Validates:
    - SUPABASE_URL and SUPABASE_ANON_KEY are set and well formed.
    - Interval, capacity and timeout values are positive integers.
    - A sample buffer can be built with the configured capacity.

    Returns:
        0 if healthy, 1 if unhealthy.
    """
    configure_logs()

    try:
        settings = load_settings()
        BoundedSampleBuffer(settings.max_data_points)
    except Exception as exc:
        logger.error(f"Live metrics healthcheck FAILED: {exc}")
        return 1

    if not settings.access_token:
        logger.warning("No SUPABASE_ACCESS_TOKEN set, the feed will stay idle")
    logger.info("Live metrics healthcheck OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Console logging setup for the live metrics feed."""

import logging
import os

__all__ = ["configure_logs"]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%d/%m/%y %H:%M:%S"


def configure_logs(level: str | None = None) -> None:
    """Configure console logging.

    Sets up:
    - Root logger at `level` (default: LOG_LEVEL env var, else INFO).
    - Framework loggers (aiohttp, asyncio) at WARNING level.
    - Application loggers (src) at DEBUG level.
    - Format with timestamp, level, module, and line number.

    Calling it again replaces the handler instead of adding a second one.

    Args:
        level: Root log level name, e.g. "DEBUG".
    """
    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    handler.set_name("live-metrics")

    root = logging.getLogger()
    root.setLevel(level_name)
    for existing in list(root.handlers):
        if existing.get_name() == "live-metrics":
            root.removeHandler(existing)
    root.addHandler(handler)

    # Suppress verbose framework loggers
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    # Application loggers
    logging.getLogger("src").setLevel(logging.DEBUG)

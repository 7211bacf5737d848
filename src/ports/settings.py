"""Settings port definition (DTO)."""

from dataclasses import dataclass

__all__ = ["SettingsPort"]

DEFAULT_INTERVAL_MS = 5000
DEFAULT_MAX_DATA_POINTS = 50


@dataclass
class SettingsPort:
    """Runtime settings for the live metrics core.

    Decouples core from concrete configuration sources, enabling
    easy testing and implementation swapping.

    Attributes:
        interval_ms: Polling period in milliseconds.
        max_data_points: Capacity of the sample buffer.
        fetch_timeout_ms: Upper bound for one fetch; defaults to interval_ms.
    """

    interval_ms: int = DEFAULT_INTERVAL_MS
    max_data_points: int = DEFAULT_MAX_DATA_POINTS
    fetch_timeout_ms: int | None = None

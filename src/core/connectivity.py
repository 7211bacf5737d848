"""Connected/disconnected status derived from fetch results."""

from __future__ import annotations

from datetime import datetime

__all__ = ["ConnectivityTracker"]


class ConnectivityTracker:
    """Tracks whether the most recent fetch succeeded.

    Attributes:
        connected: True after a successful fetch, False after a failed one.
        last_update: Time of the most recent successful fetch, or None.
    """

    def __init__(self) -> None:
        self.connected: bool = False
        self.last_update: datetime | None = None

    def on_fetch_success(self, timestamp: datetime) -> None:
        self.connected = True
        self.last_update = timestamp

    def on_fetch_failure(self) -> None:
        # last_update is kept so the last known data stays labelled
        self.connected = False

    def __str__(self) -> str:
        status = "connected" if self.connected else "disconnected"
        last = self.last_update.strftime("%H:%M:%S") if self.last_update else "never"
        return f"{status} (last update: {last})"

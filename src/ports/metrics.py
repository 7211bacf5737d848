"""Metrics port definition (interface and DTO)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

__all__ = ["QueryAttemptDto", "MetricsPort"]


@dataclass(slots=True, frozen=True)
class QueryAttemptDto:
    """Immutable snapshot of a single data-store query.

    Attributes:
        path: Request path (e.g. /rest/v1/workouts).
        started_at_sec: Monotonic seconds when the request left the process.
        finished_at_sec: Monotonic seconds when the response arrived.
        is_failed: True if considered failed (network error, 4xx/5xx).
        status_code: HTTP status code when a response arrived; None otherwise.
    """

    path: str
    started_at_sec: float
    finished_at_sec: float
    is_failed: bool = False
    status_code: int | None = None


class MetricsPort(Protocol):
    """Interface for recording query metrics.

    Implementations must be async-safe and non-blocking.
    """

    def update(self, attempt: QueryAttemptDto, /) -> None:
        """Record a finished query.

        Args:
            attempt: The attempt to record.
        """
        ...

    def __str__(self) -> str:
        """Return concise textual summary for humans."""
        ...
